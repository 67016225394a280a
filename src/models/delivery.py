from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DeliveryStatus(Enum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    RETRYABLE = "RETRYABLE"


@dataclass
class DeliveryAttempt:
    """One wire request to one endpoint."""

    attempt_id: str
    notification_id: str
    endpoint: str
    status_code: int | None
    timestamp: datetime
    response_time_ms: float
    error: str | None = None


@dataclass(frozen=True)
class TemporaryFailure:
    endpoint: str
    status_code: int
    message: str
    retry_after: datetime


@dataclass(frozen=True)
class PermanentFailure:
    endpoint: str
    status_code: int
    message: str


# Outcomes of one delivery attempt. ``error`` is what ``perform`` raises.


@dataclass(frozen=True)
class Delivered:
    notification_id: str
    error: None = None


@dataclass(frozen=True)
class PartiallyRetried:
    notification_id: str
    split_id: str | None
    error: Exception


@dataclass(frozen=True)
class Fatal:
    notification_id: str
    reason: str
    error: Exception


@dataclass(frozen=True)
class TransportRetry:
    notification_id: str
    retry_at: datetime
    error: Exception


DeliveryOutcome = Delivered | PartiallyRetried | Fatal | TransportRetry
