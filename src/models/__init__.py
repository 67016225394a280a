from .notification import App, Notification, Recipient
from .delivery import (
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryStatus,
    Delivered,
    Fatal,
    PartiallyRetried,
    PermanentFailure,
    TemporaryFailure,
    TransportRetry,
)

__all__ = [
    "App", "Notification", "Recipient",
    "DeliveryAttempt", "DeliveryStatus", "DeliveryOutcome",
    "Delivered", "PartiallyRetried", "Fatal", "TransportRetry",
    "TemporaryFailure", "PermanentFailure",
]
