import json
from dataclasses import dataclass, field
from datetime import datetime

from src.models.delivery import DeliveryStatus


@dataclass
class App:
    name: str
    service_name: str  # "webpush" or "mozilla"
    certificate: str | None = None  # webpush stores the VAPID key pair here as JSON

    @property
    def vapid(self) -> dict:
        """VAPID key pair and contact, e.g. {"subject": ..., "public_key": ..., "private_key": ...}."""
        if not self.certificate:
            return {}
        return json.loads(self.certificate)


@dataclass(frozen=True)
class Recipient:
    """A push subscription: the endpoint plus its keying material.

    Webpush subscriptions carry ``keys`` ({"p256dh": ..., "auth": ...}),
    Mozilla ones a single ``key``.
    """

    endpoint: str
    keys: dict = field(default_factory=dict, compare=False, hash=False)
    key: str | None = None


@dataclass
class Notification:
    """A push message addressed to one or more recipients.

    ``expiry`` overrides the default TTL when set. ``retries`` counts how many
    split generations preceded this notification.
    """

    DEFAULT_TTL = 2419200  # 4 weeks

    notification_id: str
    app: App
    recipients: list[Recipient]
    data: dict | None = None
    collapse_key: str | None = None
    delay_while_idle: bool = False
    expiry: int | None = None
    retries: int = 0
    deliver_after: datetime | None = None
    status: DeliveryStatus = DeliveryStatus.PENDING

    @property
    def ttl(self) -> int:
        return self.expiry if self.expiry is not None else self.DEFAULT_TTL

    @property
    def endpoints(self) -> list[str]:
        return [r.endpoint for r in self.recipients]

    @property
    def message(self) -> str | None:
        """Plaintext push message built from the title and message data fields."""
        if not self.data:
            return None
        parts = [self.data.get("title"), self.data.get("message")]
        return "\n".join(p for p in parts if p)
