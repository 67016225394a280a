from datetime import datetime
from typing import Protocol, runtime_checkable

from src.models.notification import App, Notification, Recipient


@runtime_checkable
class Store(Protocol):
    """Persistence operations the delivery engine relies on."""

    def create_notification(
        self,
        attrs: dict,
        data: dict | None,
        recipients: list[Recipient],
        deliver_after: datetime,
        app: App,
    ) -> Notification: ...

    def mark_delivered(self, notification: Notification) -> None: ...

    def mark_failed(self, notification: Notification, error: Exception) -> None: ...

    def mark_retryable(self, notification: Notification, time: datetime, error: Exception) -> None: ...
