import threading
import uuid
from datetime import datetime

from src.models.delivery import DeliveryStatus
from src.models.notification import App, Notification, Recipient


class InMemoryStore:
    """Thread-safe notification store kept in process memory."""

    def __init__(self):
        self._notifications: dict[str, Notification] = {}
        self._errors: dict[str, Exception] = {}
        self._lock = threading.Lock()

    def add(self, notification: Notification) -> Notification:
        with self._lock:
            self._notifications[notification.notification_id] = notification
        return notification

    def create_notification(
        self,
        attrs: dict,
        data: dict | None,
        recipients: list[Recipient],
        deliver_after: datetime,
        app: App,
    ) -> Notification:
        notification = Notification(
            notification_id=f"ntf_{uuid.uuid4().hex[:16]}",
            app=app,
            recipients=list(recipients),
            data=data,
            deliver_after=deliver_after,
            **attrs,
        )
        return self.add(notification)

    def mark_delivered(self, notification: Notification) -> None:
        with self._lock:
            notification.status = DeliveryStatus.DELIVERED
            self._notifications[notification.notification_id] = notification

    def mark_failed(self, notification: Notification, error: Exception) -> None:
        with self._lock:
            notification.status = DeliveryStatus.FAILED
            self._errors[notification.notification_id] = error
            self._notifications[notification.notification_id] = notification

    def mark_retryable(self, notification: Notification, time: datetime, error: Exception) -> None:
        with self._lock:
            notification.status = DeliveryStatus.RETRYABLE
            notification.deliver_after = time
            self._errors[notification.notification_id] = error
            self._notifications[notification.notification_id] = notification

    def get(self, notification_id: str) -> Notification | None:
        with self._lock:
            return self._notifications.get(notification_id)

    def get_error(self, notification_id: str) -> Exception | None:
        with self._lock:
            return self._errors.get(notification_id)

    def by_status(self, status: DeliveryStatus) -> list[Notification]:
        with self._lock:
            return [n for n in self._notifications.values() if n.status == status]

    def all(self) -> list[Notification]:
        with self._lock:
            return list(self._notifications.values())

    def clear(self) -> None:
        with self._lock:
            self._notifications.clear()
            self._errors.clear()
