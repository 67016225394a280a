import threading

from src.models.notification import Notification


class Batch:
    """Tracks when every notification in a unit of work has been processed.

    Delivery workers call ``notification_processed`` once per notification,
    whatever the outcome; the batch layer blocks in ``wait`` until all have
    reported.
    """

    def __init__(self, notifications: list[Notification]):
        self.notifications = list(notifications)
        self._num_processed = 0
        self._condition = threading.Condition()

    def __len__(self) -> int:
        return len(self.notifications)

    def __iter__(self):
        return iter(self.notifications)

    @property
    def num_processed(self) -> int:
        with self._condition:
            return self._num_processed

    @property
    def complete(self) -> bool:
        with self._condition:
            return self._num_processed >= len(self.notifications)

    def notification_processed(self) -> None:
        with self._condition:
            self._num_processed += 1
            if self._num_processed >= len(self.notifications):
                self._condition.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until all notifications are processed. False on timeout."""
        with self._condition:
            return self._condition.wait_for(
                lambda: self._num_processed >= len(self.notifications),
                timeout=timeout,
            )
