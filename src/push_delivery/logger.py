import threading
from collections import Counter

from src.models.delivery import DeliveryAttempt

SUCCESS_CODES = (200, 201)


def _failed(attempt: DeliveryAttempt) -> bool:
    return attempt.status_code is None or attempt.status_code not in SUCCESS_CODES


class DeliveryLogger:
    """Thread-safe record of every wire request made to a push endpoint."""

    def __init__(self):
        self._attempts: list[DeliveryAttempt] = []
        self._lock = threading.Lock()

    def log(self, attempt: DeliveryAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def get_attempts(self, notification_id: str | None = None) -> list[DeliveryAttempt]:
        with self._lock:
            if notification_id is None:
                return list(self._attempts)
            return [a for a in self._attempts if a.notification_id == notification_id]

    def get_attempts_for_endpoint(self, endpoint: str) -> list[DeliveryAttempt]:
        """Every request made to ``endpoint``, across the notifications split from one another."""
        with self._lock:
            return [a for a in self._attempts if a.endpoint == endpoint]

    def get_failed_attempts(self) -> list[DeliveryAttempt]:
        with self._lock:
            return [a for a in self._attempts if _failed(a)]

    def failures_by_endpoint(self) -> dict[str, int]:
        """Failed request count per endpoint; endpoints that never failed are omitted."""
        with self._lock:
            return dict(Counter(a.endpoint for a in self._attempts if _failed(a)))

    def last_status(self, endpoint: str) -> int | None:
        """Status code of the most recent request to ``endpoint``, None if unanswered or unseen."""
        with self._lock:
            for attempt in reversed(self._attempts):
                if attempt.endpoint == endpoint:
                    return attempt.status_code
            return None

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
