import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class Reflector:
    """Fans delivery events out to registered callbacks.

    Events are fire-and-forget: a failing callback is logged and never
    interrupts delivery.
    """

    def __init__(self):
        self._callbacks: dict[str, list] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event: str, callback) -> None:
        with self._lock:
            self._callbacks[event].append(callback)

    def reflect(self, event: str, *args) -> None:
        with self._lock:
            callbacks = list(self._callbacks.get(event, ()))
        for callback in callbacks:
            try:
                callback(*args)
            except Exception:
                logger.exception("Reflection callback for %s raised", event)

    def delivered_to_recipient(self, service: str, notification, endpoint: str) -> None:
        self.reflect(f"{service}_delivered_to_recipient", notification, endpoint)

    def failed_to_recipient(self, service: str, notification, message: str, endpoint: str) -> None:
        self.reflect(f"{service}_failed_to_recipient", notification, message, endpoint)

    def invalid_endpoint(self, service: str, app, message: str, endpoint: str) -> None:
        self.reflect(f"{service}_invalid_endpoint", app, message, endpoint)

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()
