import json
import uuid

from src.models.notification import App, Notification, Recipient


class AppFactory:
    """Factory for creating App instances with sensible defaults."""

    @staticmethod
    def create(service_name: str = "webpush", **overrides) -> App:
        defaults = {
            "name": f"app_{uuid.uuid4().hex[:8]}",
            "service_name": service_name,
            "certificate": None,
        }
        if service_name == "webpush":
            defaults["certificate"] = json.dumps({
                "subject": "mailto:push@example.com",
                "public_key": "BPublicKeyForTests",
                "private_key": "privateKeyForTests",
            })
        defaults.update(overrides)
        return App(**defaults)


class RecipientFactory:
    """Factory for push subscriptions."""

    @staticmethod
    def create(endpoint: str | None = None, service_name: str = "webpush") -> Recipient:
        endpoint = endpoint or f"https://push.example.com/send/{uuid.uuid4().hex[:12]}"
        if service_name == "mozilla":
            return Recipient(endpoint=endpoint, key=f"key_{uuid.uuid4().hex[:8]}")
        return Recipient(
            endpoint=endpoint,
            keys={"p256dh": f"p256dh_{uuid.uuid4().hex[:8]}", "auth": uuid.uuid4().hex[:8]},
        )


class NotificationFactory:
    """Factory for creating Notification instances with sensible defaults."""

    @staticmethod
    def create(endpoints: list[str] | None = None, **overrides) -> Notification:
        app = overrides.pop("app", None) or AppFactory.create()
        if "recipients" not in overrides:
            endpoints = endpoints or [None]
            overrides["recipients"] = [
                RecipientFactory.create(e, service_name=app.service_name) for e in endpoints
            ]
        defaults = {
            "notification_id": f"ntf_{uuid.uuid4().hex[:16]}",
            "app": app,
            "data": {"title": "Hello", "message": "You have a new message"},
            "collapse_key": None,
            "delay_while_idle": False,
            "expiry": None,
            "retries": 0,
        }
        defaults.update(overrides)
        return Notification(**defaults)
