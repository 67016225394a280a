from .factories import AppFactory, NotificationFactory, RecipientFactory

__all__ = ["AppFactory", "NotificationFactory", "RecipientFactory"]
