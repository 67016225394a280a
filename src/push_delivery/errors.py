class DeliveryError(Exception):
    """A notification could not be delivered to all of its recipients."""

    def __init__(self, code: int | None, notification_id: str, description: str):
        self.code = code
        self.notification_id = notification_id
        self.description = description
        super().__init__(
            f"Unable to deliver notification {notification_id}, "
            f"received error {code} ({description})"
        )


class ProtocolError(DeliveryError):
    """The push service rejected the request itself (400 / 413).

    Attributable to the sender rather than the recipient, so it aborts the
    whole attempt instead of being recorded per endpoint.
    """
