from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_retry_after(value: str | None, now: datetime) -> datetime | None:
    """Parse a Retry-After header into an absolute time.

    Accepts a non-negative number of seconds or an HTTP date. Anything else
    yields None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if value.isascii() and value.isdigit():
        try:
            return now + timedelta(seconds=int(value))
        except (OverflowError, ValueError):
            return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RetryManager:
    """Decides when failed deliveries may be retried."""

    DEFAULT_SPLIT_DELAY = 600  # 10m, used when no failure carries a retry time
    TRANSPORT_RETRY_DELAY = 10  # whole notification retry after a socket error
    MAX_BACKOFF_EXPONENT = 30  # 2**30 s, about 34 years

    def __init__(
        self,
        split_delay: int | None = None,
        transport_retry_delay: int | None = None,
        clock=None,
    ):
        self.split_delay = split_delay if split_delay is not None else self.DEFAULT_SPLIT_DELAY
        self.transport_retry_delay = (
            transport_retry_delay
            if transport_retry_delay is not None
            else self.TRANSPORT_RETRY_DELAY
        )
        self.clock = clock or utcnow

    def now(self) -> datetime:
        return self.clock()

    def backoff_delay(self, retries: int) -> int:
        """Exponential delay in seconds for a notification with ``retries`` prior splits."""
        return 2 ** min(retries + 1, self.MAX_BACKOFF_EXPONENT)

    def retry_after(self, header_value: str | None, retries: int) -> datetime:
        """Resolve when an endpoint may be retried.

        Args:
            header_value: Raw Retry-After header, or None when absent.
            retries: Retry counter of the notification being delivered.

        Returns:
            The parsed header time, falling back to exponential backoff.
        """
        now = self.now()
        parsed = parse_retry_after(header_value, now)
        if parsed is not None:
            return parsed
        return now + timedelta(seconds=self.backoff_delay(retries))

    def split_deliver_after(self, retry_times: list[datetime | None]) -> datetime:
        """Latest of the given retry times, or the default split delay from now."""
        known = [t for t in retry_times if t is not None]
        if known:
            return max(known)
        return self.now() + timedelta(seconds=self.split_delay)

    def transport_retry_at(self) -> datetime:
        return self.now() + timedelta(seconds=self.transport_retry_delay)
