from typing import Mapping

from requests.structures import CaseInsensitiveDict

from src.models.delivery import PermanentFailure, TemporaryFailure
from src.models.notification import Notification
from src.push_delivery.errors import ProtocolError
from src.push_delivery.providers import ProviderPolicy
from src.push_delivery.retry import RetryManager


def classify(
    policy: ProviderPolicy,
    retry_manager: RetryManager,
    notification: Notification,
    endpoint: str,
    status_code: int,
    headers: Mapping[str, str] | None = None,
) -> TemporaryFailure | PermanentFailure | None:
    """Classify one push service response.

    Returns None on success, otherwise the endpoint's failure. 400 and 413
    are not endpoint failures and raise ProtocolError.
    """
    if status_code in policy.success_codes:
        return None
    if status_code in policy.protocol_errors:
        raise ProtocolError(status_code, notification.notification_id, policy.protocol_errors[status_code])
    if status_code in policy.temporary_errors:
        retry_after = retry_manager.retry_after(
            CaseInsensitiveDict(headers or {}).get("Retry-After"),
            notification.retries,
        )
        return TemporaryFailure(
            endpoint=endpoint,
            status_code=status_code,
            message=policy.temporary_errors[status_code],
            retry_after=retry_after,
        )
    message = policy.permanent_errors.get(status_code, f"unknown error: {status_code}")
    return PermanentFailure(endpoint=endpoint, status_code=status_code, message=message)


class Failures:
    """Failed endpoints of one attempt, split into temporary and permanent."""

    def __init__(self, notification: Notification):
        self._notification = notification
        self.temporary: list[TemporaryFailure] = []
        self.permanent: list[PermanentFailure] = []

    def add(self, failure: TemporaryFailure | PermanentFailure) -> None:
        if isinstance(failure, TemporaryFailure):
            self.temporary.append(failure)
        else:
            self.permanent.append(failure)

    @property
    def all(self) -> list[TemporaryFailure | PermanentFailure]:
        return [*self.temporary, *self.permanent]

    def __len__(self) -> int:
        return len(self.temporary) + len(self.permanent)

    def __bool__(self) -> bool:
        return len(self) > 0

    @property
    def all_failed(self) -> bool:
        return len(self._notification.recipients) == len(self)

    @property
    def description(self) -> str:
        sections = [
            _describe(self.temporary, "had temporary failures and will be retried"),
            _describe(self.permanent, "failed permanently"),
        ]
        return "\n".join(s for s in sections if s)


def _describe(failures, summary: str) -> str:
    if not failures:
        return ""
    lines = [f"{len(failures)} recipient(s) {summary}:"]
    lines.extend(f"{f.endpoint} - {f.message}" for f in failures)
    return "\n".join(lines)


class Results:
    """Successes and failures of one notification's delivery attempt.

    Owned by a single attempt and discarded once it completes.
    """

    def __init__(
        self,
        notification: Notification,
        policy: ProviderPolicy,
        retry_manager: RetryManager,
    ):
        self.notification = notification
        self.policy = policy
        self.retry_manager = retry_manager
        self.successes: list[str] = []
        self.failures = Failures(notification)

    def handle_response(self, endpoint: str, status_code: int, headers=None) -> None:
        failure = classify(
            self.policy, self.retry_manager, self.notification, endpoint, status_code, headers
        )
        if failure is None:
            self.successes.append(endpoint)
        else:
            self.failures.add(failure)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
