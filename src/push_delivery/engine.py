import logging
import time
import uuid
from datetime import datetime, timezone

import requests

from src.models.delivery import (
    DeliveryAttempt,
    DeliveryOutcome,
    Delivered,
    Fatal,
    PartiallyRetried,
    TemporaryFailure,
    TransportRetry,
)
from src.models.notification import Notification, Recipient
from src.observability.reflector import Reflector
from src.push_delivery.batch import Batch
from src.push_delivery.encryption import PayloadEncryptor, VapidSigner
from src.push_delivery.errors import DeliveryError, ProtocolError
from src.push_delivery.logger import DeliveryLogger
from src.push_delivery.providers import ProviderPolicy
from src.push_delivery.results import Failures, Results
from src.push_delivery.retry import RetryManager
from src.store.base import Store

logger = logging.getLogger(__name__)


def is_transport_error(error: Exception) -> bool:
    """Connection, timeout and socket errors; other requests errors are not transport failures."""
    if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    # RequestException subclasses OSError
    return isinstance(error, OSError) and not isinstance(error, requests.exceptions.RequestException)


class PushDeliveryEngine:
    """Delivers a notification to each of its recipients and settles the outcome.

    Endpoints are sent one after another in recipient order. Temporarily
    failing endpoints are split off into a new notification, permanently
    failing ones are dropped, and the batch is told the notification was
    processed however the attempt ends.
    """

    def __init__(
        self,
        policy: ProviderPolicy,
        session: requests.Session,
        store: Store,
        reflector: Reflector,
        retry_manager: RetryManager | None = None,
        logger: DeliveryLogger | None = None,
        encryptor: PayloadEncryptor | None = None,
        vapid_signer: VapidSigner | None = None,
        timeout_seconds: float = 30,
    ):
        self.policy = policy
        self.session = session
        self.store = store
        self.reflector = reflector
        self.retry_manager = retry_manager or RetryManager()
        self.logger = logger or DeliveryLogger()
        self.encryptor = encryptor
        self.vapid_signer = vapid_signer
        self.timeout_seconds = timeout_seconds

    def perform(self, notification: Notification, batch: Batch) -> DeliveryOutcome:
        """Deliver and raise unless every recipient succeeded.

        Raises:
            DeliveryError: Some endpoints failed, or the push service rejected the request.
            requests.exceptions.RequestException / OSError: The connection failed.
        """
        outcome = self.attempt(notification, batch)
        if outcome.error is not None:
            raise outcome.error
        return outcome

    def attempt(self, notification: Notification, batch: Batch) -> DeliveryOutcome:
        """Deliver and report the outcome without raising."""
        try:
            results = self._dispatch(notification)
            return self._handle_results(results)
        except ProtocolError as error:
            self.store.mark_failed(notification, error)
            return Fatal(notification.notification_id, error.description, error)
        except Exception as error:
            if is_transport_error(error):
                retry_at = self.retry_manager.transport_retry_at()
                logger.warning(
                    "%s connection failed (%s), retrying at %s",
                    notification.notification_id, error, retry_at.isoformat(),
                )
                self.store.mark_retryable(notification, retry_at, error)
                return TransportRetry(notification.notification_id, retry_at, error)
            logger.exception("%s failed unexpectedly", notification.notification_id)
            self.store.mark_failed(notification, error)
            return Fatal(notification.notification_id, str(error), error)
        finally:
            batch.notification_processed()

    def _dispatch(self, notification: Notification) -> Results:
        results = Results(notification, self.policy, self.retry_manager)
        for recipient in notification.recipients:
            response = self.send(notification, recipient)
            results.handle_response(recipient.endpoint, response.status_code, response.headers)
        return results

    def send(self, notification: Notification, recipient: Recipient) -> requests.Response:
        """POST one wire request and record the attempt."""
        request = self.policy.build_request(
            notification, recipient, self.encryptor, self.vapid_signer
        )
        start = time.monotonic()
        status_code = None
        error = None
        try:
            response = self.session.post(
                request.url,
                data=request.body,
                headers=request.headers,
                timeout=self.timeout_seconds,
            )
            status_code = response.status_code
            return response
        except requests.exceptions.Timeout:
            error = "timeout"
            raise
        except Exception as exc:
            error = "connection_error" if is_transport_error(exc) else str(exc)
            raise
        finally:
            self.logger.log(DeliveryAttempt(
                attempt_id=f"att_{uuid.uuid4().hex[:16]}",
                notification_id=notification.notification_id,
                endpoint=recipient.endpoint,
                status_code=status_code,
                timestamp=datetime.now(timezone.utc),
                response_time_ms=(time.monotonic() - start) * 1000,
                error=error,
            ))

    def _handle_results(self, results: Results) -> DeliveryOutcome:
        notification = results.notification
        for endpoint in results.successes:
            self.reflector.delivered_to_recipient(self.policy.name, notification, endpoint)

        if not results.has_failures:
            self.store.mark_delivered(notification)
            logger.info(
                "%s sent to %s", notification.notification_id, ", ".join(notification.endpoints)
            )
            return Delivered(notification.notification_id)

        split_id = self._handle_failures(notification, results.failures)
        error = DeliveryError(None, notification.notification_id, results.failures.description)
        self.store.mark_failed(notification, error)
        return PartiallyRetried(notification.notification_id, split_id, error)

    def _handle_failures(self, notification: Notification, failures: Failures) -> str | None:
        split_id = None
        if failures.temporary:
            split = self.split(notification, failures.temporary)
            split_id = split.notification_id
            logger.info(
                "%d endpoints will be retried as notification %s.",
                len(failures.temporary), split_id,
            )

        for failure in failures.permanent:
            self.reflector.failed_to_recipient(
                self.policy.name, notification, failure.message, failure.endpoint
            )
            if failure.status_code in self.policy.invalid_endpoint_codes:
                self.reflector.invalid_endpoint(
                    self.policy.name, notification.app, failure.message, failure.endpoint
                )
        return split_id

    def split(self, notification: Notification, temporary: list[TemporaryFailure]) -> Notification:
        """Create a notification for the temporarily failed recipients only."""
        endpoints = {f.endpoint for f in temporary}
        recipients = [r for r in notification.recipients if r.endpoint in endpoints]
        deliver_after = self.retry_manager.split_deliver_after([f.retry_after for f in temporary])
        attrs = {
            "collapse_key": notification.collapse_key,
            "delay_while_idle": notification.delay_while_idle,
            "retries": (notification.retries or 0) + 1,
        }
        return self.store.create_notification(
            attrs, notification.data, recipients, deliver_after, notification.app
        )
