"""Per-provider delivery policy: status tables and wire request building.

The delivery engine is written once; a provider only supplies a
``ProviderPolicy`` saying how to build a request for one recipient and how to
read the status codes its push service answers with.
"""

from dataclasses import dataclass, field
from typing import Callable, Mapping

from src.models.notification import App, Notification, Recipient
from src.push_delivery.encryption import EncryptedPayload, PayloadEncryptor, VapidSigner


SUCCESS_CODES = frozenset({200, 201})

TEMPORARY_ERRORS = {
    429: "too many requests",
    500: "internal server error",
    503: "service unavailable",
}

PROTOCOL_ERRORS = {
    400: "request malformed, possible implementation bug",
    413: "payload too large, must be under 4096 bytes",
}


@dataclass(frozen=True)
class PushRequest:
    url: str
    headers: dict[str, str]
    body: bytes | None = None


RequestBuilder = Callable[
    [Notification, Recipient, PayloadEncryptor | None, VapidSigner | None], PushRequest
]


@dataclass(frozen=True)
class ProviderPolicy:
    name: str
    build_request: RequestBuilder
    permanent_errors: Mapping[int, str]
    invalid_endpoint_codes: frozenset[int]
    temporary_errors: Mapping[int, str] = field(default_factory=lambda: dict(TEMPORARY_ERRORS))
    protocol_errors: Mapping[int, str] = field(default_factory=lambda: dict(PROTOCOL_ERRORS))
    success_codes: frozenset[int] = SUCCESS_CODES


def encrypted_request(endpoint: str, ttl: int, payload: EncryptedPayload | None) -> PushRequest:
    """POST request for one endpoint; an empty body when there is no payload."""
    headers = {
        "TTL": str(ttl),
        "Content-Length": "0",
    }
    body = None
    if payload is not None:
        body = payload.ciphertext
        headers.update({
            "Content-Type": "application/octet-stream",
            "Content-Length": str(len(body)),
            "Encryption-Key": payload.local_public_key,
            "Encryption": payload.encryption,
            "Content-Encoding": payload.encoding,
        })
    return PushRequest(url=endpoint, headers=headers, body=body)


def _encrypt(
    notification: Notification,
    recipient: Recipient,
    encryptor: PayloadEncryptor | None,
) -> EncryptedPayload | None:
    message = notification.message
    if encryptor is None or message is None:
        return None
    return encryptor.encrypt(message, recipient)


def build_mozilla_request(notification, recipient, encryptor=None, vapid_signer=None) -> PushRequest:
    payload = _encrypt(notification, recipient, encryptor) if recipient.key else None
    return encrypted_request(recipient.endpoint, notification.ttl, payload)


def build_webpush_request(notification, recipient, encryptor=None, vapid_signer=None) -> PushRequest:
    payload = _encrypt(notification, recipient, encryptor) if recipient.keys else None
    request = encrypted_request(recipient.endpoint, notification.ttl, payload)
    if vapid_signer is not None:
        request.headers.update(vapid_signer.headers(recipient.endpoint, notification.app.vapid))
    return request


MOZILLA = ProviderPolicy(
    name="mozilla",
    build_request=build_mozilla_request,
    permanent_errors={404: "endpoint doesn't exist"},
    invalid_endpoint_codes=frozenset({404}),
)

WEBPUSH = ProviderPolicy(
    name="webpush",
    build_request=build_webpush_request,
    permanent_errors={
        404: "endpoint doesn't exist",
        410: "endpoint gone",
    },
    invalid_endpoint_codes=frozenset({404, 410}),
)

POLICIES = {p.name: p for p in (MOZILLA, WEBPUSH)}


def policy_for(app: App) -> ProviderPolicy:
    policy = POLICIES.get(app.service_name)
    if policy is None:
        raise ValueError(f"No delivery policy for service {app.service_name!r}")
    return policy
