import threading
from datetime import datetime, timezone

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from src.observability.reflector import Reflector
from src.push_delivery.encryption import EncryptedPayload
from src.push_delivery.engine import PushDeliveryEngine
from src.push_delivery.logger import DeliveryLogger
from src.push_delivery.providers import MOZILLA, WEBPUSH
from src.push_delivery.retry import RetryManager
from src.push_service_stub.server import PushServiceStub
from src.store.memory import InMemoryStore
from src.utils.factories import AppFactory, NotificationFactory, RecipientFactory


NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

EVENT_NAMES = ("delivered_to_recipient", "failed_to_recipient", "invalid_endpoint")


class FakeResponse:
    def __init__(self, status_code: int, headers: dict | None = None):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})


class ScriptedSession:
    """Stands in for requests.Session, answering each URL from a script.

    A script entry is a status code, a (status code, headers) tuple, or an
    exception instance to raise. Unscripted URLs answer 201.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.requests: list[dict] = []
        self._lock = threading.Lock()

    def post(self, url, data=None, headers=None, timeout=None):
        with self._lock:
            self.requests.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        answer = self.responses.get(url, 201)
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, tuple):
            return FakeResponse(*answer)
        return FakeResponse(answer)

    @property
    def posted_urls(self) -> list[str]:
        with self._lock:
            return [r["url"] for r in self.requests]


class FakeEncryptor:
    def encrypt(self, message, recipient):
        return EncryptedPayload(
            ciphertext=message.encode("utf-8")[::-1],
            local_public_key="BLocalPublicKey",
            encryption="salt=c2FsdHlzYWx0",
            encoding="aesgcm",
        )


class FakeVapidSigner:
    def headers(self, endpoint, vapid):
        return {
            "Authorization": f"WebPush jwt-for-{vapid['subject']}",
            "Crypto-Key": f"p256ecdsa={vapid['public_key']}",
        }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def retry_manager():
    return RetryManager(clock=lambda: NOW)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def reflector():
    return Reflector()


@pytest.fixture
def events(reflector):
    """Every reflected event, as (event name, *args) tuples."""
    recorded = []
    for service in ("webpush", "mozilla"):
        for name in EVENT_NAMES:
            event = f"{service}_{name}"
            reflector.on(event, lambda *args, event=event: recorded.append((event, *args)))
    return recorded


@pytest.fixture
def delivery_logger():
    return DeliveryLogger()


@pytest.fixture
def encryptor():
    return FakeEncryptor()


@pytest.fixture
def vapid_signer():
    return FakeVapidSigner()


@pytest.fixture
def session():
    return ScriptedSession()


@pytest.fixture
def engine(session, store, reflector, retry_manager, delivery_logger, encryptor, vapid_signer):
    return PushDeliveryEngine(
        policy=WEBPUSH,
        session=session,
        store=store,
        reflector=reflector,
        retry_manager=retry_manager,
        logger=delivery_logger,
        encryptor=encryptor,
        vapid_signer=vapid_signer,
        timeout_seconds=5,
    )


@pytest.fixture
def mozilla_engine(session, store, reflector, retry_manager, delivery_logger, encryptor):
    return PushDeliveryEngine(
        policy=MOZILLA,
        session=session,
        store=store,
        reflector=reflector,
        retry_manager=retry_manager,
        logger=delivery_logger,
        encryptor=encryptor,
        timeout_seconds=5,
    )


@pytest.fixture
def push_service():
    server = PushServiceStub()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def http_session():
    with requests.Session() as s:
        yield s


@pytest.fixture
def http_engine(http_session, store, reflector, retry_manager, delivery_logger, encryptor, vapid_signer):
    """Webpush engine delivering over real HTTP."""
    return PushDeliveryEngine(
        policy=WEBPUSH,
        session=http_session,
        store=store,
        reflector=reflector,
        retry_manager=retry_manager,
        logger=delivery_logger,
        encryptor=encryptor,
        vapid_signer=vapid_signer,
        timeout_seconds=5,
    )


@pytest.fixture
def app_factory():
    return AppFactory


@pytest.fixture
def recipient_factory():
    return RecipientFactory


@pytest.fixture
def notification_factory():
    return NotificationFactory
