import json

import pytest

from src.models.notification import App, Notification, Recipient
from src.push_delivery.encryption import EncryptedPayload
from src.push_delivery.providers import (
    MOZILLA,
    WEBPUSH,
    build_mozilla_request,
    build_webpush_request,
    encrypted_request,
    policy_for,
)
from src.utils.factories import AppFactory, NotificationFactory, RecipientFactory


PAYLOAD = EncryptedPayload(
    ciphertext=b"\x01\x02\x03\x04",
    local_public_key="BLocal",
    encryption="salt=abc",
    encoding="aesgcm",
)


class TestEncryptedRequest:
    """Tests for encrypted_request()."""

    @pytest.mark.unit
    def test_without_payload_sends_empty_body(self):
        request = encrypted_request("https://push.example.com/x", 60, None)
        assert request.url == "https://push.example.com/x"
        assert request.headers == {"TTL": "60", "Content-Length": "0"}
        assert request.body is None

    @pytest.mark.unit
    def test_with_payload_sets_encryption_headers(self):
        request = encrypted_request("https://push.example.com/x", 60, PAYLOAD)
        assert request.body == b"\x01\x02\x03\x04"
        assert request.headers == {
            "TTL": "60",
            "Content-Type": "application/octet-stream",
            "Content-Length": "4",
            "Encryption-Key": "BLocal",
            "Encryption": "salt=abc",
            "Content-Encoding": "aesgcm",
        }


class TestWebpushRequest:
    """Tests for build_webpush_request()."""

    @pytest.mark.unit
    def test_encrypts_message_and_adds_vapid_headers(self, encryptor, vapid_signer):
        notification = NotificationFactory.create(["https://push.example.com/a"])
        recipient = notification.recipients[0]

        request = build_webpush_request(notification, recipient, encryptor, vapid_signer)

        assert request.url == "https://push.example.com/a"
        assert request.body == "Hello\nYou have a new message".encode()[::-1]
        assert request.headers["TTL"] == str(Notification.DEFAULT_TTL)
        assert request.headers["Encryption-Key"] == "BLocalPublicKey"
        assert request.headers["Authorization"] == "WebPush jwt-for-mailto:push@example.com"
        assert request.headers["Crypto-Key"] == "p256ecdsa=BPublicKeyForTests"

    @pytest.mark.unit
    def test_without_data_sends_empty_body(self, encryptor):
        notification = NotificationFactory.create(["https://push.example.com/a"], data=None)
        request = build_webpush_request(notification, notification.recipients[0], encryptor, None)
        assert request.body is None
        assert request.headers["Content-Length"] == "0"

    @pytest.mark.unit
    def test_without_encryptor_sends_empty_body(self):
        notification = NotificationFactory.create(["https://push.example.com/a"])
        request = build_webpush_request(notification, notification.recipients[0], None, None)
        assert request.body is None
        assert "Authorization" not in request.headers

    @pytest.mark.unit
    def test_recipient_without_keys_is_not_encrypted(self, encryptor):
        notification = NotificationFactory.create(
            recipients=[Recipient(endpoint="https://push.example.com/a")]
        )
        request = build_webpush_request(notification, notification.recipients[0], encryptor, None)
        assert request.body is None

    @pytest.mark.unit
    def test_expiry_overrides_ttl(self):
        notification = NotificationFactory.create(["https://push.example.com/a"], expiry=3600)
        request = build_webpush_request(notification, notification.recipients[0], None, None)
        assert request.headers["TTL"] == "3600"


class TestMozillaRequest:
    """Tests for build_mozilla_request()."""

    @pytest.mark.unit
    def test_encrypts_for_recipient_key(self, encryptor, vapid_signer):
        app = AppFactory.create("mozilla")
        notification = NotificationFactory.create(["https://updates.push.example.com/a"], app=app)

        request = build_mozilla_request(notification, notification.recipients[0], encryptor, vapid_signer)

        assert request.body is not None
        assert request.headers["Content-Encoding"] == "aesgcm"
        assert "Authorization" not in request.headers

    @pytest.mark.unit
    def test_recipient_without_key_is_not_encrypted(self, encryptor):
        app = AppFactory.create("mozilla")
        notification = NotificationFactory.create(
            app=app, recipients=[Recipient(endpoint="https://updates.push.example.com/a")]
        )
        request = build_mozilla_request(notification, notification.recipients[0], encryptor)
        assert request.headers == {"TTL": str(Notification.DEFAULT_TTL), "Content-Length": "0"}


class TestPolicies:
    """Tests for the provider policy tables."""

    @pytest.mark.unit
    def test_policy_for_app_service(self):
        assert policy_for(AppFactory.create("webpush")) is WEBPUSH
        assert policy_for(AppFactory.create("mozilla")) is MOZILLA

    @pytest.mark.unit
    def test_policy_for_unknown_service_raises(self):
        with pytest.raises(ValueError, match="apns"):
            policy_for(App(name="ios", service_name="apns"))

    @pytest.mark.unit
    def test_both_providers_share_temporary_and_protocol_tables(self):
        assert set(WEBPUSH.temporary_errors) == set(MOZILLA.temporary_errors) == {429, 500, 503}
        assert set(WEBPUSH.protocol_errors) == set(MOZILLA.protocol_errors) == {400, 413}

    @pytest.mark.unit
    def test_invalid_endpoint_codes(self):
        assert WEBPUSH.invalid_endpoint_codes == {404, 410}
        assert MOZILLA.invalid_endpoint_codes == {404}


class TestNotificationModel:
    """Tests for Notification and App helpers."""

    @pytest.mark.unit
    def test_message_joins_title_and_message(self):
        notification = NotificationFactory.create(data={"title": "Hi", "message": "There"})
        assert notification.message == "Hi\nThere"

    @pytest.mark.unit
    def test_message_skips_blank_parts(self):
        notification = NotificationFactory.create(data={"title": "", "message": "Only body"})
        assert notification.message == "Only body"

    @pytest.mark.unit
    def test_message_is_none_without_data(self):
        assert NotificationFactory.create(data=None).message is None

    @pytest.mark.unit
    def test_default_ttl_is_four_weeks(self):
        assert NotificationFactory.create().ttl == 2419200

    @pytest.mark.unit
    def test_endpoints_follow_recipient_order(self):
        notification = NotificationFactory.create(["https://b", "https://a"])
        assert notification.endpoints == ["https://b", "https://a"]

    @pytest.mark.unit
    def test_app_vapid_parses_certificate(self):
        app = App(
            name="web",
            service_name="webpush",
            certificate=json.dumps({"subject": "mailto:x@example.com", "public_key": "pk"}),
        )
        assert app.vapid == {"subject": "mailto:x@example.com", "public_key": "pk"}

    @pytest.mark.unit
    def test_app_without_certificate_has_empty_vapid(self):
        assert App(name="moz", service_name="mozilla").vapid == {}

    @pytest.mark.unit
    def test_recipients_compare_by_endpoint_and_key(self):
        a = RecipientFactory.create("https://a")
        b = Recipient(endpoint="https://a", keys={"p256dh": "other"})
        assert a == b
