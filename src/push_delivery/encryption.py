from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from src.models.notification import Recipient


@dataclass(frozen=True)
class EncryptedPayload:
    """Ciphertext plus the parameters the push service forwards to the user agent."""

    ciphertext: bytes
    local_public_key: str  # sent as Encryption-Key
    encryption: str  # sent as Encryption, e.g. "salt=..."
    encoding: str = "aesgcm"


@runtime_checkable
class PayloadEncryptor(Protocol):
    """Encrypts a plaintext message for one recipient's keys."""

    def encrypt(self, message: str, recipient: Recipient) -> EncryptedPayload: ...


@runtime_checkable
class VapidSigner(Protocol):
    """Produces the VAPID authorization headers for a webpush endpoint."""

    def headers(self, endpoint: str, vapid: dict) -> dict[str, str]: ...
