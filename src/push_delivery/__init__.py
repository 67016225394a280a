from .engine import PushDeliveryEngine
from .batch import Batch
from .retry import RetryManager
from .logger import DeliveryLogger
from .errors import DeliveryError, ProtocolError
from .providers import MOZILLA, WEBPUSH, ProviderPolicy, policy_for

__all__ = [
    "PushDeliveryEngine",
    "Batch",
    "RetryManager",
    "DeliveryLogger",
    "DeliveryError",
    "ProtocolError",
    "ProviderPolicy",
    "MOZILLA",
    "WEBPUSH",
    "policy_for",
]
