from .rate_limiter import SourceRateLimiter, RateLimiterState
from .webhook_registry import WebhookRegistry
from .webhook_dispatcher import (
    WebhookDispatcher,
    sign_payload,
    verify_signature,
    serialize_payload,
)

__all__ = [
    "SourceRateLimiter",
    "RateLimiterState",
    "WebhookRegistry",
    "WebhookDispatcher",
    "sign_payload",
    "verify_signature",
    "serialize_payload",
]
