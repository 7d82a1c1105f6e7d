from .handle_provider_webhook import (
    InboundWebhookHandler,
    InboundWebhookResult,
    InboundStatus,
)

__all__ = [
    "InboundWebhookHandler",
    "InboundWebhookResult",
    "InboundStatus",
]
