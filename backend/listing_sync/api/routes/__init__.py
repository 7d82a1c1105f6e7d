"""Rotas da API."""

from .provider_webhooks import router as provider_webhooks_router
from .webhook_subscriptions import router as webhook_subscriptions_router
from .properties import router as properties_router
from .health import router as health_router

__all__ = [
    "provider_webhooks_router",
    "webhook_subscriptions_router",
    "properties_router",
    "health_router",
]
