"""
WEBHOOK REGISTRY - Assinaturas de webhook por tenant
====================================================

subscribe / unsubscribe / update / list / get.

Erros de configuração (URL inválida, evento desconhecido) estouram
InvalidSubscription na hora do subscribe/update, nunca no dispatch.
"""

import logging
import secrets
import uuid
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from listing_sync.domain.entities.enums import WEBHOOK_EVENT_VALUES
from listing_sync.domain.webhook import WebhookSubscription
from listing_sync.exceptions import InvalidSubscription
from listing_sync.infrastructure.stores.subscription_store import (
    InMemorySubscriptionStore,
    SubscriptionStore,
)

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = ("url", "events", "is_active")


def _validate_url(url: str) -> str:
    if not isinstance(url, str) or not url.strip():
        raise InvalidSubscription("Webhook URL is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidSubscription(f"Invalid webhook URL: {url}")
    return url.strip()


def _validate_events(events: Iterable[str]) -> frozenset:
    normalized = frozenset(getattr(e, "value", e) for e in (events or []))
    if not normalized:
        raise InvalidSubscription("At least one event is required")
    unknown = normalized - WEBHOOK_EVENT_VALUES
    if unknown:
        raise InvalidSubscription(f"Unknown webhook events: {sorted(unknown)}")
    return normalized


class WebhookRegistry:
    """Assinaturas escopadas por tenant, sobre um SubscriptionStore injetado."""

    def __init__(self, store: Optional[SubscriptionStore] = None):
        self.store = store or InMemorySubscriptionStore()

    async def subscribe(
        self,
        tenant_id: str,
        url: str,
        events: Iterable[str],
        secret: Optional[str] = None,
    ) -> WebhookSubscription:
        subscription = WebhookSubscription(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            url=_validate_url(url),
            events=_validate_events(events),
            secret=secret or secrets.token_hex(32),
        )
        await self.store.add(subscription)

        logger.info(
            f"🔔 [Webhooks] Assinatura criada {subscription.id} "
            f"(tenant {tenant_id}, eventos {sorted(subscription.events)})"
        )
        return subscription

    async def unsubscribe(self, tenant_id: str, subscription_id: str) -> bool:
        removed = await self.store.delete(tenant_id, subscription_id)
        if removed:
            logger.info(f"[Webhooks] Assinatura removida {subscription_id} (tenant {tenant_id})")
        return removed

    async def update(self, tenant_id: str, subscription_id: str, **changes) -> Optional[WebhookSubscription]:
        """
        Atualiza url, events e/ou is_active.

        Returns:
            Assinatura atualizada ou None se não existir
        Raises:
            InvalidSubscription: campo não atualizável ou valor inválido
        """
        not_allowed = set(changes) - set(UPDATABLE_FIELDS)
        if not_allowed:
            raise InvalidSubscription(f"Fields cannot be updated: {sorted(not_allowed)}")

        subscription = await self.store.get(tenant_id, subscription_id)
        if subscription is None:
            return None

        # Valida tudo antes de tocar na assinatura: get() pode devolver a referência viva
        url = _validate_url(changes["url"]) if changes.get("url") is not None else subscription.url
        events = _validate_events(changes["events"]) if changes.get("events") is not None else subscription.events
        is_active = bool(changes["is_active"]) if changes.get("is_active") is not None else subscription.is_active

        subscription.url = url
        subscription.events = events
        subscription.is_active = is_active

        await self.store.save(subscription)
        logger.info(f"[Webhooks] Assinatura atualizada {subscription_id}: {sorted(changes)}")
        return subscription

    async def get(self, tenant_id: str, subscription_id: str) -> Optional[WebhookSubscription]:
        return await self.store.get(tenant_id, subscription_id)

    async def list(self, tenant_id: str) -> List[WebhookSubscription]:
        return await self.store.list(tenant_id)

    async def active_for(self, tenant_id: str, event: str) -> List[WebhookSubscription]:
        """Assinaturas ativas do tenant que escutam o evento."""
        event = getattr(event, "value", event)
        return [s for s in await self.store.list(tenant_id) if s.listens_to(event)]

    async def mark_triggered(self, subscription: WebhookSubscription) -> None:
        await self.store.save(subscription)
