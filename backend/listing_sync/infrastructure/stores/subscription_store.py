"""
SUBSCRIPTION STORE - Armazenamento das assinaturas de webhook
=============================================================

Injetado no WebhookRegistry. A versão em memória não sobrevive a restart;
em produção usar SQLAlchemySubscriptionStore.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from listing_sync.domain.entities import WebhookSubscriptionRecord
from listing_sync.domain.webhook import WebhookSubscription


class SubscriptionStore(ABC):
    """CRUD de assinaturas, sempre escopado por tenant."""

    @abstractmethod
    async def add(self, subscription: WebhookSubscription) -> None:
        ...

    @abstractmethod
    async def get(self, tenant_id: str, subscription_id: str) -> Optional[WebhookSubscription]:
        ...

    @abstractmethod
    async def list(self, tenant_id: str) -> List[WebhookSubscription]:
        ...

    @abstractmethod
    async def save(self, subscription: WebhookSubscription) -> None:
        """Grava alterações de uma assinatura existente."""

    @abstractmethod
    async def delete(self, tenant_id: str, subscription_id: str) -> bool:
        ...


class InMemorySubscriptionStore(SubscriptionStore):
    """Assinaturas em memória: {tenant_id: [subscription, ...]}"""

    def __init__(self):
        self._subscriptions: Dict[str, List[WebhookSubscription]] = {}

    async def add(self, subscription: WebhookSubscription) -> None:
        self._subscriptions.setdefault(subscription.tenant_id, []).append(subscription)

    async def get(self, tenant_id: str, subscription_id: str) -> Optional[WebhookSubscription]:
        for sub in self._subscriptions.get(tenant_id, []):
            if sub.id == subscription_id:
                return sub
        return None

    async def list(self, tenant_id: str) -> List[WebhookSubscription]:
        return list(self._subscriptions.get(tenant_id, []))

    async def save(self, subscription: WebhookSubscription) -> None:
        # Objeto já é a referência guardada
        pass

    async def delete(self, tenant_id: str, subscription_id: str) -> bool:
        subs = self._subscriptions.get(tenant_id)
        if not subs:
            return False
        for index, sub in enumerate(subs):
            if sub.id == subscription_id:
                del subs[index]
                return True
        return False


class SQLAlchemySubscriptionStore(SubscriptionStore):
    """Assinaturas na tabela webhook_subscriptions."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _to_domain(record: WebhookSubscriptionRecord) -> WebhookSubscription:
        return WebhookSubscription(
            id=record.id,
            tenant_id=record.tenant_id,
            url=record.url,
            events=frozenset(record.events or []),
            secret=record.secret,
            is_active=record.is_active,
            retry_count=record.retry_count,
            last_triggered_at=record.last_triggered_at,
            created_at=record.created_at,
        )

    async def _get_record(
        self, session: AsyncSession, tenant_id: str, subscription_id: str
    ) -> Optional[WebhookSubscriptionRecord]:
        result = await session.execute(
            select(WebhookSubscriptionRecord).where(
                WebhookSubscriptionRecord.tenant_id == tenant_id,
                WebhookSubscriptionRecord.id == subscription_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, subscription: WebhookSubscription) -> None:
        async with self.session_factory() as session:
            session.add(WebhookSubscriptionRecord(
                id=subscription.id,
                tenant_id=subscription.tenant_id,
                url=subscription.url,
                events=sorted(subscription.events),
                secret=subscription.secret,
                is_active=subscription.is_active,
                retry_count=subscription.retry_count,
                last_triggered_at=subscription.last_triggered_at,
                created_at=subscription.created_at,
            ))
            await session.commit()

    async def get(self, tenant_id: str, subscription_id: str) -> Optional[WebhookSubscription]:
        async with self.session_factory() as session:
            record = await self._get_record(session, tenant_id, subscription_id)
            return self._to_domain(record) if record else None

    async def list(self, tenant_id: str) -> List[WebhookSubscription]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WebhookSubscriptionRecord)
                .where(WebhookSubscriptionRecord.tenant_id == tenant_id)
                .order_by(WebhookSubscriptionRecord.created_at)
            )
            return [self._to_domain(r) for r in result.scalars().all()]

    async def save(self, subscription: WebhookSubscription) -> None:
        async with self.session_factory() as session:
            record = await self._get_record(session, subscription.tenant_id, subscription.id)
            if record is None:
                return
            record.url = subscription.url
            record.events = sorted(subscription.events)
            record.is_active = subscription.is_active
            record.retry_count = subscription.retry_count
            record.last_triggered_at = subscription.last_triggered_at
            await session.commit()

    async def delete(self, tenant_id: str, subscription_id: str) -> bool:
        async with self.session_factory() as session:
            record = await self._get_record(session, tenant_id, subscription_id)
            if record is None:
                return False
            await session.delete(record)
            await session.commit()
            return True
