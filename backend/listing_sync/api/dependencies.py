"""
DEPENDENCIES (Dependências)
============================

Monta os componentes do motor (container) e expõe funções
injetadas nas rotas via Depends().

O container fica em app.state.container. Nos testes ele é montado
com stores em memória e transports falsos e passado para create_app().
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from listing_sync.application.services import ListingSyncService
from listing_sync.application.use_cases import InboundWebhookHandler
from listing_sync.config import Settings
from listing_sync.infrastructure.data_sources import SourceAdapter, build_adapters_from_settings
from listing_sync.infrastructure.scheduler import SyncScheduler
from listing_sync.infrastructure.services import (
    SourceRateLimiter,
    WebhookDispatcher,
    WebhookRegistry,
)
from listing_sync.infrastructure.stores import (
    InMemoryLeadStore,
    InMemoryMatchStore,
    InMemorySubscriptionStore,
    LeadResolver,
    LeadStore,
    MatchStore,
    SQLAlchemyMatchStore,
    SQLAlchemySubscriptionStore,
)
from listing_sync.services.matching_engine import MatchingEngine

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Componentes compartilhados por todas as rotas."""

    settings: Settings
    lead_store: LeadStore
    match_store: MatchStore
    rate_limiter: SourceRateLimiter
    registry: WebhookRegistry
    dispatcher: WebhookDispatcher
    matching_engine: MatchingEngine
    scheduler: SyncScheduler
    inbound_handler: InboundWebhookHandler
    listing_service: ListingSyncService
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def aclose(self) -> None:
        for adapter in self.scheduler.adapters.values():
            await adapter.aclose()


def build_container(
    settings: Settings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    lead_store: Optional[LeadStore] = None,
    adapters: Optional[Dict[str, SourceAdapter]] = None,
    dispatcher_transport=None,
) -> Container:
    """
    Liga todos os componentes.

    Com session_factory: matches e assinaturas no banco (SQLAlchemy).
    Sem session_factory: tudo em memória (dev/testes).
    """
    if session_factory is not None:
        match_store: MatchStore = SQLAlchemyMatchStore(session_factory)
        registry = WebhookRegistry(SQLAlchemySubscriptionStore(session_factory))
    else:
        match_store = InMemoryMatchStore()
        registry = WebhookRegistry(InMemorySubscriptionStore())

    if lead_store is None:
        # Leads vêm de sistema externo; sem integração configurada, começa vazio
        logger.warning("⚠️ Nenhum LeadStore configurado, usando store em memória vazio")
        lead_store = InMemoryLeadStore()

    if adapters is None:
        adapters = build_adapters_from_settings(settings)

    rate_limiter = SourceRateLimiter(requests_per_minute=settings.requests_per_minute)
    dispatcher = WebhookDispatcher(
        registry,
        timeout=settings.webhook_timeout_seconds,
        max_concurrency=settings.webhook_max_concurrency,
        transport=dispatcher_transport,
    )
    matching_engine = MatchingEngine(
        match_store,
        score_threshold=settings.match_score_threshold,
        max_matches=settings.max_matches_per_lead,
    )
    scheduler = SyncScheduler(
        adapters=adapters,
        lead_store=lead_store,
        matching_engine=matching_engine,
        rate_limiter=rate_limiter,
        dispatcher=dispatcher,
        sync_intervals=settings.sync_intervals(),
        batch_size=settings.sync_batch_size,
        timezone_name=settings.scheduler_timezone,
    )
    inbound_handler = InboundWebhookHandler(
        matching_engine=matching_engine,
        dispatcher=dispatcher,
        lead_resolver=LeadResolver(lead_store),
        match_store=match_store,
    )
    listing_service = ListingSyncService(adapters, matching_engine, rate_limiter)

    return Container(
        settings=settings,
        lead_store=lead_store,
        match_store=match_store,
        rate_limiter=rate_limiter,
        registry=registry,
        dispatcher=dispatcher,
        matching_engine=matching_engine,
        scheduler=scheduler,
        inbound_handler=inbound_handler,
        listing_service=listing_service,
        session_factory=session_factory,
    )


# =============================================================================
# DEPENDÊNCIAS DAS ROTAS
# =============================================================================

def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Serviço ainda inicializando",
        )
    return container
