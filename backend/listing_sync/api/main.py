"""
API PRINCIPAL
=============

App FastAPI do motor de sincronização de anúncios.

Rodar localmente:
    uvicorn listing_sync.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from listing_sync.api.dependencies import Container, build_container
from listing_sync.api.routes import (
    health_router,
    properties_router,
    provider_webhooks_router,
    webhook_subscriptions_router,
)
from listing_sync.config import get_settings
from listing_sync.infrastructure.database import dispose_db, get_session_factory, init_db
from listing_sync.infrastructure.logging_config import setup_logging

logger = logging.getLogger(__name__)


# ============================================================
# 🔁 LIFESPAN
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(
        json_output=settings.log_json,
        level=logging.DEBUG if settings.debug else logging.INFO,
    )
    logger.info("🚀 Iniciando Listing Sync API...")

    owns_database = app.state.container is None
    if owns_database:
        await init_db()
        logger.info("✅ Tabelas criadas!")
        app.state.container = build_container(settings, session_factory=get_session_factory())

    container: Container = app.state.container
    if container.scheduler.adapters:
        container.scheduler.start()
    else:
        logger.warning("⚠️ Nenhuma fonte habilitada, scheduler não iniciado")

    yield

    logger.info("👋 Encerrando Listing Sync API...")
    container.scheduler.stop()
    await container.aclose()
    if owns_database:
        await dispose_db()


# ============================================================
# FASTAPI APP
# ============================================================
def create_app(container: Optional[Container] = None) -> FastAPI:
    app = FastAPI(
        title="Listing Sync API",
        description="Sincronização de anúncios e notificação de leads multi-tenant",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.include_router(health_router)
    app.include_router(provider_webhooks_router)
    app.include_router(webhook_subscriptions_router)
    app.include_router(properties_router)

    return app


app = create_app()
