from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from listing_sync.domain.entities import Base
from listing_sync.infrastructure.services import WebhookRegistry
from listing_sync.infrastructure.stores import InMemoryMatchStore, InMemorySubscriptionStore
from listing_sync.services.matching_engine import MatchingEngine


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Banco SQLite em memória, novo para cada teste.
    StaticPool mantém a MESMA conexão (senão cada sessão veria um banco vazio).
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    await engine.dispose()


@pytest.fixture
def match_store() -> InMemoryMatchStore:
    return InMemoryMatchStore()


@pytest.fixture
def matching_engine(match_store) -> MatchingEngine:
    return MatchingEngine(match_store)


@pytest.fixture
def registry() -> WebhookRegistry:
    return WebhookRegistry(InMemorySubscriptionStore())
