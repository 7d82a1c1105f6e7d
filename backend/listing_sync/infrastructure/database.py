"""Engine e sessões do banco (matches e assinaturas de webhook)."""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from listing_sync.config import get_settings
from listing_sync.domain.entities import Base


def normalize_database_url(database_url: str) -> str:
    # Railway fornece postgresql:// mas asyncpg precisa de postgresql+asyncpg://
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    database_url = normalize_database_url(database_url)
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


# Engine criada sob demanda (testes não precisam de banco)
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _engine, _session_factory

    if _session_factory is None:
        settings = get_settings()
        _engine = create_engine_from_url(settings.database_url, echo=settings.debug)
        _session_factory = create_session_factory(_engine)
    return _session_factory


async def init_db(engine: Optional[AsyncEngine] = None):
    """Cria as tabelas (matches e assinaturas)."""
    if engine is None:
        get_session_factory()
        engine = _engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db():
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
