"""
SOURCE ADAPTER FACTORY
======================

Cria adapters de fonte a partir do tipo configurado.

Uso:
    adapter = SourceAdapterFactory.create("http", SourceConfig(source="zillow", api_url=...))
    adapters = build_adapters_from_settings(get_settings())
"""

import logging
from typing import Dict, Type

from listing_sync.config import Settings
from .interface import SourceAdapter, SourceConfig

logger = logging.getLogger(__name__)


class SourceAdapterFactory:
    """Registry de tipos de adapter."""

    _adapters: Dict[str, Type[SourceAdapter]] = {}

    @classmethod
    def register_adapter(cls, type_name: str, adapter_class: Type[SourceAdapter]) -> None:
        cls._adapters[type_name] = adapter_class
        logger.debug(f"Registered source adapter type: {type_name}")

    @classmethod
    def create(cls, type_name: str, config: SourceConfig, **kwargs) -> SourceAdapter:
        """
        Instancia um adapter.

        Raises:
            ValueError: se o tipo não estiver registrado
        """
        adapter_class = cls._adapters.get(type_name)
        if not adapter_class:
            available = list(cls._adapters.keys())
            raise ValueError(
                f"Unknown source adapter type: {type_name}. Available: {available}"
            )

        logger.info(f"Creating {type_name} adapter for source {config.source}")
        return adapter_class(config, **kwargs)

    @classmethod
    def list_adapter_types(cls) -> list:
        return list(cls._adapters.keys())


def build_adapters_from_settings(settings: Settings) -> Dict[str, SourceAdapter]:
    """
    Um HttpListingAdapter por fonte habilitada com api_url configurada.

    Fontes habilitadas sem URL são ignoradas com aviso.
    """
    adapters: Dict[str, SourceAdapter] = {}

    for source in settings.enabled_sources():
        source_settings = settings.source_config(source)
        if not source_settings["api_url"]:
            logger.warning(f"⚠️ Fonte {source} habilitada sem {source}_api_url, ignorando")
            continue

        config = SourceConfig(
            source=source,
            api_url=source_settings["api_url"],
            api_key=source_settings["api_key"],
            timeout=settings.source_timeout_seconds,
        )
        adapters[source] = SourceAdapterFactory.create("http", config)

    return adapters


# =============================================================================
# AUTO-REGISTRO DOS ADAPTERS
# =============================================================================

def _register_adapters():
    from .http_provider import HttpListingAdapter
    from .memory_provider import InMemoryListingAdapter

    SourceAdapterFactory.register_adapter("http", HttpListingAdapter)
    SourceAdapterFactory.register_adapter("memory", InMemoryListingAdapter)


_register_adapters()
