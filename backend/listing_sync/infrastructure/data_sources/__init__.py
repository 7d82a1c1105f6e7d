"""
DATA SOURCES - Adapters dos provedores de anúncios
==================================================

Adapters disponíveis:
- HttpListingAdapter: API JSON do provider (Zillow, Realtor.com, MLS)
- InMemoryListingAdapter: lista fixa de anúncios (dev/testes)
"""

from .interface import SourceAdapter, SourceConfig
from .http_provider import HttpListingAdapter
from .memory_provider import InMemoryListingAdapter
from .factory import SourceAdapterFactory, build_adapters_from_settings

__all__ = [
    "SourceAdapter",
    "SourceConfig",
    "HttpListingAdapter",
    "InMemoryListingAdapter",
    "SourceAdapterFactory",
    "build_adapters_from_settings",
]
