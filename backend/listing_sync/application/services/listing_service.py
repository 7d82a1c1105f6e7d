"""
LISTING SYNC SERVICE
====================

Fachada usada pelas rotas da API:
- get_property_matches(lead_id): matches persistidos do lead
- search_properties(criteria, sources): busca direta nas fontes

A busca direta consome o MESMO rate limiter do scheduler, então uma busca
manual conta contra a cota da fonte. Fonte limitada ou fora do ar é pulada
e aparece em `skipped`.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from listing_sync.domain.listing import LeadMatch, PropertyData, PropertySearchCriteria
from listing_sync.exceptions import SourceUnavailable, UnknownSource
from listing_sync.infrastructure.data_sources.interface import SourceAdapter
from listing_sync.infrastructure.services.rate_limiter import SourceRateLimiter
from listing_sync.services.matching_engine import MatchingEngine

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    properties: List[PropertyData] = field(default_factory=list)
    # fonte -> motivo ("rate_limited" ou mensagem de erro)
    skipped: Dict[str, str] = field(default_factory=dict)


class ListingSyncService:
    def __init__(
        self,
        adapters: Dict[str, SourceAdapter],
        matching_engine: MatchingEngine,
        rate_limiter: SourceRateLimiter,
    ):
        self.adapters = adapters
        self.matching_engine = matching_engine
        self.rate_limiter = rate_limiter

    async def get_property_matches(self, lead_id: str) -> List[LeadMatch]:
        return await self.matching_engine.get_property_matches(lead_id)

    async def search_properties(
        self,
        criteria: PropertySearchCriteria,
        sources: Optional[Iterable[str]] = None,
    ) -> SearchResult:
        """
        Busca em cada fonte pedida (todas as configuradas se None).

        Raises:
            UnknownSource: fonte pedida sem adapter configurado
        """
        names = list(sources) if sources else list(self.adapters)
        for name in names:
            if name not in self.adapters:
                raise UnknownSource(name)

        result = SearchResult()

        for name in names:
            if not self.rate_limiter.check_and_consume(name):
                logger.warning(f"⚠️ [Search] {name}: rate limit atingido, fonte pulada")
                result.skipped[name] = "rate_limited"
                continue

            try:
                found = await self.adapters[name].search_properties(criteria)
            except SourceUnavailable as e:
                logger.error(f"❌ [Search] {e}")
                result.skipped[name] = e.reason or "unavailable"
                continue

            result.properties.extend(found)

        logger.info(
            f"🔎 [Search] {len(result.properties)} imóveis de {len(names) - len(result.skipped)} fonte(s)"
        )
        return result
