"""
IN-MEMORY LISTING ADAPTER
=========================

Serve uma lista fixa de anúncios. Usado em desenvolvimento e testes,
no lugar de um provider real.
"""

import logging
from typing import Iterable, List, Optional

from listing_sync.domain.listing import PropertyData, PropertySearchCriteria
from .interface import SourceAdapter, SourceConfig

logger = logging.getLogger(__name__)


class InMemoryListingAdapter(SourceAdapter):
    """Filtra anúncios pré-carregados pelos critérios recebidos."""

    def __init__(self, config: SourceConfig, listings: Optional[Iterable[PropertyData]] = None):
        super().__init__(config)
        self._listings: List[PropertyData] = list(listings or [])

    def load(self, listings: Iterable[PropertyData]) -> None:
        """Substitui os anúncios servidos."""
        self._listings = list(listings)

    def _matches(self, prop: PropertyData, criteria: PropertySearchCriteria) -> bool:
        if criteria.city and (prop.city or "").lower() != criteria.city.lower():
            return False
        if criteria.state and (prop.state or "").lower() != criteria.state.lower():
            return False
        if criteria.price_min is not None and prop.price < criteria.price_min:
            return False
        if criteria.price_max is not None and prop.price > criteria.price_max:
            return False
        if criteria.beds_min is not None and (prop.beds or 0) < criteria.beds_min:
            return False
        if criteria.baths_min is not None and (prop.baths or 0) < criteria.baths_min:
            return False
        if criteria.property_type and (prop.property_type or "").lower() != criteria.property_type.lower():
            return False
        if criteria.listing_status and prop.listing_status.value != criteria.listing_status:
            return False
        return True

    async def search_properties(self, criteria: PropertySearchCriteria) -> List[PropertyData]:
        found = [p for p in self._listings if self._matches(p, criteria)]
        start = criteria.offset or 0
        end = start + criteria.limit if criteria.limit else None
        logger.debug(f"[{self.name}] {len(found)} anúncios em memória para {criteria.city}")
        return found[start:end]

    async def get_property_details(self, external_id: str) -> Optional[PropertyData]:
        for prop in self._listings:
            if prop.id == external_id:
                return prop
        return None
