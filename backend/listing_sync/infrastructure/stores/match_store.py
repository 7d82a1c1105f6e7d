"""
MATCH STORE - Persistência dos matches lead x imóvel
====================================================

save() substitui POR COMPLETO o conjunto anterior do par (lead, fonte).
Não há merge entre fontes: cada fonte mantém seu próprio top-N.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from listing_sync.domain.entities import PropertyMatchRecord
from listing_sync.domain.listing import LeadMatch, PropertyData

logger = logging.getLogger(__name__)


class MatchStore(ABC):
    """Destino dos matches gerados pelo MatchingEngine."""

    @abstractmethod
    async def save(self, matches: List[LeadMatch], *, lead_id: str, source: str) -> None:
        """Substitui os matches de (lead_id, source) por `matches` (já ordenados)."""

    @abstractmethod
    async def get_for_lead(self, lead_id: str) -> List[LeadMatch]:
        """Todos os matches do lead, score decrescente."""

    @abstractmethod
    async def find_by_property(
        self,
        property_id: str,
        tenant_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[LeadMatch]:
        """
        Matches que apontam para um imóvel (usado em price_change).

        O id do anúncio só é único dentro da fonte: passe source para
        não misturar o "123" do Zillow com o "123" do MLS.
        """


def _sort_key(match: LeadMatch) -> float:
    return -match.score


class InMemoryMatchStore(MatchStore):
    """Matches em memória, chaveados por (lead_id, fonte)."""

    def __init__(self):
        self._matches: Dict[Tuple[str, str], List[LeadMatch]] = {}

    async def save(self, matches: List[LeadMatch], *, lead_id: str, source: str) -> None:
        self._matches[(lead_id, source)] = list(matches)

    async def get_for_lead(self, lead_id: str) -> List[LeadMatch]:
        found = []
        for (stored_lead, _), matches in self._matches.items():
            if stored_lead == lead_id:
                found.extend(matches)
        # sort estável: empates mantêm a ordem de cada conjunto
        return sorted(found, key=_sort_key)

    async def find_by_property(
        self,
        property_id: str,
        tenant_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[LeadMatch]:
        found = []
        for matches in self._matches.values():
            for match in matches:
                if match.property_id != property_id:
                    continue
                if tenant_id is not None and match.tenant_id != tenant_id:
                    continue
                if source is not None and match.source.value != source:
                    continue
                found.append(match)
        return found


class SQLAlchemyMatchStore(MatchStore):
    """Matches na tabela property_matches."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _to_record(match: LeadMatch, rank: int) -> PropertyMatchRecord:
        return PropertyMatchRecord(
            tenant_id=match.tenant_id,
            lead_id=match.lead_id,
            property_id=match.property_id,
            source=match.source.value,
            score=match.score,
            rank=rank,
            reasons=list(match.reasons),
            recommendations=list(match.recommendations),
            property_snapshot=match.property.to_dict(),
            status=match.status.value,
        )

    @staticmethod
    def _to_match(record: PropertyMatchRecord) -> LeadMatch:
        return LeadMatch(
            lead_id=record.lead_id,
            property_id=record.property_id,
            score=record.score,
            reasons=list(record.reasons or []),
            property=PropertyData.from_dict(record.property_snapshot),
            recommendations=list(record.recommendations or []),
            source=record.source,
            tenant_id=record.tenant_id,
            status=record.status,
            created_at=record.created_at,
        )

    async def save(self, matches: List[LeadMatch], *, lead_id: str, source: str) -> None:
        async with self.session_factory() as session:
            await session.execute(
                delete(PropertyMatchRecord).where(
                    PropertyMatchRecord.lead_id == lead_id,
                    PropertyMatchRecord.source == source,
                )
            )
            for rank, match in enumerate(matches):
                session.add(self._to_record(match, rank))
            await session.commit()

        logger.debug(f"[MatchStore] {len(matches)} matches salvos para lead {lead_id} ({source})")

    async def get_for_lead(self, lead_id: str) -> List[LeadMatch]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PropertyMatchRecord)
                .where(PropertyMatchRecord.lead_id == lead_id)
                .order_by(
                    PropertyMatchRecord.score.desc(),
                    PropertyMatchRecord.source,
                    PropertyMatchRecord.rank,
                )
            )
            return [self._to_match(r) for r in result.scalars().all()]

    async def find_by_property(
        self,
        property_id: str,
        tenant_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[LeadMatch]:
        query = select(PropertyMatchRecord).where(PropertyMatchRecord.property_id == property_id)
        if tenant_id is not None:
            query = query.where(PropertyMatchRecord.tenant_id == tenant_id)
        if source is not None:
            query = query.where(PropertyMatchRecord.source == source)

        async with self.session_factory() as session:
            result = await session.execute(query.order_by(PropertyMatchRecord.id))
            return [self._to_match(r) for r in result.scalars().all()]
