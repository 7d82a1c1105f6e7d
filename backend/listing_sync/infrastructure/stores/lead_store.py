"""
LEAD STORE - Interface do armazenamento de leads
================================================

Os leads pertencem a um sistema externo (CSV, Supabase, CRM).
Aqui só existem a interface consumida e uma implementação em memória.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from listing_sync.domain.listing import Lead, LeadFilter, PropertyData


# Leads nesses status não recebem mais matches
CLOSED_LEAD_STATUSES = frozenset({"converted", "lost", "archived"})


class LeadStore(ABC):
    """Leitura de leads (somente leitura para este motor)."""

    @abstractmethod
    async def query(self, lead_filter: LeadFilter) -> List[Lead]:
        ...

    @abstractmethod
    async def list_tenants(self) -> List[str]:
        ...

    async def get(self, lead_id: str) -> Optional[Lead]:
        return None


class InMemoryLeadStore(LeadStore):
    """Leads em memória, na ordem de inserção."""

    def __init__(self, leads: Optional[Iterable[Lead]] = None):
        self._leads: Dict[str, Lead] = {}
        for lead in leads or []:
            self.add(lead)

    def add(self, lead: Lead) -> None:
        self._leads[lead.id] = lead

    async def query(self, lead_filter: LeadFilter) -> List[Lead]:
        results = []
        for lead in self._leads.values():
            if lead_filter.tenant_id is not None and lead.tenant_id != lead_filter.tenant_id:
                continue
            if lead_filter.status is not None and lead.status != lead_filter.status:
                continue
            if lead_filter.city and (lead.city or "").lower() != lead_filter.city.lower():
                continue
            results.append(lead)
            if lead_filter.limit and len(results) >= lead_filter.limit:
                break
        return results

    async def list_tenants(self) -> List[str]:
        # dict.fromkeys preserva a ordem de aparição
        return list(dict.fromkeys(lead.tenant_id for lead in self._leads.values()))

    async def get(self, lead_id: str) -> Optional[Lead]:
        return self._leads.get(lead_id)


class LeadResolver:
    """
    Resolve quais leads podem se interessar por um anúncio novo.

    Critério "frouxo": lead do mesmo tenant, não encerrado, e cuja cidade
    bate com a do anúncio (ou que não informou cidade). A pontuação
    fina fica com o MatchingEngine.
    """

    def __init__(self, lead_store: LeadStore, limit: int = 100):
        self.lead_store = lead_store
        self.limit = limit

    async def resolve_for_listing(self, tenant_id: str, prop: PropertyData) -> List[Lead]:
        leads = await self.lead_store.query(LeadFilter(tenant_id=tenant_id, limit=self.limit))
        city = (prop.city or "").lower()

        resolved = []
        for lead in leads:
            if lead.status in CLOSED_LEAD_STATUSES:
                continue
            if lead.city and city and lead.city.lower() != city:
                continue
            resolved.append(lead)
        return resolved
