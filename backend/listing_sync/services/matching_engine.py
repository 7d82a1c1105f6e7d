"""
MatchingEngine - Pontuação de imóveis contra leads
===================================================

Cinco fatores avaliados de forma independente:

| Fator            | Peso  | Quando pontua                                   |
|------------------|-------|-------------------------------------------------|
| Cidade           | 0.30  | igualdade sem diferenciar maiúsculas            |
| Faixa de preço   | 0.25  | x 1.0 dentro da faixa, x 0.5 até 10% fora       |
| Tipo de imóvel   | 0.20  | igualdade sem diferenciar maiúsculas            |
| Quartos          | 0.15  | lead.metadata.bedrooms presente e beds >= ele   |
| Urgência         | 0.10  | urgent e < 30 dias no mercado                   |
|                  | 0.05  | flexible e < 90 dias no mercado                 |

Score final = soma ponderada / 5 (número FIXO de fatores, sempre).
Com isso o score máximo é 0.2 e o corte de 0.6 nunca é atingido.
Mudar o divisor ou o corte altera quais matches são retidos (ver DESIGN.md).

Exemplo:
    Lead Toronto / 500k-750k / Condo / urgent
    Imóvel Toronto / 625000 / Condo / 8 dias
    -> 0.30 + 0.25 + 0.20 + 0 + 0.10 = 0.85 -> 0.85 / 5 = 0.17 (descartado)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from listing_sync.domain.entities.enums import LeadTimeline, ListingSource
from listing_sync.domain.listing import Lead, LeadMatch, PropertyData, price_bucket_bounds
from listing_sync.infrastructure.stores.match_store import MatchStore

logger = logging.getLogger(__name__)


# =============================================================================
# PESOS E LIMITES
# =============================================================================

WEIGHT_CITY = 0.30
WEIGHT_PRICE = 0.25
WEIGHT_PROPERTY_TYPE = 0.20
WEIGHT_BEDROOMS = 0.15
WEIGHT_URGENT = 0.10
WEIGHT_FLEXIBLE = 0.05

FACTOR_COUNT = 5

PRICE_TOLERANCE = 0.10
URGENT_MAX_DAYS = 30
FLEXIBLE_MAX_DAYS = 90

DEFAULT_SCORE_THRESHOLD = 0.6
DEFAULT_MAX_MATCHES = 5

NEW_LISTING_DAYS = 7
STALE_LISTING_DAYS = 90
PRE_APPROVAL_PRICE = 750_000


@dataclass
class FactorBreakdown:
    """Predicados avaliados para um par (lead, imóvel)."""
    city: bool
    price_range_score: float
    property_type: bool
    bedrooms: bool
    urgency_weight: float

    @property
    def weighted_sum(self) -> float:
        total = 0.0
        if self.city:
            total += WEIGHT_CITY
        total += WEIGHT_PRICE * self.price_range_score
        if self.property_type:
            total += WEIGHT_PROPERTY_TYPE
        if self.bedrooms:
            total += WEIGHT_BEDROOMS
        total += self.urgency_weight
        return total


# =============================================================================
# PREDICADOS
# =============================================================================

def _same_text(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def price_range_score(price_range: Optional[str], price: float) -> float:
    """
    1.0 dentro da faixa (limites inclusivos), 0.5 até 10% fora, 0.0 no resto.

    "1M+" não tem teto, então só a banda inferior existe.
    """
    bounds = price_bucket_bounds(price_range)
    if bounds is None:
        return 0.0

    low, high = bounds
    if price >= low and (high is None or price <= high):
        return 1.0

    if low * (1 - PRICE_TOLERANCE) <= price < low:
        return 0.5
    if high is not None and high < price <= high * (1 + PRICE_TOLERANCE):
        return 0.5

    return 0.0


def _bedrooms_fit(lead: Lead, prop: PropertyData) -> bool:
    wanted = lead.bedrooms
    if wanted is None or prop.beds is None:
        return False
    return prop.beds >= wanted


def _urgency_weight(lead: Lead, prop: PropertyData) -> float:
    timeline = (lead.timeline or "").lower()
    if timeline == LeadTimeline.URGENT.value and prop.days_on_market < URGENT_MAX_DAYS:
        return WEIGHT_URGENT
    if timeline == LeadTimeline.FLEXIBLE.value and prop.days_on_market < FLEXIBLE_MAX_DAYS:
        return WEIGHT_FLEXIBLE
    return 0.0


def evaluate_factors(lead: Lead, prop: PropertyData) -> FactorBreakdown:
    return FactorBreakdown(
        city=_same_text(lead.city, prop.city),
        price_range_score=price_range_score(lead.price_range, prop.price),
        property_type=_same_text(lead.property_type, prop.property_type),
        bedrooms=_bedrooms_fit(lead, prop),
        urgency_weight=_urgency_weight(lead, prop),
    )


def calculate_match_score(lead: Lead, prop: PropertyData) -> float:
    """Score em [0, 1]. Função pura: mesmo input, mesmo output."""
    return evaluate_factors(lead, prop).weighted_sum / FACTOR_COUNT


# =============================================================================
# TEXTOS (derivados dos MESMOS predicados do score)
# =============================================================================

def build_reasons(lead: Lead, prop: PropertyData, factors: FactorBreakdown) -> List[str]:
    reasons = []
    if factors.city:
        reasons.append(f"Located in {prop.city}")
    if factors.price_range_score == 1.0:
        reasons.append(f"Price within {lead.price_range} range")
    elif factors.price_range_score > 0:
        reasons.append(f"Price close to {lead.price_range} range")
    if factors.property_type:
        reasons.append(f"Matches property type {prop.property_type}")
    if factors.bedrooms:
        reasons.append(f"Has {lead.bedrooms}+ bedrooms")
    if factors.urgency_weight:
        reasons.append(f"Recently listed ({prop.days_on_market} days on market)")
    return reasons


def build_recommendations(prop: PropertyData) -> List[str]:
    recommendations = ["Schedule a viewing"]
    if prop.days_on_market < NEW_LISTING_DAYS:
        recommendations.append("Act quickly - new listing")
    if prop.days_on_market >= STALE_LISTING_DAYS:
        recommendations.append("Ask about price flexibility")
    if prop.price > PRE_APPROVAL_PRICE:
        recommendations.append("Consider mortgage pre-approval")
    return recommendations


# =============================================================================
# ENGINE
# =============================================================================

class MatchingEngine:
    """Pontua, ranqueia e persiste matches."""

    def __init__(
        self,
        match_store: MatchStore,
        score_threshold: float = DEFAULT_SCORE_THRESHOLD,
        max_matches: int = DEFAULT_MAX_MATCHES,
    ):
        self.match_store = match_store
        self.score_threshold = score_threshold
        self.max_matches = max_matches

    calculate_match_score = staticmethod(calculate_match_score)

    def score_property(self, lead: Lead, prop: PropertyData, source: str) -> LeadMatch:
        factors = evaluate_factors(lead, prop)
        return LeadMatch(
            lead_id=lead.id,
            property_id=prop.id,
            score=factors.weighted_sum / FACTOR_COUNT,
            reasons=build_reasons(lead, prop, factors),
            property=prop,
            recommendations=build_recommendations(prop),
            source=source,
            tenant_id=lead.tenant_id,
        )

    def rank_matches(self, lead: Lead, properties: Iterable[PropertyData], source: str) -> List[LeadMatch]:
        """Filtra score > limite, ordena (estável) e corta no top-N."""
        scored = [self.score_property(lead, prop, source) for prop in properties]
        retained = [m for m in scored if m.score > self.score_threshold]
        # sorted() é estável: empates mantêm a ordem de entrada
        retained = sorted(retained, key=lambda m: m.score, reverse=True)
        return retained[: self.max_matches]

    async def process_property_matches(
        self,
        lead: Lead,
        properties: Iterable[PropertyData],
        source: str,
    ) -> List[LeadMatch]:
        """
        Pontua os imóveis de UMA chamada à fonte e substitui os matches
        anteriores de (lead, fonte) pelo novo top-N.
        """
        source = ListingSource(source).value
        properties = list(properties)
        top = self.rank_matches(lead, properties, source)

        await self.match_store.save(top, lead_id=lead.id, source=source)

        if top:
            logger.info(
                f"🎯 [Matching] Lead {lead.id}: {len(top)} matches de {len(properties)} "
                f"imóveis ({source}), melhor score {top[0].score:.3f}"
            )
        else:
            logger.debug(f"[Matching] Lead {lead.id}: nenhum match acima de {self.score_threshold} ({source})")

        return top

    async def get_property_matches(self, lead_id: str) -> List[LeadMatch]:
        return await self.match_store.get_for_lead(lead_id)
