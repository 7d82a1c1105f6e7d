"""
CASO DE USO: PROCESSAR WEBHOOK DE PROVIDER
==========================================

Recebe eventos push dos provedores (Zillow, Realtor.com, MLS).

FLUXO new_listing:
1. Converte data em PropertyData
2. Resolve leads do tenant que batem "por alto" com o anúncio
3. Para cada lead: MatchingEngine pontua/persiste e o tenant é notificado
   (property.matched, com o score e se o match foi retido)

FLUXO price_change:
1. Busca leads que já tiveram match com o imóvel NA MESMA fonte
2. Notifica cada um com a variação de preço (property.price_changed)

type desconhecido: logado e ignorado (não é erro).

A verificação de assinatura acontece na rota HTTP, antes deste caso de uso,
quando o provider tem secret configurado.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union

from listing_sync.domain.entities.enums import ListingSource, WebhookEvent
from listing_sync.domain.provider_events import (
    NewListingEvent,
    PriceChangeEvent,
    ProviderEvent,
    UnknownEvent,
    parse_provider_event,
)
from listing_sync.exceptions import UnknownSource
from listing_sync.infrastructure.services.webhook_dispatcher import WebhookDispatcher
from listing_sync.infrastructure.stores.lead_store import LeadResolver
from listing_sync.infrastructure.stores.match_store import MatchStore
from listing_sync.services.matching_engine import MatchingEngine

logger = logging.getLogger(__name__)


class InboundStatus(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"


@dataclass
class InboundWebhookResult:
    provider: str
    event_type: str
    status: InboundStatus
    lead_ids: List[str] = field(default_factory=list)
    retained_matches: int = 0
    deliveries: int = 0
    failures: int = 0

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "event_type": self.event_type,
            "status": self.status.value,
            "lead_ids": self.lead_ids,
            "retained_matches": self.retained_matches,
            "deliveries": self.deliveries,
            "failures": self.failures,
        }


class InboundWebhookHandler:
    """Orquestra lead resolution -> MatchingEngine -> WebhookDispatcher."""

    def __init__(
        self,
        matching_engine: MatchingEngine,
        dispatcher: WebhookDispatcher,
        lead_resolver: LeadResolver,
        match_store: MatchStore,
    ):
        self.matching_engine = matching_engine
        self.dispatcher = dispatcher
        self.lead_resolver = lead_resolver
        self.match_store = match_store

    async def handle(
        self,
        provider_id: str,
        payload: Union[ProviderEvent, Any],
        tenant_id: str,
    ) -> InboundWebhookResult:
        """
        Processa um evento de provider.

        Raises:
            UnknownSource: provider não suportado
            InvalidProviderPayload: payload malformado
        """
        try:
            provider = ListingSource(provider_id).value
        except ValueError:
            raise UnknownSource(provider_id) from None

        if isinstance(payload, (NewListingEvent, PriceChangeEvent, UnknownEvent)):
            event = payload
        else:
            event = parse_provider_event(payload)

        logger.info(f"📥 [Inbound] {provider}: evento {event.type} (tenant {tenant_id})")

        if isinstance(event, NewListingEvent):
            return await self._handle_new_listing(provider, event, tenant_id)
        if isinstance(event, PriceChangeEvent):
            return await self._handle_price_change(provider, event, tenant_id)

        logger.warning(f"⚠️ [Inbound] {provider}: tipo de evento desconhecido '{event.type}', ignorando")
        return InboundWebhookResult(provider=provider, event_type=event.type, status=InboundStatus.IGNORED)

    async def _handle_new_listing(
        self,
        provider: str,
        event: NewListingEvent,
        tenant_id: str,
    ) -> InboundWebhookResult:
        prop = event.to_property(provider)
        leads = await self.lead_resolver.resolve_for_listing(tenant_id, prop)

        result = InboundWebhookResult(provider=provider, event_type=event.type, status=InboundStatus.PROCESSED)
        logger.info(f"[Inbound] Anúncio {prop.id} ({prop.city}): {len(leads)} leads candidatos")

        for lead in leads:
            # Falha de um lead não derruba os outros
            try:
                retained = await self.matching_engine.process_property_matches(lead, [prop], provider)
                match = retained[0] if retained else self.matching_engine.score_property(lead, prop, provider)

                deliveries = await self.dispatcher.dispatch(
                    WebhookEvent.PROPERTY_MATCHED,
                    {
                        "lead_id": lead.id,
                        "source": provider,
                        "retained": bool(retained),
                        "match": match.to_dict(),
                    },
                    tenant_id,
                )
            except Exception as e:
                logger.error(f"❌ [Inbound] Erro no lead {lead.id} (anúncio {prop.id}): {e}", exc_info=True)
                result.failures += 1
                continue

            result.lead_ids.append(lead.id)
            result.retained_matches += len(retained)
            result.deliveries += len(deliveries)

        return result

    async def _handle_price_change(
        self,
        provider: str,
        event: PriceChangeEvent,
        tenant_id: str,
    ) -> InboundWebhookResult:
        change = event.data
        matches = await self.match_store.find_by_property(
            change.property_id,
            tenant_id=tenant_id,
            source=provider,
        )

        result = InboundWebhookResult(provider=provider, event_type=event.type, status=InboundStatus.PROCESSED)
        if not matches:
            logger.info(f"[Inbound] Nenhum lead com match para o imóvel {provider}/{change.property_id}")
            return result

        lead_ids = list(dict.fromkeys(m.lead_id for m in matches))
        old_price = change.old_price
        if old_price is None:
            old_price = _previous_price(matches)
        delta = change.new_price - old_price if old_price is not None else None

        for lead_id in lead_ids:
            try:
                deliveries = await self.dispatcher.dispatch(
                    WebhookEvent.PROPERTY_PRICE_CHANGED,
                    {
                        "lead_id": lead_id,
                        "property_id": change.property_id,
                        "source": provider,
                        "old_price": old_price,
                        "new_price": change.new_price,
                        "delta": delta,
                    },
                    tenant_id,
                )
            except Exception as e:
                logger.error(f"❌ [Inbound] Erro ao notificar lead {lead_id}: {e}", exc_info=True)
                result.failures += 1
                continue

            result.lead_ids.append(lead_id)
            result.deliveries += len(deliveries)

        logger.info(
            f"💲 [Inbound] Imóvel {change.property_id}: {old_price} -> {change.new_price}, "
            f"{len(result.lead_ids)} leads notificados"
        )
        return result


def _previous_price(matches) -> Optional[float]:
    """Preço do snapshot guardado no match, quando o provider não manda old_price."""
    for match in matches:
        if match.property is not None:
            return match.property.price
    return None
