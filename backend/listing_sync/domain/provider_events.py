"""
EVENTOS DE PROVIDER - Payloads de webhook recebidos
===================================================

Formato: {"type": "new_listing" | "price_change", "data": {...}}

O JSON bruto é validado aqui e vira um dos tipos:
- NewListingEvent
- PriceChangeEvent
- UnknownEvent (type desconhecido: logado e ignorado pelo handler)

Payload malformado (sem type, data inválido) -> InvalidProviderPayload,
antes de qualquer regra de negócio.
"""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from listing_sync.exceptions import InvalidProviderPayload
from .listing import PropertyData


NEW_LISTING = "new_listing"
PRICE_CHANGE = "price_change"


class NewListingEvent(BaseModel):
    """Anúncio novo publicado no provider."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["new_listing"]
    data: Dict[str, Any]

    def to_property(self, provider: str) -> PropertyData:
        try:
            return PropertyData.from_dict(self.data, source=provider)
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidProviderPayload(f"Invalid listing data: {type(e).__name__}: {e}") from e


class PriceChangeData(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    property_id: str = Field(validation_alias=AliasChoices("property_id", "id"))
    old_price: Optional[float] = Field(None, ge=0)
    new_price: float = Field(..., ge=0)


class PriceChangeEvent(BaseModel):
    """Preço de um anúncio existente mudou."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["price_change"]
    data: PriceChangeData


class UnknownEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    data: Any = None


ProviderEvent = Union[NewListingEvent, PriceChangeEvent, UnknownEvent]


def parse_provider_event(payload: Any) -> ProviderEvent:
    """
    Valida o JSON recebido e devolve o evento tipado.

    Raises:
        InvalidProviderPayload: payload não é objeto, falta type, ou data inválido
    """
    if not isinstance(payload, dict):
        raise InvalidProviderPayload("Payload must be a JSON object")

    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise InvalidProviderPayload("Payload 'type' is required")

    try:
        if event_type == NEW_LISTING:
            return NewListingEvent.model_validate(payload)
        if event_type == PRICE_CHANGE:
            return PriceChangeEvent.model_validate(payload)
        return UnknownEvent.model_validate(payload)
    except ValidationError as e:
        raise InvalidProviderPayload(f"Invalid {event_type} payload: {e.error_count()} error(s)") from e
