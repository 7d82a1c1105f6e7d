"""
SCHEMAS DE VALIDAÇÃO
=====================

Estrutura de dados de entrada e saída da API.
Pydantic valida automaticamente os dados.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from listing_sync.domain.webhook import DELIVERY_GUARANTEE


# ============================================
# WEBHOOKS DE PROVIDER (entrada)
# ============================================

class ProviderWebhookResponse(BaseModel):
    """Resposta ao provider após processar o evento."""

    success: bool = True
    provider: str
    event_type: str
    status: str
    lead_ids: List[str] = Field(default_factory=list)
    retained_matches: int = 0
    deliveries: int = 0
    failures: int = 0


# ============================================
# ASSINATURAS DE WEBHOOK (saída)
# ============================================

class SubscriptionCreate(BaseModel):
    url: str = Field(..., description="URL de callback (http/https)")
    events: List[str] = Field(..., description="Eventos assinados, ex: property.matched")
    secret: Optional[str] = Field(None, description="Secret HMAC; gerado se omitido")


class SubscriptionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = None
    events: Optional[List[str]] = None
    is_active: Optional[bool] = None


class SubscriptionResponse(BaseModel):
    id: str
    tenant_id: str
    url: str
    events: List[str]
    is_active: bool
    retry_count: int
    last_triggered_at: Optional[datetime] = None
    created_at: datetime
    delivery_guarantee: str = DELIVERY_GUARANTEE


class SubscriptionCreatedResponse(SubscriptionResponse):
    """Único momento em que o secret é devolvido."""

    secret: str


# ============================================
# IMÓVEIS E MATCHES
# ============================================

class PropertySearchRequest(BaseModel):
    city: Optional[str] = None
    state: Optional[str] = None
    price_min: Optional[float] = Field(None, ge=0)
    price_max: Optional[float] = Field(None, ge=0)
    beds_min: Optional[int] = Field(None, ge=0)
    baths_min: Optional[float] = Field(None, ge=0)
    property_type: Optional[str] = None
    listing_status: Optional[str] = None
    limit: int = Field(10, ge=1, le=100)
    offset: int = Field(0, ge=0)

    sources: Optional[List[str]] = Field(None, description="Fontes a consultar (todas se omitido)")


class PropertySearchResponse(BaseModel):
    total: int
    properties: List[Dict[str, Any]]
    skipped: Dict[str, str] = Field(default_factory=dict)


class LeadMatchesResponse(BaseModel):
    lead_id: str
    total: int
    matches: List[Dict[str, Any]]
