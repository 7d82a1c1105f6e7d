"""
LISTING - Modelos de domínio de anúncios, leads e matches
=========================================================

PropertyData é um snapshot imutável de um anúncio vindo de UMA fonte.
Uma nova busca gera um novo snapshot, nunca altera o anterior.

Lead é somente leitura aqui (pertence ao LeadStore externo).
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .entities.enums import ListingSource, ListingStatus, MatchStatus


# =============================================================================
# FAIXAS DE PREÇO DO LEAD
# =============================================================================

# bucket -> (mínimo, máximo). None = sem teto.
PRICE_BUCKETS: Dict[str, Tuple[float, Optional[float]]] = {
    "300k-500k": (300_000, 500_000),
    "500k-750k": (500_000, 750_000),
    "750k-1M": (750_000, 1_000_000),
    "1M+": (1_000_000, None),
}


def price_bucket_bounds(price_range: Optional[str]) -> Optional[Tuple[float, Optional[float]]]:
    """Retorna (min, max) da faixa, ou None se a faixa for desconhecida."""
    if not price_range:
        return None
    return PRICE_BUCKETS.get(price_range.strip())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ANÚNCIO
# =============================================================================

@dataclass(frozen=True)
class PropertyData:
    """Snapshot normalizado de um anúncio."""

    id: str
    source: ListingSource
    address: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    price: float = 0
    beds: Optional[int] = None
    baths: Optional[float] = None
    sqft: Optional[int] = None
    lot_size: Optional[float] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = None
    listing_status: ListingStatus = ListingStatus.ACTIVE
    days_on_market: int = 0
    description: str = ""
    images: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()
    agent: Optional[Dict[str, Any]] = None
    last_updated: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if self.price is None or self.price < 0:
            raise ValueError(f"price must be >= 0 (got {self.price})")
        if self.days_on_market is None or self.days_on_market < 0:
            raise ValueError(f"days_on_market must be >= 0 (got {self.days_on_market})")
        # Aceita strings na construção, guarda sempre os enums
        object.__setattr__(self, "source", ListingSource(self.source))
        object.__setattr__(self, "listing_status", ListingStatus(self.listing_status))
        object.__setattr__(self, "images", tuple(self.images or ()))
        object.__setattr__(self, "features", tuple(self.features or ()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "PropertyData":
        """
        Constrói a partir de um dict já normalizado (chaves snake_case).

        Usado pelo handler de webhooks e pelos adapters.
        Raises:
            KeyError / ValueError se faltar id ou houver valor inválido
        """
        last_updated = data.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated.replace("Z", "+00:00"))

        return cls(
            id=str(data["id"]),
            source=source or data["source"],
            address=data.get("address") or "",
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zip_code"),
            price=float(data.get("price") or 0),
            beds=_optional_int(data.get("beds")),
            baths=_optional_float(data.get("baths")),
            sqft=_optional_int(data.get("sqft")),
            lot_size=_optional_float(data.get("lot_size")),
            year_built=_optional_int(data.get("year_built")),
            property_type=data.get("property_type"),
            listing_status=data.get("listing_status") or ListingStatus.ACTIVE,
            days_on_market=int(data.get("days_on_market") or 0),
            description=data.get("description") or "",
            images=data.get("images") or (),
            features=data.get("features") or (),
            agent=data.get("agent"),
            last_updated=last_updated or _utcnow(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Dict serializável em JSON (enums como string, datas ISO8601)."""
        data = asdict(self)
        data["source"] = self.source.value
        data["listing_status"] = self.listing_status.value
        data["images"] = list(self.images)
        data["features"] = list(self.features)
        data["last_updated"] = self.last_updated.isoformat()
        return data


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


# =============================================================================
# LEAD (somente leitura)
# =============================================================================

@dataclass
class Lead:
    """Comprador com critérios de busca."""

    id: str
    tenant_id: str
    city: Optional[str] = None
    price_range: Optional[str] = None
    property_type: Optional[str] = None
    timeline: Optional[str] = None
    status: str = "new"
    name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def bedrooms(self) -> Optional[int]:
        value = (self.metadata or {}).get("bedrooms")
        # Valor livre vindo do CRM ("3+", "dois") conta como ausente
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None


@dataclass
class LeadFilter:
    """Filtro aceito por LeadStore.query()."""

    tenant_id: Optional[str] = None
    status: Optional[str] = None
    city: Optional[str] = None
    limit: int = 50


# =============================================================================
# CRITÉRIOS DE BUSCA
# =============================================================================

@dataclass
class PropertySearchCriteria:
    """Critérios repassados ao SourceAdapter."""

    city: Optional[str] = None
    state: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    beds_min: Optional[int] = None
    baths_min: Optional[float] = None
    property_type: Optional[str] = None
    listing_status: Optional[str] = None
    source: Optional[str] = None
    limit: int = 10
    offset: int = 0

    @classmethod
    def from_lead(cls, lead: Lead, limit: int = 10) -> "PropertySearchCriteria":
        """Deriva os critérios de busca a partir do lead."""
        bounds = price_bucket_bounds(lead.price_range)
        price_min, price_max = bounds if bounds else (None, None)
        return cls(
            city=lead.city,
            price_min=price_min,
            price_max=price_max,
            beds_min=lead.bedrooms,
            property_type=lead.property_type,
            limit=limit,
        )

    def to_params(self) -> Dict[str, Any]:
        """Query params sem valores vazios."""
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# MATCH
# =============================================================================

@dataclass
class LeadMatch:
    """Associação pontuada entre um lead e um imóvel."""

    lead_id: str
    property_id: str
    score: float
    reasons: List[str]
    property: PropertyData
    recommendations: List[str]
    source: ListingSource
    tenant_id: Optional[str] = None
    status: MatchStatus = MatchStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.source = ListingSource(self.source)
        self.status = MatchStatus(self.status)
        if self.created_at is None:
            self.created_at = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lead_id": self.lead_id,
            "property_id": self.property_id,
            "score": self.score,
            "reasons": list(self.reasons),
            "recommendations": list(self.recommendations),
            "source": self.source.value,
            "tenant_id": self.tenant_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "property": self.property.to_dict(),
        }
