"""
WEBHOOK - Modelos de assinatura, payload e entrega
==================================================

Entrega é best-effort, at-most-once: não existe fila de reenvio.
WebhookPayload e WebhookDelivery são efêmeros (não persistidos).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional


DELIVERY_GUARANTEE = "at-most-once"
MAX_RESPONSE_BODY_CHARS = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WebhookSubscription:
    """URL de callback registrada por um tenant."""

    id: str
    tenant_id: str
    url: str
    events: FrozenSet[str]
    secret: str
    is_active: bool = True
    # Não consumido por nenhuma lógica de retry (ver DESIGN.md)
    retry_count: int = 0
    last_triggered_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)

    def listens_to(self, event: str) -> bool:
        return self.is_active and event in self.events

    def to_dict(self, include_secret: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "url": self.url,
            "events": sorted(self.events),
            "is_active": self.is_active,
            "retry_count": self.retry_count,
            "last_triggered_at": self.last_triggered_at.isoformat() if self.last_triggered_at else None,
            "created_at": self.created_at.isoformat(),
            "delivery_guarantee": DELIVERY_GUARANTEE,
        }
        if include_secret:
            data["secret"] = self.secret
        return data


@dataclass
class WebhookPayload:
    """Corpo enviado ao assinante."""

    event: str
    timestamp: str
    tenant_id: str
    data: Any

    def to_dict(self) -> Dict[str, Any]:
        # Ordem das chaves faz parte do corpo assinado
        return {
            "event": self.event,
            "timestamp": self.timestamp,
            "tenant_id": self.tenant_id,
            "data": self.data,
        }


@dataclass
class WebhookDelivery:
    """Resultado de uma tentativa de entrega."""

    subscription_id: str
    event: str
    payload: WebhookPayload
    response_status: Optional[int]
    response_body: Optional[str]
    success: bool
    delivered_at: datetime = field(default_factory=_utcnow)
