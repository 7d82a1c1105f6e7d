"""
WEBHOOK SUBSCRIPTION - Assinaturas de webhooks de saída
=======================================================

Cada tenant registra URLs que recebem eventos assinados (HMAC-SHA256).
Tabela usada pelo SQLAlchemySubscriptionStore.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, Integer, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class WebhookSubscriptionRecord(Base, TimestampMixin):
    """Linha persistida de uma assinatura de webhook."""

    __tablename__ = "webhook_subscriptions"

    # UUID gerado na aplicação, nunca alterado
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    url: Mapped[str] = mapped_column(Text, nullable=False)

    # Lista de WebhookEvent (valores string)
    events: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    secret: Mapped[str] = mapped_column(String(128), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_triggered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
