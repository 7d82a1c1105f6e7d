"""
PROPERTY MATCH - Matches persistidos entre lead e imóvel
========================================================

Cada execução (lead, fonte) substitui por completo o conjunto anterior
daquele par. O snapshot do imóvel vai junto em JSON.
"""

from typing import Optional
from sqlalchemy import String, Float, JSON, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class PropertyMatchRecord(Base, TimestampMixin):
    """Linha persistida de um LeadMatch."""

    __tablename__ = "property_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    lead_id: Mapped[str] = mapped_column(String(100), nullable=False)
    property_id: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)

    score: Mapped[float] = mapped_column(Float, nullable=False)
    # Posição no ranking (0 = melhor), preserva a ordem de desempate
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    reasons: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    recommendations: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    property_snapshot: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    __table_args__ = (
        Index("ix_property_matches_lead_source", "lead_id", "source"),
    )
