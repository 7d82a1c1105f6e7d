"""Enums - valores fixos que se repetem no sistema."""

from enum import Enum


class ListingSource(str, Enum):
    """Provedores externos de anúncios."""
    ZILLOW = "zillow"
    REALTOR = "realtor"
    MLS = "mls"


class ListingStatus(str, Enum):
    """Status do anúncio no provider."""
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    OFF_MARKET = "off_market"


class LeadTimeline(str, Enum):
    """Urgência declarada pelo comprador."""
    URGENT = "urgent"
    FLEXIBLE = "flexible"


class MatchStatus(str, Enum):
    """Acompanhamento do match pelo corretor."""
    PENDING = "pending"
    VIEWED = "viewed"
    INTERESTED = "interested"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"


class WebhookEvent(str, Enum):
    """Eventos que um tenant pode assinar."""
    LEAD_CREATED = "lead.created"
    LEAD_UPDATED = "lead.updated"
    LEAD_CONVERTED = "lead.converted"
    LEAD_DELETED = "lead.deleted"
    APPROVAL_PENDING = "approval.pending"
    APPROVAL_COMPLETED = "approval.completed"
    APPROVAL_REJECTED = "approval.rejected"
    MESSAGE_SENT = "message.sent"
    MESSAGE_FAILED = "message.failed"
    PAYMENT_RECEIVED = "payment.received"
    CREDITS_LOW = "credits.low"
    CREDITS_DEPLETED = "credits.depleted"
    AGENT_ASSIGNED = "agent.assigned"
    AGENT_ACTIVITY = "agent.activity"
    # Emitidos por este motor
    PROPERTY_MATCHED = "property.matched"
    PROPERTY_PRICE_CHANGED = "property.price_changed"


WEBHOOK_EVENT_VALUES = frozenset(e.value for e in WebhookEvent)
