from .base import Base, TimestampMixin
from .enums import (
    ListingSource,
    ListingStatus,
    LeadTimeline,
    MatchStatus,
    WebhookEvent,
    WEBHOOK_EVENT_VALUES,
)
from .webhook_subscription import WebhookSubscriptionRecord
from .property_match import PropertyMatchRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "ListingSource",
    "ListingStatus",
    "LeadTimeline",
    "MatchStatus",
    "WebhookEvent",
    "WEBHOOK_EVENT_VALUES",
    "WebhookSubscriptionRecord",
    "PropertyMatchRecord",
]
