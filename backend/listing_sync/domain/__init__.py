from .listing import (
    PRICE_BUCKETS,
    price_bucket_bounds,
    PropertyData,
    Lead,
    LeadFilter,
    LeadMatch,
    PropertySearchCriteria,
)
from .webhook import (
    DELIVERY_GUARANTEE,
    WebhookSubscription,
    WebhookPayload,
    WebhookDelivery,
)

__all__ = [
    "PRICE_BUCKETS",
    "price_bucket_bounds",
    "PropertyData",
    "Lead",
    "LeadFilter",
    "LeadMatch",
    "PropertySearchCriteria",
    "DELIVERY_GUARANTEE",
    "WebhookSubscription",
    "WebhookPayload",
    "WebhookDelivery",
]
