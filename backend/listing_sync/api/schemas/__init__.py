from .schemas import (
    ProviderWebhookResponse,
    SubscriptionCreate,
    SubscriptionUpdate,
    SubscriptionResponse,
    SubscriptionCreatedResponse,
    PropertySearchRequest,
    PropertySearchResponse,
    LeadMatchesResponse,
)

__all__ = [
    "ProviderWebhookResponse",
    "SubscriptionCreate",
    "SubscriptionUpdate",
    "SubscriptionResponse",
    "SubscriptionCreatedResponse",
    "PropertySearchRequest",
    "PropertySearchResponse",
    "LeadMatchesResponse",
]
