from .lead_store import LeadStore, InMemoryLeadStore, LeadResolver, CLOSED_LEAD_STATUSES
from .match_store import MatchStore, InMemoryMatchStore, SQLAlchemyMatchStore
from .subscription_store import (
    SubscriptionStore,
    InMemorySubscriptionStore,
    SQLAlchemySubscriptionStore,
)

__all__ = [
    "LeadStore",
    "InMemoryLeadStore",
    "LeadResolver",
    "CLOSED_LEAD_STATUSES",
    "MatchStore",
    "InMemoryMatchStore",
    "SQLAlchemyMatchStore",
    "SubscriptionStore",
    "InMemorySubscriptionStore",
    "SQLAlchemySubscriptionStore",
]
