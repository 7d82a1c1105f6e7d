from .listing_service import ListingSyncService, SearchResult

__all__ = ["ListingSyncService", "SearchResult"]
