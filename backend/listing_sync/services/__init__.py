from .matching_engine import MatchingEngine, calculate_match_score, price_range_score

__all__ = [
    "MatchingEngine",
    "calculate_match_score",
    "price_range_score",
]
