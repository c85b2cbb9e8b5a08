"""Services package - business logic layer."""
from .discovery import DiscoveryService
from .filtering import FilterEngine
from .popularity import PopularityTracker
from .recommendations import RecommendationAggregator
from .relevance import Relevance, RelevanceScorer
from .search import SearchService
from .similarity import (
    CategoryMatch,
    DifficultyProgression,
    SimilarityComponent,
    SimilarityEngine,
    TagSimilarity,
    UserHistoryAffinity,
)

__all__ = [
    "CategoryMatch",
    "DifficultyProgression",
    "DiscoveryService",
    "FilterEngine",
    "PopularityTracker",
    "RecommendationAggregator",
    "Relevance",
    "RelevanceScorer",
    "SearchService",
    "SimilarityComponent",
    "SimilarityEngine",
    "TagSimilarity",
    "UserHistoryAffinity",
]
