"""Models package - domain entities and interfaces."""
from .interfaces import AnalyticsRepository, ContentRepository
from .schemas import (
    AnalyticsRecord,
    BlogPostReference,
    BookmarkDirection,
    ContentCategory,
    ContentItem,
    ContentMetadata,
    CrossLink,
    Difficulty,
    ErrorResponse,
    MatchedField,
    ProjectReference,
    RecommendationScore,
    RecommendationType,
    RelevanceTag,
    SearchFilter,
    SearchResult,
    SecondaryPool,
    StructuredContent,
    TrendingItem,
    UserHistory,
)

__all__ = [
    # Interfaces
    "AnalyticsRepository",
    "ContentRepository",
    # Schemas
    "AnalyticsRecord",
    "BlogPostReference",
    "BookmarkDirection",
    "ContentCategory",
    "ContentItem",
    "ContentMetadata",
    "CrossLink",
    "Difficulty",
    "ErrorResponse",
    "MatchedField",
    "ProjectReference",
    "RecommendationScore",
    "RecommendationType",
    "RelevanceTag",
    "SearchFilter",
    "SearchResult",
    "SecondaryPool",
    "StructuredContent",
    "TrendingItem",
    "UserHistory",
]
