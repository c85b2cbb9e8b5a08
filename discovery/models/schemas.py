"""
Domain models using Pydantic.
All data structures for the content discovery engine.
"""
import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Enumerations
# =============================================================================


class ContentCategory(str, Enum):
    """Fixed set of knowledge-hub categories."""

    COGNITIVE_BIASES = "cognitive-biases"
    PERSUASION_PRINCIPLES = "persuasion-principles"
    BEHAVIORAL_ECONOMICS = "behavioral-economics"
    UX_PSYCHOLOGY = "ux-psychology"
    EMOTIONAL_TRIGGERS = "emotional-triggers"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES[self]


CATEGORY_DISPLAY_NAMES: Dict[ContentCategory, str] = {
    ContentCategory.COGNITIVE_BIASES: "Cognitive Biases",
    ContentCategory.PERSUASION_PRINCIPLES: "Persuasion Principles",
    ContentCategory.BEHAVIORAL_ECONOMICS: "Behavioral Economics",
    ContentCategory.UX_PSYCHOLOGY: "UX Psychology",
    ContentCategory.EMOTIONAL_TRIGGERS: "Emotional Triggers",
}


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def ordinal(self) -> int:
        return DIFFICULTY_ORDINALS[self]


DIFFICULTY_ORDINALS: Dict[Difficulty, int] = {
    Difficulty.BEGINNER: 1,
    Difficulty.INTERMEDIATE: 2,
    Difficulty.ADVANCED: 3,
}


class RelevanceTag(str, Enum):
    MARKETING = "marketing"
    UX = "ux"
    SALES = "sales"


class MatchedField(str, Enum):
    """Item fields a search query can match."""

    TITLE = "title"
    SUMMARY = "summary"
    TAGS = "tags"
    CONTENT = "content"


class LinkType(str, Enum):
    CONTENT = "content"
    BLOG_POST = "blog-post"
    PROJECT = "project"


class SecondaryPool(str, Enum):
    """Externally supplied reference pools used by recommendations."""

    BLOG_POSTS = "blog-posts"
    PROJECTS = "projects"


class RecommendationType(str, Enum):
    CONTENT = "content"
    BLOG_POST = "blog-post"  # secondary pool A
    PROJECT = "project"  # secondary pool B


class BookmarkDirection(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class InteractionAction(str, Enum):
    VIEW = "view"
    BOOKMARK = "bookmark"
    UNBOOKMARK = "unbookmark"
    COMPLETE_READING = "complete_reading"


# =============================================================================
# Content Item
# =============================================================================


class BeforeAfterExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["before-after"] = "before-after"
    id: str
    title: str
    description: str = ""
    before_image: Optional[str] = None
    after_image: Optional[str] = None


class InteractiveDemoExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["interactive-demo"] = "interactive-demo"
    id: str
    title: str
    description: str = ""
    interactive_component: Optional[str] = Field(
        default=None,
        description="Component name for dynamic loading",
    )


class CaseStudyExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["case-study"] = "case-study"
    id: str
    title: str
    description: str = ""
    case_study_content: str = ""


Example = Annotated[
    Union[BeforeAfterExample, InteractiveDemoExample, CaseStudyExample],
    Field(discriminator="type"),
]


class CrossLink(BaseModel):
    """Link from a content item to related content of any type."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: LinkType
    url: str
    description: Optional[str] = None


class DownloadableResource(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    file_url: str
    file_type: Literal["pdf", "template", "script", "checklist"]
    file_size: int = Field(default=0, ge=0, description="Size in bytes")


class PremiumContent(BaseModel):
    """
    Premium block attached to a content item.

    Known fields are typed; anything else the ingestion pipeline sends is
    collected into ``extra`` instead of widening the model.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    extended_case_studies: str = ""
    downloadable_resources: List[DownloadableResource] = Field(default_factory=list)
    advanced_applications: str = ""
    extra: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_unknown_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = set(cls.model_fields)
        unknown = {k: v for k, v in data.items() if k not in known}
        if not unknown:
            return data
        cleaned = {k: v for k, v in data.items() if k in known}
        cleaned["extra"] = {**data.get("extra", {}), **unknown}
        return cleaned


class StructuredContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""
    application_guide: str = ""
    visual_diagram: Optional[str] = None
    examples: List[Example] = Field(default_factory=list)
    related_content: List[CrossLink] = Field(default_factory=list)


class ContentMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    difficulty: Difficulty = Difficulty.BEGINNER
    relevance: FrozenSet[RelevanceTag] = frozenset()
    read_time: int = Field(default=0, ge=0, description="Estimated read time (minutes)")
    tags: List[str] = Field(default_factory=list)


class ContentItem(BaseModel):
    """
    A discrete unit of indexed knowledge.
    Produced by the ingestion pipeline; read-only to the discovery engine.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique content identifier")
    title: str
    category: ContentCategory
    summary: str = Field(default="", description="50-80 word summary")
    content: StructuredContent = Field(default_factory=StructuredContent)
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    premium_content: Optional[PremiumContent] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# Secondary References
# =============================================================================


class BlogPostReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["blog-post"] = "blog-post"
    id: str
    title: str
    slug: str
    excerpt: str = ""
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    read_time: int = 0


class ProjectReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["project"] = "project"
    id: str
    title: str
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    category: str
    completed_at: Optional[datetime] = None
    github_url: Optional[str] = None
    live_url: Optional[str] = None


SecondaryReference = Annotated[
    Union[BlogPostReference, ProjectReference],
    Field(discriminator="kind"),
]


# =============================================================================
# User History
# =============================================================================


class UserHistory(BaseModel):
    """
    Per-user reading projection.
    Supplied by the content store; read-only input to scoring.
    """

    user_id: str
    read_items: Set[str] = Field(default_factory=set)
    bookmarked_items: Set[str] = Field(default_factory=set)
    categories_explored: List[ContentCategory] = Field(
        default_factory=list,
        description="Categories in the order the user first explored them",
    )
    total_read_time: int = Field(default=0, ge=0, description="Minutes")
    items_read: int = Field(default=0, ge=0)

    def has_read(self, item_id: str) -> bool:
        return item_id in self.read_items

    def has_explored(self, category: ContentCategory) -> bool:
        return category in self.categories_explored


# =============================================================================
# Search
# =============================================================================


class SearchFilter(BaseModel):
    """Free-text query plus structural filters."""

    model_config = ConfigDict(frozen=True)

    query: str = ""
    categories: FrozenSet[ContentCategory] = frozenset()
    difficulties: FrozenSet[Difficulty] = frozenset()
    relevance_tags: FrozenSet[RelevanceTag] = frozenset()

    @property
    def normalized_query(self) -> str:
        return self.query.strip().lower()

    def cache_key(self) -> str:
        """Canonical form: filters that normalise identically share a key."""
        return json.dumps(
            {
                "query": self.normalized_query,
                "categories": sorted(c.value for c in self.categories),
                "difficulties": sorted(d.value for d in self.difficulties),
                "relevance_tags": sorted(r.value for r in self.relevance_tags),
            },
            separators=(",", ":"),
        )


class SearchResult(BaseModel):
    item: ContentItem
    relevance_score: int = Field(..., ge=0)
    matched_fields: FrozenSet[MatchedField] = frozenset()


# =============================================================================
# Recommendations
# =============================================================================


class RecommendationScore(BaseModel):
    """Either a content item or a secondary reference, with its score."""

    type: RecommendationType
    score: float
    item: Optional[ContentItem] = None
    reference: Optional[SecondaryReference] = None

    @model_validator(mode="after")
    def _check_target(self) -> "RecommendationScore":
        if (self.item is None) == (self.reference is None):
            raise ValueError("exactly one of item or reference is required")
        expected = {
            RecommendationType.CONTENT: ContentItem,
            RecommendationType.BLOG_POST: BlogPostReference,
            RecommendationType.PROJECT: ProjectReference,
        }[self.type]
        target = self.item if self.item is not None else self.reference
        if not isinstance(target, expected):
            raise ValueError(
                f"{self.type.value} recommendation needs a {expected.__name__}"
            )
        return self

    @property
    def target_id(self) -> str:
        if self.item is not None:
            return self.item.id
        return self.reference.id if self.reference is not None else ""


# =============================================================================
# Analytics
# =============================================================================


class AnalyticsRecord(BaseModel):
    """
    Engagement counters for one content item.
    ``popularity_score`` and ``average_read_time`` are derived fields that
    the tracker recomputes on every mutation.
    """

    item_id: str
    view_count: int = Field(default=0, ge=0)
    bookmark_count: int = Field(default=0, ge=0)
    total_read_time: float = Field(default=0.0, ge=0, description="Seconds")
    completion_count: int = Field(default=0, ge=0)
    average_read_time: int = 0
    daily_views: Dict[str, int] = Field(
        default_factory=dict,
        description="UTC ISO date -> views that day",
    )
    popularity_score: int = 0
    last_updated: datetime


class UserInteraction(BaseModel):
    user_id: str
    item_id: str
    action: InteractionAction
    timestamp: datetime
    session_duration: Optional[float] = None


class TrendingItem(BaseModel):
    item_id: str
    trend_score: float
    view_count: int
    popularity_score: int


class AnalyticsSummary(BaseModel):
    total_views: int
    tracked_items: int
    average_popularity: int


# =============================================================================
# API Models (External)
# =============================================================================


class SearchResponse(BaseModel):
    query: str
    total: int
    results: List[SearchResult]


class SuggestionResponse(BaseModel):
    suggestions: List[str]


class PopularTermsResponse(BaseModel):
    terms: List[str]


class RelatedContentResponse(BaseModel):
    item_id: str
    items: List[ContentItem]


class CrossLinkResponse(BaseModel):
    item_id: str
    links: List[CrossLink]


class RecommendationResponse(BaseModel):
    recommendations: List[RecommendationScore]


class TrendingResponse(BaseModel):
    items: List[TrendingItem]


class RecordViewRequest(BaseModel):
    session_duration: Optional[float] = Field(
        default=None,
        ge=0,
        description="Seconds spent on the item",
    )
    user_id: Optional[str] = None


class RecordBookmarkRequest(BaseModel):
    direction: BookmarkDirection
    user_id: Optional[str] = None


class RecordCompletionRequest(BaseModel):
    read_time: float = Field(..., ge=0, description="Seconds")
    user_id: Optional[str] = None


class TrackingAck(BaseModel):
    accepted: bool


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")
