"""
In-memory repository implementations.
Used for prototyping and testing.
Production would replace these with Firestore/CMS-backed implementations.
"""
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterable, List, Optional

from discovery.core.cache import CacheInterface, InMemoryCache
from discovery.models.schemas import (
    AnalyticsRecord,
    BlogPostReference,
    CaseStudyExample,
    ContentCategory,
    ContentItem,
    ContentMetadata,
    Difficulty,
    ProjectReference,
    RelevanceTag,
    SecondaryPool,
    SecondaryReference,
    StructuredContent,
    UserHistory,
)


def _item(
    item_id: str,
    title: str,
    category: ContentCategory,
    summary: str,
    description: str,
    guide: str,
    difficulty: Difficulty,
    relevance: Iterable[RelevanceTag],
    tags: List[str],
    read_time: int = 5,
) -> ContentItem:
    return ContentItem(
        id=item_id,
        title=title,
        category=category,
        summary=summary,
        content=StructuredContent(description=description, application_guide=guide),
        metadata=ContentMetadata(
            difficulty=difficulty,
            relevance=frozenset(relevance),
            read_time=read_time,
            tags=tags,
        ),
    )


def build_mock_content() -> List[ContentItem]:
    """Seed corpus covering every category and difficulty."""
    c = ContentCategory
    d = Difficulty
    r = RelevanceTag
    return [
        _item(
            "anchoring-bias", "Anchoring Bias", c.COGNITIVE_BIASES,
            "People rely heavily on the first piece of information they see "
            "when making decisions.",
            "The first number shown becomes a reference point for later judgements.",
            "Show a higher reference price before the offer you want chosen.",
            d.BEGINNER, [r.MARKETING, r.SALES], ["anchoring", "pricing", "decision-making"],
        ),
        _item(
            "confirmation-bias", "Confirmation Bias", c.COGNITIVE_BIASES,
            "We favour information that confirms what we already believe.",
            "Users skim for evidence that supports their first impression.",
            "Lead with the benefit the visitor already expects to find.",
            d.INTERMEDIATE, [r.UX, r.MARKETING], ["beliefs", "decision-making", "psychology"],
        ),
        _item(
            "social-proof", "Social Proof", c.PERSUASION_PRINCIPLES,
            "People follow the actions of others when they are uncertain.",
            "Testimonials, ratings and user counts reduce perceived risk.",
            "Place reviews next to the primary call to action.",
            d.BEGINNER, [r.MARKETING, r.SALES], ["testimonials", "conversion", "trust"],
        ),
        _item(
            "reciprocity", "Reciprocity", c.PERSUASION_PRINCIPLES,
            "People feel obliged to return favours they receive.",
            "Giving value first increases the chance of a later commitment.",
            "Offer a free template before asking for an email address.",
            d.INTERMEDIATE, [r.MARKETING], ["influence", "conversion", "free-trial"],
        ),
        _item(
            "loss-aversion", "Loss Aversion", c.BEHAVIORAL_ECONOMICS,
            "Losses feel roughly twice as painful as equivalent gains feel good.",
            "Framing an offer as avoiding a loss outperforms framing it as a gain.",
            "Remind trial users what they will lose when the trial ends.",
            d.INTERMEDIATE, [r.MARKETING, r.SALES], ["pricing", "framing", "retention"],
        ),
        _item(
            "decoy-effect", "Decoy Effect", c.BEHAVIORAL_ECONOMICS,
            "Adding an inferior option makes a target option look better.",
            "An asymmetrically dominated option steers choice between two plans.",
            "Introduce a middle plan that makes the premium plan the obvious pick.",
            d.ADVANCED, [r.SALES], ["pricing", "choice-architecture"],
        ),
        _item(
            "hicks-law", "Hick's Law", c.UX_PSYCHOLOGY,
            "Decision time grows with the number and complexity of choices.",
            "Every extra option adds cognitive load to navigation and forms.",
            "Cut menu items and split long forms into steps.",
            d.BEGINNER, [r.UX], ["navigation", "cognitive-load", "design"],
        ),
        _item(
            "progressive-disclosure", "Progressive Disclosure", c.UX_PSYCHOLOGY,
            "Show only what users need now and reveal detail on demand.",
            "Deferring advanced settings keeps primary tasks simple.",
            "Hide advanced options behind an expandable section.",
            d.ADVANCED, [r.UX], ["onboarding", "cognitive-load", "design"],
        ),
        _item(
            "fear-of-missing-out", "Fear of Missing Out", c.EMOTIONAL_TRIGGERS,
            "Worry about missing rewarding experiences drives quick action.",
            "Limited-time events create urgency and return visits.",
            "Announce time-boxed launches to an existing audience.",
            d.BEGINNER, [r.MARKETING], ["urgency", "scarcity", "engagement"],
        ),
        ContentItem(
            id="scarcity",
            title="Scarcity",
            category=c.EMOTIONAL_TRIGGERS,
            summary="Things seem more valuable when they are rare or running out.",
            content=StructuredContent(
                description="Limited stock and limited time both raise perceived value.",
                application_guide="Show remaining seats only when the number is real.",
                examples=[
                    CaseStudyExample(
                        id="scarcity-launch",
                        title="Founding member pricing",
                        case_study_content="A capped founding tier sold out in two days.",
                    )
                ],
            ),
            metadata=ContentMetadata(
                difficulty=d.INTERMEDIATE,
                relevance=frozenset({r.MARKETING, r.SALES}),
                read_time=6,
                tags=["urgency", "scarcity", "pricing"],
            ),
        ),
    ]


def build_mock_blog_posts() -> List[BlogPostReference]:
    return [
        BlogPostReference(
            id="blog-pricing-pages",
            title="What We Learned Redesigning Our Pricing Page",
            slug="pricing-page-redesign",
            excerpt="Anchors, decoys and the plan nobody buys.",
            tags=["pricing", "economics", "conversion"],
            published_at=datetime(2024, 3, 4, tzinfo=timezone.utc),
            read_time=7,
        ),
        BlogPostReference(
            id="blog-onboarding-ux",
            title="Onboarding Without the Wall of Settings",
            slug="onboarding-without-settings",
            excerpt="Progressive disclosure in a developer tool.",
            tags=["ux", "design", "user-experience"],
            published_at=datetime(2024, 5, 12, tzinfo=timezone.utc),
            read_time=5,
        ),
        BlogPostReference(
            id="blog-decisions",
            title="How Users Actually Decide",
            slug="how-users-decide",
            excerpt="Notes on biases that show up in analytics.",
            tags=["psychology", "decision-making"],
            published_at=datetime(2024, 1, 20, tzinfo=timezone.utc),
            read_time=9,
        ),
        BlogPostReference(
            id="blog-launch-emails",
            title="Launch Emails That Got Opened",
            slug="launch-emails",
            excerpt="Urgency that does not feel fake.",
            tags=["emotions", "engagement", "marketing"],
            published_at=datetime(2024, 6, 2, tzinfo=timezone.utc),
            read_time=4,
        ),
    ]


def build_mock_projects() -> List[ProjectReference]:
    return [
        ProjectReference(
            id="proj-checkout",
            title="Checkout Conversion Experiments",
            description="A/B tested checkout flow for a subscription product.",
            technologies=["nextjs", "stripe"],
            category="ecommerce",
        ),
        ProjectReference(
            id="proj-dashboard",
            title="Analytics Dashboard",
            description="Funnel analytics for marketing campaigns.",
            technologies=["react", "bigquery"],
            category="analytics",
        ),
        ProjectReference(
            id="proj-design-system",
            title="Design System",
            description="Component library with accessibility baked in.",
            technologies=["react", "storybook"],
            category="design",
        ),
        ProjectReference(
            id="proj-community",
            title="Community Feed",
            description="Social feed with streaks and reactions.",
            technologies=["firebase", "flutter"],
            category="social",
        ),
    ]


class InMemoryContentRepository:
    """
    In-memory implementation of ContentRepository.
    Simulates the content store with a fixed corpus.
    """

    def __init__(
        self,
        items: Optional[List[ContentItem]] = None,
        blog_posts: Optional[List[BlogPostReference]] = None,
        projects: Optional[List[ProjectReference]] = None,
        histories: Optional[List[UserHistory]] = None,
        history_cache: Optional[CacheInterface[UserHistory]] = None,
    ) -> None:
        self._items = list(items) if items is not None else build_mock_content()
        self._references: Dict[SecondaryPool, List[SecondaryReference]] = {
            SecondaryPool.BLOG_POSTS: list(
                blog_posts if blog_posts is not None else build_mock_blog_posts()
            ),
            SecondaryPool.PROJECTS: list(
                projects if projects is not None else build_mock_projects()
            ),
        }
        self._history_cache = history_cache or InMemoryCache[UserHistory]()
        self._initialize_histories(histories)

    def _initialize_histories(self, histories: Optional[List[UserHistory]]) -> None:
        """Load user histories (mock readers by default)."""
        if histories is None:
            histories = [
                UserHistory(
                    user_id="user_reader",
                    read_items={"anchoring-bias", "loss-aversion"},
                    bookmarked_items={"loss-aversion"},
                    categories_explored=[
                        ContentCategory.COGNITIVE_BIASES,
                        ContentCategory.BEHAVIORAL_ECONOMICS,
                    ],
                    total_read_time=14,
                    items_read=2,
                ),
                UserHistory(user_id="user_new"),
            ]
        for history in histories:
            self._history_cache.set(history.user_id, history)

    async def load_all_content(self) -> List[ContentItem]:
        return list(self._items)

    async def load_content_by_category(
        self, category: ContentCategory
    ) -> List[ContentItem]:
        return [item for item in self._items if item.category == category]

    async def load_user_history(self, user_id: str) -> Optional[UserHistory]:
        return self._history_cache.get(user_id)

    async def load_secondary_references(
        self, pool: SecondaryPool
    ) -> List[SecondaryReference]:
        return list(self._references.get(pool, []))


class InMemoryAnalyticsRepository:
    """
    In-memory implementation of AnalyticsRepository.
    Stores deep copies so callers cannot mutate stored records in place.
    """

    def __init__(self) -> None:
        self._records: Dict[str, AnalyticsRecord] = {}
        self._lock = Lock()

    def get(self, item_id: str) -> Optional[AnalyticsRecord]:
        with self._lock:
            record = self._records.get(item_id)
            return record.model_copy(deep=True) if record is not None else None

    def save(self, record: AnalyticsRecord) -> None:
        with self._lock:
            self._records[record.item_id] = record.model_copy(deep=True)

    def list_all(self) -> List[AnalyticsRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]
