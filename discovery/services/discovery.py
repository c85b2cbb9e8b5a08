"""
Discovery service - entry point for every discovery operation.
Coordinates repository loading, search, similarity, aggregation and
popularity tracking.

Critical-path operations (search, related content, recommendations) are
all-or-nothing: any repository failure surfaces as a single
DiscoveryUnavailableError. Repository loads run one after another and stop
at the first failure, so a failed request leaves no load running and counts
as a single circuit breaker failure. Tracking and suggestions are
best-effort.
"""
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from discovery.config import get_settings
from discovery.core.circuit_breaker import CircuitBreaker
from discovery.core.exceptions import DiscoveryUnavailableError, NotFoundError
from discovery.models.interfaces import ContentRepository
from discovery.models.schemas import (
    AnalyticsRecord,
    BlogPostReference,
    BookmarkDirection,
    ContentCategory,
    ContentItem,
    CrossLink,
    ProjectReference,
    RecommendationScore,
    SearchFilter,
    SearchResult,
    SecondaryPool,
    TrendingItem,
    UserHistory,
)
from discovery.services.popularity import PopularityTracker
from discovery.services.recommendations import RecommendationAggregator
from discovery.services.search import SearchService
from discovery.services.similarity import SimilarityEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_PREFERRED_CATEGORIES = 3
CROSS_LINK_RELATED_LIMIT = 3


class DiscoveryService:
    """
    Content discovery facade.

    All collaborators are injected; defaults are built from settings so the
    service can also be constructed standalone.
    """

    def __init__(
        self,
        repository: ContentRepository,
        search_service: Optional[SearchService] = None,
        tracker: Optional[PopularityTracker] = None,
        similarity_engine: Optional[SimilarityEngine] = None,
        aggregator: Optional[RecommendationAggregator] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        settings = get_settings()
        self._repository = repository
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="content_repository",
            failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
        )
        self._search = search_service or SearchService(
            repository, circuit_breaker=self._circuit_breaker
        )
        self._tracker = tracker or PopularityTracker()
        self._similarity = similarity_engine or SimilarityEngine()
        self._aggregator = aggregator or RecommendationAggregator(self._similarity)

    @property
    def tracker(self) -> PopularityTracker:
        return self._tracker

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search(self, search_filter: SearchFilter) -> List[SearchResult]:
        return await self._search.search(search_filter)

    async def suggest(self, partial_query: str, limit: int = 5) -> List[str]:
        return await self._search.suggest(partial_query, limit)

    def get_popular_search_terms(self) -> List[str]:
        return self._search.get_popular_search_terms()

    def clear_cache(self) -> None:
        self._search.clear_cache()

    def cache_stats(self) -> Dict[str, float]:
        return self._search.cache_stats()

    # -------------------------------------------------------------------------
    # Related content & recommendations
    # -------------------------------------------------------------------------

    async def get_related(
        self,
        item_id: str,
        limit: int = 5,
        user_id: Optional[str] = None,
    ) -> List[ContentItem]:
        """
        Most similar items to ``item_id``, never including the item itself.

        Raises:
            NotFoundError: If the item is not in the corpus
            DiscoveryUnavailableError: If the repository fails
        """
        corpus = await self._load_corpus("related content")
        history = await self._load_history(user_id, "related content")
        source = self._find(corpus, item_id)
        ranked = self._similarity.rank_related(
            source,
            corpus,
            history=history,
            popularity=self._tracker.popularity_signal(),
            limit=limit,
        )
        return [item for item, _ in ranked]

    async def get_cross_links(
        self,
        item_id: str,
        user_id: Optional[str] = None,
    ) -> List[CrossLink]:
        """Related items, blog posts and projects linked from one item."""
        corpus = await self._load_corpus("cross links")
        history = await self._load_history(user_id, "cross links")
        blog_posts, projects = await self._load_references("cross links")
        source = self._find(corpus, item_id)
        related = [
            item
            for item, _ in self._similarity.rank_related(
                source,
                corpus,
                history=history,
                popularity=self._tracker.popularity_signal(),
                limit=CROSS_LINK_RELATED_LIMIT,
            )
        ]
        return self._aggregator.build_cross_links(source, related, blog_posts, projects)

    async def get_recommendations(
        self,
        categories: Sequence[ContentCategory] = (),
        user_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[RecommendationScore]:
        """
        Ranked mix of content items, blog posts and projects.

        Without explicit categories the user's explored categories are used,
        and every category for users without history.

        Raises:
            DiscoveryUnavailableError: If any pool cannot be loaded
        """
        corpus = await self._load_corpus("recommendations")
        history = await self._load_history(user_id, "recommendations")
        blog_posts, projects = await self._load_references("recommendations")
        targets = self._resolve_categories(categories, history)

        recommendations = self._aggregator.aggregate(
            targets,
            corpus,
            blog_posts,
            projects,
            history=history,
            popularity=self._tracker.popularity_signal(),
            limit=limit,
        )
        logger.info(
            f"Recommendations served: categories={[c.value for c in targets]}, "
            f"items={len(recommendations)}",
            extra={"user_id": user_id} if user_id else None,
        )
        return recommendations

    # -------------------------------------------------------------------------
    # Popularity tracking (fire-and-forget)
    # -------------------------------------------------------------------------

    async def ensure_trackable(self, item_id: str) -> None:
        """
        Reject engagement events for ids outside the corpus.

        Tracking stays best-effort: when the corpus cannot be loaded the
        event is let through unchecked.

        Raises:
            NotFoundError: If the corpus loads and does not hold the item
        """
        try:
            corpus = await self._load_corpus("tracking")
        except DiscoveryUnavailableError as e:
            logger.warning(
                f"Tracking without corpus check: {e.details['cause']}",
                extra={"item_id": item_id},
            )
            return
        self._find(corpus, item_id)

    def record_view(
        self,
        item_id: str,
        session_duration: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        return self._tracker.record_view(item_id, session_duration, user_id)

    def record_bookmark(
        self,
        item_id: str,
        direction: BookmarkDirection,
        user_id: Optional[str] = None,
    ) -> bool:
        return self._tracker.record_bookmark(item_id, direction, user_id)

    def record_completion(
        self,
        item_id: str,
        read_time: float,
        user_id: Optional[str] = None,
    ) -> bool:
        return self._tracker.record_completion(item_id, read_time, user_id)

    def get_trending(self, limit: int = 10) -> List[TrendingItem]:
        return self._tracker.get_trending(limit)

    def get_analytics(self, item_id: str) -> Optional[AnalyticsRecord]:
        return self._tracker.get_analytics(item_id)

    # -------------------------------------------------------------------------
    # Repository boundary
    # -------------------------------------------------------------------------

    async def _guarded(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        try:
            return await self._circuit_breaker.call(func)
        except Exception as e:
            logger.error(f"Repository failure during {operation}: {e}")
            raise DiscoveryUnavailableError(operation, e) from e

    async def _load_corpus(self, operation: str) -> List[ContentItem]:
        return await self._guarded(operation, self._repository.load_all_content)

    async def _load_history(
        self, user_id: Optional[str], operation: str
    ) -> Optional[UserHistory]:
        if not user_id:
            return None
        return await self._guarded(
            operation, lambda: self._repository.load_user_history(user_id)
        )

    async def _load_references(
        self, operation: str
    ) -> Tuple[List[BlogPostReference], List[ProjectReference]]:
        blog_pool = await self._guarded(
            operation,
            lambda: self._repository.load_secondary_references(SecondaryPool.BLOG_POSTS),
        )
        project_pool = await self._guarded(
            operation,
            lambda: self._repository.load_secondary_references(SecondaryPool.PROJECTS),
        )
        blog_posts = [ref for ref in blog_pool if isinstance(ref, BlogPostReference)]
        projects = [ref for ref in project_pool if isinstance(ref, ProjectReference)]
        return blog_posts, projects

    @staticmethod
    def _find(corpus: List[ContentItem], item_id: str) -> ContentItem:
        for item in corpus:
            if item.id == item_id:
                return item
        raise NotFoundError("Content item", item_id)

    @staticmethod
    def _resolve_categories(
        categories: Sequence[ContentCategory],
        history: Optional[UserHistory],
    ) -> List[ContentCategory]:
        if categories:
            return list(dict.fromkeys(categories))

        if history is not None and history.categories_explored:
            explored = list(dict.fromkeys(history.categories_explored))
            remaining = [c for c in ContentCategory if c not in explored]
            return (explored + remaining)[:MAX_PREFERRED_CATEGORIES]

        return list(ContentCategory)
