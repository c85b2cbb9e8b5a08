"""
Search service - cached search, suggestions and popular terms.
Fronts the filter engine with a TTL result cache keyed by the canonical
form of the search filter.
"""
import logging
from typing import Dict, List, Optional

from discovery.config import get_settings
from discovery.core.cache import CacheInterface, InMemoryCache
from discovery.core.circuit_breaker import CircuitBreaker
from discovery.core.exceptions import DiscoveryUnavailableError
from discovery.core.telemetry import SEARCH_CACHE_LOOKUPS
from discovery.models.interfaces import ContentRepository
from discovery.models.schemas import ContentItem, SearchFilter, SearchResult
from discovery.services.filtering import FilterEngine
from discovery.services.relevance import normalize_query

logger = logging.getLogger(__name__)

POPULAR_SEARCH_TERMS = [
    "anchoring bias",
    "social proof",
    "scarcity",
    "loss aversion",
    "reciprocity",
    "authority",
    "commitment",
    "liking",
    "consensus",
    "framing effect",
]


class SearchService:
    """
    Cached content search.

    Responsibilities:
    - Narrow the corpus at the repository when categories are given
    - Run the filter engine on cache misses
    - Serve suggestions on a best-effort basis
    """

    def __init__(
        self,
        repository: ContentRepository,
        cache: Optional[CacheInterface[List[SearchResult]]] = None,
        filter_engine: Optional[FilterEngine] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        cache_ttl_seconds: Optional[float] = None,
        min_suggestion_length: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._repository = repository
        self._ttl = (
            cache_ttl_seconds
            if cache_ttl_seconds is not None
            else settings.SEARCH_CACHE_TTL_SEC
        )
        self._cache = cache or InMemoryCache[List[SearchResult]](
            default_ttl_seconds=self._ttl
        )
        self._filter_engine = filter_engine or FilterEngine()
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="content_repository",
            failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
        )
        self._min_suggestion_length = (
            min_suggestion_length
            if min_suggestion_length is not None
            else settings.SUGGESTION_MIN_QUERY_LENGTH
        )

    async def search(self, search_filter: SearchFilter) -> List[SearchResult]:
        """
        Search the corpus.

        Args:
            search_filter: Query and structural filters

        Returns:
            Ordered search results (served from cache within the TTL)

        Raises:
            DiscoveryUnavailableError: If the repository cannot supply the corpus
        """
        cache_key = search_filter.cache_key()
        computed = False

        async def compute() -> List[SearchResult]:
            nonlocal computed
            computed = True
            candidates = await self._load_candidates(search_filter)
            return self._filter_engine.apply(candidates, search_filter)

        results = await self._cache.get_or_compute(cache_key, compute, self._ttl)

        outcome = "miss" if computed else "hit"
        SEARCH_CACHE_LOOKUPS.labels(outcome=outcome).inc()
        logger.debug(
            f"Search cache {outcome}: results={len(results)}",
            extra={"cache_key": cache_key},
        )
        return list(results)

    async def suggest(self, partial_query: str, limit: int = 5) -> List[str]:
        """
        Titles, tags and category names containing the partial query.

        Never raises: short queries and failures both yield an empty list.
        """
        term = normalize_query(partial_query)
        if len(term) < self._min_suggestion_length:
            return []

        try:
            corpus = await self._circuit_breaker.call(self._repository.load_all_content)
        except Exception as e:
            logger.warning(f"Suggestions unavailable for '{term}': {e}")
            return []

        suggestions: Dict[str, None] = {}
        for item in corpus:
            if term in item.title.lower():
                suggestions.setdefault(item.title)
            for tag in item.metadata.tags:
                if term in tag.lower():
                    suggestions.setdefault(tag)
            category_name = item.category.display_name
            if term in category_name.lower():
                suggestions.setdefault(category_name)

        return list(suggestions)[:limit]

    def get_popular_search_terms(self) -> List[str]:
        return list(POPULAR_SEARCH_TERMS)

    def clear_cache(self) -> None:
        """Drop every cached search result."""
        self._cache.clear()
        logger.info("Search cache cleared")

    def cache_stats(self) -> Dict[str, float]:
        if isinstance(self._cache, InMemoryCache):
            return self._cache.stats()
        return {}

    async def _load_candidates(self, search_filter: SearchFilter) -> List[ContentItem]:
        """Load the candidate corpus, narrowed by category when possible."""
        try:
            if not search_filter.categories:
                return await self._circuit_breaker.call(
                    self._repository.load_all_content
                )

            candidates: List[ContentItem] = []
            for category in sorted(search_filter.categories, key=lambda c: c.value):
                candidates.extend(
                    await self._circuit_breaker.call(
                        lambda category=category: self._repository.load_content_by_category(
                            category
                        )
                    )
                )
            return candidates

        except Exception as e:
            logger.error(f"Search corpus unavailable: {e}")
            raise DiscoveryUnavailableError("search", e) from e
