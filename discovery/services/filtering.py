"""
Filter engine: structural filters, query matching and result ordering.
"""
import logging
from typing import List, Optional

from discovery.models.schemas import ContentItem, SearchFilter, SearchResult
from discovery.services.relevance import RelevanceScorer

logger = logging.getLogger(__name__)


class FilterEngine:
    """
    Turns a candidate corpus and a SearchFilter into ordered SearchResults.

    Filters are applied in a fixed order: category, query match, difficulty,
    relevance tags. With a query, results are ordered by descending relevance
    (equal scores keep corpus order); without one, alphabetically by title.
    """

    def __init__(self, scorer: Optional[RelevanceScorer] = None) -> None:
        self._scorer = scorer or RelevanceScorer()

    def apply(
        self,
        candidates: List[ContentItem],
        search_filter: SearchFilter,
    ) -> List[SearchResult]:
        query = search_filter.normalized_query
        results: List[SearchResult] = []

        for item in candidates:
            # Filter: Category
            if search_filter.categories and item.category not in search_filter.categories:
                continue

            # Filter: Query match
            relevance = self._scorer.score(item, query)
            if query and not relevance.is_match:
                continue

            # Filter: Difficulty
            if (
                search_filter.difficulties
                and item.metadata.difficulty not in search_filter.difficulties
            ):
                continue

            # Filter: Relevance tags (any)
            if search_filter.relevance_tags and not (
                item.metadata.relevance & search_filter.relevance_tags
            ):
                continue

            results.append(
                SearchResult(
                    item=item,
                    relevance_score=relevance.score,
                    matched_fields=relevance.matched_fields,
                )
            )

        if query:
            # list.sort is stable: ties keep corpus order
            results.sort(key=lambda r: r.relevance_score, reverse=True)
        else:
            results.sort(key=lambda r: r.item.title.casefold())

        logger.debug(
            f"Filtered {len(candidates)} candidates -> {len(results)} results"
        )
        return results
