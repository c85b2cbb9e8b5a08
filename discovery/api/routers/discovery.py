"""
Discovery API router.
Search, related content, recommendations, trending and engagement tracking.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from discovery.api.dependencies import get_discovery_service
from discovery.config import get_settings
from discovery.core.exceptions import NotFoundError
from discovery.models.schemas import (
    AnalyticsRecord,
    ContentCategory,
    CrossLinkResponse,
    Difficulty,
    ErrorResponse,
    PopularTermsResponse,
    RecommendationResponse,
    RecordBookmarkRequest,
    RecordCompletionRequest,
    RecordViewRequest,
    RelatedContentResponse,
    RelevanceTag,
    SearchFilter,
    SearchResponse,
    SuggestionResponse,
    TrackingAck,
    TrendingResponse,
)
from discovery.services.discovery import DiscoveryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["discovery"])

ERROR_RESPONSES = {
    503: {"model": ErrorResponse, "description": "Content source unavailable"},
}
NOT_FOUND_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Unknown item"},
}


def _effective_limit(limit: Optional[int], default: int) -> int:
    """Requested limit, or the configured default, capped at the maximum."""
    return min(limit or default, get_settings().MAX_RESULT_LIMIT)


# =============================================================================
# Search
# =============================================================================


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search Content",
    description="""
    Search the knowledge hub by free text and structural filters.

    - Free-text relevance over title, summary, tags and content
    - Category, difficulty and relevance-tag filters (any-of within each)
    - Results are cached per normalised filter for the configured TTL
    """,
    responses=ERROR_RESPONSES,
)
async def search_content(
    response: Response,
    q: str = Query(default="", max_length=200, description="Free-text query"),
    category: List[ContentCategory] = Query(default=[], description="Category filter"),
    difficulty: List[Difficulty] = Query(default=[], description="Difficulty filter"),
    relevance: List[RelevanceTag] = Query(default=[], description="Relevance tag filter"),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> SearchResponse:
    search_filter = SearchFilter(
        query=q,
        categories=frozenset(category),
        difficulties=frozenset(difficulty),
        relevance_tags=frozenset(relevance),
    )
    results = await discovery_service.search(search_filter)

    response.headers["Cache-Control"] = (
        f"public, max-age={int(get_settings().SEARCH_CACHE_TTL_SEC)}"
    )
    return SearchResponse(query=q, total=len(results), results=results)


@router.get(
    "/search/suggestions",
    response_model=SuggestionResponse,
    summary="Search Suggestions",
)
async def search_suggestions(
    q: str = Query(default="", max_length=200, description="Partial query"),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> SuggestionResponse:
    """Autocomplete suggestions. Short queries return an empty list."""
    suggestions = await discovery_service.suggest(
        q, _effective_limit(limit, get_settings().DEFAULT_SUGGESTION_LIMIT)
    )
    return SuggestionResponse(suggestions=suggestions)


@router.get(
    "/search/popular-terms",
    response_model=PopularTermsResponse,
    summary="Popular Search Terms",
)
async def popular_search_terms(
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> PopularTermsResponse:
    return PopularTermsResponse(terms=discovery_service.get_popular_search_terms())


@router.delete(
    "/search/cache",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear Search Cache",
)
async def clear_search_cache(
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> Response:
    discovery_service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Related Content & Recommendations
# =============================================================================


@router.get(
    "/content/{item_id}/related",
    response_model=RelatedContentResponse,
    summary="Related Content",
    description="""
    Items most similar to the given item.

    Similarity combines category, tag overlap, reading history and
    difficulty progression. Equally similar items are ordered by popularity.
    """,
    responses={**NOT_FOUND_RESPONSES, **ERROR_RESPONSES},
)
async def related_content(
    item_id: str = Path(..., min_length=1),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    user_id: Optional[str] = Query(default=None, description="Reader identifier"),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> RelatedContentResponse:
    items = await discovery_service.get_related(
        item_id,
        limit=_effective_limit(limit, get_settings().DEFAULT_RELATED_LIMIT),
        user_id=user_id,
    )
    return RelatedContentResponse(item_id=item_id, items=items)


@router.get(
    "/content/{item_id}/cross-links",
    response_model=CrossLinkResponse,
    summary="Cross Links",
    responses={**NOT_FOUND_RESPONSES, **ERROR_RESPONSES},
)
async def cross_links(
    item_id: str = Path(..., min_length=1),
    user_id: Optional[str] = Query(default=None),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> CrossLinkResponse:
    """Links from an item to related items, blog posts and projects."""
    links = await discovery_service.get_cross_links(item_id, user_id=user_id)
    return CrossLinkResponse(item_id=item_id, links=links)


@router.get(
    "/recommendations",
    response_model=RecommendationResponse,
    summary="Get Recommendations",
    description="""
    Ranked mix of knowledge-hub items, blog posts and projects.

    Without a category filter the reader's explored categories are used.
    """,
    responses=ERROR_RESPONSES,
)
async def recommendations(
    category: List[ContentCategory] = Query(default=[]),
    user_id: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> RecommendationResponse:
    results = await discovery_service.get_recommendations(
        category,
        user_id=user_id,
        limit=_effective_limit(limit, get_settings().DEFAULT_RECOMMENDATION_LIMIT),
    )
    return RecommendationResponse(recommendations=results)


# =============================================================================
# Popularity & Tracking
# =============================================================================


@router.get(
    "/trending",
    response_model=TrendingResponse,
    summary="Trending Content",
)
async def trending(
    limit: Optional[int] = Query(default=None, ge=1, le=50),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> TrendingResponse:
    items = discovery_service.get_trending(
        _effective_limit(limit, get_settings().DEFAULT_TRENDING_LIMIT)
    )
    return TrendingResponse(items=items)


@router.get(
    "/content/{item_id}/analytics",
    response_model=AnalyticsRecord,
    summary="Item Analytics",
    responses={404: {"model": ErrorResponse, "description": "No engagement recorded"}},
)
async def item_analytics(
    item_id: str = Path(..., min_length=1),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> AnalyticsRecord:
    record = discovery_service.get_analytics(item_id)
    if record is None:
        raise NotFoundError("Analytics", item_id)
    return record


@router.post(
    "/content/{item_id}/views",
    response_model=TrackingAck,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record View",
    responses=NOT_FOUND_RESPONSES,
)
async def record_view(
    body: RecordViewRequest,
    item_id: str = Path(..., min_length=1),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> TrackingAck:
    """Best-effort: only an unknown item fails the request."""
    await discovery_service.ensure_trackable(item_id)
    accepted = discovery_service.record_view(
        item_id, session_duration=body.session_duration, user_id=body.user_id
    )
    return TrackingAck(accepted=accepted)


@router.post(
    "/content/{item_id}/bookmarks",
    response_model=TrackingAck,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record Bookmark",
    responses=NOT_FOUND_RESPONSES,
)
async def record_bookmark(
    body: RecordBookmarkRequest,
    item_id: str = Path(..., min_length=1),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> TrackingAck:
    await discovery_service.ensure_trackable(item_id)
    accepted = discovery_service.record_bookmark(
        item_id, body.direction, user_id=body.user_id
    )
    return TrackingAck(accepted=accepted)


@router.post(
    "/content/{item_id}/completions",
    response_model=TrackingAck,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record Completed Read",
    responses=NOT_FOUND_RESPONSES,
)
async def record_completion(
    body: RecordCompletionRequest,
    item_id: str = Path(..., min_length=1),
    discovery_service: DiscoveryService = Depends(get_discovery_service),
) -> TrackingAck:
    await discovery_service.ensure_trackable(item_id)
    accepted = discovery_service.record_completion(
        item_id, body.read_time, user_id=body.user_id
    )
    return TrackingAck(accepted=accepted)
