"""
Recommendation aggregator.
Merges primary content with cross-type references into one ranked list.
"""
import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence

from discovery.models.schemas import (
    BlogPostReference,
    ContentCategory,
    ContentItem,
    CrossLink,
    LinkType,
    ProjectReference,
    RecommendationScore,
    RecommendationType,
    UserHistory,
)
from discovery.services.similarity import SimilarityEngine

logger = logging.getLogger(__name__)

# Share of the limit allocated to each pool (rounded up per pool)
PRIMARY_SHARE = 0.4
BLOG_POST_SHARE = 0.4
PROJECT_SHARE = 0.2

PRIMARY_BASE_SCORE = 0.8
BLOG_POST_BASE_SCORE = 0.6
PROJECT_BASE_SCORE = 0.5

CROSS_LINK_DESCRIPTION_LENGTH = 100

BLOG_TAGS_BY_CATEGORY: Dict[ContentCategory, List[str]] = {
    ContentCategory.COGNITIVE_BIASES: ["psychology", "decision-making", "user-behavior"],
    ContentCategory.PERSUASION_PRINCIPLES: ["marketing", "conversion", "persuasion"],
    ContentCategory.BEHAVIORAL_ECONOMICS: ["economics", "pricing", "user-behavior"],
    ContentCategory.UX_PSYCHOLOGY: ["ux", "design", "user-experience"],
    ContentCategory.EMOTIONAL_TRIGGERS: ["emotions", "engagement", "user-psychology"],
}

PROJECT_CATEGORIES_BY_CATEGORY: Dict[ContentCategory, List[str]] = {
    ContentCategory.COGNITIVE_BIASES: ["marketing", "analytics"],
    ContentCategory.PERSUASION_PRINCIPLES: ["marketing", "sales"],
    ContentCategory.BEHAVIORAL_ECONOMICS: ["fintech", "ecommerce"],
    ContentCategory.UX_PSYCHOLOGY: ["design", "frontend"],
    ContentCategory.EMOTIONAL_TRIGGERS: ["social", "engagement"],
}


def allocation(limit: int, share: float) -> int:
    return math.ceil(limit * share)


def truncate(text: str, max_length: int = CROSS_LINK_DESCRIPTION_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3].rstrip() + "..."


class RecommendationAggregator:
    """
    Builds recommendation lists from three pools.

    Pools are gathered independently with a 40/40/20 split of the limit,
    merged, sorted by score (stable) and truncated to the limit. Because
    each share is rounded up, the merged list can exceed the limit before
    truncation; the highest scores win.
    """

    def __init__(self, similarity_engine: Optional[SimilarityEngine] = None) -> None:
        self._similarity = similarity_engine or SimilarityEngine()

    def aggregate(
        self,
        categories: Sequence[ContentCategory],
        corpus: List[ContentItem],
        blog_posts: List[BlogPostReference],
        projects: List[ProjectReference],
        history: Optional[UserHistory] = None,
        popularity: Optional[Mapping[str, float]] = None,
        limit: int = 10,
    ) -> List[RecommendationScore]:
        if limit <= 0:
            return []

        recommendations: List[RecommendationScore] = []
        recommendations.extend(
            self._primary_recommendations(
                categories, corpus, history, popularity,
                allocation(limit, PRIMARY_SHARE),
            )
        )
        recommendations.extend(
            self._blog_post_recommendations(
                categories, blog_posts, allocation(limit, BLOG_POST_SHARE)
            )
        )
        recommendations.extend(
            self._project_recommendations(
                categories, projects, allocation(limit, PROJECT_SHARE)
            )
        )

        recommendations.sort(key=lambda r: r.score, reverse=True)

        logger.debug(
            f"Merged {len(recommendations)} recommendations for "
            f"{len(categories)} categories, returning up to {limit}"
        )
        return recommendations[:limit]

    def _primary_recommendations(
        self,
        categories: Sequence[ContentCategory],
        corpus: List[ContentItem],
        history: Optional[UserHistory],
        popularity: Optional[Mapping[str, float]],
        limit: int,
    ) -> List[RecommendationScore]:
        """Unread items of the target categories."""
        wanted = set(categories)
        candidates = [
            item for item in corpus
            if item.category in wanted
            and (history is None or not history.has_read(item.id))
        ]

        read_items = (
            [item for item in corpus if history.has_read(item.id)]
            if history is not None
            else []
        )

        if read_items:
            scored = [
                RecommendationScore(
                    type=RecommendationType.CONTENT,
                    item=item,
                    score=max(
                        self._similarity.calculate_similarity(read, item, history)
                        for read in read_items
                    ),
                )
                for item in candidates
            ]
            scored.sort(key=lambda r: r.score, reverse=True)
            return scored[:limit]

        if popularity:
            candidates.sort(key=lambda item: popularity.get(item.id, 0.0), reverse=True)

        return [
            RecommendationScore(
                type=RecommendationType.CONTENT,
                item=item,
                score=PRIMARY_BASE_SCORE,
            )
            for item in candidates[:limit]
        ]

    def _blog_post_recommendations(
        self,
        categories: Sequence[ContentCategory],
        blog_posts: List[BlogPostReference],
        limit: int,
    ) -> List[RecommendationScore]:
        relevant_tags = {
            tag for category in categories for tag in BLOG_TAGS_BY_CATEGORY.get(category, [])
        }
        matching = [post for post in blog_posts if relevant_tags.intersection(post.tags)]
        return [
            RecommendationScore(
                type=RecommendationType.BLOG_POST,
                reference=post,
                score=BLOG_POST_BASE_SCORE,
            )
            for post in matching[:limit]
        ]

    def _project_recommendations(
        self,
        categories: Sequence[ContentCategory],
        projects: List[ProjectReference],
        limit: int,
    ) -> List[RecommendationScore]:
        relevant_categories = {
            name
            for category in categories
            for name in PROJECT_CATEGORIES_BY_CATEGORY.get(category, [])
        }
        matching = [p for p in projects if p.category in relevant_categories]
        return [
            RecommendationScore(
                type=RecommendationType.PROJECT,
                reference=project,
                score=PROJECT_BASE_SCORE,
            )
            for project in matching[:limit]
        ]

    # -------------------------------------------------------------------------
    # Cross-links
    # -------------------------------------------------------------------------

    def build_cross_links(
        self,
        item: ContentItem,
        related: List[ContentItem],
        blog_posts: List[BlogPostReference],
        projects: List[ProjectReference],
        max_blog_posts: int = 2,
        max_projects: int = 2,
    ) -> List[CrossLink]:
        """Links to related items, blog posts sharing a tag and mapped projects."""
        links = [
            CrossLink(
                id=other.id,
                title=other.title,
                type=LinkType.CONTENT,
                url=f"/knowledge-hub/content/{other.id}",
                description=truncate(other.summary),
            )
            for other in related
        ]

        item_tags = set(item.metadata.tags)
        for post in [p for p in blog_posts if item_tags.intersection(p.tags)][:max_blog_posts]:
            links.append(
                CrossLink(
                    id=post.id,
                    title=post.title,
                    type=LinkType.BLOG_POST,
                    url=f"/blog/{post.slug}",
                    description=truncate(post.excerpt),
                )
            )

        project_categories = set(PROJECT_CATEGORIES_BY_CATEGORY.get(item.category, []))
        for project in [p for p in projects if p.category in project_categories][:max_projects]:
            links.append(
                CrossLink(
                    id=project.id,
                    title=project.title,
                    type=LinkType.PROJECT,
                    url=f"/projects#{project.id}",
                    description=truncate(project.description),
                )
            )

        return links
