"""
Content similarity engine.
Pairwise, normalised [0, 1] similarity built from weighted components.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Tuple

from discovery.models.schemas import ContentItem, UserHistory

logger = logging.getLogger(__name__)


# =============================================================================
# Similarity Components (Strategy Pattern)
# =============================================================================


class SimilarityComponent(ABC):
    """One weighted term of the similarity score."""

    name: str = ""
    weight: float = 0.0

    @abstractmethod
    def calculate(
        self,
        source: ContentItem,
        candidate: ContentItem,
        history: Optional[UserHistory],
    ) -> float:
        """
        Calculate the unweighted component value in [0, 1].
        """
        pass


class CategoryMatch(SimilarityComponent):
    """Same category scores 1."""

    name = "category_match"
    weight = 0.30

    def calculate(self, source, candidate, history) -> float:
        return 1.0 if source.category == candidate.category else 0.0


class TagSimilarity(SimilarityComponent):
    """Jaccard index of the two tag sets."""

    name = "tag_similarity"
    weight = 0.25

    def calculate(self, source, candidate, history) -> float:
        source_tags = set(source.metadata.tags)
        candidate_tags = set(candidate.metadata.tags)
        if not source_tags or not candidate_tags:
            return 0.0
        return len(source_tags & candidate_tags) / len(source_tags | candidate_tags)


class UserHistoryAffinity(SimilarityComponent):
    """Prefer explored categories, avoid items already read."""

    name = "user_history"
    weight = 0.20

    EXPLORED_CATEGORY = 0.7
    ALREADY_READ = 0.0
    NEUTRAL = 0.5

    def calculate(self, source, candidate, history) -> float:
        if history is None:
            return 0.0
        if history.has_explored(candidate.category):
            return self.EXPLORED_CATEGORY
        if history.has_read(candidate.id):
            return self.ALREADY_READ
        return self.NEUTRAL


class DifficultyProgression(SimilarityComponent):
    """Prefer the same or the next difficulty level."""

    name = "difficulty_progression"
    weight = 0.10

    STEP_SCORES = {0: 1.0, 1: 0.8, -1: 0.6}
    DISTANT = 0.3

    def calculate(self, source, candidate, history) -> float:
        delta = candidate.metadata.difficulty.ordinal - source.metadata.difficulty.ordinal
        return self.STEP_SCORES.get(delta, self.DISTANT)


def default_components() -> List[SimilarityComponent]:
    return [
        CategoryMatch(),
        TagSimilarity(),
        UserHistoryAffinity(),
        DifficultyProgression(),
    ]


# =============================================================================
# Similarity Engine
# =============================================================================


class SimilarityEngine:
    """
    Computes item-to-item similarity and ranks related content.
    Stateless: components hold only constants.
    """

    MAX_SCORE = 1.0

    def __init__(self, components: Optional[List[SimilarityComponent]] = None) -> None:
        self._components = components or default_components()

    def score_breakdown(
        self,
        source: ContentItem,
        candidate: ContentItem,
        history: Optional[UserHistory] = None,
    ) -> Dict[str, float]:
        """Weighted contribution of each component plus the capped total."""
        breakdown: Dict[str, float] = {}
        total = 0.0
        for component in self._components:
            value = component.calculate(source, candidate, history)
            contribution = value * component.weight
            breakdown[component.name] = contribution
            total += contribution
        breakdown["final"] = min(total, self.MAX_SCORE)
        return breakdown

    def calculate_similarity(
        self,
        source: ContentItem,
        candidate: ContentItem,
        history: Optional[UserHistory] = None,
    ) -> float:
        """
        Similarity of ``candidate`` to ``source`` in [0, 1].

        Args:
            source: Item the user is looking at
            candidate: Item being considered as related
            history: Optional reading history of the user
        """
        return self.score_breakdown(source, candidate, history)["final"]

    def rank_related(
        self,
        source: ContentItem,
        corpus: List[ContentItem],
        history: Optional[UserHistory] = None,
        popularity: Optional[Mapping[str, float]] = None,
        limit: int = 5,
    ) -> List[Tuple[ContentItem, float]]:
        """
        Top ``limit`` most similar items, best first.

        The source itself is never returned; with a history, items the user
        has already read are skipped. Equal scores are ordered by
        ``popularity`` (item id -> normalised popularity), which never
        changes the score itself.
        """
        scored: List[Tuple[ContentItem, float]] = []
        for candidate in corpus:
            if candidate.id == source.id:
                continue
            if history is not None and history.has_read(candidate.id):
                continue
            scored.append(
                (candidate, self.calculate_similarity(source, candidate, history))
            )

        signal = popularity or {}
        scored.sort(key=lambda pair: (pair[1], signal.get(pair[0].id, 0.0)), reverse=True)

        logger.debug(
            f"Ranked {len(scored)} candidates related to {source.id}, "
            f"returning {min(limit, len(scored))}"
        )
        return scored[:limit]
