"""
Relevance scoring for free-text search.
Pure and stateless - safe to share between requests and threads.
"""
from dataclasses import dataclass
from typing import FrozenSet

from discovery.models.schemas import ContentItem, MatchedField

# Additive weights of the relevance score
TITLE_CONTAINS = 10
TITLE_EXACT_BONUS = 20
TITLE_PREFIX_BONUS = 5
SUMMARY_CONTAINS = 5
TAG_CONTAINS = 3  # per matching tag
TAG_EXACT_BONUS = 5
CATEGORY_CONTAINS = 4
DESCRIPTION_CONTAINS = 2
GUIDE_CONTAINS = 1


@dataclass(frozen=True)
class Relevance:
    """Score of one item against one query."""

    score: int
    matched_fields: FrozenSet[MatchedField]

    @property
    def is_match(self) -> bool:
        return bool(self.matched_fields)


NO_RELEVANCE = Relevance(score=0, matched_fields=frozenset())


def normalize_query(query: str) -> str:
    return query.strip().lower()


class RelevanceScorer:
    """Scores how well a content item matches a search query."""

    def score(self, item: ContentItem, query: str) -> Relevance:
        """
        Score an item against a query.

        Args:
            item: Content item to score
            query: Raw query; matching is case-insensitive on the trimmed text

        Returns:
            Relevance with the additive score and the matched field set.
            An empty query never matches.
        """
        term = normalize_query(query)
        if not term:
            return NO_RELEVANCE

        title = item.title.lower()
        summary = item.summary.lower()
        tags = [tag.lower() for tag in item.metadata.tags]
        description = item.content.description.lower()
        guide = item.content.application_guide.lower()

        score = 0
        title_match = term in title
        if title_match:
            score += TITLE_CONTAINS
            if title == term:
                score += TITLE_EXACT_BONUS
            if title.startswith(term):
                score += TITLE_PREFIX_BONUS

        summary_match = term in summary
        if summary_match:
            score += SUMMARY_CONTAINS

        matching_tags = [tag for tag in tags if term in tag]
        score += len(matching_tags) * TAG_CONTAINS
        if any(tag == term for tag in matching_tags):
            score += TAG_EXACT_BONUS

        if term in item.category.display_name.lower():
            score += CATEGORY_CONTAINS

        description_match = term in description
        if description_match:
            score += DESCRIPTION_CONTAINS

        guide_match = term in guide
        if guide_match:
            score += GUIDE_CONTAINS

        matched = set()
        if title_match:
            matched.add(MatchedField.TITLE)
        if summary_match:
            matched.add(MatchedField.SUMMARY)
        if matching_tags:
            matched.add(MatchedField.TAGS)
        if description_match or guide_match:
            matched.add(MatchedField.CONTENT)

        return Relevance(score=score, matched_fields=frozenset(matched))
