"""
Repository interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the contracts that data access implementations must follow.
"""
from typing import List, Optional, Protocol, runtime_checkable

from discovery.models.schemas import (
    AnalyticsRecord,
    ContentCategory,
    ContentItem,
    SecondaryPool,
    SecondaryReference,
    UserHistory,
)


@runtime_checkable
class ContentRepository(Protocol):
    """
    Interface for the content store the engine reads from.
    Production: Firestore / CMS-backed implementation.
    Testing: In-memory implementation.

    Implementations own any retry policy; the engine calls each method at
    most once per request.
    """

    async def load_all_content(self) -> List[ContentItem]:
        """
        Load the full content corpus.

        Raises:
            Exception: Any failure to supply the corpus
        """
        ...

    async def load_content_by_category(
        self, category: ContentCategory
    ) -> List[ContentItem]:
        """
        Load the content items of one category.

        Args:
            category: Category to load

        Returns:
            Items of that category (may be empty)
        """
        ...

    async def load_user_history(self, user_id: str) -> Optional[UserHistory]:
        """
        Load a user's reading history.

        Args:
            user_id: User identifier

        Returns:
            UserHistory if known, None for users without history
        """
        ...

    async def load_secondary_references(
        self, pool: SecondaryPool
    ) -> List[SecondaryReference]:
        """
        Load one pool of cross-type references (blog posts, projects).

        Args:
            pool: Which reference pool to load

        Returns:
            References in that pool (may be empty)
        """
        ...


@runtime_checkable
class AnalyticsRepository(Protocol):
    """
    Interface for per-item analytics records.
    Callers serialise read-modify-write per item id; implementations only
    need atomic get/save of a single record.
    """

    def get(self, item_id: str) -> Optional[AnalyticsRecord]:
        """Fetch the record for an item, None if never tracked."""
        ...

    def save(self, record: AnalyticsRecord) -> None:
        """Persist (insert or replace) a record."""
        ...

    def list_all(self) -> List[AnalyticsRecord]:
        """All tracked records."""
        ...
