"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from discovery.api.dependencies import (
    clear_caches,
    get_content_repository,
)
from discovery.main import app
from discovery.models.schemas import (
    ContentCategory,
    ContentItem,
    ContentMetadata,
    Difficulty,
    RelevanceTag,
    StructuredContent,
    UserHistory,
)
from discovery.repositories.memory import InMemoryContentRepository


class CountingContentRepository(InMemoryContentRepository):
    """In-memory repository that counts corpus loads."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.load_calls = 0

    async def load_all_content(self):
        self.load_calls += 1
        return await super().load_all_content()

    async def load_content_by_category(self, category):
        self.load_calls += 1
        return await super().load_content_by_category(category)


class FailingContentRepository(InMemoryContentRepository):
    """Repository whose every load fails."""

    def __init__(self, error=None):
        super().__init__()
        self.error = error or ConnectionError("content store offline")

    async def load_all_content(self):
        raise self.error

    async def load_content_by_category(self, category):
        raise self.error

    async def load_user_history(self, user_id):
        raise self.error

    async def load_secondary_references(self, pool):
        raise self.error


class FakeClock:
    """Settable clock for TTL and decay tests."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def content_repo():
    """Fixture for the seeded ContentRepository."""
    return InMemoryContentRepository()


@pytest.fixture
def counting_repo():
    return CountingContentRepository()


@pytest.fixture
def failing_repo():
    return FailingContentRepository()


@pytest.fixture
def make_failing_repo():
    """Factory for repositories failing with a given error."""
    return FailingContentRepository


@pytest.fixture
def make_clock():
    """Factory for settable clocks."""
    return FakeClock


@pytest.fixture
def test_client(content_repo):
    """
    TestClient fixture with dependency overrides.
    Singletons are rebuilt per test so analytics and caches start empty.
    """
    clear_caches()
    app.dependency_overrides[get_content_repository] = lambda: content_repo

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    clear_caches()


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_item():
    """Factory for content items with sensible defaults."""

    def _make(
        item_id="item",
        title="Item",
        category=ContentCategory.COGNITIVE_BIASES,
        summary="",
        description="",
        guide="",
        difficulty=Difficulty.BEGINNER,
        relevance=(RelevanceTag.MARKETING,),
        tags=(),
    ):
        return ContentItem(
            id=item_id,
            title=title,
            category=category,
            summary=summary,
            content=StructuredContent(description=description, application_guide=guide),
            metadata=ContentMetadata(
                difficulty=difficulty,
                relevance=frozenset(relevance),
                tags=list(tags),
            ),
        )

    return _make


@pytest.fixture
def sample_history():
    """Reader who has read anchoring-bias and explored cognitive biases."""
    return UserHistory(
        user_id="user_test",
        read_items={"anchoring-bias"},
        categories_explored=[ContentCategory.COGNITIVE_BIASES],
    )


class FlakyContentRepository(CountingContentRepository):
    """Fails corpus loads until ``healthy`` is set."""

    def __init__(self):
        super().__init__()
        self.healthy = False

    async def load_all_content(self):
        if not self.healthy:
            raise ConnectionError("content store offline")
        return await super().load_all_content()


@pytest.fixture
def flaky_repo():
    return FlakyContentRepository()
