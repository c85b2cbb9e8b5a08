"""
Unit tests for SearchService: result cache, failures and suggestions.
"""
import asyncio

import pytest
from prometheus_client import REGISTRY

from discovery.core.cache import InMemoryCache
from discovery.core.circuit_breaker import CircuitBreaker
from discovery.core.exceptions import DiscoveryUnavailableError
from discovery.models.schemas import ContentCategory, SearchFilter
from discovery.services.search import POPULAR_SEARCH_TERMS, SearchService


def _service(repository, clock=None, ttl=600):
    cache = InMemoryCache(default_ttl_seconds=ttl, clock=clock or (lambda: 1000.0))
    return SearchService(
        repository,
        cache=cache,
        circuit_breaker=CircuitBreaker("test", failure_threshold=100),
        cache_ttl_seconds=ttl,
    )


def _lookups(outcome):
    return REGISTRY.get_sample_value(
        "discovery_search_cache_lookups_total", {"outcome": outcome}
    ) or 0.0


class TestSearchCache:
    @pytest.mark.asyncio
    async def test_single_repository_call_within_ttl(self, counting_repo, make_clock):
        clock = make_clock(1000.0)
        service = _service(counting_repo, clock)
        search_filter = SearchFilter(query="pricing")

        first = await service.search(search_filter)
        clock.advance(599)
        second = await service.search(search_filter)

        assert counting_repo.load_calls == 1
        assert [r.item.id for r in first] == [r.item.id for r in second]

    @pytest.mark.asyncio
    async def test_entry_expires_at_ttl(self, counting_repo, make_clock):
        clock = make_clock(1000.0)
        service = _service(counting_repo, clock)

        await service.search(SearchFilter(query="pricing"))
        clock.advance(600)
        await service.search(SearchFilter(query="pricing"))

        assert counting_repo.load_calls == 2

    @pytest.mark.asyncio
    async def test_clear_cache_forces_recompute(self, counting_repo):
        service = _service(counting_repo)

        await service.search(SearchFilter(query="pricing"))
        service.clear_cache()
        await service.search(SearchFilter(query="pricing"))

        assert counting_repo.load_calls == 2

    @pytest.mark.asyncio
    async def test_equivalent_filters_share_an_entry(self, counting_repo):
        service = _service(counting_repo)

        await service.search(SearchFilter(query="  Anchoring "))
        await service.search(SearchFilter(query="anchoring"))

        assert counting_repo.load_calls == 1

    @pytest.mark.asyncio
    async def test_category_filter_loads_by_category(self, counting_repo):
        service = _service(counting_repo)
        search_filter = SearchFilter(
            categories=frozenset(
                {ContentCategory.UX_PSYCHOLOGY, ContentCategory.EMOTIONAL_TRIGGERS}
            )
        )

        results = await service.search(search_filter)

        assert counting_repo.load_calls == 2
        assert {r.item.category for r in results} == set(search_filter.categories)

    @pytest.mark.asyncio
    async def test_hit_and_miss_counters(self, counting_repo):
        service = _service(counting_repo)
        hits, misses = _lookups("hit"), _lookups("miss")

        await service.search(SearchFilter(query="scarcity"))
        await service.search(SearchFilter(query="scarcity"))

        assert _lookups("miss") == misses + 1
        assert _lookups("hit") == hits + 1
        assert service.cache_stats()["entries"] == 1

    @pytest.mark.asyncio
    async def test_returned_list_is_a_copy(self, counting_repo):
        service = _service(counting_repo)

        first = await service.search(SearchFilter(query="pricing"))
        first.clear()
        second = await service.search(SearchFilter(query="pricing"))

        assert len(second) == 4


class TestSearchFailures:
    @pytest.mark.asyncio
    async def test_repository_failure_is_wrapped(self, failing_repo):
        service = _service(failing_repo)

        with pytest.raises(DiscoveryUnavailableError) as exc_info:
            await service.search(SearchFilter(query="anything"))

        error = exc_info.value
        assert isinstance(error.__cause__, ConnectionError)
        assert error.operation == "search"
        assert error.status_code == 503
        assert "ConnectionError" in error.details["cause"]

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, flaky_repo):
        service = _service(flaky_repo)

        with pytest.raises(DiscoveryUnavailableError):
            await service.search(SearchFilter(query="scarcity"))

        flaky_repo.healthy = True
        results = await service.search(SearchFilter(query="scarcity"))

        assert results
        assert flaky_repo.load_calls == 1

    @pytest.mark.asyncio
    async def test_cancellation_is_not_wrapped(self, make_failing_repo):
        service = _service(make_failing_repo(asyncio.CancelledError()))

        with pytest.raises(asyncio.CancelledError):
            await service.search(SearchFilter(query="scarcity"))


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_titles_tags_and_categories(self, content_repo):
        service = _service(content_repo)

        suggestions = await service.suggest("bias")

        assert suggestions == ["Anchoring Bias", "Cognitive Biases", "Confirmation Bias"]

    @pytest.mark.asyncio
    async def test_deduplicated_and_limited(self, content_repo):
        service = _service(content_repo)

        suggestions = await service.suggest("pric", limit=5)

        assert suggestions == ["pricing"]
        assert len(await service.suggest("e", limit=3)) == 0
        assert len(await service.suggest("es", limit=3)) == 3

    @pytest.mark.asyncio
    async def test_short_query_returns_empty(self, counting_repo):
        service = _service(counting_repo)

        assert await service.suggest(" a ") == []
        assert counting_repo.load_calls == 0

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, failing_repo):
        service = _service(failing_repo)

        assert await service.suggest("scarcity") == []

    def test_popular_search_terms(self, content_repo):
        service = _service(content_repo)

        terms = service.get_popular_search_terms()
        terms.append("mutated")

        assert service.get_popular_search_terms() == POPULAR_SEARCH_TERMS
