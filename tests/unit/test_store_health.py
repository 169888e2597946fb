from unittest.mock import AsyncMock

import pytest

from app.assignment_store.inmemory import InMemoryAssignmentStore
from app.core.exceptions import StoreUnavailableError, TransientFailureError
from app.core.logging import get_metric
from app.services.store_health import (
    CACHED_FALLBACK_WARNING,
    FALLBACK_WARNING,
    InMemoryStoreHealthCache,
    StoreHealthDetector,
    fallback_cache_key,
)


def test_cache_key_is_scoped_by_organization_and_vertical():
    assert fallback_cache_key("org-1", "business") == "dept_table_missing:org-1:business"


@pytest.mark.asyncio
async def test_load_returns_assignments_when_store_is_available():
    store = InMemoryAssignmentStore()
    detector = StoreHealthDetector(store)

    result = await detector.load("org-1", "business")

    assert result.fallback_mode is False
    assert result.assignments == []
    assert result.warning is None


@pytest.mark.asyncio
async def test_missing_table_enters_fallback_and_caches():
    store = AsyncMock()
    store.list_assignments.side_effect = StoreUnavailableError("table missing")
    cache = InMemoryStoreHealthCache()
    detector = StoreHealthDetector(store, cache)
    before = get_metric(
        "layout_fallback_entered", organization_id="org-cache", vertical_id="business"
    )

    first = await detector.load("org-cache", "business")
    second = await detector.load("org-cache", "business")

    assert first.fallback_mode is True
    assert first.warning == FALLBACK_WARNING
    assert second.fallback_mode is True
    assert second.warning == CACHED_FALLBACK_WARNING
    # one store call until retry
    assert store.list_assignments.await_count == 1
    assert cache.get(fallback_cache_key("org-cache", "business")) is not None
    assert detector.is_unavailable("org-cache", "business") is True
    assert get_metric(
        "layout_fallback_entered", organization_id="org-cache", vertical_id="business"
    ) == before + 1


@pytest.mark.asyncio
async def test_cache_does_not_leak_across_verticals():
    store = InMemoryAssignmentStore()
    cache = InMemoryStoreHealthCache()
    cache.set(fallback_cache_key("org-1", "other"), "true")
    detector = StoreHealthDetector(store, cache)

    result = await detector.load("org-1", "business")

    assert result.fallback_mode is False


@pytest.mark.asyncio
async def test_retry_clears_cache_and_exits_fallback():
    store = InMemoryAssignmentStore(available=False)
    detector = StoreHealthDetector(store)

    assert (await detector.load("org-1", "business")).fallback_mode is True

    store.set_available(True)
    # cached classification still wins until retry
    assert (await detector.load("org-1", "business")).fallback_mode is True

    result = await detector.retry("org-1", "business")

    assert result.fallback_mode is False
    assert detector.is_unavailable("org-1", "business") is False


@pytest.mark.asyncio
async def test_retry_while_still_missing_stays_in_fallback():
    store = InMemoryAssignmentStore(available=False)
    detector = StoreHealthDetector(store)
    await detector.load("org-1", "business")

    result = await detector.retry("org-1", "business")

    assert result.fallback_mode is True
    assert result.warning == FALLBACK_WARNING


@pytest.mark.asyncio
async def test_transient_failures_are_not_cached():
    store = AsyncMock()
    store.list_assignments.side_effect = TransientFailureError("timeout")
    cache = InMemoryStoreHealthCache()
    detector = StoreHealthDetector(store, cache)

    with pytest.raises(TransientFailureError):
        await detector.load("org-1", "business")

    assert cache.get(fallback_cache_key("org-1", "business")) is None
