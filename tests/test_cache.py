from __future__ import annotations

import threading
from typing import Dict, List

import pytest

from club_stats.cache import AggregationCache, CacheKey
from club_stats.records import AggregatedPlayerStats


def _counting(calls: List[int], goals: int = 1):
    def compute() -> Dict[str, AggregatedPlayerStats]:
        calls.append(1)
        return {"p1": AggregatedPlayerStats(goals=goals)}

    return compute


def test_every_key_component_changes_the_entry() -> None:
    cache = AggregationCache()
    calls: List[int] = []
    keys = [
        CacheKey(1, "teamA", "2024/25", "all"),
        CacheKey(2, "teamA", "2024/25", "all"),
        CacheKey(1, "teamB", "2024/25", "all"),
        CacheKey(1, "teamA", "2023/24", "all"),
        CacheKey(1, "teamA", "2024/25", "C1"),
    ]
    for key in keys:
        cache.get_or_compute(key, _counting(calls))
    assert len(calls) == 5
    assert len(cache) == 5
    assert cache.misses == 5


def test_hit_returns_stored_value_without_recomputing() -> None:
    cache = AggregationCache()
    calls: List[int] = []
    key = CacheKey(1, "teamA", "2024/25", "all")
    first = cache.get_or_compute(key, _counting(calls, goals=1))
    second = cache.get_or_compute(key, _counting(calls, goals=99))
    assert len(calls) == 1
    assert second is first
    assert second["p1"].goals == 1
    assert cache.hits == 1
    assert key in cache
    with pytest.raises(TypeError):
        second["p2"] = AggregatedPlayerStats()  # type: ignore[index]


def test_for_scope_normalizes_season_and_all_values() -> None:
    assert CacheKey.for_scope(3, "teamA", "2024-25", None) == CacheKey(3, "teamA", "2024/25", "all")
    assert CacheKey.for_scope(3, "", "all", "C1") == CacheKey(3, "all", "all", "C1")
    assert CacheKey(3, "teamA", "2024-25", "all") != CacheKey(3, "teamA", "2024/25", "all")


def test_prune_drops_older_versions() -> None:
    cache = AggregationCache()
    for version in (1, 2, 3):
        cache.get_or_compute(CacheKey(version, "all", "all", "all"), dict)
    assert cache.prune(3) == 2
    assert len(cache) == 1
    assert cache.get(CacheKey(3, "all", "all", "all")) == {}
    assert cache.get(CacheKey(1, "all", "all", "all")) is None


def test_concurrent_readers_share_one_entry() -> None:
    cache = AggregationCache()
    key = CacheKey(1, "all", "all", "all")
    results = []

    def worker() -> None:
        results.append(cache.get_or_compute(key, _counting([])))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert all(result is results[0] for result in results)
    assert len(cache) == 1
