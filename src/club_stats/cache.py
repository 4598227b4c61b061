"""Versioned memoization of aggregation results."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from .records import AggregatedPlayerStats
from .season import ALL_SCOPE, is_all_scope, to_slash_season

LOGGER = logging.getLogger(__name__)

StatsMap = Mapping[str, AggregatedPlayerStats]


@dataclass(frozen=True)
class CacheKey:
    """Identifies one aggregation result.

    ``data_version`` comes from the write path and is bumped whenever stored
    records change, so an old version never matches new data.
    """

    data_version: int
    team_scope: str
    season_scope: str
    competition_scope: str

    @classmethod
    def for_scope(
        cls,
        data_version: int,
        team_scope: Optional[str],
        season_scope: Optional[str],
        competition_scope: Optional[str],
    ) -> "CacheKey":
        season = ALL_SCOPE if is_all_scope(season_scope) else to_slash_season(season_scope.strip())
        return cls(
            data_version=data_version,
            team_scope=ALL_SCOPE if is_all_scope(team_scope) else team_scope.strip(),
            season_scope=season,
            competition_scope=(
                ALL_SCOPE if is_all_scope(competition_scope) else competition_scope.strip()
            ),
        )


class AggregationCache:
    """Read-through cache; every key is computed at most once and never updated."""

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, StatsMap] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: CacheKey) -> Optional[StatsMap]:
        with self._lock:
            return self._entries.get(key)

    def get_or_compute(self, key: CacheKey, compute: Callable[[], StatsMap]) -> StatsMap:
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self.hits += 1
                LOGGER.debug("Aggregation cache hit for %s", key)
                return cached
            self.misses += 1
        LOGGER.debug("Aggregation cache miss for %s", key)
        value = MappingProxyType(dict(compute()))
        with self._lock:
            # A concurrent miss may have stored the same key first; keep that one.
            return self._entries.setdefault(key, value)

    def prune(self, min_version: int) -> int:
        """Drop entries older than ``min_version`` and return how many were removed."""

        with self._lock:
            stale = [key for key in self._entries if key.data_version < min_version]
            for key in stale:
                del self._entries[key]
        return len(stale)


__all__ = ["AggregationCache", "CacheKey", "StatsMap"]
