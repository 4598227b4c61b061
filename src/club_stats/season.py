"""Normalize and compare season identifiers written in different formats."""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Sequence

ALL_SCOPE = "all"

_YEAR_PATTERN = re.compile(r"^\d{4}$")
_SHORT_YEAR_PATTERN = re.compile(r"^\d{2}$")
_SEASON_PAIR_PATTERN = re.compile(r"^(\d{4})[-/](\d{2}|\d{4})$")


def _convert_season(season: str, separator: str) -> str:
    other = "-" if separator == "/" else "/"
    if separator in season:
        parts = season.split(separator)
        if len(parts) == 2 and _YEAR_PATTERN.match(parts[0]):
            end = parts[1]
            end_short = end[-2:] if _YEAR_PATTERN.match(end) else end
            if _SHORT_YEAR_PATTERN.match(end_short):
                return f"{parts[0]}{separator}{end_short}"
        return season
    parts = season.split(other)
    if len(parts) == 2 and _YEAR_PATTERN.match(parts[0]):
        end = parts[1]
        if _SHORT_YEAR_PATTERN.match(end):
            return f"{parts[0]}{separator}{end}"
        if _YEAR_PATTERN.match(end):
            return f"{parts[0]}{separator}{end[-2:]}"
    return season


def to_slash_season(season: str) -> str:
    """Return ``season`` as ``YYYY/YY``; unknown formats are returned unchanged."""

    if not season:
        return season
    return _convert_season(season, "/")


def to_dash_season(season: str) -> str:
    """Return ``season`` as ``YYYY-YY``; unknown formats are returned unchanged."""

    if not season:
        return season
    return _convert_season(season, "-")


def season_equals(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return (
        a == b
        or to_slash_season(a) == to_slash_season(b)
        or to_dash_season(a) == to_dash_season(b)
    )


def season_candidates(season: str) -> List[str]:
    """Raw, slash and dash spellings of ``season`` without duplicates."""

    candidates: List[str] = []
    for value in (season, to_slash_season(season), to_dash_season(season)):
        if value and value not in candidates:
            candidates.append(value)
    return candidates


def previous_season(season: str) -> str:
    """Season starting one year earlier, in dash form, or ``""`` if unknown."""

    match = _SEASON_PAIR_PATTERN.match(str(season or "").strip())
    if not match:
        return ""
    previous_start = int(match.group(1)) - 1
    previous_end = str(previous_start + 1)[-2:]
    return f"{previous_start}-{previous_end}"


def is_all_scope(value: Optional[str]) -> bool:
    return value is None or str(value).strip() in {"", ALL_SCOPE}


def season_matches_filter(season: Optional[str], season_filter: Optional[str]) -> bool:
    if is_all_scope(season_filter):
        return True
    return season_equals(season, str(season_filter).strip())


def season_data_entry(season_data: Mapping[str, object], season: str) -> Optional[object]:
    """Look up a per-season bucket stored under any spelling of ``season``."""

    if not isinstance(season_data, Mapping) or not season:
        return None
    for key in season_candidates(season):
        if key in season_data:
            return season_data[key]
    return None


def normalize_seasons(values: Iterable[object]) -> List[str]:
    """Slash-normalized, de-duplicated seasons sorted newest first."""

    normalized = {
        to_slash_season(str(value).strip())
        for value in values
        if isinstance(value, str) and value.strip()
    }
    return sorted(normalized, reverse=True)


def contains_season(seasons: Sequence[str], season: str) -> bool:
    return any(season_equals(item, season) for item in seasons)


__all__ = [
    "ALL_SCOPE",
    "contains_season",
    "is_all_scope",
    "normalize_seasons",
    "previous_season",
    "season_candidates",
    "season_data_entry",
    "season_equals",
    "season_matches_filter",
    "to_dash_season",
    "to_slash_season",
]
