"""Scope filters shared by the aggregator and the standings calculator."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .records import (
    MANUAL_STAT_FIELDS,
    Competition,
    ManualCompetitionStat,
    Match,
    Player,
    optional_number,
)
from .season import is_all_scope, season_data_entry, season_matches_filter


def filter_competitions(
    competitions: Iterable[Competition],
    season: Optional[str],
    competition_id: Optional[str],
) -> List[Competition]:
    selected: List[Competition] = []
    for competition in competitions:
        if not season_matches_filter(competition.season, season):
            continue
        if not is_all_scope(competition_id) and competition.competition_id != competition_id:
            continue
        selected.append(competition)
    return selected


def filter_matches_by_competition_set(
    matches: Iterable[Match], competitions: Iterable[Competition]
) -> List[Match]:
    allowed = {competition.competition_id for competition in competitions}
    return [match for match in matches if match.competition_id in allowed]


def has_any_override_value(row: Optional[ManualCompetitionStat]) -> bool:
    """A manual row is active as soon as one of its numeric fields is set."""

    if row is None:
        return False
    for name in MANUAL_STAT_FIELDS:
        value = getattr(row, name)
        if isinstance(value, (int, float)) and optional_number(value) is not None:
            return True
    return False


def _rows_for(
    rows: Sequence[ManualCompetitionStat], competition_id: str
) -> List[ManualCompetitionStat]:
    return [
        row
        for row in rows
        if row.competition_id == competition_id and has_any_override_value(row)
    ]


def manual_override_rows(
    player: Player, competition_id: str, season_scope: Optional[str]
) -> List[ManualCompetitionStat]:
    """Active manual rows that replace computed totals for one competition.

    For a concrete season the season bucket wins over the legacy rows stored
    directly on the player. For the ``"all"`` scope every bucket plus the
    legacy rows are returned, duplicates included.
    """

    legacy = _rows_for(player.manual_stats, competition_id)
    if is_all_scope(season_scope):
        rows: List[ManualCompetitionStat] = []
        for bucket in player.season_manual_stats.values():
            rows.extend(_rows_for(bucket, competition_id))
        rows.extend(legacy)
        return rows

    bucket = season_data_entry(player.season_manual_stats, str(season_scope).strip())
    seasonal = _rows_for(bucket, competition_id) if bucket else []
    return seasonal or legacy


def resolve_manual_override(
    player: Player, competition_id: str, season_scope: Optional[str]
) -> Optional[ManualCompetitionStat]:
    rows = manual_override_rows(player, competition_id, season_scope)
    return rows[0] if rows else None


__all__ = [
    "filter_competitions",
    "filter_matches_by_competition_set",
    "has_any_override_value",
    "manual_override_rows",
    "resolve_manual_override",
]
