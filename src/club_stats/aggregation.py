"""Aggregate per-player statistics from match lines and manual overrides."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    AbstractSet,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .records import (
    AggregatedPlayerStats,
    Competition,
    ManualCompetitionStat,
    Match,
    Player,
    PlayerStatLine,
    coerce_number,
)
from .season import normalize_seasons, season_equals, to_slash_season
from .selection import (
    filter_competitions,
    filter_matches_by_competition_set,
    manual_override_rows,
)

LOGGER = logging.getLogger(__name__)

PlayerTotals = Dict[str, AggregatedPlayerStats]

EMPTY_STATS = AggregatedPlayerStats()


def manual_contribution(row: ManualCompetitionStat) -> AggregatedPlayerStats:
    matches = coerce_number(row.matches)
    rating = coerce_number(row.avg_rating)
    rated = matches > 0 and rating > 0
    return AggregatedPlayerStats(
        appearances=matches,
        minutes=coerce_number(row.minutes),
        goals=coerce_number(row.goals),
        assists=coerce_number(row.assists),
        yellow_cards=coerce_number(row.yellow_cards),
        red_cards=coerce_number(row.red_cards),
        rating_sum=rating * matches if rated else 0,
        rating_count=matches if rated else 0,
    )


def line_contribution(line: PlayerStatLine) -> AggregatedPlayerStats:
    minutes = coerce_number(line.minutes_played)
    rating = coerce_number(line.rating)
    return AggregatedPlayerStats(
        appearances=1 if minutes > 0 else 0,
        minutes=minutes,
        goals=coerce_number(line.goals),
        assists=coerce_number(line.assists),
        yellow_cards=coerce_number(line.yellow_cards),
        red_cards=coerce_number(line.red_cards),
        rating_sum=rating if rating > 0 else 0,
        rating_count=1 if rating > 0 else 0,
    )


def merge_totals(parts: Iterable[Mapping[str, AggregatedPlayerStats]]) -> PlayerTotals:
    merged: PlayerTotals = {}
    for part in parts:
        for player_id, stats in part.items():
            merged[player_id] = merged.get(player_id, EMPTY_STATS) + stats
    return merged


def aggregate_competition(
    competition: Competition,
    players: Sequence[Player],
    matches: Iterable[Match],
    season_scope: Optional[str],
    allowed_player_ids: AbstractSet[str],
) -> PlayerTotals:
    """Totals contributed by a single competition.

    A player with an active manual row for ``competition`` gets exactly that
    row; their match lines in the competition are ignored.
    """

    totals: PlayerTotals = {}
    overridden = set()
    for player in players:
        rows = manual_override_rows(player, competition.competition_id, season_scope)
        if not rows:
            continue
        overridden.add(player.player_id)
        contribution = EMPTY_STATS
        for row in rows:
            contribution = contribution + manual_contribution(row)
        totals[player.player_id] = contribution

    for match in matches:
        if match.competition_id != competition.competition_id:
            continue
        if not match.match_id:
            LOGGER.warning(
                "Skipping match without id in competition %s", competition.competition_id
            )
            continue
        for line in match.player_stats:
            if line.player_id not in allowed_player_ids or line.player_id in overridden:
                continue
            totals[line.player_id] = totals.get(line.player_id, EMPTY_STATS) + line_contribution(
                line
            )
    return totals


def aggregate_player_stats(
    players: Sequence[Player],
    matches: Sequence[Match],
    competitions: Sequence[Competition],
    season_scope: Optional[str],
    competition_scope: Optional[str],
    *,
    allowed_player_ids: Optional[Iterable[str]] = None,
) -> PlayerTotals:
    """Aggregate totals per player id across the selected scope.

    ``allowed_player_ids`` is the roster under consideration; it defaults to
    the ids of ``players``. Players without any contribution are absent from
    the result and count as all-zero.
    """

    selected = filter_competitions(competitions, season_scope, competition_scope)
    if not selected:
        return {}
    if allowed_player_ids is None:
        allowed = frozenset(player.player_id for player in players)
    else:
        allowed = frozenset(allowed_player_ids)

    scoped_matches = filter_matches_by_competition_set(matches, selected)
    by_competition: Dict[str, List[Match]] = {}
    for match in scoped_matches:
        by_competition.setdefault(match.competition_id, []).append(match)

    return merge_totals(
        aggregate_competition(
            competition,
            players,
            by_competition.get(competition.competition_id, ()),
            season_scope,
            allowed,
        )
        for competition in selected
    )


@dataclass(frozen=True)
class CompetitionSummary:
    competition_id: str
    competition_name: str
    stats: AggregatedPlayerStats

    @property
    def has_stats(self) -> bool:
        return _has_stats(self.stats)

    def to_dict(self) -> Dict[str, object]:
        return {
            "competition_id": self.competition_id,
            "competition_name": self.competition_name,
            "matches": self.stats.appearances,
            "goals": self.stats.goals,
            "assists": self.stats.assists,
            "avg_rating": self.stats.average_rating,
            "has_stats": self.has_stats,
        }


@dataclass(frozen=True)
class SeasonSummary:
    season: str
    stats: AggregatedPlayerStats
    competitions: Tuple[CompetitionSummary, ...] = ()

    @property
    def has_stats(self) -> bool:
        return _has_stats(self.stats)

    def to_dict(self) -> Dict[str, object]:
        return {
            "season": self.season,
            "matches": self.stats.appearances,
            "goals": self.stats.goals,
            "assists": self.stats.assists,
            "avg_rating": self.stats.average_rating,
            "has_stats": self.has_stats,
            "competitions": [entry.to_dict() for entry in self.competitions],
        }


def _has_stats(stats: AggregatedPlayerStats) -> bool:
    return (
        stats.appearances > 0
        or stats.goals > 0
        or stats.assists > 0
        or stats.rating_count > 0
    )


def build_season_summaries(
    player: Player,
    competitions: Sequence[Competition],
    matches: Sequence[Match],
    seasons: Sequence[str],
) -> List[SeasonSummary]:
    """Per-season rows for ``player``, one for every entry in ``seasons``."""

    wanted = [to_slash_season(season) for season in seasons if season]
    allowed = frozenset({player.player_id})
    by_season: Dict[str, List[CompetitionSummary]] = {}

    for competition in competitions:
        if not competition.season:
            continue
        competition_season = to_slash_season(competition.season)
        if not any(season_equals(season, competition_season) for season in wanted):
            continue
        totals = aggregate_competition(
            competition,
            [player],
            matches,
            competition.season,
            allowed,
        )
        by_season.setdefault(competition_season, []).append(
            CompetitionSummary(
                competition_id=competition.competition_id,
                competition_name=competition.name,
                stats=totals.get(player.player_id, EMPTY_STATS),
            )
        )

    summaries: List[SeasonSummary] = []
    for season in wanted:
        entries = by_season.get(season, [])
        season_total = EMPTY_STATS
        for entry in entries:
            season_total = season_total + entry.stats
        visible = [entry for entry in entries if entry.has_stats]
        visible.sort(
            key=lambda entry: (
                -entry.stats.appearances,
                -entry.stats.goals,
                entry.competition_name.casefold(),
            )
        )
        summaries.append(SeasonSummary(season, season_total, tuple(visible)))
    return summaries


def registered_seasons(
    player: Player,
    roster_seasons: Iterable[str] = (),
    existing_seasons: Optional[Iterable[str]] = None,
) -> List[str]:
    """Seasons a player is registered for, slash form, newest first."""

    candidates: List[object] = list(roster_seasons)
    candidates.extend(player.seasons)
    candidates.extend(player.season_manual_stats.keys())
    seasons = normalize_seasons(candidates)
    if existing_seasons is None:
        return seasons
    existing = set(normalize_seasons(existing_seasons))
    return [season for season in seasons if season in existing]


def latest_season(seasons: Iterable[str]) -> Optional[str]:
    ordered = normalize_seasons(seasons)
    return ordered[0] if ordered else None


__all__ = [
    "CompetitionSummary",
    "PlayerTotals",
    "SeasonSummary",
    "aggregate_competition",
    "aggregate_player_stats",
    "build_season_summaries",
    "latest_season",
    "line_contribution",
    "manual_contribution",
    "merge_totals",
    "registered_seasons",
]
