"""League tables computed from scored matches."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .records import (
    Competition,
    Match,
    Number,
    RankLabelRule,
    Standing,
    coerce_number,
    optional_number,
)

UNKNOWN_TEAM_NAME = "Unknown Team"

# Matchday rounds are named "第N節"; every other round of a league_cup is a cup round.
MATCHDAY_ROUND_PATTERN = re.compile(r"^第\s*\d+\s*節$")


def is_league_round_name(name: object) -> bool:
    if not isinstance(name, str):
        return False
    value = name.strip()
    if not value:
        return False
    return bool(MATCHDAY_ROUND_PATTERN.match(value))


def team_name_sort_key(name: str) -> Tuple[str, str]:
    """Accent- and case-insensitive key, ties broken by the raw name.

    This orders by code point after NFKD folding, not by ICU collation.
    Japanese names therefore do not follow kana order: every hiragana name
    sorts before every katakana name, and kanji sort by code point.
    """

    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (folded.casefold(), name)


def standing_sort_key(standing: Standing) -> Tuple[object, ...]:
    return (
        -standing.points,
        -standing.goal_difference,
        -standing.goals_for,
        team_name_sort_key(standing.team_name),
        standing.team_id,
    )


def _round_name(competition: Competition, match: Match) -> Optional[str]:
    return competition.round_name(match.round_id) or match.round_name


def standings_matches(competition: Competition, matches: Iterable[Match]) -> List[Match]:
    """Matches of ``competition`` that count towards its table."""

    selected = [match for match in matches if match.competition_id == competition.competition_id]
    if competition.format == "league_cup":
        selected = [
            match for match in selected if is_league_round_name(_round_name(competition, match))
        ]
    return selected


def _apply_result(standing: Standing, scored: Number, conceded: Number) -> Standing:
    return replace(
        standing,
        played=standing.played + 1,
        goals_for=standing.goals_for + scored,
        goals_against=standing.goals_against + conceded,
        wins=standing.wins + (1 if scored > conceded else 0),
        losses=standing.losses + (1 if scored < conceded else 0),
        draws=standing.draws + (1 if scored == conceded else 0),
    )


def rank_standings(standings: Iterable[Standing]) -> List[Standing]:
    finalized = [
        replace(
            standing,
            points=standing.wins * 3 + standing.draws,
            goal_difference=standing.goals_for - standing.goals_against,
        )
        for standing in standings
    ]
    finalized.sort(key=standing_sort_key)
    return [replace(standing, rank=index + 1) for index, standing in enumerate(finalized)]


def compute_standings(
    competition: Competition,
    teams: Mapping[str, str],
    matches: Sequence[Match],
    manual_standings: Optional[Sequence[Standing]] = None,
) -> List[Standing]:
    """Return the ranked table for ``competition``.

    ``teams`` maps team ids to display names. A non-empty ``manual_standings``
    table replaces the computed one and is only ordered by its own ranks.
    """

    if manual_standings:
        return sorted(manual_standings, key=lambda standing: standing.rank)

    table: Dict[str, Standing] = {}
    for team_id in competition.teams:
        if team_id in table:
            continue
        table[team_id] = Standing(
            team_id=team_id, team_name=teams.get(team_id) or UNKNOWN_TEAM_NAME
        )

    for match in standings_matches(competition, matches):
        if not match.is_played:
            continue
        home_score = coerce_number(match.score_home)
        away_score = coerce_number(match.score_away)
        home = table.get(match.home_team_id or "")
        away = table.get(match.away_team_id or "")
        if home is not None:
            table[home.team_id] = _apply_result(home, home_score, away_score)
        if away is not None:
            table[away.team_id] = _apply_result(away, away_score, home_score)

    return rank_standings(table.values())


def _manual_number(entry: Mapping[str, object], key: str) -> Optional[Number]:
    value = entry.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return optional_number(value)


def load_manual_standings(
    rows: Mapping[str, Mapping[str, object]],
    teams: Mapping[str, str],
) -> List[Standing]:
    """Normalize a stored table keyed by team id, ordered by rank."""

    standings: List[Standing] = []
    for team_id, entry in rows.items():
        if not isinstance(entry, Mapping):
            continue
        wins = _manual_number(entry, "wins") or 0
        draws = _manual_number(entry, "draws") or 0
        goals_for = _manual_number(entry, "goalsFor") or 0
        goals_against = _manual_number(entry, "goalsAgainst") or 0
        points = _manual_number(entry, "points")
        goal_difference = _manual_number(entry, "goalDifference")
        stored_name = entry.get("teamName")
        standings.append(
            Standing(
                team_id=str(team_id),
                team_name=teams.get(str(team_id))
                or (stored_name if isinstance(stored_name, str) and stored_name else None)
                or UNKNOWN_TEAM_NAME,
                rank=int(_manual_number(entry, "rank") or 0),
                played=_manual_number(entry, "played") or 0,
                wins=wins,
                draws=draws,
                losses=_manual_number(entry, "losses") or 0,
                goals_for=goals_for,
                goals_against=goals_against,
                goal_difference=(
                    goal_difference if goal_difference is not None else goals_for - goals_against
                ),
                points=points if points is not None else wins * 3 + draws,
            )
        )
    standings.sort(key=lambda standing: standing.rank)
    return standings


def rank_label_for(rank: int, rules: Sequence[RankLabelRule]) -> Optional[str]:
    for rule in rules:
        if rule.applies_to(rank):
            return rule.color
    return None


def standings_payload(
    standings: Sequence[Standing], rules: Sequence[RankLabelRule] = ()
) -> List[Dict[str, object]]:
    payload: List[Dict[str, object]] = []
    for standing in standings:
        entry = standing.to_dict()
        entry["label"] = rank_label_for(standing.rank, rules)
        payload.append(entry)
    return payload


__all__ = [
    "MATCHDAY_ROUND_PATTERN",
    "UNKNOWN_TEAM_NAME",
    "compute_standings",
    "is_league_round_name",
    "load_manual_standings",
    "rank_label_for",
    "rank_standings",
    "standing_sort_key",
    "standings_matches",
    "standings_payload",
    "team_name_sort_key",
]
