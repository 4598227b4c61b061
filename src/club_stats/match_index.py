"""Reconcile the denormalized match index with the authoritative match tree."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .records import Competition, Match
from .season import is_all_scope, season_matches_filter

MatchKey = Tuple[str, str, str]

IDENTITY_FIELDS = frozenset({"match_id", "competition_id", "round_id"})
INDEX_DROPPED_FIELDS = ("player_stats", "team_stats", "events")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def merge_match(base: Match, preferred: Match) -> Match:
    """Field-wise merge: ``preferred`` wins unless its value is blank."""

    changes: Dict[str, object] = {}
    for item in fields(Match):
        if item.name in IDENTITY_FIELDS:
            continue
        value = getattr(preferred, item.name)
        if not _is_blank(value):
            changes[item.name] = value
    return replace(base, **changes)


def match_sort_key(match: Match) -> str:
    return match.match_date or ""


def merge_match_sources(index_rows: Iterable[Match], tree_rows: Iterable[Match]) -> List[Match]:
    """Union of both sources keyed by (competition, round, match) id.

    Tree rows are authoritative where they carry a value; index rows fill the
    gaps and survive when the tree scan did not reach them. The result is
    ordered by ISO match date.
    """

    merged: Dict[MatchKey, Match] = {}
    for row in index_rows:
        merged[row.identity] = row
    for row in tree_rows:
        existing = merged.get(row.identity)
        merged[row.identity] = row if existing is None else merge_match(existing, row)
    return sorted(merged.values(), key=match_sort_key)


def index_document_id(match: Match) -> str:
    return f"{match.competition_id}__{match.round_id}__{match.match_id}"


def project_index_row(
    match: Match, competition: Optional[Competition] = None
) -> Optional[Match]:
    """Denormalized index projection of ``match``; ``None`` when it has no date."""

    if _is_blank(match.match_date):
        return None
    changes: Dict[str, object] = {name: () for name in INDEX_DROPPED_FIELDS}
    if competition is not None:
        if _is_blank(match.competition_name):
            changes["competition_name"] = competition.name
        if _is_blank(match.round_name):
            changes["round_name"] = competition.round_name(match.round_id)
    changes["match_date"] = match.match_date.strip()
    return replace(match, **changes)


def build_index_rows(
    matches: Iterable[Match], competitions: Sequence[Competition] = ()
) -> Dict[str, Match]:
    by_id = {competition.competition_id: competition for competition in competitions}
    rows: Dict[str, Match] = {}
    for match in matches:
        row = project_index_row(match, by_id.get(match.competition_id))
        if row is not None:
            rows[index_document_id(row)] = row
    return rows


def matches_for_team(
    matches: Iterable[Match],
    team_id: Optional[str],
    *,
    season: Optional[str] = None,
    competition_id: Optional[str] = None,
    competitions: Optional[Mapping[str, Competition]] = None,
) -> List[Match]:
    """Filter a merged listing for display.

    Rows with neither team set stay visible for any team selection.
    """

    competitions = competitions or {}
    selected: List[Match] = []
    for match in matches:
        competition = competitions.get(match.competition_id)
        if not is_all_scope(season):
            competition_season = competition.season if competition else None
            if not season_matches_filter(competition_season, season):
                continue
        if not is_all_scope(competition_id) and match.competition_id != competition_id:
            continue
        teams_unset = not match.home_team_id and not match.away_team_id
        if not is_all_scope(team_id) and not teams_unset and not match.involves(team_id):
            continue
        selected.append(match)
    return selected


__all__ = [
    "IDENTITY_FIELDS",
    "build_index_rows",
    "index_document_id",
    "match_sort_key",
    "matches_for_team",
    "merge_match",
    "merge_match_sources",
    "project_index_row",
]
