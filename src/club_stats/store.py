"""Load club record snapshots exported from the document store."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

import requests

from .match_index import merge_match_sources
from .records import (
    Competition,
    Match,
    Player,
    Standing,
    load_competition,
    load_match,
    load_player,
    load_records,
    load_standalone_match,
)
from .season import is_all_scope, season_data_entry
from .standings import load_manual_standings

LOGGER = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = Path("data/club_snapshot.json")
REQUEST_HEADERS = {
    "User-Agent": "club-stats/0.1 (+https://github.com/)",
    "Accept": "application/json",
}


class SnapshotError(RuntimeError):
    """Raised when no usable snapshot could be obtained."""


def _list_field(entry: Mapping[str, object], key: str) -> List[object]:
    """Return the list stored under ``key``; any other shape is ignored with a warning."""

    value = entry.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        LOGGER.warning("Ignoring %r: expected a list, got %s", key, type(value).__name__)
        return []
    return value


@dataclass(frozen=True)
class ClubSnapshot:
    data_version: int
    teams: Mapping[str, str]
    competitions: Tuple[Competition, ...]
    matches: Tuple[Match, ...]
    index_rows: Tuple[Match, ...] = ()
    players: Tuple[Player, ...] = ()
    manual_standings: Mapping[str, Tuple[Standing, ...]] = field(default_factory=dict)
    rosters: Mapping[str, Mapping[str, Tuple[str, ...]]] = field(default_factory=dict)
    seasons: Tuple[str, ...] = ()

    def competition(self, competition_id: str) -> Optional[Competition]:
        for competition in self.competitions:
            if competition.competition_id == competition_id:
                return competition
        return None

    def merged_matches(self) -> List[Match]:
        return merge_match_sources(self.index_rows, self.matches)


class SnapshotRosterProvider:
    """Player ids per team and season as recorded in the snapshot rosters."""

    def __init__(self, snapshot: ClubSnapshot) -> None:
        self._snapshot = snapshot

    def _season_rosters(self, season: Optional[str]) -> List[Mapping[str, Sequence[str]]]:
        rosters = self._snapshot.rosters
        if is_all_scope(season):
            return list(rosters.values())
        entry = season_data_entry(rosters, str(season).strip())
        return [entry] if isinstance(entry, Mapping) else []

    def player_ids(self, team_id: Optional[str], season: Optional[str]) -> FrozenSet[str]:
        selected: Set[str] = set()
        found_roster = False
        for roster in self._season_rosters(season):
            for roster_team, player_ids in roster.items():
                if not is_all_scope(team_id) and roster_team != team_id:
                    continue
                found_roster = True
                selected.update(player_ids)
        if found_roster:
            return frozenset(selected)
        return frozenset(
            player.player_id
            for player in self._snapshot.players
            if is_all_scope(team_id) or player.team_id == team_id
        )

    def seasons_for(self, player_id: str) -> List[str]:
        seasons: List[str] = []
        for season, roster in self._snapshot.rosters.items():
            if any(player_id in player_ids for player_ids in roster.values()):
                seasons.append(season)
        return seasons


def _load_competition_tree(
    entries: Sequence[object],
) -> Tuple[List[Competition], List[Match], Dict[str, Sequence[Mapping[str, object]]]]:
    competitions: List[Competition] = []
    matches: List[Match] = []
    standings: Dict[str, Sequence[Mapping[str, object]]] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        competition = load_competition(entry)
        if competition is None:
            continue
        competitions.append(competition)
        raw_standings = entry.get("standings")
        if isinstance(raw_standings, Mapping) and raw_standings:
            standings[competition.competition_id] = raw_standings
        for round_entry in _list_field(entry, "rounds"):
            if not isinstance(round_entry, Mapping):
                continue
            round_id = str(round_entry.get("id") or "").strip()
            for match_entry in _list_field(round_entry, "matches"):
                if not isinstance(match_entry, Mapping):
                    continue
                match = load_match(
                    {"roundName": round_entry.get("name"), **match_entry},
                    competition_id=competition.competition_id,
                    round_id=round_id,
                )
                if match is not None:
                    matches.append(match)
    return competitions, matches, standings


def _load_rosters(payload: object) -> Dict[str, Dict[str, Tuple[str, ...]]]:
    rosters: Dict[str, Dict[str, Tuple[str, ...]]] = {}
    if not isinstance(payload, Mapping):
        return rosters
    for season, teams in payload.items():
        if not isinstance(teams, Mapping):
            continue
        rosters[str(season)] = {
            str(team_id): tuple(str(player_id) for player_id in player_ids)
            for team_id, player_ids in teams.items()
            if isinstance(player_ids, list)
        }
    return rosters


def parse_snapshot(payload: Mapping[str, object]) -> ClubSnapshot:
    teams: Dict[str, str] = {}
    for entry in _list_field(payload, "teams"):
        if isinstance(entry, Mapping) and entry.get("id"):
            team_id = str(entry["id"])
            teams[team_id] = str(entry.get("name") or team_id)

    competitions, matches, raw_standings = _load_competition_tree(
        _list_field(payload, "competitions")
    )
    matches.extend(load_records(_list_field(payload, "friendlyMatches"), load_standalone_match))
    index_rows = load_records(_list_field(payload, "matchIndex"), load_match)

    version = payload.get("dataVersion")
    data_version = version if isinstance(version, int) and not isinstance(version, bool) else 0

    return ClubSnapshot(
        data_version=data_version,
        teams=teams,
        competitions=tuple(competitions),
        matches=tuple(matches),
        index_rows=tuple(index_rows),
        players=tuple(load_records(_list_field(payload, "players"), load_player)),
        manual_standings={
            competition_id: tuple(load_manual_standings(rows, teams))
            for competition_id, rows in raw_standings.items()
        },
        rosters=_load_rosters(payload.get("rosters")),
        seasons=tuple(str(item) for item in _list_field(payload, "seasons") if item),
    )


def _http_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    retries: int = 5,
    delay_seconds: float = 2.0,
) -> requests.Response:
    merged_headers = dict(REQUEST_HEADERS)
    if headers:
        merged_headers.update(headers)
    for attempt in range(retries):
        try:
            response = requests.get(url, timeout=30, headers=merged_headers)
            response.raise_for_status()
            return response
        except requests.RequestException as exc:  # pragma: no cover - network errors
            if isinstance(exc, (requests.exceptions.ProxyError, requests.exceptions.ConnectionError)):
                raise
            if attempt == retries - 1:
                raise
            time.sleep(delay_seconds * (2 ** attempt))
    raise RuntimeError(f"Snapshot download from {url} made no attempt.")


def download_snapshot(url: str, destination: Path) -> Mapping[str, object]:
    response = _http_get(url)
    try:
        payload = response.json()
    except ValueError as exc:
        raise SnapshotError(f"Snapshot at {url} is not valid JSON.") from exc
    if not isinstance(payload, Mapping):
        raise SnapshotError(f"Snapshot at {url} is not a JSON object.")
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return payload


def read_snapshot_file(path: Path) -> Mapping[str, object]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SnapshotError(f"Snapshot file {path} could not be read.") from exc
    if not isinstance(payload, Mapping):
        raise SnapshotError(f"Snapshot file {path} is not a JSON object.")
    return payload


def load_snapshot(
    *,
    url: Optional[str] = None,
    path: Optional[Path] = None,
    skip_download: bool = False,
) -> ClubSnapshot:
    """Download the snapshot (caching it at ``path``) or reuse the cached file."""

    if path is None:
        path = DEFAULT_SNAPSHOT_PATH
    elif not isinstance(path, Path):
        path = Path(path)

    if url and not (skip_download and path.exists()):
        try:
            return parse_snapshot(download_snapshot(url, path))
        except requests.RequestException as exc:
            if not path.exists():
                raise SnapshotError(f"Snapshot download failed and {path} is missing.") from exc
            LOGGER.warning("Snapshot download failed (%s); using cached %s", exc, path)

    if not path.exists():
        raise SnapshotError(f"Snapshot file {path} does not exist.")
    return parse_snapshot(read_snapshot_file(path))


__all__ = [
    "ClubSnapshot",
    "DEFAULT_SNAPSHOT_PATH",
    "SnapshotError",
    "SnapshotRosterProvider",
    "download_snapshot",
    "load_snapshot",
    "parse_snapshot",
    "read_snapshot_file",
]
