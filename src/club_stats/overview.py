"""Build the JSON statistics overview for a club snapshot."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .aggregation import aggregate_player_stats, build_season_summaries, registered_seasons
from .cache import AggregationCache, CacheKey
from .match_index import matches_for_team
from .records import AggregatedPlayerStats, Match, Player
from .season import ALL_SCOPE
from .selection import filter_competitions
from .standings import compute_standings, standings_payload
from .store import ClubSnapshot, SnapshotRosterProvider

DEFAULT_OUTPUT_PATH = Path("docs/data/club_stats_overview.json")


def _player_payload(
    player: Player,
    stats: AggregatedPlayerStats,
    snapshot: ClubSnapshot,
    matches: Sequence[Match],
    roster_provider: SnapshotRosterProvider,
    include_summaries: bool,
) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "id": player.player_id,
        "name": player.name,
        "number": player.number,
        "position": player.position,
        "team_id": player.team_id,
        "stats": stats.to_dict(),
    }
    if include_summaries:
        seasons = registered_seasons(
            player,
            roster_provider.seasons_for(player.player_id),
            snapshot.seasons or None,
        )
        summaries = build_season_summaries(
            player, snapshot.competitions, matches, seasons
        )
        payload["seasons"] = [summary.to_dict() for summary in summaries]
    return payload


def build_stats_overview(
    snapshot: ClubSnapshot,
    *,
    team_id: str = ALL_SCOPE,
    season: str = ALL_SCOPE,
    competition_id: str = ALL_SCOPE,
    cache: Optional[AggregationCache] = None,
    include_summaries: bool = False,
    output_path: Optional[Path] = None,
) -> Dict[str, object]:
    if output_path is not None and not isinstance(output_path, Path):
        output_path = Path(output_path)
    if cache is None:
        cache = AggregationCache()

    roster_provider = SnapshotRosterProvider(snapshot)
    roster = roster_provider.player_ids(team_id, season)
    players = [player for player in snapshot.players if player.player_id in roster]
    merged_matches = snapshot.merged_matches()

    key = CacheKey.for_scope(snapshot.data_version, team_id, season, competition_id)
    stats = cache.get_or_compute(
        key,
        lambda: aggregate_player_stats(
            players,
            merged_matches,
            snapshot.competitions,
            season,
            competition_id,
            allowed_player_ids=roster,
        ),
    )

    players_payload: List[Dict[str, object]] = [
        _player_payload(
            player,
            stats.get(player.player_id, AggregatedPlayerStats()),
            snapshot,
            merged_matches,
            roster_provider,
            include_summaries,
        )
        for player in players
    ]
    players_payload.sort(
        key=lambda item: (
            item.get("number") is None,
            item.get("number") or 0,
            str(item.get("name", "")).lower(),
        )
    )

    competitions = filter_competitions(snapshot.competitions, season, competition_id)
    standings_entries: List[Dict[str, object]] = []
    for competition in competitions:
        manual = snapshot.manual_standings.get(competition.competition_id, ())
        if not competition.teams and not manual:
            continue
        table = compute_standings(competition, snapshot.teams, merged_matches, manual)
        standings_entries.append(
            {
                "competition_id": competition.competition_id,
                "competition_name": competition.name,
                "season": competition.season,
                "format": competition.format,
                "manual": bool(manual),
                "rank_labels": [rule.to_dict() for rule in competition.rank_labels],
                "standings": standings_payload(table, competition.rank_labels),
            }
        )

    listing = matches_for_team(
        merged_matches,
        team_id,
        season=season,
        competition_id=competition_id,
        competitions={item.competition_id: item for item in snapshot.competitions},
    )

    payload = {
        "generated": datetime.now(tz=timezone.utc).isoformat(),
        "data_version": snapshot.data_version,
        "scope": {"team": team_id, "season": season, "competition": competition_id},
        "player_count": len(players_payload),
        "players": players_payload,
        "standings": standings_entries,
        "match_count": len(listing),
        "matches": [match.to_dict() for match in listing],
    }

    if output_path is None:
        output_path = DEFAULT_OUTPUT_PATH
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    return payload


__all__ = ["DEFAULT_OUTPUT_PATH", "build_stats_overview"]
