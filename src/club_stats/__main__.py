import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .overview import DEFAULT_OUTPUT_PATH, build_stats_overview
from .season import ALL_SCOPE
from .store import DEFAULT_SNAPSHOT_PATH, SnapshotError, load_snapshot

LOGGER = logging.getLogger("club_stats")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate player statistics and league tables for a club snapshot"
    )
    parser.add_argument(
        "--snapshot-url",
        default=None,
        help="URL of the JSON record export. Without it only the local snapshot is used.",
    )
    parser.add_argument(
        "--snapshot-path",
        type=Path,
        default=DEFAULT_SNAPSHOT_PATH,
        help="Local cache file for the snapshot (default: data/club_snapshot.json).",
    )
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help=(
            "Reuse an existing snapshot file without downloading it again. "
            "If the file is missing, a download is attempted regardless."
        ),
    )
    parser.add_argument(
        "--team",
        default=ALL_SCOPE,
        help="Team id whose roster is aggregated (default: all).",
    )
    parser.add_argument(
        "--season",
        default=ALL_SCOPE,
        help="Season filter such as 2024/25 or 2024-25 (default: all).",
    )
    parser.add_argument(
        "--competition",
        default=ALL_SCOPE,
        help="Competition id filter (default: all).",
    )
    parser.add_argument(
        "--include-summaries",
        action="store_true",
        help="Add per-season summaries for every player.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_PATH,
        help="Target JSON output (default: docs/data/club_stats_overview.json).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        snapshot = load_snapshot(
            url=args.snapshot_url,
            path=args.snapshot_path,
            skip_download=args.skip_download,
        )
    except SnapshotError as exc:
        LOGGER.error("%s", exc)
        return 1

    payload = build_stats_overview(
        snapshot,
        team_id=args.team,
        season=args.season,
        competition_id=args.competition,
        include_summaries=args.include_summaries,
        output_path=args.output,
    )

    print(
        "Club statistics updated:",
        f"{payload['player_count']} players, {len(payload['standings'])} tables -> {args.output}",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
