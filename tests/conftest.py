from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def snapshot_payload() -> Dict[str, object]:
    """A small export: one league season with a manual override and a friendly."""

    return {
        "dataVersion": 7,
        "seasons": ["2024-25", "2023/24"],
        "teams": [
            {"id": "A", "name": "Alpha FC"},
            {"id": "B", "name": "Beta SC"},
        ],
        "competitions": [
            {
                "id": "C1",
                "name": "City League",
                "season": "2024/25",
                "format": "league",
                "teams": ["A", "B"],
                "rankLabels": [
                    {"from": 1, "to": 1, "color": "green"},
                    {"from": 2, "to": 2, "color": "purple"},
                ],
                "rounds": [
                    {
                        "id": "r1",
                        "name": "第1節",
                        "matches": [
                            {
                                "id": "m1",
                                "homeTeam": "A",
                                "awayTeam": "B",
                                "matchDate": "2024-09-01",
                                "scoreHome": 3,
                                "scoreAway": 1,
                                "playerStats": [
                                    {"playerId": "p1", "minutesPlayed": 90, "goals": 2, "rating": 7.5},
                                    {"playerId": "p2", "minutesPlayed": 45, "goals": 1},
                                ],
                            },
                            {
                                "id": "m2",
                                "homeTeam": "B",
                                "awayTeam": "A",
                                "matchDate": "2024-09-08",
                                "scoreHome": None,
                                "scoreAway": None,
                            },
                        ],
                    }
                ],
            },
            {
                "id": "C0",
                "name": "City League",
                "season": "2023-24",
                "format": "league",
                "teams": ["A", "B"],
                "rounds": [],
            },
        ],
        "friendlyMatches": [
            {
                "id": "f1",
                "homeTeam": "A",
                "awayTeam": "X",
                "matchDate": "2024-08-15",
                "scoreHome": 1,
                "scoreAway": 1,
                "playerStats": [{"playerId": "p1", "minutesPlayed": 60, "goals": 1}],
            }
        ],
        "matchIndex": [
            {
                "id": "m2",
                "competitionId": "C1",
                "roundId": "r1",
                "matchDate": "2024-09-08",
                "matchTime": "15:30",
            },
            {"id": "broken", "competitionId": "C1"},
        ],
        "players": [
            {"id": "p1", "name": "Aoki", "number": 9, "teamId": "A", "seasons": ["2024-25"]},
            {
                "id": "p2",
                "name": "Baba",
                "number": 4,
                "teamId": "A",
                "seasonData": {
                    "2023-24": {
                        "manualCompetitionStats": [
                            {"competitionId": "C0", "matches": 10, "goals": 3, "avgRating": 6.5}
                        ]
                    }
                },
            },
            {"id": "p3", "name": "Chiba", "teamId": "B"},
        ],
        "rosters": {"2024/25": {"A": ["p1", "p2"], "B": ["p3"]}},
    }
