from __future__ import annotations

from club_stats.aggregation import (
    aggregate_player_stats,
    build_season_summaries,
    latest_season,
    registered_seasons,
)
from club_stats.records import (
    Competition,
    ManualCompetitionStat,
    Match,
    Player,
    PlayerStatLine,
)

C1 = Competition("C1", "League", season="2024/25")
C2 = Competition("C2", "Cup", season="2024/25")


def _match(match_id: str, competition_id: str, *lines: PlayerStatLine) -> Match:
    return Match(match_id, competition_id, "r1", player_stats=tuple(lines))


def test_override_and_computed_competitions_are_summed() -> None:
    player = Player("P", manual_stats=(ManualCompetitionStat("C1", goals=5),))
    matches = [
        _match("m1", "C2", PlayerStatLine("P", minutes_played=90, goals=1)),
        _match("m2", "C2", PlayerStatLine("P", minutes_played=30, goals=2)),
    ]
    totals = aggregate_player_stats([player], matches, [C1, C2], "all", "all")
    assert totals["P"].goals == 8
    assert totals["P"].appearances == 2
    assert totals["P"].minutes == 120


def test_override_excludes_match_lines_for_that_competition() -> None:
    player = Player(
        "P",
        season_manual_stats={"2024-25": (ManualCompetitionStat("C1", goals=4, matches=3),)},
    )
    matches = [
        _match("m1", "C1", PlayerStatLine("P", minutes_played=90, goals=3, assists=2)),
        _match("m2", "C2", PlayerStatLine("P", minutes_played=90, assists=1)),
    ]
    totals = aggregate_player_stats([player], matches, [C1, C2], "2024/25", "C1")
    assert totals["P"].goals == 4
    assert totals["P"].assists == 0
    assert totals["P"].appearances == 3
    assert totals["P"].minutes == 0

    both = aggregate_player_stats([player], matches, [C1, C2], "2024/25", "all")
    assert both["P"].goals == 4
    assert both["P"].assists == 1
    assert both["P"].appearances == 4


def test_only_allowed_players_are_counted() -> None:
    matches = [
        _match(
            "m1",
            "C1",
            PlayerStatLine("P", minutes_played=90, goals=1),
            PlayerStatLine("Q", minutes_played=90, goals=2),
        )
    ]
    totals = aggregate_player_stats([Player("P")], matches, [C1], "all", "all")
    assert set(totals) == {"P"}
    totals = aggregate_player_stats(
        [Player("P")], matches, [C1], "all", "all", allowed_player_ids={"P", "Q"}
    )
    assert totals["Q"].goals == 2


def test_zero_minutes_is_not_an_appearance_and_bad_numbers_are_zero() -> None:
    matches = [
        _match(
            "m1",
            "C1",
            PlayerStatLine("P", minutes_played=0, goals=float("nan"), yellow_cards=1),
        )
    ]
    totals = aggregate_player_stats([Player("P")], matches, [C1], "all", "all")
    assert totals["P"].appearances == 0
    assert totals["P"].goals == 0
    assert totals["P"].yellow_cards == 1


def test_no_competitions_after_filtering_returns_empty_map() -> None:
    matches = [_match("m1", "C1", PlayerStatLine("P", minutes_played=90, goals=1))]
    assert aggregate_player_stats([Player("P")], matches, [C1], "2010/11", "all") == {}
    assert aggregate_player_stats([Player("P")], matches, [], "all", "all") == {}


def test_result_does_not_depend_on_input_order() -> None:
    player = Player("P", manual_stats=(ManualCompetitionStat("C2", goals=1),))
    matches = [
        _match("m1", "C1", PlayerStatLine("P", minutes_played=90, goals=1, rating=6)),
        _match("m2", "C1", PlayerStatLine("P", minutes_played=90, goals=2, rating=8)),
    ]
    forward = aggregate_player_stats([player], matches, [C1, C2], "all", "all")
    backward = aggregate_player_stats([player], matches[::-1], [C2, C1], "all", "all")
    assert forward == backward
    assert forward["P"].average_rating == 7


def test_ratings_weight_manual_rows_by_matches() -> None:
    player = Player("P", manual_stats=(ManualCompetitionStat("C1", matches=4, avg_rating=7.0),))
    matches = [
        _match("m1", "C2", PlayerStatLine("P", minutes_played=90, rating=5.0)),
        _match("m2", "C2", PlayerStatLine("P", minutes_played=90, rating=0)),
    ]
    totals = aggregate_player_stats([player], matches, [C1, C2], "all", "all")
    assert totals["P"].rating_count == 5
    assert totals["P"].average_rating == (28 + 5) / 5


def test_season_summaries_per_requested_season() -> None:
    player = Player(
        "P",
        season_manual_stats={
            "2023-24": (ManualCompetitionStat("C0", matches=10, goals=3, avg_rating=6.5),)
        },
    )
    competitions = [Competition("C0", "League", season="2023-24"), C1, C2]
    matches = [_match("m1", "C1", PlayerStatLine("P", minutes_played=90, goals=1))]
    summaries = build_season_summaries(player, competitions, matches, ["2024-25", "2023/24", "2022/23"])

    assert [summary.season for summary in summaries] == ["2024/25", "2023/24", "2022/23"]
    current, previous, empty = summaries
    assert current.stats.goals == 1
    assert [entry.competition_id for entry in current.competitions] == ["C1"]
    assert previous.stats.appearances == 10
    assert previous.stats.average_rating == 6.5
    assert not empty.has_stats
    assert empty.to_dict()["competitions"] == []


def test_registered_and_latest_season() -> None:
    player = Player(
        "P",
        seasons=("2023-24",),
        season_manual_stats={"2022/23": ()},
    )
    seasons = registered_seasons(player, ["2024/25", "2023/24"])
    assert seasons == ["2024/25", "2023/24", "2022/23"]
    assert registered_seasons(player, ["2024/25"], ["2024-25", "2022-23"]) == [
        "2024/25",
        "2022/23",
    ]
    assert latest_season(seasons) == "2024/25"
    assert latest_season([]) is None
