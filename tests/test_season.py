from __future__ import annotations

from club_stats.season import (
    contains_season,
    is_all_scope,
    normalize_seasons,
    previous_season,
    season_candidates,
    season_data_entry,
    season_equals,
    season_matches_filter,
    to_dash_season,
    to_slash_season,
)


def test_to_slash_and_dash_convert_between_forms() -> None:
    assert to_slash_season("2024-25") == "2024/25"
    assert to_slash_season("2024/25") == "2024/25"
    assert to_dash_season("2024/25") == "2024-25"
    assert to_dash_season("2024-25") == "2024-25"


def test_four_digit_end_year_is_shortened() -> None:
    assert to_slash_season("1999-2000") == "1999/00"
    assert to_dash_season("1999/2000") == "1999-00"
    assert to_dash_season("1999-2000") == "1999-00"


def test_unknown_formats_pass_through() -> None:
    assert to_slash_season("Spring 2024") == "Spring 2024"
    assert to_dash_season("24-25") == "24-25"
    assert to_slash_season("") == ""


def test_equality_is_format_agnostic() -> None:
    for season in ("2024/25", "2024-25", "1999-2000", "2010/2011"):
        assert season_equals(season, to_slash_season(season))
        assert season_equals(season, to_dash_season(season))
        assert season_equals(to_dash_season(season), season)
    assert season_equals("1999-2000", "1999/00")
    assert not season_equals("2024/25", "2023/24")
    assert not season_equals("", "2024/25")
    assert season_equals("custom", "custom")


def test_previous_season_returns_dash_form_or_empty() -> None:
    assert previous_season("2024/25") == "2023-24"
    assert previous_season("2000-01") == "1999-00"
    assert previous_season("1999-2000") == "1998-99"
    assert previous_season("next year") == ""


def test_season_candidates_without_duplicates() -> None:
    assert season_candidates("2024-25") == ["2024-25", "2024/25"]
    assert season_candidates("1999/2000") == ["1999/2000", "1999/00", "1999-00"]


def test_season_data_entry_finds_any_spelling() -> None:
    buckets = {"2024-25": "dash", "2023/24": "slash"}
    assert season_data_entry(buckets, "2024/25") == "dash"
    assert season_data_entry(buckets, "2023-24") == "slash"
    assert season_data_entry(buckets, "2022/23") is None
    assert season_data_entry({}, "") is None


def test_all_scope_filters() -> None:
    assert is_all_scope(None)
    assert is_all_scope("all")
    assert is_all_scope(" ")
    assert not is_all_scope("2024/25")
    assert season_matches_filter("2024/25", "all")
    assert season_matches_filter(None, "all")
    assert season_matches_filter("2024/25", "2024-25")
    assert not season_matches_filter(None, "2024-25")


def test_normalize_seasons_sorts_newest_first() -> None:
    values = ["2023-24", "2024/25", "2024-25", "", None, "2022/23"]
    assert normalize_seasons(values) == ["2024/25", "2023/24", "2022/23"]
    assert contains_season(["2024/25"], "2024-25")
    assert not contains_season([], "2024-25")
