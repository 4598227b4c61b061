"""Plain record types handed to the statistics core and their loaders."""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

LOGGER = logging.getLogger(__name__)

Number = Union[int, float]
T = TypeVar("T")

COMPETITION_FORMATS = ("league", "cup", "league_cup")
RANK_LABEL_COLORS = ("green", "red", "orange", "blue", "yellow")
EVENT_KINDS = ("goal", "yellow", "red", "sub_in", "sub_out", "note")

FRIENDLY_COMPETITION_ID = "friendly"
PRACTICE_COMPETITION_ID = "practice"
STANDALONE_ROUND_ID = "single"

MANUAL_STAT_FIELDS = (
    "matches",
    "minutes",
    "goals",
    "assists",
    "yellow_cards",
    "red_cards",
    "avg_rating",
)


def coerce_number(value: object) -> Number:
    """Return ``value`` as a finite number, or ``0`` when that is not possible."""

    number = optional_number(value)
    return 0 if number is None else number


def optional_number(value: object) -> Optional[Number]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number: Number = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    try:
        finite = math.isfinite(number)
    except OverflowError:
        return None
    if not finite:
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value: object) -> Optional[str]:
    text = _text(value)
    return text or None


def _sequence(value: object) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value
    return ()


def _first(entry: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


@dataclass(frozen=True)
class RankLabelRule:
    from_rank: int
    to_rank: int
    color: str

    def applies_to(self, rank: int) -> bool:
        return self.from_rank <= rank <= self.to_rank

    def to_dict(self) -> Dict[str, object]:
        return {"from": self.from_rank, "to": self.to_rank, "color": self.color}


@dataclass(frozen=True)
class Round:
    round_id: str
    name: str
    competition_id: str


@dataclass(frozen=True)
class Competition:
    competition_id: str
    name: str
    season: Optional[str] = None
    format: str = "league"
    teams: Tuple[str, ...] = ()
    rank_labels: Tuple[RankLabelRule, ...] = ()
    rounds: Tuple[Round, ...] = ()

    def round_name(self, round_id: str) -> Optional[str]:
        for entry in self.rounds:
            if entry.round_id == round_id:
                return entry.name
        return None


@dataclass(frozen=True)
class PlayerStatLine:
    player_id: str
    minutes_played: Number = 0
    goals: Number = 0
    assists: Number = 0
    yellow_cards: Number = 0
    red_cards: Number = 0
    rating: Number = 0
    player_name: Optional[str] = None
    team_id: Optional[str] = None


@dataclass(frozen=True)
class TeamStatLine:
    name: str
    home_value: Number = 0
    away_value: Number = 0


@dataclass(frozen=True)
class MatchEvent:
    kind: str
    minute: Number
    team_id: Optional[str]
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    assist_player_id: Optional[str] = None
    assist_player_name: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class Match:
    match_id: str
    competition_id: str
    round_id: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    match_date: Optional[str] = None
    match_time: Optional[str] = None
    score_home: Optional[Number] = None
    score_away: Optional[Number] = None
    competition_name: Optional[str] = None
    round_name: Optional[str] = None
    home_team_name: Optional[str] = None
    away_team_name: Optional[str] = None
    player_stats: Tuple[PlayerStatLine, ...] = ()
    team_stats: Tuple[TeamStatLine, ...] = ()
    events: Tuple[MatchEvent, ...] = ()

    @property
    def identity(self) -> Tuple[str, str, str]:
        return (self.competition_id, self.round_id, self.match_id)

    @property
    def is_played(self) -> bool:
        return _has_score(self.score_home) and _has_score(self.score_away)

    def involves(self, team_id: str) -> bool:
        return team_id in {self.home_team_id, self.away_team_id}

    def events_for(self, team_id: str) -> List[MatchEvent]:
        selected = [event for event in self.events if event.team_id == team_id]
        selected.sort(key=lambda event: event.minute)
        return selected

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.match_id,
            "competition_id": self.competition_id,
            "round_id": self.round_id,
            "competition_name": self.competition_name,
            "round_name": self.round_name,
            "match_date": self.match_date,
            "match_time": self.match_time,
            "home_team": self.home_team_id,
            "away_team": self.away_team_id,
            "home_team_name": self.home_team_name,
            "away_team_name": self.away_team_name,
            "score_home": self.score_home,
            "score_away": self.score_away,
        }


def _has_score(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


@dataclass(frozen=True)
class ManualCompetitionStat:
    """Hand-entered totals for one player in one competition."""

    competition_id: str
    matches: Optional[Number] = None
    minutes: Optional[Number] = None
    goals: Optional[Number] = None
    assists: Optional[Number] = None
    yellow_cards: Optional[Number] = None
    red_cards: Optional[Number] = None
    avg_rating: Optional[Number] = None


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str = ""
    number: Optional[int] = None
    position: Optional[str] = None
    team_id: Optional[str] = None
    seasons: Tuple[str, ...] = ()
    manual_stats: Tuple[ManualCompetitionStat, ...] = ()
    season_manual_stats: Mapping[str, Tuple[ManualCompetitionStat, ...]] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class AggregatedPlayerStats:
    appearances: Number = 0
    minutes: Number = 0
    goals: Number = 0
    assists: Number = 0
    yellow_cards: Number = 0
    red_cards: Number = 0
    rating_sum: Number = 0
    rating_count: Number = 0

    def __add__(self, other: "AggregatedPlayerStats") -> "AggregatedPlayerStats":
        if not isinstance(other, AggregatedPlayerStats):
            return NotImplemented
        return AggregatedPlayerStats(
            appearances=self.appearances + other.appearances,
            minutes=self.minutes + other.minutes,
            goals=self.goals + other.goals,
            assists=self.assists + other.assists,
            yellow_cards=self.yellow_cards + other.yellow_cards,
            red_cards=self.red_cards + other.red_cards,
            rating_sum=self.rating_sum + other.rating_sum,
            rating_count=self.rating_count + other.rating_count,
        )

    @property
    def average_rating(self) -> Optional[float]:
        if self.rating_count <= 0:
            return None
        return self.rating_sum / self.rating_count

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = asdict(self)
        payload["average_rating"] = self.average_rating
        return payload


@dataclass(frozen=True)
class Standing:
    team_id: str
    team_name: str
    rank: int = 0
    played: Number = 0
    wins: Number = 0
    draws: Number = 0
    losses: Number = 0
    goals_for: Number = 0
    goals_against: Number = 0
    goal_difference: Number = 0
    points: Number = 0

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def load_rank_labels(entries: object) -> Tuple[RankLabelRule, ...]:
    rules: List[RankLabelRule] = []
    for entry in _sequence(entries):
        if not isinstance(entry, Mapping):
            continue
        from_rank = optional_number(entry.get("from"))
        to_rank = optional_number(entry.get("to"))
        color = _text(entry.get("color"))
        if from_rank is None or to_rank is None:
            continue
        if from_rank <= 0 or to_rank <= 0 or from_rank > to_rank:
            continue
        if color not in RANK_LABEL_COLORS:
            continue
        rules.append(RankLabelRule(int(from_rank), int(to_rank), color))
    return tuple(rules)


def load_competition(entry: Mapping[str, object]) -> Optional[Competition]:
    competition_id = _text(_first(entry, "id", "competitionId"))
    if not competition_id:
        LOGGER.warning("Skipping competition without id: %r", entry.get("name"))
        return None
    fmt = _text(entry.get("format")) or "league"
    if fmt not in COMPETITION_FORMATS:
        fmt = "league"
    teams = tuple(_text(team) for team in _sequence(entry.get("teams")) if _text(team))
    rounds: List[Round] = []
    for round_entry in _sequence(entry.get("rounds")):
        if not isinstance(round_entry, Mapping):
            continue
        round_id = _text(_first(round_entry, "id", "roundId"))
        if not round_id:
            continue
        rounds.append(Round(round_id, _text(round_entry.get("name")), competition_id))
    season = entry.get("season")
    return Competition(
        competition_id=competition_id,
        name=_text(entry.get("name")) or competition_id,
        season=_optional_text(season) if isinstance(season, str) else None,
        format=fmt,
        teams=teams,
        rank_labels=load_rank_labels(entry.get("rankLabels")),
        rounds=tuple(rounds),
    )


def load_player_stat_line(entry: Mapping[str, object]) -> Optional[PlayerStatLine]:
    player_id = _text(entry.get("playerId"))
    if not player_id:
        return None
    return PlayerStatLine(
        player_id=player_id,
        minutes_played=coerce_number(entry.get("minutesPlayed")),
        goals=coerce_number(entry.get("goals")),
        assists=coerce_number(entry.get("assists")),
        yellow_cards=coerce_number(entry.get("yellowCards")),
        red_cards=coerce_number(entry.get("redCards")),
        rating=coerce_number(entry.get("rating")),
        player_name=_optional_text(entry.get("playerName")),
        team_id=_optional_text(entry.get("teamId")),
    )


def _load_team_stats(entries: object) -> Tuple[TeamStatLine, ...]:
    lines: List[TeamStatLine] = []
    for entry in _sequence(entries):
        if not isinstance(entry, Mapping):
            continue
        name = _text(entry.get("name"))
        if not name:
            continue
        lines.append(
            TeamStatLine(
                name=name,
                home_value=coerce_number(entry.get("homeValue")),
                away_value=coerce_number(entry.get("awayValue")),
            )
        )
    return tuple(lines)


def _load_events(entries: object) -> Tuple[MatchEvent, ...]:
    events: List[MatchEvent] = []
    for entry in _sequence(entries):
        if not isinstance(entry, Mapping):
            continue
        kind = _text(_first(entry, "type", "kind"))
        if kind not in EVENT_KINDS:
            continue
        events.append(
            MatchEvent(
                kind=kind,
                minute=coerce_number(entry.get("minute")),
                team_id=_optional_text(entry.get("teamId")),
                player_id=_optional_text(entry.get("playerId")),
                player_name=_optional_text(entry.get("playerName")),
                assist_player_id=_optional_text(entry.get("assistPlayerId")),
                assist_player_name=_optional_text(entry.get("assistPlayerName")),
                note=_optional_text(_first(entry, "note", "substitutionReason")),
            )
        )
    return tuple(events)


def _load_score(value: object) -> Optional[Number]:
    if not _has_score(value):
        return None
    return coerce_number(value)


def load_match(
    entry: Mapping[str, object],
    *,
    competition_id: Optional[str] = None,
    round_id: Optional[str] = None,
) -> Optional[Match]:
    """Build a :class:`Match` from a stored document.

    ``competition_id`` and ``round_id`` override the document's own fields, as
    happens when the document is read from a competition/round subtree.
    """

    match_id = _text(_first(entry, "id", "matchId"))
    resolved_competition = competition_id or _text(entry.get("competitionId"))
    resolved_round = round_id or _text(entry.get("roundId"))
    if not match_id or not resolved_competition or not resolved_round:
        LOGGER.warning(
            "Skipping match record with missing identity (id=%r, competition=%r, round=%r)",
            match_id,
            resolved_competition,
            resolved_round,
        )
        return None
    player_stats = [
        line
        for line in (
            load_player_stat_line(item)
            for item in _sequence(entry.get("playerStats"))
            if isinstance(item, Mapping)
        )
        if line is not None
    ]
    return Match(
        match_id=match_id,
        competition_id=resolved_competition,
        round_id=resolved_round,
        home_team_id=_optional_text(entry.get("homeTeam")),
        away_team_id=_optional_text(entry.get("awayTeam")),
        match_date=_optional_text(entry.get("matchDate")),
        match_time=_optional_text(entry.get("matchTime")),
        score_home=_load_score(entry.get("scoreHome")),
        score_away=_load_score(entry.get("scoreAway")),
        competition_name=_optional_text(entry.get("competitionName")),
        round_name=_optional_text(entry.get("roundName")),
        home_team_name=_optional_text(entry.get("homeTeamName")),
        away_team_name=_optional_text(entry.get("awayTeamName")),
        player_stats=tuple(player_stats),
        team_stats=_load_team_stats(entry.get("teamStats")),
        events=_load_events(entry.get("events")),
    )


def load_standalone_match(entry: Mapping[str, object]) -> Optional[Match]:
    """Load a friendly or practice match stored outside any competition."""

    flagged = _text(entry.get("competitionId"))
    competition_id = (
        PRACTICE_COMPETITION_ID if flagged == PRACTICE_COMPETITION_ID else FRIENDLY_COMPETITION_ID
    )
    return load_match(entry, competition_id=competition_id, round_id=STANDALONE_ROUND_ID)


def load_manual_stat(entry: Mapping[str, object]) -> Optional[ManualCompetitionStat]:
    competition_id = _text(entry.get("competitionId"))
    if not competition_id:
        return None
    return ManualCompetitionStat(
        competition_id=competition_id,
        matches=optional_number(entry.get("matches")),
        minutes=optional_number(entry.get("minutes")),
        goals=optional_number(entry.get("goals")),
        assists=optional_number(entry.get("assists")),
        yellow_cards=optional_number(entry.get("yellowCards")),
        red_cards=optional_number(entry.get("redCards")),
        avg_rating=optional_number(entry.get("avgRating")),
    )


def load_manual_stats(entries: object) -> Tuple[ManualCompetitionStat, ...]:
    rows: List[ManualCompetitionStat] = []
    for entry in _sequence(entries):
        if not isinstance(entry, Mapping):
            continue
        row = load_manual_stat(entry)
        if row is None:
            LOGGER.warning("Skipping manual stats row without competition id")
            continue
        rows.append(row)
    return tuple(rows)


def load_player(entry: Mapping[str, object], *, team_id: Optional[str] = None) -> Optional[Player]:
    player_id = _text(_first(entry, "id", "playerId"))
    if not player_id:
        LOGGER.warning("Skipping player without id: %r", entry.get("name"))
        return None
    number = optional_number(entry.get("number"))
    season_manual: Dict[str, Tuple[ManualCompetitionStat, ...]] = {}
    season_data = entry.get("seasonData")
    if isinstance(season_data, Mapping):
        for season_key, bucket in season_data.items():
            if not isinstance(bucket, Mapping):
                continue
            season_manual[str(season_key)] = load_manual_stats(bucket.get("manualCompetitionStats"))
    return Player(
        player_id=player_id,
        name=_text(entry.get("name")),
        number=int(number) if number is not None else None,
        position=_optional_text(entry.get("position")),
        team_id=team_id or _optional_text(entry.get("teamId")),
        seasons=tuple(_text(item) for item in _sequence(entry.get("seasons")) if _text(item)),
        manual_stats=load_manual_stats(entry.get("manualCompetitionStats")),
        season_manual_stats=season_manual,
    )


def load_records(
    entries: Iterable[object], loader: Callable[[Mapping[str, object]], Optional[T]]
) -> List[T]:
    """Apply ``loader`` to every mapping in ``entries`` and drop rejected rows."""

    records: List[T] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            LOGGER.warning("Skipping non-object record: %r", entry)
            continue
        record = loader(entry)
        if record is not None:
            records.append(record)
    return records


__all__ = [
    "AggregatedPlayerStats",
    "COMPETITION_FORMATS",
    "Competition",
    "EVENT_KINDS",
    "FRIENDLY_COMPETITION_ID",
    "MANUAL_STAT_FIELDS",
    "ManualCompetitionStat",
    "Match",
    "MatchEvent",
    "PRACTICE_COMPETITION_ID",
    "Player",
    "PlayerStatLine",
    "RANK_LABEL_COLORS",
    "RankLabelRule",
    "Round",
    "STANDALONE_ROUND_ID",
    "Standing",
    "TeamStatLine",
    "coerce_number",
    "load_competition",
    "load_manual_stat",
    "load_manual_stats",
    "load_match",
    "load_player",
    "load_player_stat_line",
    "load_rank_labels",
    "load_records",
    "load_standalone_match",
    "optional_number",
]
