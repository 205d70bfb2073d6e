"""Domain model and pure logic for a pub-quiz session."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

__all__ = [
    "ConfigError",
    "Config",
    "default_config",
    "Team",
    "Quiz",
    "new_quiz",
    "round_key",
    "quiz_to_dict",
    "quiz_from_dict",
    "checkpoint",
    "round_average",
    "checkpoint_average",
    "total_average",
    "Ranking",
    "rank",
    "sort_by_ranking",
    "round_complete",
    "round_just_completed",
    "PerfectRef",
    "perfect_rounds",
    "new_perfect_rounds",
]

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class ConfigError(ValueError):
    """A quiz configuration is out of bounds."""


@dataclass(frozen=True)
class Config:
    """Shape of the quiz: rounds, questions per round and checkpoint rounds."""

    rounds: int
    questions_per_round: int
    checkpoints: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "checkpoints", tuple(self.checkpoints or ()))

    def validate(self) -> None:
        """Raise ConfigError unless the config describes a reasonable quiz."""
        if not 1 <= self.rounds <= 50:
            raise ConfigError(f"rounds {self.rounds} not in [1, 50]")
        if not 1 <= self.questions_per_round <= 100:
            raise ConfigError(
                f"questions_per_round {self.questions_per_round} not in [1, 100]"
            )
        previous = 0
        for cp in self.checkpoints:
            if not 1 <= cp <= self.rounds:
                raise ConfigError(f"checkpoint {cp} not in [1, {self.rounds}]")
            if cp <= previous:
                raise ConfigError(
                    f"checkpoints must be sorted ascending and unique: {list(self.checkpoints)}"
                )
            previous = cp


def default_config() -> Config:
    """Eight rounds of ten questions with subtotals after rounds 4 and 8."""
    return Config(rounds=8, questions_per_round=10, checkpoints=(4, 8))


def round_key(round_number: int) -> str:
    """Map key used for a round in Team.scores."""
    return str(round_number)


@dataclass
class Team:
    """A team's identity and its per-round scores, keyed by round string."""

    id: str = ""
    name: str = ""
    players: str = ""
    scores: dict[str, float] = field(default_factory=dict)

    def score(self, round_number: int) -> float | None:
        """Recorded score for the round, or None when nothing was entered."""
        return self.scores.get(round_key(round_number))

    def total(self) -> float:
        return float(sum(self.scores.values()))


@dataclass
class Quiz:
    """Top-level state of a quiz session."""

    version: int = 1
    created: datetime = ZERO_TIME
    config: Config = field(default_factory=default_config)
    teams: list[Team] = field(default_factory=list)

    def find_team(self, team_id: str) -> Team | None:
        return next((t for t in self.teams if t.id == team_id), None)

    def has_team_named(self, name: str) -> bool:
        """Whether any team carries this name, ignoring case."""
        folded = name.casefold()
        return any(t.name.casefold() == folded for t in self.teams)


def new_quiz(config: Config) -> Quiz:
    """A fresh quiz with the given config and no teams."""
    return Quiz(version=1, created=datetime.now(timezone.utc), config=config, teams=[])


# --- serialisation -------------------------------------------------------

_TIME_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time(text: str) -> datetime:
    match = _TIME_PATTERN.fullmatch(text)
    if not match:
        raise ValueError(f"invalid timestamp {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )


def _json_number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else float(value)


def quiz_to_dict(quiz: Quiz) -> dict[str, Any]:
    """JSON-ready representation of a quiz."""
    return {
        "version": quiz.version,
        "created": _format_time(quiz.created),
        "config": {
            "rounds": quiz.config.rounds,
            "questions_per_round": quiz.config.questions_per_round,
            "checkpoints": list(quiz.config.checkpoints),
        },
        "teams": [
            {
                "id": t.id,
                "name": t.name,
                "players": t.players,
                "scores": {k: _json_number(v) for k, v in t.scores.items()},
            }
            for t in quiz.teams
        ],
    }


def quiz_from_dict(data: Mapping[str, Any]) -> Quiz:
    """Build a quiz from its JSON representation; missing fields take zero values."""
    raw_config = data.get("config") or {}
    config = Config(
        rounds=int(raw_config.get("rounds") or 0),
        questions_per_round=int(raw_config.get("questions_per_round") or 0),
        checkpoints=tuple(int(cp) for cp in raw_config.get("checkpoints") or ()),
    )
    teams = [
        Team(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            players=str(raw.get("players") or ""),
            scores={str(k): float(v) for k, v in (raw.get("scores") or {}).items()},
        )
        for raw in data.get("teams") or ()
    ]
    created_raw = data.get("created")
    created = _parse_time(created_raw) if created_raw else ZERO_TIME
    return Quiz(version=int(data.get("version") or 0), created=created, config=config, teams=teams)


# --- derived values ------------------------------------------------------


def checkpoint(team: Team, round_number: int) -> float:
    """Cumulative score of a team up to and including the given round."""
    return float(
        sum(
            value
            for r in range(1, round_number + 1)
            if (value := team.score(r)) is not None
        )
    )


def round_average(quiz: Quiz, round_number: int) -> float | None:
    """Mean score for the round over teams that have one, or None if none do."""
    values = [v for t in quiz.teams if (v := t.score(round_number)) is not None]
    if not values:
        return None
    return sum(values) / len(values)


def checkpoint_average(quiz: Quiz, round_number: int) -> float | None:
    """Mean cumulative total at the round over all teams; missing scores count as 0."""
    if not quiz.teams:
        return None
    return sum(checkpoint(t, round_number) for t in quiz.teams) / len(quiz.teams)


def total_average(quiz: Quiz) -> float | None:
    """Mean total over all teams, or None without teams."""
    if not quiz.teams:
        return None
    return sum(t.total() for t in quiz.teams) / len(quiz.teams)


def _ranking_key(team: Team) -> tuple[float, str]:
    return (-team.total(), team.name.lower())


@dataclass(frozen=True)
class Ranking:
    """Standard competition ranking ("1224") of the teams in a quiz."""

    positions: Mapping[str, int] = field(default_factory=dict)

    def position_of(self, team_id: str) -> int:
        """1-based position of the team, or 0 when it is not ranked."""
        return self.positions.get(team_id, 0)


def sort_by_ranking(quiz: Quiz) -> list[Team]:
    """Teams sorted by descending total, ties by lower-cased name."""
    return sorted(quiz.teams, key=_ranking_key)


def rank(quiz: Quiz) -> Ranking:
    """Compute positions; tied totals share a position and the next one skips."""
    positions: dict[str, int] = {}
    previous: tuple[float, int] | None = None
    for index, team in enumerate(sort_by_ranking(quiz), start=1):
        total = team.total()
        if previous is not None and previous[0] == total:
            positions[team.id] = previous[1]
        else:
            positions[team.id] = index
            previous = (total, index)
    return Ranking(positions)


def round_complete(quiz: Quiz, round_number: int) -> bool:
    """Whether every team has a score for the round; never true without teams."""
    return bool(quiz.teams) and all(
        t.score(round_number) is not None for t in quiz.teams
    )


def round_just_completed(before: Quiz, after: Quiz) -> int:
    """Highest round that became complete between the two states, or 0."""
    rounds = min(before.config.rounds, after.config.rounds)
    for r in range(rounds, 0, -1):
        if not round_complete(before, r) and round_complete(after, r):
            return r
    return 0


@dataclass(frozen=True)
class PerfectRef:
    """A (team, round) cell whose score reached questions-per-round."""

    team_id: str
    round_number: int


def perfect_rounds(quiz: Quiz) -> list[PerfectRef]:
    """Every cell at or above the perfect-round threshold."""
    threshold = float(quiz.config.questions_per_round)
    return [
        PerfectRef(team.id, r)
        for team in quiz.teams
        for r in range(1, quiz.config.rounds + 1)
        if (value := team.score(r)) is not None and value >= threshold
    ]


def new_perfect_rounds(
    before: Iterable[PerfectRef], after: Iterable[PerfectRef]
) -> list[PerfectRef]:
    """Perfect cells in ``after`` that were not in ``before``, in order."""
    seen = set(before)
    return [ref for ref in after if ref not in seen]