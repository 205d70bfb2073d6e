"""The set of quiz mutations and the single function that applies them."""

from __future__ import annotations

import copy
import re
import secrets
from dataclasses import dataclass
from typing import Union

from .model import (
    Config,
    ConfigError,
    PerfectRef,
    Quiz,
    Team,
    new_perfect_rounds,
    perfect_rounds,
    rank,
    round_complete,
    round_just_completed,
    round_key,
)
from .score import format_score, parse

__all__ = [
    "QuizChangeError",
    "UnknownTeamError",
    "DuplicateTeamError",
    "InvalidRoundError",
    "InvalidChangeError",
    "EmptyTeamNameError",
    "InvalidConfigError",
    "SetScore",
    "ClearScore",
    "AddTeam",
    "RenameTeam",
    "SetPlayers",
    "DeleteTeam",
    "SetConfig",
    "Change",
    "Result",
    "apply",
]


class QuizChangeError(ValueError):
    """Base class for every rejected change."""


class UnknownTeamError(QuizChangeError):
    """The change refers to a team id that is not in the quiz."""


class DuplicateTeamError(QuizChangeError):
    """Another team already uses the name."""


class InvalidRoundError(QuizChangeError):
    """The round number is outside the configured range."""


class InvalidChangeError(QuizChangeError):
    """The change is malformed or carries an invalid value."""


class EmptyTeamNameError(QuizChangeError):
    """A team name is empty or only whitespace."""


class InvalidConfigError(QuizChangeError):
    """The new configuration does not validate."""


@dataclass(frozen=True)
class SetScore:
    """Record a score for one team in one round."""

    team_id: str
    round_number: int
    score: float


@dataclass(frozen=True)
class ClearScore:
    """Remove the recorded score of a team in a round."""

    team_id: str
    round_number: int


@dataclass(frozen=True)
class AddTeam:
    """Append a new team; its id is generated when applied."""

    name: str
    players: str = ""


@dataclass(frozen=True)
class RenameTeam:
    """Change the display name of a team."""

    team_id: str
    name: str


@dataclass(frozen=True)
class SetPlayers:
    """Replace the free-text players column of a team."""

    team_id: str
    players: str


@dataclass(frozen=True)
class DeleteTeam:
    """Remove a team from the quiz."""

    team_id: str


@dataclass(frozen=True)
class SetConfig:
    """Replace the configuration; scores of rounds that no longer exist are dropped."""

    config: Config


Change = Union[SetScore, ClearScore, AddTeam, RenameTeam, SetPlayers, DeleteTeam, SetConfig]


@dataclass(frozen=True)
class Result:
    """Side effects of a successful apply that the interface may react to."""

    mutated: bool = False
    round_just_completed: int = 0
    new_perfect_rounds: tuple[PerfectRef, ...] = ()
    re_ranked: bool = False
    winner_decided: bool = False


def apply(quiz: Quiz, change: Change) -> tuple[Quiz, Result]:
    """Apply a change to a copy of the quiz and report what changed.

    The input quiz is never modified. Invalid changes raise a QuizChangeError.
    """
    before = copy.deepcopy(quiz)
    after = copy.deepcopy(quiz)
    _apply_change(after, change)

    round_done = round_just_completed(before, after)
    result = Result(
        mutated=before != after,
        round_just_completed=round_done,
        new_perfect_rounds=tuple(new_perfect_rounds(perfect_rounds(before), perfect_rounds(after))),
        re_ranked=_should_rerank(change, round_done),
        winner_decided=_winner_decided(after),
    )
    return after, result


def _should_rerank(change: Change, round_done: int) -> bool:
    return isinstance(change, (AddTeam, DeleteTeam, SetConfig)) or round_done > 0


def _winner_decided(quiz: Quiz) -> bool:
    if not quiz.teams:
        return False
    if not all(round_complete(quiz, r) for r in range(1, quiz.config.rounds + 1)):
        return False
    ranking = rank(quiz)
    return sum(1 for t in quiz.teams if ranking.position_of(t.id) == 1) == 1


def _apply_change(quiz: Quiz, change: Change) -> None:
    match change:
        case SetScore():
            _set_score(quiz, change)
        case ClearScore():
            _clear_score(quiz, change)
        case AddTeam():
            _add_team(quiz, change)
        case RenameTeam():
            _rename_team(quiz, change)
        case SetPlayers():
            _require_team(quiz, change.team_id).players = change.players.strip()
        case DeleteTeam():
            _delete_team(quiz, change)
        case SetConfig():
            _set_config(quiz, change)
        case _:
            raise InvalidChangeError(f"invalid change: {type(change).__name__}")


def _require_team(quiz: Quiz, team_id: str) -> Team:
    team = quiz.find_team(team_id)
    if team is None:
        raise UnknownTeamError(f"unknown team: {team_id!r}")
    return team


def _require_round(quiz: Quiz, round_number: int) -> None:
    if not 1 <= round_number <= quiz.config.rounds:
        raise InvalidRoundError(
            f"round out of range: {round_number} not in [1, {quiz.config.rounds}]"
        )


def _set_score(quiz: Quiz, change: SetScore) -> None:
    team = _require_team(quiz, change.team_id)
    _require_round(quiz, change.round_number)
    try:
        parse(format_score(change.score), float(quiz.config.questions_per_round))
    except (ValueError, OverflowError) as exc:
        raise InvalidChangeError(f"invalid change: {exc}") from exc
    team.scores[round_key(change.round_number)] = float(change.score)


def _clear_score(quiz: Quiz, change: ClearScore) -> None:
    team = _require_team(quiz, change.team_id)
    _require_round(quiz, change.round_number)
    team.scores.pop(round_key(change.round_number), None)


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise EmptyTeamNameError("team name must not be empty")
    return cleaned


def _add_team(quiz: Quiz, change: AddTeam) -> None:
    name = _clean_name(change.name)
    if quiz.has_team_named(name):
        raise DuplicateTeamError(f"team name already used: {name!r}")
    quiz.teams.append(
        Team(id=_new_team_id(), name=name, players=change.players.strip(), scores={})
    )


def _rename_team(quiz: Quiz, change: RenameTeam) -> None:
    team = _require_team(quiz, change.team_id)
    name = _clean_name(change.name)
    folded = name.casefold()
    if any(t.id != change.team_id and t.name.casefold() == folded for t in quiz.teams):
        raise DuplicateTeamError(f"team name already used: {name!r}")
    team.name = name


def _delete_team(quiz: Quiz, change: DeleteTeam) -> None:
    index = next((i for i, t in enumerate(quiz.teams) if t.id == change.team_id), None)
    if index is None:
        raise UnknownTeamError(f"unknown team: {change.team_id!r}")
    del quiz.teams[index]


def _set_config(quiz: Quiz, change: SetConfig) -> None:
    try:
        change.config.validate()
    except ConfigError as exc:
        raise InvalidConfigError(f"invalid config: {exc}") from exc
    rounds = change.config.rounds
    for team in quiz.teams:
        team.scores = {
            key: value
            for key, value in team.scores.items()
            if 1 <= _parse_round_key(key) <= rounds
        }
    quiz.config = change.config


_ROUND_KEY = re.compile(r"[+-]?[0-9]+")


def _parse_round_key(key: str) -> int:
    """Inverse of round_key; anything unparsable maps to 0 (out of range)."""
    return int(key) if _ROUND_KEY.fullmatch(key) else 0


def _new_team_id() -> str:
    return "t_" + secrets.token_hex(6)