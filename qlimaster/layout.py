"""Responsive column layout of the score table for a given viewport."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .model import Config

__all__ = [
    "Breakpoint",
    "Layout",
    "compute_layout",
    "filter_non_final_checkpoints",
]

_TOP_BAR_LINES = 3
_BOTTOM_BAR_LINES = 3
_TABLE_CHROME = 4  # top rule, header row, rule above averages, averages row

_FRAME = 1  # each of the left and right border columns
_SEPARATOR = 3  # " │ " between cells


class Breakpoint(Enum):
    """Horizontal density class; narrower classes hide more columns."""

    FULL = 0
    NO_PLAYERS = 1
    MINIMAL_CHECKPOINTS = 2
    COMPACT = 3


_TEAM_WIDTH_CAP = {
    Breakpoint.FULL: 28,
    Breakpoint.NO_PLAYERS: 24,
    Breakpoint.MINIMAL_CHECKPOINTS: 20,
    Breakpoint.COMPACT: 16,
}


@dataclass(frozen=True)
class Layout:
    """Widths and visibility of the table columns for one viewport size."""

    width: int
    height: int
    table_height: int
    breakpoint: Breakpoint
    use_long_labels: bool
    show_players: bool
    visible_rounds: tuple[int, ...]
    visible_checkpoints: tuple[int, ...]
    pos_width: int
    team_width: int
    players_width: int
    round_width: int
    checkpoint_width: int
    total_width: int
    right_pad: int


def _classify(width: int) -> Breakpoint:
    if width >= 140:
        return Breakpoint.FULL
    if width >= 100:
        return Breakpoint.NO_PLAYERS
    if width >= 80:
        return Breakpoint.MINIMAL_CHECKPOINTS
    return Breakpoint.COMPACT


def filter_non_final_checkpoints(checkpoints: Iterable[int], rounds: int) -> tuple[int, ...]:
    """Checkpoints without the final round, whose total duplicates the Total column."""
    return tuple(cp for cp in checkpoints if cp != rounds)


def _minimal_checkpoints(checkpoints: Iterable[int], last_entered: int) -> tuple[int, ...]:
    """At most one checkpoint: the highest at or below the last entered round."""
    best = max((cp for cp in checkpoints if 0 < cp <= last_entered), default=0)
    return (best,) if best else ()


def _compact_round(rounds: int, last_entered: int) -> tuple[int, ...]:
    return (min(max(last_entered, 1), rounds),)


def _team_and_pad(
    width: int,
    breakpoint: Breakpoint,
    show_players: bool,
    pos_width: int,
    players_width: int,
    round_width: int,
    checkpoint_width: int,
    total_width: int,
    rounds: int,
    checkpoints: int,
) -> tuple[int, int]:
    used = _FRAME * 2 + pos_width + _SEPARATOR + _SEPARATOR + total_width
    if show_players:
        used += players_width + _SEPARATOR
    used += (round_width + _SEPARATOR) * rounds
    used += (checkpoint_width + _SEPARATOR) * checkpoints

    remaining = width - used
    if remaining < 10:
        return max(remaining, 8), 0
    cap = _TEAM_WIDTH_CAP.get(breakpoint, 20)
    if remaining <= cap:
        return remaining, 0
    return cap, remaining - cap


def compute_layout(
    width: int, height: int, config: Config, last_entered_round: int
) -> Layout:
    """Choose a layout for the viewport.

    ``last_entered_round`` picks the checkpoint shown in the minimal breakpoint
    and the round shown in the compact one; pass 0 before any round is entered.
    """
    breakpoint = _classify(width)
    non_final = filter_non_final_checkpoints(config.checkpoints, config.rounds)
    all_rounds = tuple(range(1, config.rounds + 1))

    pos_width, total_width, round_width, checkpoint_width, players_width = 10, 7, 7, 8, 14
    show_players = False

    if breakpoint is Breakpoint.FULL:
        show_players = True
        rounds, checkpoints = all_rounds, non_final
    elif breakpoint is Breakpoint.NO_PLAYERS:
        players_width = 0
        rounds, checkpoints = all_rounds, non_final
        pos_width, round_width, checkpoint_width = 5, 5, 5
    elif breakpoint is Breakpoint.MINIMAL_CHECKPOINTS:
        players_width = 0
        rounds = all_rounds
        checkpoints = _minimal_checkpoints(non_final, last_entered_round)
        pos_width, round_width, checkpoint_width, total_width = 4, 4, 5, 6
    else:
        players_width = 0
        rounds = _compact_round(config.rounds, last_entered_round)
        checkpoints = ()
        pos_width, round_width, total_width = 4, 5, 6

    team_width, right_pad = _team_and_pad(
        width,
        breakpoint,
        show_players,
        pos_width,
        players_width,
        round_width,
        checkpoint_width,
        total_width,
        len(rounds),
        len(checkpoints),
    )
    return Layout(
        width=width,
        height=height,
        table_height=max(height - _TOP_BAR_LINES - _BOTTOM_BAR_LINES - _TABLE_CHROME, 0),
        breakpoint=breakpoint,
        use_long_labels=breakpoint is Breakpoint.FULL,
        show_players=show_players,
        visible_rounds=rounds,
        visible_checkpoints=checkpoints,
        pos_width=pos_width,
        team_width=team_width,
        players_width=players_width,
        round_width=round_width,
        checkpoint_width=checkpoint_width,
        total_width=total_width,
        right_pad=right_pad,
    )