"""Every keybinding of the interface, in one place."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

__all__ = ["KeyMap", "default_keymap", "matches"]


@dataclass(frozen=True)
class KeyMap:
    """Key names bound to each action."""

    quit: tuple[str, ...]
    force_quit: tuple[str, ...]
    toggle_help: tuple[str, ...]
    redraw: tuple[str, ...]

    enter_score: tuple[str, ...]
    edit_score: tuple[str, ...]
    add_team: tuple[str, ...]
    config: tuple[str, ...]
    export: tuple[str, ...]
    read_out: tuple[str, ...]
    force_sort: tuple[str, ...]
    refresh: tuple[str, ...]

    up: tuple[str, ...]
    down: tuple[str, ...]
    left: tuple[str, ...]
    right: tuple[str, ...]
    top: tuple[str, ...]
    bottom: tuple[str, ...]
    first: tuple[str, ...]
    last: tuple[str, ...]

    enter: tuple[str, ...]
    escape: tuple[str, ...]
    tab: tuple[str, ...]
    back: tuple[str, ...]
    clear: tuple[str, ...]

    delete: tuple[str, ...]
    delete_team: tuple[str, ...]

    export_csv: tuple[str, ...]
    export_xlsx: tuple[str, ...]
    export_both: tuple[str, ...]


def default_keymap() -> KeyMap:
    """The project-wide keymap."""
    return KeyMap(
        quit=("q",),
        force_quit=("ctrl+c",),
        toggle_help=("?",),
        redraw=("ctrl+l",),
        enter_score=("e",),
        edit_score=("i",),
        add_team=("a",),
        config=(":",),
        export=("E",),
        read_out=("R",),
        force_sort=("s",),
        refresh=("r",),
        up=("up", "k"),
        down=("down", "j"),
        left=("left", "h"),
        right=("right", "l"),
        top=("g",),
        bottom=("G",),
        first=("0",),
        last=("$",),
        enter=("enter", "\n", "\r"),
        escape=("esc", "escape"),
        tab=("tab", "\t"),
        back=("ctrl+r",),
        clear=("ctrl+u",),
        delete=("x", "delete"),
        delete_team=("dd",),
        export_csv=("c",),
        export_xlsx=("x",),
        export_both=("b",),
    )


def matches(keys: Iterable[str], key: str) -> bool:
    """Whether ``key`` is one of ``keys``."""
    return key in keys