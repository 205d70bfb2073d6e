"""Helpers for text-input fields: key checks and character filters."""

from __future__ import annotations

import unicodedata
from typing import Callable

__all__ = [
    "is_arrow_up",
    "is_arrow_down",
    "sanitize_text",
    "filter_runes",
    "is_digit",
    "is_checkpoint_char",
]


def is_arrow_up(key: str) -> bool:
    """Only the real arrow key; letter aliases must stay typeable."""
    return key == "up"


def is_arrow_down(key: str) -> bool:
    """Only the real arrow key; letter aliases must stay typeable."""
    return key == "down"


def sanitize_text(text: str) -> str:
    """Return ``text`` unchanged, or "" if it holds any control character.

    Dropping the whole blob keeps leaked terminal escape replies out of
    input fields.
    """
    if any(unicodedata.category(ch) == "Cc" for ch in text):
        return ""
    return text


def filter_runes(text: str, keep: Callable[[str], bool]) -> str:
    """Only the characters of ``text`` for which ``keep`` is true."""
    return "".join(ch for ch in text if keep(ch))


def is_digit(char: str) -> bool:
    """Whether the character is an ASCII decimal digit."""
    return "0" <= char <= "9" and len(char) == 1


def is_checkpoint_char(char: str) -> bool:
    """Digits, commas and spaces are allowed in the checkpoints list field."""
    return is_digit(char) or char in (",", " ")