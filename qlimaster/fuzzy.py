"""Deterministic, case- and diacritic-insensitive fuzzy matching of names.

Scoring follows the optimal-alignment scheme of the fzf finder: matches get
points, gaps cost points, and characters at word boundaries or in
consecutive runs earn bonuses.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Sequence

__all__ = ["Match", "search"]

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_CAMEL123 = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2
BONUS_BOUNDARY_WHITE = BONUS_BOUNDARY + 2
BONUS_BOUNDARY_DELIMITER = BONUS_BOUNDARY + 1

_WHITE_ASCII = " \t\n\v\f\r"
_DELIMITERS = "/,:;|"
_SPECIAL_FOLDS = {
    "ø": "o",
    "Ø": "O",
    "đ": "d",
    "Đ": "D",
    "ł": "l",
    "Ł": "L",
    "ħ": "h",
    "Ħ": "H",
}


class _Class(IntEnum):
    WHITE = 0
    NON_WORD = 1
    DELIMITER = 2
    LOWER = 3
    UPPER = 4
    LETTER = 5
    NUMBER = 6


@dataclass(frozen=True)
class Match:
    """A fuzzy hit: score 0 and no positions when the query was empty.

    ``positions`` are ascending character indices of matched characters.
    """

    item: str
    score: int = 0
    positions: tuple[int, ...] = ()


def _ascii_class(ch: str) -> _Class:
    if "a" <= ch <= "z":
        return _Class.LOWER
    if "A" <= ch <= "Z":
        return _Class.UPPER
    if "0" <= ch <= "9":
        return _Class.NUMBER
    if ch in _WHITE_ASCII:
        return _Class.WHITE
    if ch in _DELIMITERS:
        return _Class.DELIMITER
    return _Class.NON_WORD


def _non_ascii_class(ch: str) -> _Class:
    category = unicodedata.category(ch)
    if category == "Ll":
        return _Class.LOWER
    if category == "Lu":
        return _Class.UPPER
    if category.startswith("N"):
        return _Class.NUMBER
    if category.startswith("L"):
        return _Class.LETTER
    if ch.isspace():
        return _Class.WHITE
    return _Class.NON_WORD


def _bonus_for(prev: _Class, cls: _Class) -> int:
    if cls > _Class.NON_WORD:
        if prev is _Class.WHITE:
            return BONUS_BOUNDARY_WHITE
        if prev is _Class.DELIMITER:
            return BONUS_BOUNDARY_DELIMITER
        if prev is _Class.NON_WORD:
            return BONUS_BOUNDARY
    if (prev is _Class.LOWER and cls is _Class.UPPER) or (
        prev is not _Class.NUMBER and cls is _Class.NUMBER
    ):
        return BONUS_CAMEL123
    if cls in (_Class.NON_WORD, _Class.DELIMITER):
        return BONUS_NON_WORD
    if cls is _Class.WHITE:
        return BONUS_BOUNDARY_WHITE
    return 0


def _strip_diacritic(ch: str) -> str:
    code = ord(ch)
    if code < 0x00C0 or code > 0x2184:
        return ch
    if ch in _SPECIAL_FOLDS:
        return _SPECIAL_FOLDS[ch]
    decomposed = unicodedata.normalize("NFD", ch)
    if (
        len(decomposed) > 1
        and decomposed[0].isascii()
        and all(unicodedata.combining(mark) for mark in decomposed[1:])
    ):
        return decomposed[0]
    return ch


def _lower(ch: str) -> str:
    lowered = ch.lower()
    return lowered if len(lowered) == 1 else ch


def _fold_text_char(ch: str) -> tuple[str, _Class]:
    if ord(ch) <= 0x7F:
        cls = _ascii_class(ch)
        return (ch.lower() if cls is _Class.UPPER else ch), cls
    cls = _non_ascii_class(ch)
    if cls is _Class.UPPER:
        ch = _lower(ch)
    return _strip_diacritic(ch), cls


def _fold_pattern_char(ch: str) -> str:
    return _strip_diacritic(_lower(ch))


def _match(text: str, pattern: Sequence[str]) -> tuple[int, list[int]] | None:
    """Best alignment score of ``pattern`` in ``text`` and its positions."""
    m = len(pattern)
    if m == 0 or m > len(text):
        return None

    chars: list[str] = []
    bonuses: list[int] = []
    h0: list[int] = []
    c0: list[int] = []
    first: list[int] = []
    max_score, max_pos = 0, 0
    pidx, last_idx = 0, 0
    pchar0 = pchar = pattern[0]
    prev_h0, prev_class, in_gap = 0, _Class.WHITE, False

    for off, raw in enumerate(text):
        ch, cls = _fold_text_char(raw)
        bonus = _bonus_for(prev_class, cls)
        chars.append(ch)
        bonuses.append(bonus)
        prev_class = cls

        if ch == pchar:
            if pidx < m:
                first.append(off)
                pidx += 1
                pchar = pattern[min(pidx, m - 1)]
            last_idx = off

        if ch == pchar0:
            score = SCORE_MATCH + bonus * BONUS_FIRST_CHAR_MULTIPLIER
            h0.append(score)
            c0.append(1)
            if m == 1 and score > max_score:
                max_score, max_pos = score, off
                if bonus >= BONUS_BOUNDARY:
                    break
            in_gap = False
        else:
            step = SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            h0.append(max(prev_h0 + step, 0))
            c0.append(0)
            in_gap = True
        prev_h0 = h0[-1]

    if pidx != m:
        return None
    if m == 1:
        return max_score, [max_pos]

    f0 = first[0]
    width = last_idx - f0 + 1
    size = width * m
    H = [0] * size
    C = [0] * size
    H[:width] = h0[f0 : last_idx + 1]
    C[:width] = c0[f0 : last_idx + 1]

    for row_idx in range(1, m):
        f = first[row_idx]
        pch = pattern[row_idx]
        row = row_idx * width
        in_gap = False
        for col in range(f, last_idx + 1):
            j = row + col - f0
            step = SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            s2 = H[j - 1] + step
            s1 = 0
            consecutive = 0
            if pch == chars[col]:
                diag = j - 1 - width
                s1 = H[diag] + SCORE_MATCH
                b = bonuses[col]
                consecutive = C[diag] + 1
                if consecutive > 1:
                    fb = bonuses[col - consecutive + 1]
                    if b >= BONUS_BOUNDARY and b > fb:
                        consecutive = 1
                    else:
                        b = max(b, BONUS_CONSECUTIVE, fb)
                if s1 + b < s2:
                    s1 += bonuses[col]
                    consecutive = 0
                else:
                    s1 += b
            C[j] = consecutive
            in_gap = s1 < s2
            score = max(s1, s2, 0)
            if row_idx == m - 1 and score > max_score:
                max_score, max_pos = score, col
            H[j] = score

    positions: list[int] = []
    i, j = m - 1, max_pos
    prefer_match = True
    while True:
        base = i * width
        j0 = j - f0
        s = H[base + j0]
        s1 = H[base - width + j0 - 1] if i > 0 and j >= first[i] else 0
        s2 = H[base + j0 - 1] if j > first[i] else 0
        if s > s1 and (s > s2 or (s == s2 and prefer_match)):
            positions.append(j)
            if i == 0:
                break
            i -= 1
        below = base + width + j0 + 1
        prefer_match = C[base + j0] > 1 or (below < size and C[below] > 0)
        j -= 1
    return max_score, positions


def search(query: str, items: Iterable[str]) -> list[Match]:
    """Fuzzy-match ``query`` against ``items``.

    An empty query returns every item in input order with score 0. Otherwise
    only matching items are returned, best score first, ties ordered by
    lower-cased item.
    """
    query = query.strip()
    if not query:
        return [Match(item) for item in items]
    pattern = [_fold_pattern_char(ch) for ch in query]
    found: list[Match] = []
    for item in items:
        result = _match(item, pattern)
        if result is None:
            continue
        score, positions = result
        if score <= 0:
            continue
        found.append(Match(item, score, tuple(sorted(positions))))
    found.sort(key=lambda hit: (-hit.score, hit.item.lower()))
    return found