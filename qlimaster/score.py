"""Parsing and formatting of quiz round scores.

Scores are floats in steps of 0.5 within ``[0, max]``. Shorthand input:

====== =====
input  value
====== =====
"1"    1.0
"1."   1.5  (whole number followed by '.' or ',' adds 0.5)
"1,"   1.5
"."    0.5  (a bare '.' or ',' is 0.5)
""     0.0
"1,5"  1.5  (standard decimal, either separator)
====== =====
"""

from __future__ import annotations

import math
import re

__all__ = [
    "ScoreError",
    "InvalidScoreError",
    "OutOfRangeError",
    "NotHalfStepError",
    "parse",
    "format_score",
]

_UINT32_MAX = 0xFFFFFFFF
_DIGITS = re.compile(r"[0-9]+")
_HEX_FLOAT = re.compile(r"\+?0[xX][0-9a-fA-F]*\.?[0-9a-fA-F]*[pP][+-]?[0-9]+")


class ScoreError(ValueError):
    """Base class for every score parsing failure."""


class InvalidScoreError(ScoreError):
    """Input does not match any accepted score shape."""


class OutOfRangeError(ScoreError):
    """Parsed value lies outside ``[0, max]``."""


class NotHalfStepError(ScoreError):
    """Parsed value is not a multiple of 0.5."""


def parse(text: str, max_value: float) -> float:
    """Convert user input into a score, honouring the shorthand rules.

    ``max_value`` is the inclusive upper bound and must be positive.
    """
    if max_value <= 0:
        raise InvalidScoreError("invalid score: max must be positive")
    stripped = text.strip()
    if not stripped:
        return 0.0
    return _validate(_parse_value(stripped), max_value)


def _parse_value(text: str) -> float:
    normalised = text.replace(",", ".")

    if normalised == ".":
        return 0.5

    if normalised.endswith(".") and normalised.count(".") == 1:
        prefix = normalised[:-1]
        if not prefix:
            return 0.5
        if len(prefix) <= 10 and _DIGITS.fullmatch(prefix):
            whole = int(prefix)
            if whole <= _UINT32_MAX:
                return whole + 0.5
        # Anything else falls through and fails the decimal parse below.

    if normalised.startswith("-"):
        raise InvalidScoreError(f"invalid score: {text!r}")
    if not normalised.isascii() or "_" in normalised:
        raise InvalidScoreError(f"invalid score: {text!r}")

    try:
        if _HEX_FLOAT.fullmatch(normalised):
            value = float.fromhex(normalised.lstrip("+"))
        else:
            value = float(normalised)
    except (ValueError, OverflowError) as exc:
        raise InvalidScoreError(f"invalid score: {text!r}") from exc
    if math.isnan(value):
        raise InvalidScoreError(f"invalid score: {text!r}")
    return value


def _validate(value: float, max_value: float) -> float:
    if value < 0 or value > max_value:
        raise OutOfRangeError(f"score out of range: {value} not in [0, {max_value}]")
    twice = value * 2
    rounded = float(math.floor(twice + 0.5))
    if abs(twice - rounded) > 1e-9:
        raise NotHalfStepError(f"score must be a multiple of 0.5: {value}")
    return rounded / 2


def format_score(value: float) -> str:
    """Render a score European style: ``2.5`` becomes ``"2,5"``, ``10`` stays ``"10"``."""
    twice = math.trunc(value * 2 + 0.5)
    whole = math.trunc(twice / 2) if abs(twice) < 2**52 else twice // 2
    if twice % 2 == 0:
        return str(whole)
    return f"{whole},5"