"""Persist a quiz as HuJSON: JSON that tolerates comments and trailing commas.

Saving is atomic (temp file plus rename), and comments surrounding the
top-level value of an existing file are kept.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Union

from .model import Quiz, quiz_from_dict, quiz_to_dict

__all__ = ["StoreError", "NotFoundError", "standardize", "load", "save"]

PathLike = Union[str, "os.PathLike[str]"]

_JSON_WS = " \t\r\n"
_COMMENTS = re.compile(r'"(?:[^"\\]|\\.)*"|//[^\n]*|/\*.*?\*/|/\*', re.DOTALL)
_TRAILING_COMMAS = re.compile(r'"(?:[^"\\]|\\.)*"|,(?=[ \t\r\n]*[}\]])', re.DOTALL)
_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class StoreError(Exception):
    """Reading or writing a quiz file failed."""


class NotFoundError(StoreError):
    """The quiz file does not exist."""


def _blank_comment(match: re.Match[str]) -> str:
    token = match.group(0)
    if token.startswith('"'):
        return token
    if token == "/*":
        raise StoreError("unterminated block comment")
    return re.sub(r"[^\n]", " ", token)


def _blank_comma(match: re.Match[str]) -> str:
    token = match.group(0)
    return token if token.startswith('"') else " "


def standardize(text: str) -> str:
    """Turn HuJSON into plain JSON by blanking comments and trailing commas.

    Every character keeps its offset, so positions map back to the input.
    """
    return _TRAILING_COMMAS.sub(_blank_comma, _COMMENTS.sub(_blank_comment, text))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _decode(text: str) -> Any:
    return json.loads(standardize(text), parse_constant=_reject_constant)


def load(path: PathLike) -> Quiz:
    """Read a quiz file, tolerating comments and trailing commas."""
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError as exc:
        raise NotFoundError(f"quiz file not found: {path}") from exc
    except OSError as exc:
        raise StoreError(f"read {path}: {exc}") from exc
    try:
        text = raw.decode("utf-8")
        std = standardize(text)
    except UnicodeDecodeError as exc:
        raise StoreError(f"standardize {path}: {exc}") from exc
    except StoreError as exc:
        raise StoreError(f"standardize {path}: {exc}") from exc
    try:
        data = json.loads(std, parse_constant=_reject_constant)
    except ValueError as exc:
        raise StoreError(f"unmarshal {path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise StoreError(f"unmarshal {path}: top-level value is not an object")
    try:
        return quiz_from_dict(data)
    except (ValueError, TypeError, AttributeError) as exc:
        raise StoreError(f"unmarshal {path}: {exc}") from exc


def _marshal(quiz: Quiz) -> str:
    try:
        body = json.dumps(quiz_to_dict(quiz), indent=2, ensure_ascii=False, allow_nan=False)
    except ValueError as exc:
        raise StoreError(f"marshal quiz: {exc}") from exc
    return "".join(_GO_ESCAPES.get(ch, ch) for ch in body)


def _surrounding_extra(text: str) -> tuple[str, str]:
    """Text before and after the top-level value of a valid HuJSON document."""
    std = standardize(text)
    json.loads(std, parse_constant=_reject_constant)
    start = len(std) - len(std.lstrip(_JSON_WS))
    end = len(std.rstrip(_JSON_WS))
    return text[:start], text[end:]


def _render(path: Path, quiz: Quiz) -> str:
    body = _marshal(quiz)
    try:
        before, after = _surrounding_extra(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError, StoreError):
        return body + "\n"
    return before + body + after


def save(path: PathLike, quiz: Quiz) -> None:
    """Write the quiz atomically, keeping comments around an existing document."""
    target = Path(path)
    data = _render(target, quiz).encode("utf-8")
    directory = target.parent
    try:
        directory.mkdir(mode=0o750, parents=True, exist_ok=True)
    except OSError as exc:
        raise StoreError(f"mkdir {directory}: {exc}") from exc
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".quiz-", suffix=".tmp", dir=directory)
    except OSError as exc:
        raise StoreError(f"create temp in {directory}: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except OSError as exc:
        try:
            os.remove(tmp_name)
        except OSError:
            pass
        raise StoreError(f"write {target}: {exc}") from exc