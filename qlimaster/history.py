"""Running list of team names seen across previous quizzes.

Two sources feed it: a persistent ``history.hujson`` file (kept in the quiz
root when there is one, otherwise in the user's config directory) and a live
scan of the dated quiz folders under a quiz root.
"""

from __future__ import annotations

import json
import os
import re
import sys
import tempfile
from dataclasses import dataclass, field, replace
from datetime import date as _date
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Union

from .model import Quiz
from .store import StoreError, standardize
from .store import load as load_quiz

__all__ = [
    "HistoryError",
    "Entry",
    "History",
    "looks_like_quiz_root",
    "find_quiz_root",
    "resolve_path",
    "load",
    "save",
    "merge",
    "sort_entries",
    "record_quiz",
    "record_names",
    "scan",
]

PathLike = Union[str, "os.PathLike[str]"]

HISTORY_FILE = "history.hujson"
QUIZ_FILE = "quiz.hujson"

_DATED_PREFIX = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_DATE_FOLDER = re.compile(r"([0-9]{4}-[0-9]{2}-[0-9]{2})")


class HistoryError(Exception):
    """Reading, writing or scanning the history failed."""


@dataclass(frozen=True)
class Entry:
    """A single team-name record."""

    name: str
    last_seen: str = ""  # YYYY-MM-DD
    times_seen: int = 0


@dataclass
class History:
    """The persisted history document."""

    version: int = 1
    teams: list[Entry] = field(default_factory=list)

    def names(self) -> list[str]:
        """Team names in their current order."""
        return [entry.name for entry in self.teams]


# --- locating the history file --------------------------------------------


def looks_like_quiz_root(directory: PathLike) -> bool:
    """Whether the directory holds a history file or a ``YYYY-MM-DD`` subfolder."""
    base = os.fspath(directory)
    if not base:
        return False
    if os.path.exists(os.path.join(base, HISTORY_FILE)):
        return True
    try:
        with os.scandir(base) as entries:
            return any(
                entry.is_dir(follow_symlinks=False) and _DATED_PREFIX.match(entry.name)
                for entry in entries
            )
    except OSError:
        return False


def find_quiz_root(start: PathLike) -> str | None:
    """Nearest directory at or above ``start`` that looks like a quiz root, or None."""
    base = os.fspath(start)
    if not base:
        return None
    directory = os.path.abspath(base)
    while True:
        if looks_like_quiz_root(directory):
            return directory
        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def _config_home() -> Path:
    env = os.environ.get("XDG_CONFIG_HOME")
    if env:
        return Path(env)
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    if os.name == "nt":
        return Path(os.environ.get("LOCALAPPDATA") or home / "AppData" / "Local")
    return home / ".config"


def _config_path() -> str:
    path = _config_home() / "qlimaster" / HISTORY_FILE
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as exc:
        raise HistoryError(f"xdg config: {exc}") from exc
    return str(path)


def resolve_path(start: PathLike) -> str:
    """Path of the history file: inside the quiz root when found, else in the config dir."""
    root = find_quiz_root(start)
    if root is not None:
        return os.path.join(root, HISTORY_FILE)
    return _config_path()


# --- persistence ----------------------------------------------------------


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _history_from_dict(data: Any) -> History:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TypeError("top-level value is not an object")
    teams = []
    for raw in data.get("teams") or ():
        if not isinstance(raw, dict):
            raise TypeError("team entry is not an object")
        teams.append(
            Entry(
                name=str(raw.get("name") or ""),
                last_seen=str(raw.get("last_seen") or ""),
                times_seen=int(raw.get("times_seen") or 0),
            )
        )
    return History(version=int(data.get("version") or 0) or 1, teams=teams)


def _history_to_dict(history: History) -> dict[str, Any]:
    return {
        "version": history.version,
        "teams": [
            {"name": e.name, "last_seen": e.last_seen, "times_seen": e.times_seen}
            for e in history.teams
        ],
    }


def load(path: PathLike) -> History:
    """Read the history file; a missing file yields an empty history."""
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError:
        return History(version=1)
    except OSError as exc:
        raise HistoryError(f"read {path}: {exc}") from exc
    try:
        text = standardize(raw.decode("utf-8"))
    except (UnicodeDecodeError, StoreError) as exc:
        raise HistoryError(f"standardize {path}: {exc}") from exc
    try:
        data = json.loads(text, parse_constant=_reject_constant)
        return _history_from_dict(data)
    except (ValueError, TypeError) as exc:
        raise HistoryError(f"unmarshal {path}: {exc}") from exc


def save(path: PathLike, history: History) -> None:
    """Write the history atomically, creating parent directories as needed."""
    target = Path(path)
    directory = target.parent
    try:
        directory.mkdir(mode=0o750, parents=True, exist_ok=True)
    except OSError as exc:
        raise HistoryError(f"mkdir {directory}: {exc}") from exc
    body = json.dumps(_history_to_dict(history), indent=2, ensure_ascii=False) + "\n"
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".history-", suffix=".tmp", dir=directory)
    except OSError as exc:
        raise HistoryError(f"create temp: {exc}") from exc
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(body.encode("utf-8"))
        os.replace(tmp_name, target)
    except OSError as exc:
        try:
            os.remove(tmp_name)
        except OSError:
            pass
        raise HistoryError(f"write {target}: {exc}") from exc


# --- combining ------------------------------------------------------------


def sort_entries(entries: list[Entry]) -> None:
    """Sort in place: latest last_seen first, then most seen, then name."""
    entries.sort(key=lambda e: e.name.lower())
    entries.sort(key=lambda e: e.times_seen, reverse=True)
    entries.sort(key=lambda e: e.last_seen, reverse=True)


def merge(*sources: History) -> History:
    """Combine histories, deduplicating names case-insensitively.

    The casing of the most recent entry wins, last_seen is the latest date
    and times_seen is the sum over all inputs.
    """
    combined: dict[str, Entry] = {}
    for source in sources:
        for entry in source.teams:
            key = entry.name.strip().lower()
            if not key:
                continue
            current = combined.get(key)
            if current is None:
                combined[key] = Entry(entry.name, entry.last_seen, entry.times_seen)
                continue
            times = current.times_seen + entry.times_seen
            if entry.last_seen > current.last_seen:
                combined[key] = Entry(entry.name, entry.last_seen, times)
            else:
                combined[key] = replace(current, times_seen=times)
    teams = list(combined.values())
    sort_entries(teams)
    return History(version=1, teams=teams)


def _day(moment: _date) -> str:
    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def record_names(history: History, names: Iterable[str], date: _date) -> History:
    """Record one session's team names seen on ``date``.

    Duplicates within ``names`` count once; blank names are skipped. When
    nothing is left to record the input history is returned unchanged.
    """
    day = _day(date)
    seen: set[str] = set()
    additions: list[Entry] = []
    for raw in names:
        name = raw.strip()
        if not name:
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        additions.append(Entry(name=name, last_seen=day, times_seen=1))
    if not additions:
        return history
    return merge(history, History(version=1, teams=additions))


def record_quiz(history: History, quiz: Quiz, date: _date) -> History:
    """Record every team of a quiz held on ``date``, each counted once."""
    return record_names(history, [team.name for team in quiz.teams], date)


# --- scanning -------------------------------------------------------------


def _scan_date(folder: str, quiz_path: str) -> datetime:
    match = _DATE_FOLDER.match(folder)
    if match:
        try:
            return datetime.strptime(match.group(1), "%Y-%m-%d")
        except ValueError:
            pass
    try:
        return datetime.fromtimestamp(os.stat(quiz_path).st_mtime)
    except OSError:
        return datetime.now()


def scan(root: PathLike) -> History:
    """Build a history from every ``<root>/*/quiz.hujson``.

    Folders named ``YYYY-MM-DD...`` supply that date; others use the quiz
    file's modification time. Unreadable quiz files are skipped.
    """
    base = os.fspath(root)
    try:
        with os.scandir(base) as entries:
            folders = sorted(
                entry.name for entry in entries if entry.is_dir(follow_symlinks=False)
            )
    except OSError as exc:
        raise HistoryError(f"readdir {base}: {exc}") from exc
    merged = History(version=1)
    for folder in folders:
        quiz_path = os.path.join(base, folder, QUIZ_FILE)
        try:
            quiz = load_quiz(quiz_path)
        except StoreError:
            continue
        merged = record_quiz(merged, quiz, _scan_date(folder, quiz_path))
    return merged