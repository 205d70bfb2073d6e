"""Command-line entry point for the pub-quiz score manager.

Without a subcommand it opens (creating when needed) ``quiz.hujson`` in the
current directory and prints the standings. Subcommands export the quiz and
rebuild the team-name history.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from datetime import datetime
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _package_version
from typing import Sequence

from . import history
from . import store
from .export import ExportError, build_rows, header, write_csv_file, write_xlsx
from .model import Config, ConfigError, Quiz, new_quiz

__all__ = ["parse_checkpoints", "main"]

QUIZ_FILE = "quiz.hujson"
_INTEGER = re.compile(r"[+-]?[0-9]+")


class _CommandError(Exception):
    """A command failed with a message for the user."""


def _version() -> str:
    try:
        return _package_version("qlimaster")
    except PackageNotFoundError:
        return "dev"


def parse_checkpoints(text: str) -> list[int]:
    """Parse a comma-separated list of round numbers; blank parts are skipped."""
    out: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if not _INTEGER.fullmatch(part):
            raise ValueError(f"checkpoint {part!r}: invalid integer")
        out.append(int(part))
    return out


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qlimaster", description="pub-quiz score manager")
    parser.add_argument("--rounds", type=int, default=8, help="number of rounds")
    parser.add_argument("--questions", type=int, default=10, help="questions per round")
    parser.add_argument(
        "--checkpoints",
        default="4,8",
        help="comma-separated round numbers for cumulative-total columns",
    )
    parser.add_argument(
        "--quiz-root",
        default="",
        help="root folder holding the quizzes (default: nearest quiz root above CWD)",
    )
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("version", help="print qlimaster version")

    export = commands.add_parser("export", help="export the quiz in the current directory")
    export.add_argument("--format", default="both", help="csv | xlsx | both")
    export.add_argument("--out", default="", help="output directory (default: CWD)")

    hist = commands.add_parser("history", help="manage the global team-history file")
    hist_commands = hist.add_subparsers(dest="history_command")
    rebuild = hist_commands.add_parser(
        "rebuild", help="rescan sibling quiz folders and overwrite the history file"
    )
    rebuild.add_argument(
        "--quiz-root", dest="rebuild_root", default="", help="root folder to scan"
    )
    return parser


def _load_quiz(path: str) -> Quiz:
    try:
        return store.load(path)
    except store.StoreError as exc:
        raise _CommandError(f"load quiz: {exc}") from exc


def _print_table(quiz: Quiz) -> None:
    table = [header(quiz.config)] + [list(row.values) for row in build_rows(quiz)]
    widths = [max(len(row[col]) for row in table) for col in range(len(table[0]))]
    for row in table:
        print("  ".join(value.ljust(width) for value, width in zip(row, widths)).rstrip())


def _run_session(args: argparse.Namespace) -> None:
    try:
        checkpoints = parse_checkpoints(args.checkpoints)
    except ValueError as exc:
        raise _CommandError(str(exc)) from exc
    config = Config(
        rounds=args.rounds, questions_per_round=args.questions, checkpoints=tuple(checkpoints)
    )
    try:
        config.validate()
    except ConfigError as exc:
        raise _CommandError(f"invalid quiz config: {exc}") from exc

    cwd = os.getcwd()
    path = os.path.join(cwd, QUIZ_FILE)
    if os.path.exists(path):
        quiz = _load_quiz(path)
    else:
        quiz = new_quiz(config)
        store.save(path, quiz)

    if quiz.teams:
        history_path = history.resolve_path(args.quiz_root or cwd)
        seen = history.record_quiz(history.load(history_path), quiz, datetime.now())
        history.save(history_path, seen)

    print(path)
    _print_table(quiz)


def _run_export(args: argparse.Namespace) -> None:
    cwd = os.getcwd()
    quiz = _load_quiz(os.path.join(cwd, QUIZ_FILE))
    out_dir = args.out or cwd
    writers = {
        "csv": [("quiz.csv", write_csv_file, "csv")],
        "xlsx": [("quiz.xlsx", write_xlsx, "xlsx")],
    }
    writers["both"] = writers["csv"] + writers["xlsx"]
    if args.format not in writers:
        raise _CommandError(f"unknown format {args.format!r} (expected csv|xlsx|both)")
    for name, writer, label in writers[args.format]:
        target = os.path.join(out_dir, name)
        try:
            writer(target, quiz)
        except ExportError as exc:
            raise _CommandError(f"{label}: {exc}") from exc
        print("wrote", target)


def _run_history_rebuild(args: argparse.Namespace) -> None:
    scan_root = args.rebuild_root
    if not scan_root:
        cwd = os.getcwd()
        scan_root = history.find_quiz_root(cwd) or os.path.dirname(cwd)
    try:
        scanned = history.scan(scan_root)
    except history.HistoryError as exc:
        raise _CommandError(f"scan {scan_root}: {exc}") from exc
    path = history.resolve_path(scan_root)
    try:
        history.save(path, scanned)
    except history.HistoryError as exc:
        raise _CommandError(f"save history: {exc}") from exc
    print(f"wrote {path} ({len(scanned.teams)} teams)")


def _dispatch(args: argparse.Namespace) -> None:
    if args.command is None:
        _run_session(args)
    elif args.command == "version":
        print(_version())
    elif args.command == "export":
        _run_export(args)
    elif args.command == "history":
        if args.history_command != "rebuild":
            raise _CommandError("history requires a subcommand")
        _run_history_rebuild(args)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit status."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    try:
        _dispatch(args)
    except (
        _CommandError,
        store.StoreError,
        history.HistoryError,
        ExportError,
        OSError,
    ) as exc:
        print(f"qlimaster: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())