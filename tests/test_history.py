import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from qlimaster import history
from qlimaster.history import Entry, History, HistoryError
from qlimaster.model import Quiz, Team, default_config, new_quiz
from qlimaster.store import save as save_quiz

DATE = datetime(2026, 4, 14, 19, 0, 0, tzinfo=timezone.utc)


def _by_name(h):
    return {e.name: e for e in h.teams}


def _write_quiz(path: Path, names):
    quiz = new_quiz(default_config())
    for name in names:
        quiz.teams.append(Team(id=name, name=name, scores={}))
    save_quiz(path, quiz)


def test_load_save_round_trip(tmp_path):
    path = tmp_path / "history.hujson"
    h = History(
        version=1,
        teams=[
            Entry("Alpha", "2026-04-14", 3),
            Entry("Beta", "2025-11-01", 1),
        ],
    )
    history.save(path, h)
    loaded = history.load(path)
    assert len(loaded.teams) == 2
    assert loaded.teams[0].name == "Alpha"
    assert loaded == h


def test_load_missing_returns_empty(tmp_path):
    h = history.load(tmp_path / "nope.hujson")
    assert h.version == 1
    assert h.teams == []


def test_load_tolerates_comments_and_zero_version(tmp_path):
    path = tmp_path / "history.hujson"
    path.write_text(
        '// names\n{\n  "teams": [\n    {"name": "Alpha", "last_seen": "2026-01-01", '
        '"times_seen": 2,},\n  ],\n}\n',
        encoding="utf-8",
    )
    h = history.load(path)
    assert h.version == 1
    assert h.teams == [Entry("Alpha", "2026-01-01", 2)]


def test_load_invalid_raises(tmp_path):
    path = tmp_path / "history.hujson"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(HistoryError):
        history.load(path)


def test_save_creates_parents_and_leaves_no_temp(tmp_path):
    path = tmp_path / "a" / "b" / "history.hujson"
    history.save(path, History(teams=[Entry("Alpha", "2026-04-14", 1)]))
    assert path.exists()
    assert not [p for p in path.parent.iterdir() if p.name.endswith(".tmp")]
    assert '"last_seen": "2026-04-14"' in path.read_text(encoding="utf-8")


def test_merge_dedup():
    a = History(teams=[Entry("Alpha", "2026-04-14", 2), Entry("Beta", "2025-11-01", 1)])
    b = History(teams=[Entry("alpha", "2025-02-10", 1), Entry("Gamma", "2026-01-01", 2)])
    merged = history.merge(a, b)
    names = _by_name(merged)
    assert names["Alpha"].times_seen == 3
    assert names["Alpha"].last_seen == "2026-04-14"
    assert "alpha" not in names
    assert merged.teams[0].name == "Alpha"
    assert merged.names() == ["Alpha", "Gamma", "Beta"]


def test_record_names_dedupes_and_bumps_once():
    h = history.record_names(History(), ["Alpha", "alpha", "  Beta ", "", "Alpha"], DATE)
    assert len(h.teams) == 2
    names = _by_name(h)
    assert names["Alpha"].times_seen == 1
    assert names["Beta"].times_seen == 1
    assert names["Alpha"].last_seen == "2026-04-14"


def test_record_names_merges_with_existing():
    older = History(teams=[Entry("Alpha", "2025-11-01", 2)])
    h = history.record_names(older, ["alpha", "Beta"], DATE)
    by_key = {e.name.lower(): e for e in h.teams}
    assert by_key["alpha"].times_seen == 3
    assert by_key["alpha"].last_seen == "2026-04-14"
    assert by_key["alpha"].name == "alpha"
    assert by_key["beta"].times_seen == 1


def test_record_names_nothing_to_add_returns_input():
    original = History(teams=[Entry("Alpha", "2025-11-01", 2)])
    assert history.record_names(original, ["", "   "], DATE) is original


def test_record_quiz():
    quiz = Quiz(teams=[Team(name="Alpha"), Team(name="Beta"), Team(name="")])
    h = history.record_quiz(History(), quiz, DATE)
    assert len(h.teams) == 2
    h = history.record_quiz(h, quiz, DATE)
    assert [e.times_seen for e in h.teams] == [2, 2]


def test_sort_entries_order():
    entries = [
        Entry("beta", "2025-01-01", 1),
        Entry("Alpha", "2025-01-01", 1),
        Entry("Gamma", "2025-01-01", 5),
        Entry("Delta", "2026-01-01", 1),
    ]
    history.sort_entries(entries)
    assert [e.name for e in entries] == ["Delta", "Gamma", "Alpha", "beta"]


def test_looks_like_quiz_root(tmp_path):
    assert history.looks_like_quiz_root("") is False
    assert history.looks_like_quiz_root(tmp_path) is False
    (tmp_path / "2026-04-14-quiz").mkdir()
    assert history.looks_like_quiz_root(tmp_path) is True


def test_find_quiz_root_walks_upwards(tmp_path):
    start = tmp_path / "2026-04-14" / "subfolder"
    start.mkdir(parents=True)
    (tmp_path / "2025-11-01").mkdir()
    assert history.find_quiz_root(start) == os.path.abspath(tmp_path)


def test_find_quiz_root_prefers_existing_history_file(tmp_path):
    (tmp_path / "history.hujson").write_text('{"version":1,"teams":[]}', encoding="utf-8")
    assert history.find_quiz_root(tmp_path) == os.path.abspath(tmp_path)


def test_find_quiz_root_no_match_does_not_anchor_below(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    found = history.find_quiz_root(plain)
    assert found is None or not Path(found).is_relative_to(tmp_path)


def test_find_quiz_root_empty_start():
    assert history.find_quiz_root("") is None


def test_resolve_path_falls_back_to_config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    path = history.resolve_path("")
    assert os.path.isabs(path)
    assert Path(path) == tmp_path / "qlimaster" / "history.hujson"
    assert (tmp_path / "qlimaster").is_dir()


def test_resolve_path_inside_quiz_root(tmp_path):
    (tmp_path / "2026-04-14").mkdir()
    path = history.resolve_path(tmp_path / "2026-04-14")
    assert Path(path) == Path(os.path.abspath(tmp_path)) / "history.hujson"


def test_scan_sibling_folders(tmp_path):
    _write_quiz(tmp_path / "2026-04-14-quiz" / "quiz.hujson", ["Alpha", "Beta"])
    _write_quiz(tmp_path / "2025-11-01" / "quiz.hujson", ["Alpha", "Gamma"])
    misc = tmp_path / "misc-folder" / "quiz.hujson"
    _write_quiz(misc, ["Delta"])
    stamp = datetime(2024, 3, 5, 12, 0, 0).timestamp()
    os.utime(misc, (stamp, stamp))
    (tmp_path / "note.txt").write_text("hi", encoding="utf-8")
    broken = tmp_path / "2023-01-01" / "quiz.hujson"
    broken.parent.mkdir()
    broken.write_text("{ broken", encoding="utf-8")

    h = history.scan(tmp_path)
    names = _by_name(h)
    assert set(names) == {"Alpha", "Beta", "Gamma", "Delta"}
    assert names["Alpha"].times_seen == 2
    assert names["Alpha"].last_seen == "2026-04-14"
    assert names["Gamma"].last_seen == "2025-11-01"
    assert names["Delta"].last_seen == "2024-03-05"


def test_scan_missing_root_raises(tmp_path):
    with pytest.raises(HistoryError):
        history.scan(tmp_path / "missing")