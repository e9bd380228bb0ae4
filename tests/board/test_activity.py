"""Tests for the activity log."""

import json
from datetime import timedelta

from kanban_md.board.activity import LogFilter, append_log, read_log


def test_append_and_read(board_dir, now):
    append_log(board_dir, "create", 1, "First", now)
    append_log(board_dir, "move", 1, "backlog -> todo", now + timedelta(minutes=1))

    entries, warnings = read_log(board_dir)
    assert warnings == []
    assert [e.to_dict() for e in entries] == [
        {"timestamp": "2025-06-01T12:00:00Z", "action": "create", "task_id": 1, "detail": "First"},
        {"timestamp": "2025-06-01T12:01:00Z", "action": "move", "task_id": 1, "detail": "backlog -> todo"},
    ]


def test_log_lines_are_json(board_dir, now):
    append_log(board_dir, "claim", 2, "agent", now)
    line = (board_dir / "activity.jsonl").read_text().splitlines()[0]
    assert json.loads(line)["action"] == "claim"


def test_missing_log(tmp_path):
    assert read_log(tmp_path) == ([], [])


def test_malformed_lines_skipped(board_dir, now):
    append_log(board_dir, "create", 1, "", now)
    with open(board_dir / "activity.jsonl", "a") as f:
        f.write("not json\n\n")
    append_log(board_dir, "delete", 1, "", now)

    entries, warnings = read_log(board_dir)
    assert [e.action for e in entries] == ["create", "delete"]
    assert len(warnings) == 1
    assert "activity.jsonl:2" in warnings[0]


def test_undecodable_line_skipped(board_dir, now):
    append_log(board_dir, "create", 1, "", now)
    with open(board_dir / "activity.jsonl", "ab") as f:
        f.write(b'{"timestamp": "\xff\xfe", "action": "move", "task_id": 1}\n')
    append_log(board_dir, "delete", 1, "", now)

    entries, warnings = read_log(board_dir)
    assert [e.action for e in entries] == ["create", "delete"]
    assert len(warnings) == 1
    assert "activity.jsonl:2" in warnings[0]


def test_filters(board_dir, now):
    for i, action in enumerate(["create", "move", "create", "claim", "move"]):
        append_log(board_dir, action, i % 2 + 1, "", now + timedelta(hours=i))

    entries, _ = read_log(board_dir, LogFilter(actions=["move"]))
    assert [e.task_id for e in entries] == [2, 1]

    entries, _ = read_log(board_dir, LogFilter(task_id=1))
    assert [e.action for e in entries] == ["create", "create", "move"]

    entries, _ = read_log(board_dir, LogFilter(since=now + timedelta(hours=3)))
    assert [e.action for e in entries] == ["claim", "move"]

    entries, _ = read_log(board_dir, LogFilter(limit=2))
    assert [e.action for e in entries] == ["claim", "move"]


def test_write_failure_returns_warning(tmp_path, now):
    warning = append_log(tmp_path / "missing" / "dir", "create", 1, "", now)
    assert warning is not None
    assert "activity log not written" in warning
