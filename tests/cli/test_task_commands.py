"""Tests for task commands: create, show, list, edit, move, pick, handoff, archive, delete."""

import io
import json
from argparse import Namespace

import pytest

from kanban_md.cli.task import task_show
from kanban_md.model.config import load
from kanban_md.model.store import find_by_id, read


def _json(capsys):
    return json.loads(capsys.readouterr().out)


def test_create_then_show(run, board_dir, capsys):
    assert run("create", "Fix login", "--priority", "high", "--tags", "bug", "--json") == 0
    capsys.readouterr()

    assert run("show", "1", "--json") == 0
    data = _json(capsys)
    assert data["id"] == 1
    assert data["title"] == "Fix login"
    assert data["status"] == "backlog"
    assert data["priority"] == "high"
    assert data["tags"] == ["bug"]
    assert load(board_dir).next_id == 2


def test_create_text_output(run, capsys):
    assert run("add", "Write docs", "--table") == 0
    assert capsys.readouterr().out == "Created task #1: Write docs\n"


def test_create_with_all_fields(run, capsys):
    run("create", "Base", "--json")
    capsys.readouterr()
    assert (
        run(
            "create", "Child", "--status", "todo", "--class", "expedite", "--assignee", "alice",
            "--due", "2025-03-01", "--estimate", "4h", "--parent", "1", "--depends-on", "1",
            "--body", "Details", "--claim", "agent", "--json",
        )
        == 0
    )
    data = _json(capsys)
    assert data["class"] == "expedite"
    assert data["due"] == "2025-03-01T00:00:00Z"
    assert data["parent"] == 1
    assert data["depends_on"] == [1]
    assert data["claimed_by"] == "agent"
    assert data["body"] == "Details"


def test_create_invalid_priority(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("create", "Task", "--priority", "urgent", "--json")
    assert exc.value.code == 1
    assert _json(capsys)["error_code"] == "INVALID_PRIORITY"


def test_show_not_found_text(board_dir, capsys):
    args = Namespace(dir=str(board_dir), table=True, id="99")
    with pytest.raises(SystemExit, match="1"):
        task_show(args)
    assert capsys.readouterr().err == "error: task not found: #99\n"


def test_show_table(run, capsys):
    run("create", "Fix login", "--body", "Repro steps", "--json")
    capsys.readouterr()
    assert run("show", "#001", "--table") == 0
    out = capsys.readouterr().out
    assert "Task #1: Fix login" in out
    assert "Repro steps" in out


def test_list_filters_and_sorts(run, capsys):
    run("create", "Low one", "--priority", "low", "--json")
    run("create", "High one", "--priority", "high", "--tags", "api", "--json")
    run("create", "Done one", "--status", "done", "--json")
    capsys.readouterr()

    run("list", "--sort", "priority", "-r", "--json")
    assert [t["id"] for t in _json(capsys)] == [2, 3, 1]

    run("ls", "--tag", "api", "--json")
    assert [t["title"] for t in _json(capsys)] == ["High one"]

    run("list", "--status", "backlog", "--limit", "1", "--json")
    assert [t["id"] for t in _json(capsys)] == [1]


def test_list_invalid_status(run, capsys):
    with pytest.raises(SystemExit):
        run("list", "--status", "nowhere", "--json")
    assert _json(capsys)["error_code"] == "INVALID_STATUS"


def test_list_compact_and_group_by(run, capsys):
    run("create", "One", "--tags", "a", "--json")
    run("create", "Two", "--tags", "a,b", "--json")
    capsys.readouterr()

    run("list", "--compact")
    assert capsys.readouterr().out.splitlines() == [
        "#1 [backlog/medium] One (a)",
        "#2 [backlog/medium] Two (a, b)",
    ]

    run("list", "--group-by", "tag", "--json")
    assert _json(capsys) == [
        {"key": "a", "total": 2, "statuses": {"backlog": 2}},
        {"key": "b", "total": 1, "statuses": {"backlog": 1}},
    ]


def test_list_empty_table(run, capsys):
    assert run("list", "--table") == 0
    assert "No tasks found." in capsys.readouterr().err


def test_move_same_status_is_unchanged(run, board_dir, capsys):
    run("create", "Task", "--status", "todo", "--json")
    capsys.readouterr()
    path = find_by_id(board_dir / "tasks", 1)
    before = path.read_text()

    assert run("move", "1", "todo", "--json") == 0
    data = _json(capsys)
    assert data["changed"] is False
    assert path.read_text() == before

    run("move", "1", "todo", "--table")
    assert capsys.readouterr().out == "Task #1 is already in todo\n"


def test_move_wip_rejected_then_forced(run, cfg, capsys):
    cfg.wip_limits = {"in-progress": 1}
    cfg.save()
    run("create", "Busy", "--status", "in-progress", "--json")
    run("create", "Next", "--status", "todo", "--json")
    capsys.readouterr()

    with pytest.raises(SystemExit) as exc:
        run("move", "2", "in-progress", "--json")
    assert exc.value.code == 1
    assert _json(capsys)["error_code"] == "WIP_LIMIT_EXCEEDED"

    assert run("move", "2", "in-progress", "--force", "--json") == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out)["status"] == "in-progress"
    assert "warning: WIP limit reached" in captured.err


def test_move_next_prev(run, capsys):
    run("create", "Task", "--json")
    capsys.readouterr()
    run("move", "1", "--next", "--table")
    assert capsys.readouterr().out == "Moved task #1: backlog -> todo\n"
    run("move", "1", "--prev", "--json")
    assert _json(capsys)["status"] == "backlog"


def test_move_requires_one_target(run, capsys):
    run("create", "Task", "--json")
    capsys.readouterr()
    with pytest.raises(SystemExit):
        run("move", "1", "todo", "--next", "--json")
    assert _json(capsys)["error_code"] == "INVALID_INPUT"


def test_batch_move_reports_each_id(run, capsys):
    run("create", "One", "--json")
    run("create", "Two", "--json")
    capsys.readouterr()

    assert run("move", "1,2,9", "todo", "--json") == 1
    assert _json(capsys) == [
        {"id": 1, "ok": True},
        {"id": 2, "ok": True},
        {"id": 9, "ok": False, "error": "task not found: #9", "error_code": "TASK_NOT_FOUND"},
    ]


def test_batch_edit_text(run, capsys):
    run("create", "One", "--json")
    run("create", "Two", "--json")
    capsys.readouterr()

    assert run("edit", "1,2", "--priority", "high", "--table") == 0
    assert capsys.readouterr().out.splitlines() == ["Updated task #1: One", "Updated task #2: Two"]


def test_edit_without_changes(run, capsys):
    run("create", "Task", "--json")
    capsys.readouterr()
    with pytest.raises(SystemExit):
        run("edit", "1", "--json")
    assert _json(capsys)["error_code"] == "NO_CHANGES"


def test_edit_conflicting_flags(run, capsys):
    run("create", "Task", "--json")
    capsys.readouterr()
    with pytest.raises(SystemExit):
        run("edit", "1", "--block", "x", "--unblock", "--json")
    assert _json(capsys)["error_code"] == "INVALID_INPUT"


def test_edit_fields(run, board_dir, capsys):
    run("create", "Task", "--tags", "a", "--due", "2025-01-01", "--json")
    capsys.readouterr()
    run(
        "edit", "1", "--title", "Renamed", "--add-tag", "b", "--remove-tag", "a", "--clear-due",
        "--append-body", "note", "--block", "waiting", "--json",
    )
    data = _json(capsys)
    assert data["title"] == "Renamed"
    assert data["tags"] == ["b"]
    assert "due" not in data
    assert data["blocked"] is True
    assert data["body"] == "note\n"
    assert find_by_id(board_dir / "tasks", 1).name == "001-renamed.md"


def test_pick_claims_next(run, capsys):
    run("create", "Low", "--status", "todo", "--priority", "low", "--json")
    run("create", "High", "--status", "todo", "--priority", "high", "--json")
    capsys.readouterr()

    assert run("pick", "--claim", "agent", "--move", "in-progress", "--json") == 0
    data = _json(capsys)
    assert data["id"] == 2
    assert data["claimed_by"] == "agent"
    assert data["status"] == "in-progress"


def test_pick_nothing(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("pick", "--claim", "agent", "--json")
    assert exc.value.code == 1
    assert _json(capsys)["error_code"] == "NOTHING_TO_PICK"


def test_handoff(run, capsys):
    run("create", "Feature", "--status", "in-progress", "--claim", "alice", "--json")
    capsys.readouterr()
    assert run("handoff", "1", "--claim", "alice", "--note", "Please review", "--release", "--json") == 0
    data = _json(capsys)
    assert data["status"] == "review"
    assert "claimed_by" not in data
    assert "Please review" in data["body"]


def test_archive_twice(run, board_dir, capsys):
    for title in ("One", "Two", "Three", "Four"):
        run("create", title, "--json")
    capsys.readouterr()

    run("archive", "4", "--json")
    assert _json(capsys)["changed"] is True
    path = find_by_id(board_dir / "tasks", 4)
    assert read(path).status == "archived"

    run("archive", "4", "--table")
    assert capsys.readouterr().out == "Task #4 is already archived\n"


def test_delete_needs_confirmation_off_terminal(run, board_dir, capsys, no_tty):
    run("create", "Task", "--json")
    capsys.readouterr()
    with pytest.raises(SystemExit):
        run("delete", "1", "--json")
    assert _json(capsys)["error_code"] == "CONFIRMATION_REQUIRED"
    assert find_by_id(board_dir / "tasks", 1).exists()


def test_delete_force(run, board_dir, capsys):
    run("create", "Task", "--json")
    capsys.readouterr()
    assert run("rm", "1", "--force", "--json") == 0
    assert _json(capsys) == {"status": "deleted", "id": 1, "title": "Task"}
    assert list((board_dir / "tasks").iterdir()) == []


class _Terminal(io.StringIO):
    def isatty(self):
        return True


def test_delete_prompt(run, board_dir, capsys, monkeypatch):
    run("create", "Keep", "--json")
    run("create", "Drop", "--json")
    capsys.readouterr()

    monkeypatch.setattr("sys.stdin", _Terminal("n\n"))
    run("delete", "1", "--table")
    assert "Canceled" in capsys.readouterr().out

    monkeypatch.setattr("sys.stdin", _Terminal("y\n"))
    run("delete", "2", "--table")
    assert capsys.readouterr().out == "Deleted task #2: Drop\n"
    assert [p.name for p in (board_dir / "tasks").iterdir()] == ["001-keep.md"]
