"""Tests for the board overview."""

from datetime import timedelta

from kanban_md.board.ops import TaskChanges, edit_task
from kanban_md.board.summary import summary
from kanban_md.model.store import read_all_lenient


def test_summary_counts(cfg, add_task, now):
    cfg.wip_limits = {"in-progress": 2}
    cfg.save()
    add_task("A", priority="high")
    add_task("B", status="in-progress", due=now - timedelta(days=1))
    add_task("C", status="done", due=now - timedelta(days=1))
    add_task("D", status="archived")
    add_task("E", class_="expedite")

    edit_task(cfg, 2, TaskChanges(block="stuck"), now=now)

    tasks, _ = read_all_lenient(cfg.tasks_path)
    overview = summary(cfg, tasks, now)

    assert overview.board_name == "Test Board"
    assert overview.total_tasks == 4
    columns = {s.status: s for s in overview.statuses}
    assert "archived" not in columns
    assert columns["backlog"].count == 2
    assert columns["in-progress"].count == 1
    assert columns["in-progress"].blocked == 1
    assert columns["in-progress"].overdue == 1
    assert columns["in-progress"].wip_limit == 2
    assert columns["done"].overdue == 0
    assert {"priority": "high", "count": 1} in overview.priorities
    assert {"class": "expedite", "count": 1} in overview.classes


def test_summary_to_dict_drops_zero_limits(cfg, now):
    data = summary(cfg, [], now).to_dict()
    assert data["total_tasks"] == 0
    assert all("wip_limit" not in s for s in data["statuses"])
    assert data["statuses"][0] == {"status": "backlog", "count": 0, "blocked": 0, "overdue": 0}
