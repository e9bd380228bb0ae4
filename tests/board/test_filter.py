"""Tests for listing: filtering, sorting, limits and grouping."""

from datetime import datetime, timedelta, timezone

import pytest

from kanban_md.board.filter import (
    ListOptions,
    apply_options,
    deps_satisfied,
    find_dependents,
    group_by,
    is_unclaimed,
    list_tasks,
    sort_tasks,
)
from kanban_md.errors import KanbanError
from kanban_md.model.task import Task

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _t(id_, status="backlog", priority="medium", **fields):
    return Task(id=id_, title=fields.pop("title", f"Task {id_}"), status=status, priority=priority, **fields)


@pytest.fixture
def tasks():
    return [
        _t(1, "todo", "high", assignee="alice", tags=["bug"]),
        _t(2, "in-progress", "low", assignee="bob", tags=["ui", "bug"], blocked=True, block_reason="waiting"),
        _t(3, "done", "critical", title="Ship release", body="Remember the CHANGELOG"),
        _t(4, "archived", "medium"),
        _t(5, "todo", "medium", depends_on=[3], parent=1, class_="expedite"),
        _t(6, "todo", "medium", depends_on=[2], claimed_by="carol", claimed_at=NOW - timedelta(minutes=5)),
    ]


def _ids(tasks):
    return [t.id for t in tasks]


def test_archived_hidden_by_default(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(), NOW)) == [1, 2, 3, 5, 6]


def test_include_archived(cfg, tasks):
    assert 4 in _ids(apply_options(tasks, cfg, ListOptions(include_archived=True), NOW))


def test_archived_status_listed_explicitly(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(statuses=["archived"]), NOW)) == [4]


def test_status_and_priority_are_or_lists(cfg, tasks):
    opts = ListOptions(statuses=["todo", "done"], priorities=["high", "critical"])
    assert _ids(apply_options(tasks, cfg, opts, NOW)) == [1, 3]


def test_assignee_tag_and_blocked(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(assignee="alice"), NOW)) == [1]
    assert _ids(apply_options(tasks, cfg, ListOptions(tag="bug"), NOW)) == [1, 2]
    assert _ids(apply_options(tasks, cfg, ListOptions(blocked=True), NOW)) == [2]
    assert 2 not in _ids(apply_options(tasks, cfg, ListOptions(blocked=False), NOW))


def test_parent_and_class(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(parent=1), NOW)) == [5]
    assert _ids(apply_options(tasks, cfg, ListOptions(class_="expedite"), NOW)) == [5]


def test_claims(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(claimed_by="carol"), NOW)) == [6]
    assert 6 not in _ids(apply_options(tasks, cfg, ListOptions(unclaimed=True), NOW))


def test_search_is_case_insensitive(cfg, tasks):
    assert _ids(apply_options(tasks, cfg, ListOptions(search="changelog"), NOW)) == [3]
    assert _ids(apply_options(tasks, cfg, ListOptions(search="SHIP"), NOW)) == [3]
    assert _ids(apply_options(tasks, cfg, ListOptions(search="UI"), NOW)) == [2]


def test_unblocked_requires_terminal_dependencies(cfg, tasks):
    result = _ids(apply_options(tasks, cfg, ListOptions(unblocked=True), NOW))
    assert 5 in result
    assert 6 not in result


def test_missing_dependency_is_unmet(cfg):
    assert not deps_satisfied(_t(1, depends_on=[99]), {}, cfg)


def test_sort_and_limit(cfg, tasks):
    opts = ListOptions(sort_by="priority", reverse=True, limit=2)
    assert _ids(apply_options(tasks, cfg, opts, NOW)) == [3, 1]


def test_sort_by_status_ties_on_id(cfg, tasks):
    assert _ids(sort_tasks(tasks, cfg, "status")) == [1, 5, 6, 2, 3, 4]


def test_sort_missing_values_last(cfg):
    a = _t(1, due=NOW)
    b = _t(2)
    c = _t(3, due=NOW - timedelta(days=1))
    assert _ids(sort_tasks([a, b, c], cfg, "due")) == [3, 1, 2]


def test_reverse_keeps_id_tie_break(cfg, tasks):
    assert _ids(sort_tasks(tasks, cfg, "status", reverse=True)) == [4, 3, 2, 1, 5, 6]
    assert _ids(sort_tasks(tasks, cfg, "priority", reverse=True)) == [3, 1, 4, 5, 6, 2]


def test_reverse_keeps_missing_values_last(cfg):
    a = _t(1, due=NOW)
    b = _t(2)
    c = _t(3, due=NOW - timedelta(days=1))
    assert _ids(sort_tasks([a, b, c], cfg, "due", reverse=True)) == [1, 3, 2]


def test_unknown_sort_field_sorts_by_id(cfg, tasks):
    assert _ids(sort_tasks(list(reversed(tasks)), cfg, "nope")) == [1, 2, 3, 4, 5, 6]


def test_is_unclaimed_with_timeout():
    task = _t(1, claimed_by="a", claimed_at=NOW - timedelta(hours=2))
    assert is_unclaimed(task, timedelta(hours=1), NOW)
    assert not is_unclaimed(task, timedelta(hours=3), NOW)
    assert not is_unclaimed(task, timedelta(0), NOW)


def test_group_by_status_follows_config_order(cfg, tasks):
    groups = group_by([t for t in tasks if t.status != "archived"], "status", cfg)
    assert [g.key for g in groups] == ["backlog", "todo", "in-progress", "review", "done"]
    todo = groups[1]
    assert todo.total == 3
    assert todo.to_dict() == {"key": "todo", "total": 3, "statuses": {"todo": 3}}


def test_group_by_tag_alphabetical_with_untagged(cfg, tasks):
    groups = group_by(tasks[:3], "tag", cfg)
    assert [(g.key, g.total) for g in groups] == [("(untagged)", 1), ("bug", 2), ("ui", 1)]


def test_group_by_assignee(cfg, tasks):
    keys = [g.key for g in group_by(tasks, "assignee", cfg)]
    assert keys == ["(unassigned)", "alice", "bob"]


def test_group_by_class_defaults_to_standard(cfg, tasks):
    groups = {g.key: g.total for g in group_by(tasks, "class", cfg)}
    assert groups["expedite"] == 1
    assert groups["standard"] == 5


def test_group_by_invalid_field(cfg, tasks):
    with pytest.raises(KanbanError):
        group_by(tasks, "color", cfg)


def test_find_dependents(tasks):
    messages = find_dependents(tasks, 1)
    assert messages == ["task #5 (Task 5) has this as parent"]
    assert find_dependents(tasks, 3) == ["task #5 (Task 5) depends on this task"]


def test_list_tasks_reads_board(cfg, add_task):
    add_task("One", tags=["x"])
    add_task("Two")
    (cfg.tasks_path / "003-broken.md").write_text("---\nid: [\n---\n")

    tasks, warnings = list_tasks(cfg, ListOptions(tag="x"))
    assert _ids(tasks) == [1]
    assert len(warnings) == 1
