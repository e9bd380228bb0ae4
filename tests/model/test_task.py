"""Tests for the Task record and its front-matter mapping."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from kanban_md.model.task import Task, TaskFileError, task_to_dict

CREATED = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_to_meta_key_order_and_omissions():
    task = Task(id=1, title="Fix login", status="todo", priority="high", tags=["bug"], created=CREATED)
    meta = task.to_meta()
    assert list(meta) == ["id", "title", "status", "priority", "tags", "created"]


def test_due_at_midnight_written_as_date():
    task = Task(id=1, title="t", due=datetime(2025, 2, 1, tzinfo=timezone.utc))
    assert task.to_meta()["due"] == date(2025, 2, 1)


def test_due_with_time_kept_as_instant():
    due = datetime(2025, 2, 1, 15, 0, tzinfo=timezone.utc)
    assert Task(id=1, title="t", due=due).to_meta()["due"] == due


def test_from_meta_full():
    meta = {
        "id": 4,
        "title": "Write docs",
        "status": "in-progress",
        "priority": "low",
        "class": "expedite",
        "tags": ["docs", "docs", "help"],
        "due": date(2025, 3, 1),
        "parent": 2,
        "depends_on": [1, 3],
        "blocked": True,
        "block_reason": "waiting",
        "created": CREATED,
    }
    task = Task.from_meta(meta, "Body\n")
    assert task.id == 4
    assert task.class_ == "expedite"
    assert task.tags == ["docs", "help"]
    assert task.due == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert task.parent == 2
    assert task.depends_on == [1, 3]
    assert task.blocked
    assert task.body == "Body\n"


def test_from_meta_falls_back_to_filename():
    task = Task.from_meta({}, "Just a body.\n", Path("012-some-thing.md"))
    assert task.id == 12
    assert task.title == "some thing"


def test_unknown_keys_kept_in_extra():
    task = Task.from_meta({"id": 1, "title": "t", "estimate_points": 5})
    assert task.extra == {"estimate_points": 5}
    assert task.to_meta()["estimate_points"] == 5


def test_single_tag_scalar_becomes_list():
    assert Task.from_meta({"id": 1, "title": "t", "tags": "solo"}).tags == ["solo"]


@pytest.mark.parametrize(
    "meta",
    [
        {"title": "no id"},
        {"id": 0, "title": "zero"},
        {"id": "abc", "title": "bad"},
        {"id": 1},
        {"id": 1, "title": "t", "depends_on": ["x"]},
    ],
)
def test_from_meta_rejects_malformed(meta):
    with pytest.raises(TaskFileError):
        Task.from_meta(meta)


def test_task_to_dict():
    task = Task(
        id=1,
        title="Fix login",
        status="backlog",
        priority="high",
        tags=["bug"],
        due=datetime(2025, 2, 1, tzinfo=timezone.utc),
        created=CREATED,
        updated=CREATED,
        body="Details\n",
    )
    assert task_to_dict(task) == {
        "id": 1,
        "title": "Fix login",
        "status": "backlog",
        "priority": "high",
        "tags": ["bug"],
        "due": "2025-02-01T00:00:00Z",
        "created": "2025-01-02T03:04:05Z",
        "updated": "2025-01-02T03:04:05Z",
        "body": "Details\n",
    }
