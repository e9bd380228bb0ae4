"""Task record and its front-matter mapping."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from kanban_md.dates import format_instant, parse_instant, to_utc

KNOWN_KEYS = (
    "id",
    "title",
    "status",
    "priority",
    "class",
    "assignee",
    "tags",
    "due",
    "estimate",
    "parent",
    "depends_on",
    "blocked",
    "block_reason",
    "claimed_by",
    "claimed_at",
    "started",
    "completed",
    "created",
    "updated",
)

_FILENAME = re.compile(r"^(\d+)-(.*)\.md$")


class TaskFileError(ValueError):
    """A task file exists but cannot be turned into a Task."""


@dataclass
class Task:
    id: int
    title: str
    status: str = ""
    priority: str = ""
    class_: str = ""
    assignee: str = ""
    tags: list[str] = field(default_factory=list)
    due: datetime | None = None
    estimate: str = ""
    parent: int | None = None
    depends_on: list[int] = field(default_factory=list)
    blocked: bool = False
    block_reason: str = ""
    claimed_by: str = ""
    claimed_at: datetime | None = None
    started: datetime | None = None
    completed: datetime | None = None
    created: datetime | None = None
    updated: datetime | None = None
    body: str = ""
    extra: dict = field(default_factory=dict, compare=False)
    # Blank line between front-matter and body, kept as found on read
    body_gap: bool = field(default=True, compare=False, repr=False)
    file: Path | None = field(default=None, compare=False, repr=False)

    def to_meta(self) -> dict:
        """Front-matter mapping in canonical key order, empty optional fields omitted."""
        meta: dict = {"id": self.id, "title": self.title, "status": self.status, "priority": self.priority}
        if self.class_:
            meta["class"] = self.class_
        if self.assignee:
            meta["assignee"] = self.assignee
        if self.tags:
            meta["tags"] = list(self.tags)
        if self.due is not None:
            meta["due"] = _due_value(self.due)
        if self.estimate:
            meta["estimate"] = self.estimate
        if self.parent is not None:
            meta["parent"] = self.parent
        if self.depends_on:
            meta["depends_on"] = list(self.depends_on)
        if self.blocked:
            meta["blocked"] = True
        if self.block_reason:
            meta["block_reason"] = self.block_reason
        if self.claimed_by:
            meta["claimed_by"] = self.claimed_by
        if self.claimed_at is not None:
            meta["claimed_at"] = self.claimed_at
        if self.started is not None:
            meta["started"] = self.started
        if self.completed is not None:
            meta["completed"] = self.completed
        if self.created is not None:
            meta["created"] = self.created
        if self.updated is not None:
            meta["updated"] = self.updated
        for key, value in self.extra.items():
            if key not in meta:
                meta[key] = value
        return meta

    @classmethod
    def from_meta(cls, meta: dict, body: str = "", path: Path | None = None) -> "Task":
        """Build a Task from parsed front-matter.

        Missing id and title fall back to what the filename says. Unknown keys
        land in ``extra``. Raises TaskFileError for fields of the wrong shape.
        """
        file_id, file_title = _from_filename(path)
        try:
            raw_id = meta.get("id", file_id)
            if raw_id is None or isinstance(raw_id, bool):
                raise TaskFileError("missing task id")
            task_id = int(raw_id)
            if task_id < 1:
                raise TaskFileError(f"invalid task id {raw_id!r}")
            title = str(meta.get("title") or file_title or "").strip()
            if not title:
                raise TaskFileError("missing title")

            parent = meta.get("parent")
            return cls(
                id=task_id,
                title=title,
                status=_text(meta.get("status")),
                priority=_text(meta.get("priority")),
                class_=_text(meta.get("class")),
                assignee=_text(meta.get("assignee")),
                tags=_str_list(meta.get("tags")),
                due=parse_instant(meta.get("due")),
                estimate=_text(meta.get("estimate")),
                parent=int(parent) if parent not in (None, "") else None,
                depends_on=[int(d) for d in _as_list(meta.get("depends_on"))],
                blocked=bool(meta.get("blocked", False)),
                block_reason=_text(meta.get("block_reason")),
                claimed_by=_text(meta.get("claimed_by")),
                claimed_at=parse_instant(meta.get("claimed_at")),
                started=parse_instant(meta.get("started")),
                completed=parse_instant(meta.get("completed")),
                created=parse_instant(meta.get("created")),
                updated=parse_instant(meta.get("updated")),
                body=body,
                extra={k: v for k, v in meta.items() if k not in KNOWN_KEYS},
                file=path,
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, TaskFileError):
                raise
            raise TaskFileError(str(e)) from e


def _due_value(due: datetime):
    """Due dates at UTC midnight are written as plain dates."""
    due = to_utc(due)
    if (due.hour, due.minute, due.second, due.microsecond) == (0, 0, 0, 0):
        return due.date()
    return due


def _text(value) -> str:
    return "" if value is None else str(value)


def _as_list(value) -> list:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _str_list(value) -> list[str]:
    result: list[str] = []
    for item in _as_list(value):
        text = str(item)
        if text not in result:
            result.append(text)
    return result


def _from_filename(path: Path | None) -> tuple[int | None, str]:
    if path is None:
        return None, ""
    match = _FILENAME.match(Path(path).name)
    if not match:
        return None, ""
    return int(match.group(1)), match.group(2).replace("-", " ")


def task_to_dict(task: Task) -> dict:
    """JSON-ready mapping: the task's keys with instants as RFC 3339 strings, plus the body."""
    data: dict = {}
    for key, value in task.to_meta().items():
        if key not in KNOWN_KEYS:
            continue
        if key == "due":
            value = format_instant(task.due)
        elif isinstance(value, datetime):
            value = format_instant(value)
        data[key] = value
    if task.body:
        data["body"] = task.body
    return data


def file_mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(Path(path).stat().st_mtime, tz=timezone.utc).replace(microsecond=0)
