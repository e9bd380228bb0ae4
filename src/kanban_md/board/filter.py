"""Listing: filter, sort, limit and group tasks."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from kanban_md.dates import utcnow
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import Config
from kanban_md.model.defaults import ARCHIVED_STATUS, DEFAULT_CLASS
from kanban_md.model.store import ReadWarning, read_all_lenient
from kanban_md.model.task import Task

SORT_FIELDS = ("id", "status", "priority", "created", "updated", "due")
GROUP_FIELDS = ("status", "priority", "class", "assignee", "tag")


@dataclass
class ListOptions:
    statuses: list[str] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    assignee: str = ""
    tag: str = ""
    blocked: bool | None = None
    parent: int | None = None
    class_: str = ""
    claimed_by: str = ""
    unclaimed: bool = False
    search: str = ""
    unblocked: bool = False
    include_archived: bool = False
    sort_by: str = "id"
    reverse: bool = False
    limit: int = 0


def is_unclaimed(task: Task, timeout: timedelta, now: datetime | None = None) -> bool:
    """True if nobody holds the task, or the holder's claim has expired."""
    if not task.claimed_by:
        return True
    if timeout > timedelta(0) and task.claimed_at is not None:
        now = now or utcnow()
        return now - task.claimed_at >= timeout
    return False


def deps_satisfied(task: Task, status_by_id: dict[int, str], cfg: Config) -> bool:
    """Every dependency exists and sits in a terminal status. Missing ones count as unmet."""
    for dep in task.depends_on:
        status = status_by_id.get(dep)
        if status is None or not cfg.is_terminal_status(status):
            return False
    return True


def filter_unblocked(tasks: list[Task], cfg: Config, all_tasks: list[Task] | None = None) -> list[Task]:
    status_by_id = {t.id: t.status for t in (all_tasks if all_tasks is not None else tasks)}
    return [t for t in tasks if deps_satisfied(t, status_by_id, cfg)]


def _matches_search(task: Task, query: str) -> bool:
    q = query.lower()
    if q in task.title.lower() or q in task.body.lower():
        return True
    return any(q in tag.lower() for tag in task.tags)


def matches(task: Task, opts: ListOptions, cfg: Config, now: datetime | None = None) -> bool:
    if opts.statuses and task.status not in opts.statuses:
        return False
    if opts.priorities and task.priority not in opts.priorities:
        return False
    if opts.assignee and task.assignee != opts.assignee:
        return False
    if opts.tag and opts.tag not in task.tags:
        return False
    if opts.blocked is not None and task.blocked != opts.blocked:
        return False
    if opts.parent is not None and task.parent != opts.parent:
        return False
    if opts.class_ and task.class_ != opts.class_:
        return False
    if opts.claimed_by and task.claimed_by != opts.claimed_by:
        return False
    if opts.unclaimed and not is_unclaimed(task, cfg.claim_timeout_duration(), now):
        return False
    if opts.search and not _matches_search(task, opts.search):
        return False
    return True


def _sort_key(cfg: Config, sort_by: str):
    # None for tasks without the field
    def instant(value: datetime | None) -> float | None:
        return value.timestamp() if value else None

    keys = {
        "id": lambda t: t.id,
        "status": lambda t: cfg.status_index(t.status),
        "priority": lambda t: cfg.priority_index(t.priority),
        "created": lambda t: instant(t.created),
        "updated": lambda t: instant(t.updated),
        "due": lambda t: instant(t.due),
    }
    return keys.get(sort_by, keys["id"])


def sort_tasks(tasks: list[Task], cfg: Config, sort_by: str = "id", reverse: bool = False) -> list[Task]:
    """Sort by one field; ``reverse`` flips that field only.

    Ties always break by id ascending and tasks without the field go last.
    Unknown fields sort by id.
    """
    key = _sort_key(cfg, sort_by)
    by_id = sorted(tasks, key=lambda t: t.id)
    present = [t for t in by_id if key(t) is not None]
    missing = [t for t in by_id if key(t) is None]
    present.sort(key=key, reverse=reverse)
    return present + missing


def apply_options(tasks: list[Task], cfg: Config, opts: ListOptions, now: datetime | None = None) -> list[Task]:
    """Filter, sort and limit an already-loaded task set."""
    result = [t for t in tasks if matches(t, opts, cfg, now)]
    if opts.unblocked:
        result = filter_unblocked(result, cfg, all_tasks=tasks)
    if not opts.include_archived and ARCHIVED_STATUS not in opts.statuses:
        result = [t for t in result if not cfg.is_archived_status(t.status)]
    result = sort_tasks(result, cfg, opts.sort_by, opts.reverse)
    if opts.limit > 0:
        result = result[: opts.limit]
    return result


def list_tasks(cfg: Config, opts: ListOptions, now: datetime | None = None) -> tuple[list[Task], list[ReadWarning]]:
    """Read the board leniently and return the matching tasks plus per-file warnings."""
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    return apply_options(tasks, cfg, opts, now), warnings


@dataclass
class Group:
    key: str
    total: int
    statuses: dict[str, int]

    def to_dict(self) -> dict:
        return {"key": self.key, "total": self.total, "statuses": dict(self.statuses)}


def group_by(tasks: list[Task], group_field: str, cfg: Config) -> list[Group]:
    """Bucket tasks by a field, counting per status inside each bucket.

    Status, priority and class buckets follow config order and include empty
    ones; assignee and tag buckets are alphabetical.
    """
    if group_field not in GROUP_FIELDS:
        raise KanbanError(
            ErrorCode.INVALID_INPUT,
            f"invalid group-by field {group_field!r} (allowed: {', '.join(GROUP_FIELDS)})",
            {"field": group_field, "allowed": list(GROUP_FIELDS)},
        )

    buckets: dict[str, list[Task]] = {}
    ordered_keys: list[str] = []
    if group_field == "status":
        ordered_keys = cfg.board_statuses()
    elif group_field == "priority":
        ordered_keys = list(cfg.priorities)
    elif group_field == "class":
        ordered_keys = cfg.class_names()
    for key in ordered_keys:
        buckets[key] = []

    for task in tasks:
        for key in _group_keys(task, group_field):
            buckets.setdefault(key, []).append(task)

    keys = ordered_keys + sorted(k for k in buckets if k not in ordered_keys)
    groups = []
    for key in keys:
        members = buckets[key]
        counts: dict[str, int] = {}
        for status in cfg.board_statuses():
            n = sum(1 for t in members if t.status == status)
            if n:
                counts[status] = n
        groups.append(Group(key=key, total=len(members), statuses=counts))
    return groups


def _group_keys(task: Task, group_field: str) -> list[str]:
    if group_field == "status":
        return [task.status]
    if group_field == "priority":
        return [task.priority]
    if group_field == "class":
        return [task.class_ or DEFAULT_CLASS]
    if group_field == "assignee":
        return [task.assignee or "(unassigned)"]
    return list(task.tags) or ["(untagged)"]


def find_dependents(tasks: list[Task], id_: int) -> list[str]:
    """Messages for tasks that point at id as parent or dependency."""
    messages = []
    for task in tasks:
        if task.parent == id_:
            messages.append(f"task #{task.id} ({task.title}) has this as parent")
        if id_ in task.depends_on:
            messages.append(f"task #{task.id} ({task.title}) depends on this task")
    return messages
