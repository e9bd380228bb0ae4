"""Board overview: per-column counts, priorities and classes."""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from kanban_md.model.config import Config
from kanban_md.model.defaults import DEFAULT_CLASS
from kanban_md.model.task import Task


@dataclass
class StatusSummary:
    status: str
    count: int = 0
    wip_limit: int = 0
    blocked: int = 0
    overdue: int = 0


@dataclass
class Overview:
    board_name: str
    total_tasks: int
    statuses: list[StatusSummary] = field(default_factory=list)
    priorities: list[dict] = field(default_factory=list)
    classes: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        for status in data["statuses"]:
            if not status["wip_limit"]:
                del status["wip_limit"]
        if not data["classes"]:
            del data["classes"]
        return data


def count_by_status(tasks: list[Task]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    return counts


def is_overdue(task: Task, cfg: Config, now: datetime) -> bool:
    return task.due is not None and task.due < now and not cfg.is_terminal_status(task.status)


def summary(cfg: Config, tasks: list[Task], now: datetime) -> Overview:
    """Summarize the board. Archived tasks and the archived column are left out."""
    visible = [t for t in tasks if not cfg.is_archived_status(t.status)]
    columns = {s: StatusSummary(status=s, wip_limit=cfg.wip_limit(s)) for s in cfg.board_statuses()}
    priorities = {p: 0 for p in cfg.priorities}
    classes = {c: 0 for c in cfg.class_names()}

    for task in visible:
        column = columns.get(task.status)
        if column is not None:
            column.count += 1
            if task.blocked:
                column.blocked += 1
            if is_overdue(task, cfg, now):
                column.overdue += 1
        if task.priority in priorities:
            priorities[task.priority] += 1
        class_ = task.class_ or DEFAULT_CLASS
        if class_ in classes:
            classes[class_] += 1

    return Overview(
        board_name=cfg.board_name,
        total_tasks=len(visible),
        statuses=list(columns.values()),
        priorities=[{"priority": p, "count": n} for p, n in priorities.items()],
        classes=[{"class": c, "count": n} for c, n in classes.items()],
    )
