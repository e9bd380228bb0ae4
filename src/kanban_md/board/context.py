"""Context digest: a markdown snapshot of the board for embedding in other documents."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from kanban_md.board.filter import deps_satisfied
from kanban_md.board.summary import count_by_status, is_overdue
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import Config, atomic_write
from kanban_md.model.task import Task

BEGIN_MARKER = "<!-- BEGIN kanban-md context -->"
END_MARKER = "<!-- END kanban-md context -->"

SECTIONS = ("in-progress", "blocked", "ready", "overdue", "recently-completed")
SECTION_TITLES = {
    "in-progress": "In Progress",
    "blocked": "Blocked",
    "ready": "Ready to Start",
    "overdue": "Overdue",
    "recently-completed": "Recently Completed",
}
DEFAULT_DAYS = 7


@dataclass
class ContextOptions:
    sections: list[str] = field(default_factory=list)
    days: int = DEFAULT_DAYS


@dataclass
class ContextItem:
    id: int
    title: str
    status: str
    priority: str
    assignee: str = ""
    note: str = ""

    def to_dict(self) -> dict:
        data = {"id": self.id, "title": self.title, "status": self.status, "priority": self.priority}
        if self.assignee:
            data["assignee"] = self.assignee
        if self.note:
            data["note"] = self.note
        return data


@dataclass
class ContextSection:
    name: str
    items: list[ContextItem]


@dataclass
class ContextSummary:
    total_tasks: int = 0
    active: int = 0
    blocked: int = 0
    overdue: int = 0
    wip_warning: str = ""


@dataclass
class ContextData:
    board_name: str
    summary: ContextSummary
    sections: list[ContextSection] = field(default_factory=list)

    def to_dict(self) -> dict:
        summary = {
            "total_tasks": self.summary.total_tasks,
            "active": self.summary.active,
            "blocked": self.summary.blocked,
            "overdue": self.summary.overdue,
        }
        if self.summary.wip_warning:
            summary["wip_warning"] = self.summary.wip_warning
        return {
            "board_name": self.board_name,
            "summary": summary,
            "sections": [{"name": s.name, "items": [i.to_dict() for i in s.items]} for s in self.sections],
        }


def _item(task: Task, note: str = "") -> ContextItem:
    return ContextItem(task.id, task.title, task.status, task.priority, task.assignee, note)


def _is_active(cfg: Config, task: Task) -> bool:
    return task.status != cfg.first_status() and not cfg.is_terminal_status(task.status)


def _by_priority(cfg: Config, tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: (-cfg.priority_index(t.priority), t.id))


def _section(cfg: Config, tasks: list[Task], name: str, now: datetime, days: int) -> list[ContextItem]:
    if name == "in-progress":
        return [_item(t) for t in _by_priority(cfg, [t for t in tasks if _is_active(cfg, t) and not t.blocked])]
    if name == "blocked":
        return [_item(t, t.block_reason) for t in tasks if t.blocked]
    if name == "ready":
        board = cfg.board_statuses()
        if len(board) < 2:
            return []
        status_by_id = {t.id: t.status for t in tasks}
        ready = [t for t in tasks if t.status == board[1] and not t.blocked and deps_satisfied(t, status_by_id, cfg)]
        return [_item(t) for t in _by_priority(cfg, ready)]
    if name == "overdue":
        return [_item(t, f"due {t.due.strftime('%Y-%m-%d')}") for t in tasks if is_overdue(t, cfg, now)]
    if name == "recently-completed":
        cutoff = now - timedelta(days=days)
        done = [t for t in tasks if cfg.is_terminal_status(t.status) and t.completed and t.completed > cutoff]
        done.sort(key=lambda t: (t.completed, t.id), reverse=True)
        return [_item(t, f"completed {t.completed.strftime('%Y-%m-%d')}") for t in done]
    raise KanbanError(
        ErrorCode.INVALID_INPUT,
        f"unknown context section {name!r} (available: {', '.join(SECTIONS)})",
        {"section": name, "allowed": list(SECTIONS)},
    )


def generate_context(cfg: Config, tasks: list[Task], opts: ContextOptions, now: datetime) -> ContextData:
    """Build the digest. Depends only on its arguments; archived tasks are ignored."""
    days = opts.days if opts.days > 0 else DEFAULT_DAYS
    tasks = sorted((t for t in tasks if not cfg.is_archived_status(t.status)), key=lambda t: t.id)

    summary = ContextSummary(
        total_tasks=len(tasks),
        active=sum(1 for t in tasks if _is_active(cfg, t)),
        blocked=sum(1 for t in tasks if t.blocked),
        overdue=sum(1 for t in tasks if is_overdue(t, cfg, now)),
    )
    counts = count_by_status(tasks)
    full = [
        f"{s} ({counts.get(s, 0)}/{cfg.wip_limit(s)})"
        for s in cfg.board_statuses()
        if cfg.wip_limit(s) > 0 and counts.get(s, 0) >= cfg.wip_limit(s)
    ]
    if full:
        summary.wip_warning = "WIP limit reached: " + ", ".join(full)

    data = ContextData(board_name=cfg.board_name, summary=summary)
    for name in opts.sections or SECTIONS:
        items = _section(cfg, tasks, name, now, days)
        if items:
            data.sections.append(ContextSection(name, items))
    return data


def render_context_markdown(data: ContextData) -> str:
    """Stable markdown rendering wrapped in the BEGIN/END markers."""
    s = data.summary
    lines = [
        BEGIN_MARKER,
        f"## Board: {data.board_name}",
        "",
        f"**{s.total_tasks} tasks** | {s.active} active | {s.blocked} blocked | {s.overdue} overdue",
    ]
    if s.wip_warning:
        lines += ["", f"> {s.wip_warning}"]
    for section in data.sections:
        lines += ["", f"### {SECTION_TITLES.get(section.name, section.name)}", ""]
        for item in section.items:
            meta = [item.priority] + ([f"@{item.assignee}"] if item.assignee else [])
            line = f"- **#{item.id}** {item.title} ({', '.join(meta)})"
            if item.note:
                line += f": {item.note}"
            lines.append(line)
    lines.append(END_MARKER)
    return "\n".join(lines) + "\n"


def _inner(md: str) -> str:
    """The content without surrounding markers or blank edges."""
    text = md.strip("\n")
    if text.startswith(BEGIN_MARKER):
        text = text[len(BEGIN_MARKER) :]
    if text.endswith(END_MARKER):
        text = text[: -len(END_MARKER)]
    return text.strip("\n")


def write_context_to_file(path: str | Path, md: str) -> None:
    """Embed md in a file between the markers.

    An existing marker pair has only its contents replaced; every byte
    outside it is kept. A file without markers gets a new block appended.
    A missing file is created holding just the block.
    """
    path = Path(path)
    inner = _inner(md)
    block = f"{BEGIN_MARKER}\n{inner}\n{END_MARKER}\n"

    if not path.exists():
        atomic_write(path, block)
        return

    text = path.read_text(encoding="utf-8")
    begin = text.find(BEGIN_MARKER)
    end = text.find(END_MARKER, begin + len(BEGIN_MARKER)) if begin >= 0 else -1
    if begin >= 0 and end >= 0:
        updated = text[: begin + len(BEGIN_MARKER)] + "\n" + inner + "\n" + text[end:]
    elif not text:
        updated = block
    else:
        separator = "\n" if text.endswith("\n") else "\n\n"
        updated = text + separator + block
    atomic_write(path, updated)
