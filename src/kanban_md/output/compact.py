"""One-line-per-record rendering, for narrow terminals and agent transcripts."""

from datetime import timedelta

from kanban_md.board.activity import LogEntry
from kanban_md.board.filter import Group
from kanban_md.board.metrics import Metrics
from kanban_md.board.summary import Overview
from kanban_md.dates import format_duration
from kanban_md.model.task import Task

MAX_TITLE = 60


def task_line(task: Task) -> str:
    line = f"#{task.id} [{task.status}/{task.priority}] {task.title}"
    if task.assignee:
        line += f" @{task.assignee}"
    if task.tags:
        line += f" ({', '.join(task.tags)})"
    if task.due:
        line += f" due:{task.due.strftime('%Y-%m-%d')}"
    if task.blocked:
        line += " [blocked]"
    if task.claimed_by:
        line += f" claimed:{task.claimed_by}"
    return line


def task_lines(tasks: list[Task]) -> list[str]:
    return [task_line(t) for t in tasks]


def task_detail(task: Task) -> list[str]:
    line = task_line(task)
    if task.estimate:
        line += f" est:{task.estimate}"
    lines = [line]

    stamps = []
    for label, value in (
        ("created", task.created),
        ("updated", task.updated),
        ("started", task.started),
        ("completed", task.completed),
    ):
        if value:
            stamps.append(f"{label}:{value.strftime('%Y-%m-%d')}")
    if stamps:
        lines.append("  " + " ".join(stamps))
    if task.block_reason:
        lines.append(f"  blocked: {task.block_reason}")
    if task.body:
        lines.extend("  " + body_line for body_line in task.body.rstrip("\n").split("\n"))
    return lines


def overview(data: Overview) -> list[str]:
    lines = [f"{data.board_name} ({data.total_tasks} tasks)"]
    for s in data.statuses:
        line = f"  {s.status}: {s.count}"
        if s.wip_limit:
            line += f"/{s.wip_limit}"
        notes = []
        if s.blocked:
            notes.append(f"{s.blocked} blocked")
        if s.overdue:
            notes.append(f"{s.overdue} overdue")
        if notes:
            line += f" ({', '.join(notes)})"
        lines.append(line)
    if data.priorities:
        lines.append("Priority: " + " ".join(f"{p['priority']}={p['count']}" for p in data.priorities))
    return lines


def groups(data: list[Group]) -> list[str]:
    lines = []
    for group in data:
        parts = " ".join(f"{status}={count}" for status, count in group.statuses.items())
        lines.append(f"{group.key} ({group.total}): {parts}".rstrip(": "))
    return lines


def _hours(value: float | None) -> str:
    return "--" if value is None else format_duration(timedelta(hours=value))


def metrics(data: Metrics) -> list[str]:
    efficiency = "--" if data.flow_efficiency is None else f"{data.flow_efficiency:.0%}"
    lines = [
        " | ".join(
            [
                f"Throughput: {data.throughput_7d}/7d {data.throughput_30d}/30d",
                f"Lead: {_hours(data.avg_lead_time_hours)}",
                f"Cycle: {_hours(data.avg_cycle_time_hours)}",
                f"Efficiency: {efficiency}",
            ]
        )
    ]
    for item in data.aging_items:
        title = item.title if len(item.title) <= MAX_TITLE else item.title[: MAX_TITLE - 3] + "..."
        lines.append(f"Aging: #{item.id} [{item.status}] {title} ({_hours(item.age_hours)})")
    return lines


def log_lines(entries: list[LogEntry]) -> list[str]:
    return [
        f"{e.timestamp.strftime('%Y-%m-%d %H:%M:%S')} {e.action} #{e.task_id} {e.detail}".rstrip() for e in entries
    ]
