"""Human-readable tables rendered with rich."""

import os
import sys
from datetime import datetime, timedelta

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from kanban_md.board.activity import LogEntry
from kanban_md.board.filter import Group
from kanban_md.board.metrics import Metrics
from kanban_md.board.summary import Overview
from kanban_md.dates import format_duration
from kanban_md.model.task import Task

HEADER_STYLE = "bold grey50"
DIM = "grey39"
MAX_TITLE = 48


def make_console(no_color: bool = False) -> Console:
    """Console on the current stdout. Colour is off with ``no_color`` or ``NO_COLOR`` set."""
    disabled = no_color or bool(os.environ.get("NO_COLOR"))
    return Console(file=sys.stdout, no_color=disabled, highlight=False, soft_wrap=False)


def _table(*headers: str) -> Table:
    table = Table(box=None, header_style=HEADER_STYLE, pad_edge=False, show_edge=False)
    for header in headers:
        table.add_column(header, no_wrap=True)
    return table


def _dash(value: str) -> Text:
    return Text(value) if value else Text("--", style=DIM)


def _day(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _stamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def truncate(title: str, width: int = MAX_TITLE) -> str:
    return title if len(title) <= width else title[: width - 3] + "..."


def task_table(console: Console, tasks: list[Task]) -> None:
    if not tasks:
        print("No tasks found.", file=sys.stderr)
        return
    table = _table("ID", "STATUS", "PRIORITY", "TITLE", "ASSIGNEE", "DUE")
    for task in tasks:
        title = Text(truncate(task.title))
        if task.blocked:
            title.append(" [blocked]", style="red")
        table.add_row(
            str(task.id), task.status, task.priority, title, _dash(task.assignee), _dash(_day(task.due))
        )
    console.print(table)


def task_detail(console: Console, task: Task) -> None:
    heading = f"Task #{task.id}: {task.title}"
    console.print(Text(heading, style="bold"))
    console.print("─" * len(heading))

    fields: list[tuple[str, Text | str]] = [
        ("Status", task.status),
        ("Priority", task.priority),
        ("Class", _dash(task.class_)),
        ("Assignee", _dash(task.assignee)),
        ("Tags", _dash(", ".join(task.tags))),
        ("Due", _dash(_day(task.due))),
        ("Estimate", _dash(task.estimate)),
    ]
    if task.parent is not None:
        fields.append(("Parent", f"#{task.parent}"))
    if task.depends_on:
        fields.append(("Depends on", ", ".join(f"#{d}" for d in task.depends_on)))
    if task.blocked:
        fields.append(("Blocked", Text(task.block_reason, style="red")))
    if task.claimed_by:
        fields.append(("Claimed by", f"{task.claimed_by} (since {_stamp(task.claimed_at)})"))
    if task.created:
        fields.append(("Created", _stamp(task.created)))
    if task.updated:
        fields.append(("Updated", _stamp(task.updated)))
    if task.started:
        fields.append(("Started", _stamp(task.started)))
    if task.completed:
        fields.append(("Completed", _stamp(task.completed)))
        if task.created:
            fields.append(("Lead time", format_duration(task.completed - task.created)))
        if task.started:
            fields.append(("Cycle time", format_duration(task.completed - task.started)))

    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="bold", no_wrap=True)
    grid.add_column()
    for label, value in fields:
        grid.add_row(f"  {label}:", value if isinstance(value, Text) else Text(value))
    console.print(grid)

    if task.body:
        console.print()
        console.print(Text(task.body.rstrip("\n")))


def overview_table(console: Console, overview: Overview) -> None:
    console.print(Text(overview.board_name, style="bold"))
    console.print(f"Total: {overview.total_tasks} tasks")
    console.print()

    table = _table("STATUS", "COUNT", "WIP", "BLOCKED", "OVERDUE")
    for s in overview.statuses:
        wip = Text(f"{s.count}/{s.wip_limit}") if s.wip_limit else Text("--", style=DIM)
        if s.wip_limit and s.count >= s.wip_limit:
            wip.stylize("yellow")
        table.add_row(s.status, str(s.count), wip, str(s.blocked), str(s.overdue))
    console.print(table)
    console.print()

    prio = _table("PRIORITY", "COUNT")
    for p in overview.priorities:
        prio.add_row(p["priority"], str(p["count"]))
    console.print(prio)

    if overview.classes:
        console.print()
        classes = _table("CLASS", "COUNT")
        for c in overview.classes:
            classes.add_row(c["class"], str(c["count"]))
        console.print(classes)


def groups_table(console: Console, groups: list[Group], group_field: str) -> None:
    if not groups:
        print("No tasks found.", file=sys.stderr)
        return
    for group in groups:
        console.print(f"[bold]{escape(group.key)}[/bold] ({group.total})")
        for status, count in group.statuses.items():
            console.print(f"  {escape(status)}: {count}")
    console.print(Text(f"grouped by {group_field}", style=DIM))


def _hours(value: float | None) -> Text:
    if value is None:
        return Text("--", style=DIM)
    return Text(format_duration(timedelta(hours=value)))


def metrics_table(console: Console, metrics: Metrics) -> None:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Throughput (7d)", str(metrics.throughput_7d))
    grid.add_row("Throughput (30d)", str(metrics.throughput_30d))
    grid.add_row("Avg lead time", _hours(metrics.avg_lead_time_hours))
    grid.add_row("Avg cycle time", _hours(metrics.avg_cycle_time_hours))
    grid.add_row("Median lead time", _hours(metrics.median_lead_time_hours))
    grid.add_row("Median cycle time", _hours(metrics.median_cycle_time_hours))
    efficiency = (
        Text(f"{metrics.flow_efficiency:.0%}") if metrics.flow_efficiency is not None else Text("--", style=DIM)
    )
    grid.add_row("Flow efficiency", efficiency)
    console.print(grid)

    if metrics.aging_items:
        console.print()
        table = _table("ID", "STATUS", "AGE", "TITLE")
        for item in metrics.aging_items:
            table.add_row(str(item.id), item.status, _hours(item.age_hours), Text(truncate(item.title)))
        console.print(table)


def log_table(console: Console, entries: list[LogEntry]) -> None:
    if not entries:
        print("No activity log entries found.", file=sys.stderr)
        return
    table = _table("TIME", "ACTION", "TASK", "DETAIL")
    for entry in entries:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"), entry.action, f"#{entry.task_id}", Text(entry.detail)
        )
    console.print(table)


def config_table(console: Console, values: dict) -> None:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    for key, value in values.items():
        grid.add_row(key, Text(str(value)))
    console.print(grid)
