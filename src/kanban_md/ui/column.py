"""Column widget for one status."""

from datetime import datetime

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Rule

from kanban_md.model.config import Config
from kanban_md.model.task import Task
from kanban_md.ui.card import CardWidget, PlainStatic


def column_header(cfg: Config, status: str, count: int) -> str:
    limit = cfg.wip_limit(status)
    if limit:
        return f"{status} ({count}/{limit})"
    return f"{status} ({count})"


class ColumnWidget(VerticalScroll):
    """A single status column on the board."""

    DEFAULT_CSS = """
    ColumnWidget {
        width: 1fr;
        height: 100%;
        min-width: 25;
        max-width: 30;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    ColumnWidget #column-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    ColumnWidget.over-limit #column-title {
        color: $warning;
    }
    ColumnWidget > Rule.-horizontal {
        margin: 0;
    }
    """

    def __init__(self, status: str, tasks: list[Task], cfg: Config, now: datetime):
        super().__init__()
        self.status_name = status
        self.column_tasks = tasks
        self.cfg = cfg
        self.now = now

    def compose(self) -> ComposeResult:
        yield PlainStatic(column_header(self.cfg, self.status_name, len(self.column_tasks)), id="column-title")
        yield Rule()
        for task in self.column_tasks:
            yield CardWidget(task, self.cfg, self.now)

    def on_mount(self) -> None:
        limit = self.cfg.wip_limit(self.status_name)
        self.set_class(bool(limit) and len(self.column_tasks) > limit, "over-limit")

    @property
    def cards(self) -> list[CardWidget]:
        return list(self.query(CardWidget))
