"""Modal showing one task in full."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from kanban_md.model.task import Task


def detail_text(task: Task) -> Text:
    text = Text()
    text.append(f"#{task.id} {task.title}\n", style="bold")
    rows = [
        ("Status", task.status),
        ("Priority", task.priority),
        ("Class", task.class_),
        ("Assignee", task.assignee),
        ("Tags", ", ".join(task.tags)),
        ("Due", task.due.strftime("%Y-%m-%d") if task.due else ""),
        ("Estimate", task.estimate),
        ("Claimed by", task.claimed_by),
        ("Blocked", task.block_reason),
        ("Depends on", ", ".join(f"#{d}" for d in task.depends_on)),
    ]
    for label, value in rows:
        if value:
            text.append(f"{label + ':':<12}", style="bold")
            text.append(f"{value}\n")
    if task.body:
        text.append("\n")
        text.append(task.body.rstrip("\n"))
    return text


class TaskDetailModal(ModalScreen[None]):
    """Read-only view of a task's fields and body."""

    DEFAULT_CSS = """
    TaskDetailModal {
        align: center middle;
    }
    TaskDetailModal > VerticalScroll {
        width: 80%;
        max-width: 100;
        height: 80%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
    ]

    def __init__(self, task: Task):
        super().__init__()
        self.detail_task = task

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static(detail_text(self.detail_task), id="detail-body")

    def action_close(self) -> None:
        self.dismiss(None)
