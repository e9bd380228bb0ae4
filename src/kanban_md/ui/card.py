"""Card widget for a single task."""

from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.widgets import Static

from kanban_md.dates import format_duration
from kanban_md.model.config import Config
from kanban_md.model.task import Task


class PlainStatic(Static):
    """Static that doesn't allow text selection."""

    ALLOW_SELECT = False


def age_color(cfg: Config, task: Task, now: datetime) -> str | None:
    """Colour of the highest age threshold the task has passed since its last update."""
    if task.updated is None:
        return None
    age = now - task.updated
    passed = [(after, color) for after, color in cfg.age_thresholds_durations() if age >= after]
    return max(passed, key=lambda p: p[0])[1] if passed else None


def _style(color: str) -> str:
    return f"color({color})" if color.isdigit() else color


def title_text(task: Task, lines: int, width: int = 22) -> str:
    """Title wrapped to at most ``lines`` lines, with an ellipsis when cut."""
    words = task.title.split()
    out: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}".strip()
        if len(candidate) <= width or not current:
            current = candidate
            continue
        out.append(current)
        current = word
    if current:
        out.append(current)
    if len(out) > lines:
        out = out[:lines]
        out[-1] = out[-1][: max(width - 1, 1)].rstrip() + "…"
    return "\n".join(out)


def build_footer_text(cfg: Config, task: Task, now: datetime) -> Text:
    footer = Text()
    footer.append(task.priority)
    if task.assignee:
        footer.append(f" @{task.assignee}")
    if task.claimed_by:
        footer.append(f" [{task.claimed_by}]", style="cyan")
    if task.due:
        overdue = task.due < now and not cfg.is_terminal_status(task.status)
        footer.append(f" due {task.due.strftime('%m-%d')}", style="red" if overdue else "")
    if cfg.status_show_duration(task.status) and task.updated is not None:
        color = age_color(cfg, task, now)
        footer.append(f" {format_duration(now - task.updated)}", style=_style(color) if color else "")
    return footer


class CardWidget(Static, can_focus=True):
    """A single task in a column."""

    BINDINGS = [
        ("enter", "open_card", "Details"),
        ("space", "open_card"),
    ]

    class Opened(Message):
        """Posted when the card's details should be shown."""

        def __init__(self, card: "CardWidget"):
            super().__init__()
            self.card = card

    DEFAULT_CSS = """
    CardWidget {
        width: 100%;
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
        background: $surface;
    }
    CardWidget:focus {
        background: $primary;
    }
    CardWidget.blocked {
        background: $error-darken-3;
    }
    CardWidget.blocked:focus {
        background: $error;
    }
    CardWidget #card-id {
        color: $text-muted;
    }
    CardWidget #card-footer {
        width: 100%;
        height: 1;
        color: $text-muted;
    }
    """

    def __init__(self, task: Task, cfg: Config, now: datetime):
        super().__init__()
        self.card_task = task
        self.cfg = cfg
        self.now = now

    def compose(self) -> ComposeResult:
        yield PlainStatic(f"#{self.card_task.id}", id="card-id")
        yield PlainStatic(title_text(self.card_task, self.cfg.tui.title_lines), id="card-title")
        yield PlainStatic(build_footer_text(self.cfg, self.card_task, self.now), id="card-footer")

    def on_mount(self) -> None:
        self.set_class(self.card_task.blocked, "blocked")

    def action_open_card(self) -> None:
        self.post_message(self.Opened(self))

    def on_click(self, event) -> None:
        if event.chain == 2:
            event.stop()
            self.post_message(self.Opened(self))
