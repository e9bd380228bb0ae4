"""Board screen showing one column per status."""

import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import Footer

from kanban_md.board.ops import move_task
from kanban_md.dates import utcnow
from kanban_md.errors import KanbanError
from kanban_md.model.config import Config, load
from kanban_md.model.store import read_all_lenient
from kanban_md.model.task import Task
from kanban_md.ui.card import CardWidget, PlainStatic
from kanban_md.ui.column import ColumnWidget
from kanban_md.ui.detail import TaskDetailModal

logger = logging.getLogger(__name__)


class BoardScreen(Screen):
    """Main board screen showing all non-archived columns."""

    DEFAULT_CSS = """
    BoardScreen #board-header {
        height: 1;
        padding: 0 1;
        background: $primary-darken-2;
        text-style: bold;
    }
    BoardScreen #columns {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("left,h", "focus_column(-1)", "Prev column", show=False),
        Binding("right,l", "focus_column(1)", "Next column", show=False),
        Binding("up,k", "focus_card(-1)", "Up", show=False),
        Binding("down,j", "focus_card(1)", "Down", show=False),
        Binding("shift+right,L,greater_than_sign", "move_card(1)", "Move right"),
        Binding("shift+left,H,less_than_sign", "move_card(-1)", "Move left"),
        Binding("r", "refresh_board", "Refresh"),
        Binding("q", "app.quit", "Quit"),
    ]

    def __init__(self, cfg: Config):
        super().__init__()
        self.cfg = cfg
        self.board_tasks: list[Task] = []
        self.load_tasks()

    def load_tasks(self) -> None:
        tasks, warnings = read_all_lenient(self.cfg.tasks_path)
        for warning in warnings:
            logger.warning("%s", warning)
        self.board_tasks = tasks

    def tasks_in(self, status: str) -> list[Task]:
        tasks = [t for t in self.board_tasks if t.status == status]
        return sorted(tasks, key=lambda t: (-self.cfg.priority_index(t.priority), t.id))

    def compose(self) -> ComposeResult:
        active = sum(1 for t in self.board_tasks if not self.cfg.is_archived_status(t.status))
        yield PlainStatic(f"{self.cfg.board_name}  ({active} tasks)", id="board-header")
        now = utcnow()
        with Horizontal(id="columns"):
            for status in self.cfg.board_statuses():
                yield ColumnWidget(status, self.tasks_in(status), self.cfg, now)
        yield Footer()

    def on_mount(self) -> None:
        self.call_after_refresh(self._focus_first_card)

    def _focus_first_card(self) -> None:
        for column in self.query(ColumnWidget):
            cards = column.cards
            if cards:
                cards[0].focus()
                return

    def _focused_card(self) -> CardWidget | None:
        focused = self.focused
        return focused if isinstance(focused, CardWidget) else None

    def _focus_task(self, task_id: int) -> bool:
        for card in self.query(CardWidget):
            if card.card_task.id == task_id:
                card.focus()
                return True
        return False

    async def reload_board(self) -> None:
        """Re-read config and tasks from disk and rebuild the columns."""
        focused = self._focused_card()
        focused_id = focused.card_task.id if focused else None
        try:
            self.cfg = load(self.cfg.dir)
        except KanbanError as e:
            self.notify(e.message, severity="error")
            return
        self.load_tasks()
        await self.recompose()
        if focused_id is None or not self._focus_task(focused_id):
            self._focus_first_card()

    async def action_refresh_board(self) -> None:
        await self.reload_board()

    def action_focus_column(self, step: int) -> None:
        columns = list(self.query(ColumnWidget))
        if not columns:
            return
        card = self._focused_card()
        current = columns.index(card.parent) if card and card.parent in columns else 0
        row = card.parent.cards.index(card) if card else 0
        index = current + step
        while 0 <= index < len(columns):
            cards = columns[index].cards
            if cards:
                cards[min(row, len(cards) - 1)].focus()
                return
            index += step

    def action_focus_card(self, step: int) -> None:
        card = self._focused_card()
        if card is None:
            self._focus_first_card()
            return
        cards = card.parent.cards
        index = cards.index(card) + step
        if 0 <= index < len(cards):
            cards[index].focus()

    async def action_move_card(self, direction: int) -> None:
        card = self._focused_card()
        if card is None:
            return
        task_id = card.card_task.id
        try:
            result = move_task(self.cfg, task_id, direction=direction)
        except KanbanError as e:
            self.notify(e.message, severity="error")
            return
        for warning in result.warnings:
            self.notify(warning, severity="warning")
        await self.reload_board()
        self._focus_task(task_id)

    def on_card_widget_opened(self, event: CardWidget.Opened) -> None:
        event.stop()
        self.app.push_screen(TaskDetailModal(event.card.card_task))
