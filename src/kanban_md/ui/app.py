"""Main Textual application for kanban-md."""

import logging

from textual.app import App

from kanban_md.errors import KanbanError
from kanban_md.model.config import Config
from kanban_md.ui.board import BoardScreen
from kanban_md.watcher import BoardWatcher, board_watch_paths

logger = logging.getLogger(__name__)


class KanbanApp(App):
    """Terminal board that refreshes when the board directory changes."""

    CSS = """
    Tooltip {
        padding: 0 1;
        margin: 0;
    }
    """

    TITLE = "kanban-md"
    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, cfg: Config, watch: bool = True):
        super().__init__()
        self.cfg = cfg
        self.watch_files = watch
        self.board_screen: BoardScreen | None = None
        self.watcher: BoardWatcher | None = None

    def on_mount(self) -> None:
        self.board_screen = BoardScreen(self.cfg)
        self.push_screen(self.board_screen)
        if self.watch_files:
            self.watcher = BoardWatcher(board_watch_paths(self.cfg), self._on_files_changed)
            try:
                self.watcher.start()
            except KanbanError as e:
                self.watcher = None
                self.notify(f"live refresh disabled: {e.message}", severity="warning")

    def _on_files_changed(self) -> None:
        """Runs on the watcher thread; hands the reload to the UI thread."""
        if self.board_screen is not None:
            self.call_from_thread(self.board_screen.reload_board)

    def on_unmount(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None
