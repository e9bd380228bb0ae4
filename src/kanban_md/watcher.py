"""Debounced filesystem watching for live board refresh."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import Config

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.1


class _DebounceHandler(FileSystemEventHandler):
    def __init__(self, watcher: "BoardWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        logger.debug("watch event %s %s", event.event_type, event.src_path)
        self.watcher.trigger()


class BoardWatcher:
    """Watch directories and call ``callback`` once per burst of changes.

    Every event restarts a single timer; the callback runs on the timer
    thread after ``debounce`` seconds without further events.
    """

    def __init__(self, paths: list[Path], callback: Callable[[], None], debounce: float = DEFAULT_DEBOUNCE):
        self.paths = [Path(p) for p in paths]
        self.callback = callback
        self.debounce = debounce
        self.observer = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._stopped = False

    def start(self) -> None:
        """Begin watching. A missing or unwatchable path raises INTERNAL_ERROR."""
        for path in self.paths:
            if not path.is_dir():
                raise KanbanError(ErrorCode.INTERNAL_ERROR, f"cannot watch {path}: not a directory", {"path": str(path)})

        handler = _DebounceHandler(self)
        self.observer = Observer()
        try:
            for path in self.paths:
                self.observer.schedule(handler, str(path), recursive=False)
            self.observer.start()
        except OSError as e:
            self.observer = None
            raise KanbanError(ErrorCode.INTERNAL_ERROR, f"cannot start file watcher: {e}") from e
        self._stopped = False
        logger.debug("watching %s", ", ".join(str(p) for p in self.paths))

    def trigger(self) -> None:
        with self._lock:
            if self._stopped:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            if self._stopped:
                return
        try:
            self.callback()
        except Exception:
            logger.exception("watcher callback failed")

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def __enter__(self) -> "BoardWatcher":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()


def board_watch_paths(cfg: Config) -> list[Path]:
    """The tasks directory and the board directory (for config.yml)."""
    paths = [cfg.tasks_path, cfg.dir]
    return list(dict.fromkeys(Path(p) for p in paths))
