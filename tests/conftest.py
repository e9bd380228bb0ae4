"""Shared fixtures: a fresh board on disk and a helper to add tasks to it."""

from datetime import datetime, timezone

import pytest

from kanban_md.board.ops import NewTask, create_task
from kanban_md.model.config import init_board, load

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def board_dir(tmp_path):
    """An initialized board with the default columns at tmp_path/kanban."""
    init_board(tmp_path / "kanban", "Test Board")
    return tmp_path / "kanban"


@pytest.fixture
def cfg(board_dir):
    return load(board_dir)


@pytest.fixture
def add_task(cfg, now):
    """Create a task through the normal create path and return it."""

    def _add(title: str, **fields):
        force = fields.pop("force", False)
        result = create_task(cfg, NewTask(title=title, **fields), force=force, now=now)
        return result.task

    return _add
