"""Board data model: configuration, tasks and their on-disk store."""

from kanban_md.model.config import Config, find_dir, init_board, load
from kanban_md.model.task import Task

__all__ = ["Config", "Task", "find_dir", "init_board", "load"]
