"""Board engine: derived views and the operations that mutate tasks."""

from kanban_md.board.filter import ListOptions, group_by, list_tasks
from kanban_md.board.ops import (
    NewTask,
    OpResult,
    TaskChanges,
    archive_task,
    create_task,
    delete_task,
    edit_task,
    handoff,
    move_task,
    pick_and_claim,
)
from kanban_md.board.summary import summary

__all__ = [
    "ListOptions",
    "NewTask",
    "OpResult",
    "TaskChanges",
    "archive_task",
    "create_task",
    "delete_task",
    "edit_task",
    "group_by",
    "handoff",
    "list_tasks",
    "move_task",
    "pick_and_claim",
    "summary",
]
