"""Textual UI for kanban-md."""

from kanban_md.ui.app import KanbanApp
from kanban_md.ui.board import BoardScreen
from kanban_md.ui.card import CardWidget
from kanban_md.ui.column import ColumnWidget

__all__ = ["BoardScreen", "CardWidget", "ColumnWidget", "KanbanApp"]
