"""Handler for 'kanban-md init'."""

from pathlib import Path

from kanban_md.cli._common import handles_errors, output_result, split_list
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import init_board
from kanban_md.model.defaults import DEFAULT_DIR


def _wip_limits(values: list[str] | None) -> dict[str, int]:
    limits: dict[str, int] = {}
    for value in values or []:
        status, sep, number = value.rpartition(":")
        try:
            limit = int(number)
        except ValueError:
            limit = -1
        if not sep or not status or limit < 0:
            raise KanbanError(
                ErrorCode.INVALID_INPUT, f"invalid WIP limit {value!r} (use STATUS:N)", {"value": value}
            )
        limits[status] = limit
    return limits


@handles_errors
def init(args) -> int:
    """Create a board in --dir, or ./kanban by default."""
    board_dir = Path(args.dir) if getattr(args, "dir", None) else Path.cwd() / DEFAULT_DIR
    board_dir = board_dir.resolve()
    name = args.name or board_dir.parent.name or "kanban"

    cfg = init_board(board_dir, name, statuses=split_list(args.statuses), wip_limits=_wip_limits(args.wip_limit))

    columns = cfg.status_names()
    output_result(
        {"status": "initialized", "dir": str(cfg.dir), "name": cfg.board_name, "columns": columns},
        f"Initialized board {cfg.board_name!r} in {cfg.dir}\nColumns: {', '.join(columns)}",
        args,
    )
    return 0
