"""Handler for 'kanban-md tui'."""

from kanban_md.cli._common import handles_errors, load_config_or_die


@handles_errors
def tui(args) -> int:
    """Open the interactive board."""
    cfg = load_config_or_die(args)

    from kanban_md.ui import KanbanApp

    KanbanApp(cfg).run()
    return 0
