"""CLI argument parser and dispatch for kanban-md."""

import argparse

from kanban_md.board.context import DEFAULT_DAYS
from kanban_md.board.filter import GROUP_FIELDS, SORT_FIELDS
from kanban_md.cli.board import board_context, board_log, board_metrics, board_summary
from kanban_md.cli.config import config_get, config_set, config_show
from kanban_md.cli.init import init
from kanban_md.cli.task import (
    task_archive,
    task_create,
    task_delete,
    task_edit,
    task_handoff,
    task_list,
    task_move,
    task_pick,
    task_show,
)
from kanban_md.cli.tui import tui

GLOBAL_DEFAULTS = {
    "json": False,
    "table": False,
    "compact": False,
    "dir": None,
    "no_color": False,
    "verbose": False,
}


def _common_parser() -> argparse.ArgumentParser:
    # SUPPRESS keeps a flag given before the command from being reset by the subparser
    common = argparse.ArgumentParser(add_help=False)
    fmt = common.add_mutually_exclusive_group()
    fmt.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")
    fmt.add_argument("--table", action="store_true", default=argparse.SUPPRESS, help="Output as a table")
    fmt.add_argument(
        "--compact", "--oneline", dest="compact", action="store_true", default=argparse.SUPPRESS,
        help="Compact one-line-per-record output",
    )
    common.add_argument("--dir", default=argparse.SUPPRESS, help="Path to the kanban directory")
    common.add_argument("--no-color", action="store_true", default=argparse.SUPPRESS, help="Disable colour output")
    common.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Debug logging")
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="kanban-md",
        description="File-based kanban board: one markdown file per task",
        parents=[_common_parser()],
    )
    # Parents share action objects, so the top level gets its own copy to hold real defaults
    parser.set_defaults(**GLOBAL_DEFAULTS)
    common = _common_parser()

    commands = parser.add_subparsers(dest="command")

    # --- init ---
    init_p = commands.add_parser("init", help="Create a new board", parents=[common])
    init_p.add_argument("--name", help="Board name (default: name of the parent directory)")
    init_p.add_argument("--statuses", help="Comma-separated statuses (default: backlog..done)")
    init_p.add_argument("--wip-limit", action="append", metavar="STATUS:N", help="WIP limit, repeatable")
    init_p.set_defaults(func=init)

    # --- create ---
    create_p = commands.add_parser("create", aliases=["add"], help="Create a task", parents=[common])
    create_p.add_argument("title", help="Task title")
    create_p.add_argument("--status", help="Status (default from config)")
    create_p.add_argument("--priority", help="Priority (default from config)")
    create_p.add_argument("--class", dest="class_", help="Class of service")
    create_p.add_argument("--assignee", help="Assignee")
    create_p.add_argument("--tags", help="Comma-separated tags")
    create_p.add_argument("--due", help="Due date (YYYY-MM-DD, today, +3d, ...)")
    create_p.add_argument("--estimate", help="Time estimate (e.g. 4h, 2d)")
    create_p.add_argument("--parent", help="Parent task ID")
    create_p.add_argument("--depends-on", help="Comma-separated dependency IDs")
    create_p.add_argument("--body", help="Task body (markdown)")
    create_p.add_argument("--claim", help="Claim the new task for this agent")
    create_p.add_argument("-f", "--force", action="store_true", help="Override WIP limits")
    create_p.set_defaults(func=task_create)

    # --- show ---
    show_p = commands.add_parser("show", help="Show a task", parents=[common])
    show_p.add_argument("id", help="Task ID")
    show_p.set_defaults(func=task_show)

    # --- list ---
    list_p = commands.add_parser("list", aliases=["ls"], help="List tasks", parents=[common])
    list_p.add_argument("--status", help="Filter by status (comma-separated)")
    list_p.add_argument("--priority", help="Filter by priority (comma-separated)")
    list_p.add_argument("--assignee", help="Filter by assignee")
    list_p.add_argument("--tag", help="Filter by tag")
    list_p.add_argument("--class", dest="class_", help="Filter by class of service")
    blocked = list_p.add_mutually_exclusive_group()
    blocked.add_argument("--blocked", action="store_true", help="Only blocked tasks")
    blocked.add_argument("--not-blocked", action="store_true", help="Only tasks that are not blocked")
    list_p.add_argument("--parent", help="Filter by parent task ID")
    list_p.add_argument("--claimed-by", help="Filter by claimant")
    list_p.add_argument("--unclaimed", action="store_true", help="Only unclaimed or expired claims")
    list_p.add_argument("--search", help="Case-insensitive search in title, body and tags")
    list_p.add_argument("--unblocked", action="store_true", help="Only tasks whose dependencies are all done")
    list_p.add_argument("--archived", action="store_true", help="Include archived tasks")
    list_p.add_argument("--sort", default="id", choices=SORT_FIELDS, help="Sort field (default: id)")
    list_p.add_argument("-r", "--reverse", action="store_true", help="Reverse sort order")
    list_p.add_argument("-n", "--limit", type=int, default=0, help="Maximum number of tasks")
    list_p.add_argument("--group-by", choices=GROUP_FIELDS, help="Count tasks grouped by a field")
    list_p.set_defaults(func=task_list)

    # --- edit ---
    edit_p = commands.add_parser("edit", help="Edit tasks", parents=[common])
    edit_p.add_argument("ids", help="Task ID, or comma-separated IDs")
    edit_p.add_argument("--title", help="New title")
    edit_p.add_argument("--status", help="New status")
    edit_p.add_argument("--priority", help="New priority")
    edit_p.add_argument("--class", dest="class_", help="New class of service")
    edit_p.add_argument("--assignee", help="New assignee")
    edit_p.add_argument("--add-tag", help="Tags to add (comma-separated)")
    edit_p.add_argument("--remove-tag", help="Tags to remove (comma-separated)")
    edit_p.add_argument("--due", help="New due date")
    edit_p.add_argument("--clear-due", action="store_true", help="Clear the due date")
    edit_p.add_argument("--estimate", help="New time estimate")
    edit_p.add_argument("--body", help="Replace the body")
    edit_p.add_argument("-a", "--append-body", help="Append a note to the body")
    edit_p.add_argument("-t", "--timestamp", action="store_true", help="Prefix the appended note with a timestamp")
    edit_p.add_argument("--parent", help="New parent task ID")
    edit_p.add_argument("--clear-parent", action="store_true", help="Remove the parent")
    edit_p.add_argument("--add-dep", help="Dependency IDs to add (comma-separated)")
    edit_p.add_argument("--remove-dep", help="Dependency IDs to remove (comma-separated)")
    edit_p.add_argument("--block", help="Mark blocked with a reason")
    edit_p.add_argument("--unblock", action="store_true", help="Clear the blocked state")
    edit_p.add_argument("--claim", help="Claim for this agent")
    edit_p.add_argument("--release", action="store_true", help="Release the claim")
    edit_p.add_argument("-f", "--force", action="store_true", help="Override claims and WIP limits")
    edit_p.set_defaults(func=task_edit)

    # --- move ---
    move_p = commands.add_parser("move", help="Move tasks to another status", parents=[common])
    move_p.add_argument("ids", help="Task ID, or comma-separated IDs")
    move_p.add_argument("status", nargs="?", help="Target status")
    move_p.add_argument("--next", action="store_true", help="Move to the next status")
    move_p.add_argument("--prev", action="store_true", help="Move to the previous status")
    move_p.add_argument("--claim", help="Claim while moving")
    move_p.add_argument("-f", "--force", action="store_true", help="Override claims and WIP limits")
    move_p.set_defaults(func=task_move)

    # --- pick ---
    pick_p = commands.add_parser("pick", help="Claim the next available task", parents=[common])
    pick_p.add_argument("--claim", required=True, help="Agent name to claim as")
    pick_p.add_argument("--status", help="Statuses to pick from (default: all active)")
    pick_p.add_argument("--move", help="Also move the picked task to this status")
    pick_p.add_argument("--tags", help="Only tasks with one of these tags (comma-separated)")
    pick_p.add_argument("-f", "--force", action="store_true", help="Override WIP limits on --move")
    pick_p.set_defaults(func=task_pick)

    # --- handoff ---
    handoff_p = commands.add_parser("handoff", help="Hand tasks over for review", parents=[common])
    handoff_p.add_argument("ids", help="Task ID, or comma-separated IDs")
    handoff_p.add_argument("--claim", required=True, help="Agent handing off")
    handoff_p.add_argument("--note", help="Note to append to the body")
    handoff_p.add_argument("-t", "--timestamp", action="store_true", help="Prefix the note with a timestamp")
    handoff_p.add_argument("--block", help="Mark blocked with a reason")
    handoff_p.add_argument("--release", action="store_true", help="Release the claim after handoff")
    handoff_p.add_argument("-f", "--force", action="store_true", help="Override claims and WIP limits")
    handoff_p.set_defaults(func=task_handoff)

    # --- archive ---
    archive_p = commands.add_parser("archive", help="Archive tasks", parents=[common])
    archive_p.add_argument("ids", help="Task ID, or comma-separated IDs")
    archive_p.add_argument("--claim", help="Agent holding the claim")
    archive_p.add_argument("-f", "--force", action="store_true", help="Override claims")
    archive_p.set_defaults(func=task_archive)

    # --- delete ---
    delete_p = commands.add_parser("delete", aliases=["rm"], help="Delete tasks", parents=[common])
    delete_p.add_argument("ids", help="Task ID, or comma-separated IDs")
    delete_p.add_argument("--claim", help="Agent holding the claim")
    delete_p.add_argument("-f", "--force", action="store_true", help="Skip confirmation and override claims")
    delete_p.set_defaults(func=task_delete)

    # --- board ---
    board_p = commands.add_parser("board", aliases=["summary"], help="Board overview", parents=[common])
    board_p.add_argument("--group-by", choices=GROUP_FIELDS, help="Count tasks grouped by a field")
    board_p.set_defaults(func=board_summary)

    # --- metrics ---
    metrics_p = commands.add_parser("metrics", help="Flow metrics", parents=[common])
    metrics_p.add_argument("--since", help="Only tasks completed after this date")
    metrics_p.set_defaults(func=board_metrics)

    # --- log ---
    log_p = commands.add_parser("log", help="Activity log", parents=[common])
    log_p.add_argument("--since", help="Entries after this date")
    log_p.add_argument("--limit", type=int, default=0, help="Most recent N entries")
    log_p.add_argument("--action", help="Filter by action (comma-separated)")
    log_p.add_argument("--task", help="Filter by task ID")
    log_p.set_defaults(func=board_log)

    # --- context ---
    context_p = commands.add_parser("context", help="Markdown digest of the board", parents=[common])
    context_p.add_argument("--write-to", help="Embed the digest in this file")
    context_p.add_argument("--sections", help="Comma-separated sections to include")
    context_p.add_argument("--days", type=int, default=DEFAULT_DAYS, help="Recently-completed lookback in days")
    context_p.set_defaults(func=board_context)

    # --- config ---
    config_p = commands.add_parser("config", help="Board configuration", parents=[common])
    config_verbs = config_p.add_subparsers(dest="verb")

    config_show_p = config_verbs.add_parser("show", help="Show all values", parents=[common])
    config_show_p.set_defaults(func=config_show)

    config_get_p = config_verbs.add_parser("get", help="Print one value", parents=[common])
    config_get_p.add_argument("key", help="Dotted key, e.g. board.name")
    config_get_p.set_defaults(func=config_get)

    config_set_p = config_verbs.add_parser("set", help="Set a writable value", parents=[common])
    config_set_p.add_argument("key", help="Dotted key, e.g. defaults.priority")
    config_set_p.add_argument("value", help="New value")
    config_set_p.set_defaults(func=config_set)

    # config with no verb = show
    config_p.set_defaults(func=config_show)

    # --- tui ---
    tui_p = commands.add_parser("tui", help="Interactive board", parents=[common])
    tui_p.set_defaults(func=tui)

    return parser
