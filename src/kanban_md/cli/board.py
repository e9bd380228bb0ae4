"""Handlers for board-wide views: board summary, metrics, log and context."""

from pathlib import Path

from kanban_md.board.activity import ACTIONS, LogFilter, read_log
from kanban_md.board.context import ContextOptions, generate_context, render_context_markdown, write_context_to_file
from kanban_md.board.filter import group_by
from kanban_md.board.metrics import compute_metrics
from kanban_md.board.summary import summary
from kanban_md.cli._common import (
    console,
    handles_errors,
    load_config_or_die,
    optional_date,
    optional_id,
    output_format,
    output_result,
    print_warnings,
    split_list,
)
from kanban_md.dates import utcnow
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.store import read_all_lenient
from kanban_md.output import Format, compact, table
from kanban_md.output.serialize import output_json


@handles_errors
def board_summary(args) -> int:
    """Show the board overview, or counts grouped by a field."""
    cfg = load_config_or_die(args)
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    print_warnings(warnings)
    fmt = output_format(args)

    if getattr(args, "group_by", None):
        visible = [t for t in tasks if not cfg.is_archived_status(t.status)]
        groups = group_by(visible, args.group_by, cfg)
        if fmt == Format.JSON:
            output_json([g.to_dict() for g in groups])
        elif fmt == Format.COMPACT:
            print("\n".join(compact.groups(groups)))
        else:
            table.groups_table(console(args), groups, args.group_by)
        return 0

    overview = summary(cfg, tasks, utcnow())
    if fmt == Format.JSON:
        output_json(overview.to_dict())
    elif fmt == Format.COMPACT:
        print("\n".join(compact.overview(overview)))
    else:
        table.overview_table(console(args), overview)
    return 0


@handles_errors
def board_metrics(args) -> int:
    """Show flow metrics."""
    cfg = load_config_or_die(args)
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    print_warnings(warnings)

    since = optional_date(args.since, "since")
    if since is not None:
        tasks = [t for t in tasks if t.completed is None or t.completed > since]

    metrics = compute_metrics(cfg, tasks, utcnow())
    fmt = output_format(args)
    if fmt == Format.JSON:
        output_json(metrics.to_dict())
    elif fmt == Format.COMPACT:
        print("\n".join(compact.metrics(metrics)))
    else:
        table.metrics_table(console(args), metrics)
    return 0


@handles_errors
def board_log(args) -> int:
    """Show the activity log."""
    cfg = load_config_or_die(args)
    actions = split_list(args.action)
    for action in actions:
        if action not in ACTIONS:
            raise KanbanError(
                ErrorCode.INVALID_INPUT,
                f"unknown action {action!r} (allowed: {', '.join(ACTIONS)})",
                {"action": action, "allowed": list(ACTIONS)},
            )
    log_filter = LogFilter(
        since=optional_date(args.since, "since"),
        limit=args.limit,
        actions=actions,
        task_id=optional_id(args.task),
    )
    entries, warnings = read_log(cfg.dir, log_filter)
    print_warnings(warnings)

    fmt = output_format(args)
    if fmt == Format.JSON:
        output_json([e.to_dict() for e in entries])
    elif fmt == Format.COMPACT:
        for line in compact.log_lines(entries):
            print(line)
    else:
        table.log_table(console(args), entries)
    return 0


@handles_errors
def board_context(args) -> int:
    """Print the context digest, or embed it in a file with --write-to."""
    cfg = load_config_or_die(args)
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    print_warnings(warnings)

    opts = ContextOptions(sections=split_list(args.sections), days=args.days)
    data = generate_context(cfg, tasks, opts, utcnow())
    markdown = render_context_markdown(data)

    if args.write_to:
        path = Path(args.write_to)
        write_context_to_file(path, markdown)
        output_result({"status": "written", "path": str(path)}, f"Context written to {path}", args)
        return 0

    if output_format(args) == Format.JSON:
        output_json(data.to_dict())
    else:
        print(markdown, end="")
    return 0
