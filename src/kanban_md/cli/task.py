"""Handlers for task commands: create, show, list, edit, move, pick, handoff, archive, delete."""

import sys

from kanban_md.board.filter import ListOptions, group_by, list_tasks
from kanban_md.board.ops import (
    NewTask,
    TaskChanges,
    archive_task,
    create_task,
    delete_task,
    edit_task,
    handoff,
    move_task,
    pick_and_claim,
)
from kanban_md.cli._common import (
    console,
    handles_errors,
    id_list,
    load_config_or_die,
    optional_date,
    optional_id,
    output_format,
    output_result,
    print_warnings,
    run_batch,
    split_list,
)
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.ids import parse_id, parse_ids
from kanban_md.model.store import find_by_id, read
from kanban_md.model.task import task_to_dict
from kanban_md.output import Format, compact, table
from kanban_md.output.serialize import output_json


@handles_errors
def task_create(args) -> int:
    """Create a new task."""
    cfg = load_config_or_die(args)
    new = NewTask(
        title=args.title,
        status=args.status or "",
        priority=args.priority or "",
        class_=args.class_ or "",
        assignee=args.assignee or "",
        tags=split_list(args.tags),
        due=optional_date(args.due, "due"),
        estimate=args.estimate or "",
        parent=optional_id(args.parent),
        depends_on=id_list(args.depends_on),
        body=args.body or "",
        claim=args.claim or "",
    )
    result = create_task(cfg, new, force=args.force)
    print_warnings(result.warnings)
    task = result.task
    output_result(task_to_dict(task), f"Created task #{task.id}: {task.title}", args)
    return 0


@handles_errors
def task_show(args) -> int:
    """Show one task in full."""
    cfg = load_config_or_die(args)
    task = read(find_by_id(cfg.tasks_path, parse_id(args.id)))

    fmt = output_format(args)
    if fmt == Format.JSON:
        output_json(task_to_dict(task))
    elif fmt == Format.COMPACT:
        print("\n".join(compact.task_detail(task)))
    else:
        table.task_detail(console(args), task)
    return 0


def _list_options(args) -> ListOptions:
    blocked = None
    if args.blocked:
        blocked = True
    elif args.not_blocked:
        blocked = False
    return ListOptions(
        statuses=split_list(args.status),
        priorities=split_list(args.priority),
        assignee=args.assignee or "",
        tag=args.tag or "",
        blocked=blocked,
        parent=optional_id(args.parent),
        class_=args.class_ or "",
        claimed_by=args.claimed_by or "",
        unclaimed=args.unclaimed,
        search=args.search or "",
        unblocked=args.unblocked,
        include_archived=args.archived,
        sort_by=args.sort,
        reverse=args.reverse,
        limit=args.limit,
    )


@handles_errors
def task_list(args) -> int:
    """List tasks matching the filters."""
    cfg = load_config_or_die(args)
    opts = _list_options(args)
    for status in opts.statuses:
        if status not in cfg.status_names():
            raise KanbanError(
                ErrorCode.INVALID_STATUS,
                f"invalid status {status!r} (allowed: {', '.join(cfg.status_names())})",
                {"status": status, "allowed": cfg.status_names()},
            )
    tasks, warnings = list_tasks(cfg, opts)
    print_warnings(warnings)

    fmt = output_format(args)
    if args.group_by:
        groups = group_by(tasks, args.group_by, cfg)
        if fmt == Format.JSON:
            output_json([g.to_dict() for g in groups])
        elif fmt == Format.COMPACT:
            print("\n".join(compact.groups(groups)))
        else:
            table.groups_table(console(args), groups, args.group_by)
        return 0

    if fmt == Format.JSON:
        output_json([task_to_dict(t) for t in tasks])
    elif fmt == Format.COMPACT:
        if not tasks:
            print("No tasks found.", file=sys.stderr)
        for line in compact.task_lines(tasks):
            print(line)
    else:
        table.task_table(console(args), tasks)
    return 0


def _changes(args) -> TaskChanges:
    if args.block is not None and args.unblock:
        raise KanbanError(ErrorCode.INVALID_INPUT, "--block and --unblock cannot be combined")
    if args.claim is not None and args.release:
        raise KanbanError(ErrorCode.INVALID_INPUT, "--claim and --release cannot be combined")
    if args.due and args.clear_due:
        raise KanbanError(ErrorCode.INVALID_INPUT, "--due and --clear-due cannot be combined")
    if args.parent and args.clear_parent:
        raise KanbanError(ErrorCode.INVALID_INPUT, "--parent and --clear-parent cannot be combined")
    if args.body is not None and args.append_body is not None:
        raise KanbanError(ErrorCode.INVALID_INPUT, "--body and --append-body cannot be combined")
    return TaskChanges(
        title=args.title,
        status=args.status,
        priority=args.priority,
        class_=args.class_,
        assignee=args.assignee,
        add_tags=split_list(args.add_tag),
        remove_tags=split_list(args.remove_tag),
        due=optional_date(args.due, "due"),
        clear_due=args.clear_due,
        estimate=args.estimate,
        body=args.body,
        append_body=args.append_body,
        timestamp=args.timestamp,
        parent=optional_id(args.parent),
        clear_parent=args.clear_parent,
        add_deps=id_list(args.add_dep),
        remove_deps=id_list(args.remove_dep),
        block=args.block,
        unblock=args.unblock,
        claim=args.claim,
        release=args.release,
    )


@handles_errors
def task_edit(args) -> int:
    """Edit one or more tasks."""
    cfg = load_config_or_die(args)
    ids = parse_ids(args.ids)
    changes = _changes(args)

    def op(id_: int) -> tuple[dict, str]:
        result = edit_task(cfg, id_, changes, force=args.force)
        print_warnings(result.warnings)
        return task_to_dict(result.task), f"Updated task #{result.task.id}: {result.task.title}"

    return run_batch(args, ids, op)


@handles_errors
def task_move(args) -> int:
    """Move tasks to a status, or one step with --next/--prev."""
    given = sum(bool(x) for x in (args.status, args.next, args.prev))
    if given != 1:
        raise KanbanError(ErrorCode.INVALID_INPUT, "provide exactly one of STATUS, --next or --prev")
    cfg = load_config_or_die(args)
    ids = parse_ids(args.ids)
    direction = 1 if args.next else -1 if args.prev else 0

    def op(id_: int) -> tuple[dict, str]:
        result = move_task(cfg, id_, args.status, direction, actor=args.claim or "", force=args.force)
        print_warnings(result.warnings)
        task = result.task
        data = task_to_dict(task)
        data["changed"] = result.changed
        if not result.changed:
            return data, f"Task #{task.id} is already in {task.status}"
        return data, f"Moved task #{task.id}: {result.old_status} -> {task.status}"

    return run_batch(args, ids, op)


@handles_errors
def task_pick(args) -> int:
    """Claim the next available task."""
    cfg = load_config_or_die(args)
    result = pick_and_claim(
        cfg,
        args.claim or "",
        statuses=split_list(args.status),
        move_to=args.move or "",
        tags=split_list(args.tags),
        force=args.force,
    )
    print_warnings(result.warnings)
    task = result.task

    fmt = output_format(args)
    if fmt == Format.JSON:
        output_json(task_to_dict(task))
    elif fmt == Format.COMPACT:
        print("\n".join(compact.task_detail(task)))
    else:
        print(f"Picked task #{task.id}: {task.title}")
        table.task_detail(console(args), task)
    return 0


@handles_errors
def task_handoff(args) -> int:
    """Hand tasks over for review."""
    cfg = load_config_or_die(args)
    ids = parse_ids(args.ids)

    def op(id_: int) -> tuple[dict, str]:
        result = handoff(
            cfg,
            id_,
            args.claim or "",
            note=args.note or "",
            timestamp=args.timestamp,
            block_reason=args.block,
            release=args.release,
            force=args.force,
        )
        print_warnings(result.warnings)
        task = result.task
        return task_to_dict(task), f"Handed off task #{task.id}: {task.title} ({task.status})"

    return run_batch(args, ids, op)


@handles_errors
def task_archive(args) -> int:
    """Soft-delete tasks by moving them to archived."""
    cfg = load_config_or_die(args)
    ids = parse_ids(args.ids)

    def op(id_: int) -> tuple[dict, str]:
        result = archive_task(cfg, id_, actor=args.claim or "", force=args.force)
        print_warnings(result.warnings)
        task = result.task
        data = task_to_dict(task)
        data["changed"] = result.changed
        if not result.changed:
            return data, f"Task #{task.id} is already archived"
        return data, f"Archived task #{task.id}: {task.title}"

    return run_batch(args, ids, op)


def _confirm(cfg, id_: int) -> bool:
    if not sys.stdin.isatty():
        raise KanbanError(
            ErrorCode.CONFIRMATION_REQUIRED,
            "cannot prompt for confirmation (not a terminal); use --force",
            {"id": id_},
        )
    task = read(find_by_id(cfg.tasks_path, id_))
    print(f"Delete task #{task.id} {task.title!r}? [y/N] ", end="", file=sys.stderr, flush=True)
    answer = sys.stdin.readline().strip().lower()
    return answer in ("y", "yes")


@handles_errors
def task_delete(args) -> int:
    """Delete task files. Prompts on a terminal unless --force."""
    cfg = load_config_or_die(args)
    ids = parse_ids(args.ids)

    def op(id_: int) -> tuple[dict, str]:
        if not args.force and not _confirm(cfg, id_):
            return {"status": "canceled", "id": id_}, f"Canceled deleting task #{id_}"
        result = delete_task(cfg, id_, actor=args.claim or "", force=args.force)
        print_warnings(result.warnings)
        task = result.task
        return {"status": "deleted", "id": task.id, "title": task.title}, f"Deleted task #{task.id}: {task.title}"

    return run_batch(args, ids, op)
