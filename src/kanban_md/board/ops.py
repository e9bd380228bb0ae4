"""Board mutations: create, edit, move, archive, delete, handoff and pick.

Each operation reads what it needs from disk, validates against the board
rules, writes at most one task file (plus config.yml for ``create``) and then
appends activity-log entries. Problems that do not stop the operation come
back as warnings on the result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from kanban_md.board.activity import append_log
from kanban_md.board.filter import find_dependents, is_unclaimed
from kanban_md.board.pick import PickOptions, pick
from kanban_md.dates import format_duration, utcnow
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import Config
from kanban_md.model.defaults import ARCHIVED_STATUS, REVIEW_STATUS
from kanban_md.model.store import (
    ensure_consistency,
    find_by_id,
    read,
    read_all_lenient,
    save_task,
    update_timestamps,
)
from kanban_md.model.task import Task
from kanban_md.model.validate import validate_class, validate_priority, validate_refs, validate_status

logger = logging.getLogger(__name__)


@dataclass
class OpResult:
    task: Task
    changed: bool = True
    old_status: str = ""
    warnings: list[str] = field(default_factory=list)


@dataclass
class NewTask:
    title: str
    status: str = ""
    priority: str = ""
    class_: str = ""
    assignee: str = ""
    tags: list[str] = field(default_factory=list)
    due: datetime | None = None
    estimate: str = ""
    parent: int | None = None
    depends_on: list[int] = field(default_factory=list)
    body: str = ""
    claim: str = ""


@dataclass
class TaskChanges:
    """Requested edits. ``None`` or empty means leave the field alone."""

    title: str | None = None
    status: str | None = None
    priority: str | None = None
    class_: str | None = None
    assignee: str | None = None
    add_tags: list[str] = field(default_factory=list)
    remove_tags: list[str] = field(default_factory=list)
    due: datetime | None = None
    clear_due: bool = False
    estimate: str | None = None
    body: str | None = None
    append_body: str | None = None
    timestamp: bool = False
    parent: int | None = None
    clear_parent: bool = False
    add_deps: list[int] = field(default_factory=list)
    remove_deps: list[int] = field(default_factory=list)
    block: str | None = None
    unblock: bool = False
    claim: str | None = None
    release: bool = False

    def is_empty(self) -> bool:
        return self == TaskChanges()


def _log(cfg: Config, result: OpResult, action: str, detail: str, now: datetime) -> None:
    warning = append_log(cfg.dir, action, result.task.id, detail, now)
    if warning:
        result.warnings.append(warning)


# -- rule checks --


def resolve_target(cfg: Config, task: Task, target: str | None = None, direction: int = 0) -> str:
    """Explicit status name, or one step along the configured order."""
    if target:
        validate_status(cfg, target)
        return target
    names = cfg.status_names()
    index = cfg.status_index(task.status)
    new_index = index + direction
    if direction == 0 or index < 0 or new_index < 0 or new_index >= len(names):
        edge = "first" if direction < 0 else "last"
        raise KanbanError(
            ErrorCode.STATUS_BOUNDARY,
            f"task #{task.id} is already at the {edge} status ({task.status})",
            {"id": task.id, "status": task.status, "direction": "prev" if direction < 0 else "next"},
        )
    return names[new_index]


def check_claim(task: Task, actor: str, force: bool, timeout: timedelta, now: datetime) -> str | None:
    """Allow the mutation if the claim permits it. Returns a warning when ``force`` overrode a claim.

    Expired and force-overridden claims are cleared on the task.
    """
    if not task.claimed_by:
        return None
    if actor and task.claimed_by == actor:
        return None
    if is_unclaimed(task, timeout, now):
        task.claimed_by = ""
        task.claimed_at = None
        return None
    if force:
        holder = task.claimed_by
        task.claimed_by = ""
        task.claimed_at = None
        return f"task #{task.id} was claimed by {holder!r} (overridden with --force)"
    details: dict = {"id": task.id, "claimed_by": task.claimed_by}
    if timeout > timedelta(0) and task.claimed_at is not None:
        details["remaining"] = format_duration(timeout - (now - task.claimed_at))
    raise KanbanError(
        ErrorCode.TASK_CLAIMED,
        f"task #{task.id} is claimed by {task.claimed_by!r} (use --claim {task.claimed_by} or --force)",
        details,
    )


def check_wip(
    cfg: Config, tasks: list[Task], task: Task, target: str, force: bool, column: bool = True
) -> list[str]:
    """Column and class-of-service WIP limits for putting task into target.

    The moving task never counts against itself. Class limits count every
    non-archived task of the class. ``column=False`` checks the class limit only.
    """
    warnings: list[str] = []
    violations: list[KanbanError] = []
    others = [t for t in tasks if t.id != task.id]

    class_cfg = cfg.class_by_name(task.class_) if task.class_ else None
    if class_cfg and class_cfg.wip_limit > 0:
        holding = sum(1 for t in others if t.class_ == class_cfg.name and not cfg.is_archived_status(t.status))
        if holding >= class_cfg.wip_limit:
            violations.append(
                KanbanError(
                    ErrorCode.WIP_LIMIT_EXCEEDED,
                    f"class WIP limit reached for {class_cfg.name!r} ({holding}/{class_cfg.wip_limit})",
                    {"class": class_cfg.name, "limit": class_cfg.wip_limit, "current": holding},
                )
            )

    limit = cfg.wip_limit(target)
    if column and limit > 0 and not (class_cfg and class_cfg.bypass_column_wip):
        count = sum(1 for t in others if t.status == target)
        if count >= limit:
            violations.append(
                KanbanError(
                    ErrorCode.WIP_LIMIT_EXCEEDED,
                    f"WIP limit reached for {target!r} ({count}/{limit})",
                    {"status": target, "limit": limit, "current": count},
                )
            )

    for violation in violations:
        if not force:
            raise violation
        warnings.append(f"{violation.message} (overridden with --force)")
    return warnings


def _check_require_claim(cfg: Config, task: Task, target: str, actor: str) -> None:
    if cfg.status_requires_claim(target) and not actor and not task.claimed_by:
        raise KanbanError(
            ErrorCode.CLAIM_REQUIRED,
            f"status {target!r} requires a claim (use --claim NAME)",
            {"id": task.id, "status": target},
        )


def _claim(task: Task, actor: str, now: datetime) -> bool:
    """Stamp a claim. Returns True if the claimant changed."""
    changed = task.claimed_by != actor
    task.claimed_by = actor
    task.claimed_at = now
    return changed


# -- operations --


def create_task(cfg: Config, new: NewTask, force: bool = False, now: datetime | None = None) -> OpResult:
    """Validate, reserve the next id in config.yml, write the task file and log ``create``."""
    now = now or utcnow()
    title = new.title.strip()
    if not title:
        raise KanbanError(ErrorCode.INVALID_INPUT, "title is required")
    status = new.status or cfg.default_status
    priority = new.priority or cfg.default_priority
    class_ = new.class_ if new.class_ else cfg.default_class
    validate_status(cfg, status)
    validate_priority(cfg, priority)
    validate_class(cfg, class_)
    report = ensure_consistency(cfg)
    validate_refs(cfg.tasks_path, cfg.next_id, new.parent, new.depends_on)

    task = Task(
        id=cfg.next_id,
        title=title,
        status=status,
        priority=priority,
        class_=class_,
        assignee=new.assignee,
        tags=list(dict.fromkeys(new.tags)),
        due=new.due,
        estimate=new.estimate,
        parent=new.parent,
        depends_on=list(dict.fromkeys(new.depends_on)),
        body=new.body,
        created=now,
        updated=now,
    )
    if new.claim:
        _claim(task, new.claim, now)
    _check_require_claim(cfg, task, status, new.claim)

    tasks, _ = read_all_lenient(cfg.tasks_path)
    result = OpResult(task=task, old_status="", warnings=[f"repaired: {r}" for r in report.repairs])
    result.warnings.extend(check_wip(cfg, tasks, task, status, force))
    if status != cfg.first_status():
        update_timestamps(task, cfg.first_status(), status, cfg, now)

    cfg.next_id += 1
    cfg.save()
    save_task(cfg.tasks_path, task)

    _log(cfg, result, "create", task.title, now)
    if task.claimed_by:
        _log(cfg, result, "claim", task.claimed_by, now)
    return result


def move_task(
    cfg: Config,
    id_: int,
    target: str | None = None,
    direction: int = 0,
    actor: str = "",
    force: bool = False,
    now: datetime | None = None,
) -> OpResult:
    """Move a task to target, or one step in direction. Same-status moves change nothing."""
    now = now or utcnow()
    task = read(find_by_id(cfg.tasks_path, id_))
    new_status = resolve_target(cfg, task, target, direction)
    result = OpResult(task=task, old_status=task.status)
    if new_status == task.status:
        result.changed = False
        return result

    warning = check_claim(task, actor, force, cfg.claim_timeout_duration(), now)
    if warning:
        result.warnings.append(warning)
    tasks, _ = read_all_lenient(cfg.tasks_path)
    result.warnings.extend(check_wip(cfg, tasks, task, new_status, force))
    _check_require_claim(cfg, task, new_status, actor)

    claimed = _claim(task, actor, now) if actor else False
    old_status = task.status
    task.status = new_status
    update_timestamps(task, old_status, new_status, cfg, now)
    task.updated = now
    save_task(cfg.tasks_path, task)

    if claimed:
        _log(cfg, result, "claim", actor, now)
    _log(cfg, result, "move", f"{old_status} -> {new_status}", now)
    return result


def archive_task(
    cfg: Config, id_: int, actor: str = "", force: bool = False, now: datetime | None = None
) -> OpResult:
    """Soft-delete: move to archived, keeping the file. Archiving twice changes nothing."""
    now = now or utcnow()
    if ARCHIVED_STATUS not in cfg.status_names():
        raise KanbanError(ErrorCode.INVALID_STATUS, f"board has no {ARCHIVED_STATUS!r} status")
    task = read(find_by_id(cfg.tasks_path, id_))
    result = OpResult(task=task, old_status=task.status)
    if task.status == ARCHIVED_STATUS:
        result.changed = False
        return result

    warning = check_claim(task, actor, force, cfg.claim_timeout_duration(), now)
    if warning:
        result.warnings.append(warning)
    old_status = task.status
    task.status = ARCHIVED_STATUS
    update_timestamps(task, old_status, ARCHIVED_STATUS, cfg, now)
    task.updated = now
    save_task(cfg.tasks_path, task)
    _log(cfg, result, "move", f"{old_status} -> {ARCHIVED_STATUS}", now)
    return result


def delete_task(
    cfg: Config, id_: int, actor: str = "", force: bool = False, now: datetime | None = None
) -> OpResult:
    """Remove the task file. Tasks that still reference it come back as warnings."""
    now = now or utcnow()
    path = find_by_id(cfg.tasks_path, id_)
    task = read(path)
    warning = check_claim(task, actor, force, cfg.claim_timeout_duration(), now)
    result = OpResult(task=task, old_status=task.status)
    if warning:
        result.warnings.append(warning)

    tasks, _ = read_all_lenient(cfg.tasks_path)
    result.warnings.extend(find_dependents([t for t in tasks if t.id != task.id], task.id))

    path.unlink()
    logger.debug("deleted %s", path.name)
    _log(cfg, result, "delete", task.title, now)
    return result


def edit_task(
    cfg: Config,
    id_: int,
    changes: TaskChanges,
    force: bool = False,
    now: datetime | None = None,
) -> OpResult:
    """Apply the requested changes in one write. The claimant in ``changes.claim`` is the actor."""
    if changes.is_empty():
        raise KanbanError(ErrorCode.NO_CHANGES, "no changes specified", {"id": id_})
    now = now or utcnow()
    task = read(find_by_id(cfg.tasks_path, id_))
    actor = changes.claim or ""
    holder = task.claimed_by
    result = OpResult(task=task, old_status=task.status)

    warning = check_claim(task, actor, force, cfg.claim_timeout_duration(), now)
    if warning:
        result.warnings.append(warning)

    edited: list[str] = []
    events: list[tuple[str, str]] = []

    if changes.title is not None:
        title = changes.title.strip()
        if not title:
            raise KanbanError(ErrorCode.INVALID_INPUT, "title cannot be empty")
        task.title = title
        edited.append("title")
    if changes.priority is not None:
        validate_priority(cfg, changes.priority)
        task.priority = changes.priority
        edited.append("priority")
    class_changed = False
    if changes.class_ is not None:
        validate_class(cfg, changes.class_)
        class_changed = changes.class_ != task.class_
        task.class_ = changes.class_
        edited.append("class")
    if changes.assignee is not None:
        task.assignee = changes.assignee
        edited.append("assignee")
    if changes.add_tags or changes.remove_tags:
        tags = [t for t in task.tags if t not in changes.remove_tags]
        tags.extend(t for t in changes.add_tags if t not in tags)
        task.tags = tags
        edited.append("tags")
    if changes.clear_due:
        task.due = None
        edited.append("due")
    elif changes.due is not None:
        task.due = changes.due
        edited.append("due")
    if changes.estimate is not None:
        task.estimate = changes.estimate
        edited.append("estimate")
    if changes.body is not None:
        task.body = changes.body
        edited.append("body")
    if changes.append_body:
        task.body = append_note(task.body, changes.append_body, changes.timestamp, now)
        edited.append("body")

    if changes.clear_parent:
        task.parent = None
        edited.append("parent")
    elif changes.parent is not None:
        task.parent = changes.parent
        edited.append("parent")
    if changes.add_deps or changes.remove_deps:
        deps = [d for d in task.depends_on if d not in changes.remove_deps]
        deps.extend(d for d in changes.add_deps if d not in deps)
        task.depends_on = deps
        edited.append("depends_on")
    if changes.parent is not None or changes.add_deps:
        validate_refs(cfg.tasks_path, task.id, changes.parent, changes.add_deps)

    if changes.block is not None:
        if not changes.block.strip():
            raise KanbanError(ErrorCode.INVALID_INPUT, "block reason is required")
        task.blocked = True
        task.block_reason = changes.block
        events.append(("block", changes.block))
    elif changes.unblock:
        if task.blocked:
            events.append(("unblock", task.block_reason))
        task.blocked = False
        task.block_reason = ""

    if changes.status is not None and changes.status != task.status:
        validate_status(cfg, changes.status)
        tasks, _ = read_all_lenient(cfg.tasks_path)
        result.warnings.extend(check_wip(cfg, tasks, task, changes.status, force))
        _check_require_claim(cfg, task, changes.status, actor)
        old_status = task.status
        task.status = changes.status
        update_timestamps(task, old_status, changes.status, cfg, now)
        events.append(("move", f"{old_status} -> {changes.status}"))
    elif class_changed and changes.class_:
        tasks, _ = read_all_lenient(cfg.tasks_path)
        result.warnings.extend(check_wip(cfg, tasks, task, task.status, force, column=False))

    if changes.claim:
        if _claim(task, changes.claim, now):
            events.append(("claim", changes.claim))
    if changes.release:
        if holder:
            events.append(("release", holder))
        task.claimed_by = ""
        task.claimed_at = None

    task.updated = now
    save_task(cfg.tasks_path, task)

    if edited:
        _log(cfg, result, "edit", ", ".join(dict.fromkeys(edited)), now)
    for action, detail in events:
        _log(cfg, result, action, detail, now)
    return result


def append_note(body: str, note: str, timestamp: bool, now: datetime) -> str:
    """Append a paragraph to body, optionally headed by a ``[YYYY-MM-DD HH:MM]`` line."""
    text = note.strip("\n")
    if timestamp:
        text = f"[{now.strftime('%Y-%m-%d %H:%M')}]\n{text}"
    if body.strip():
        return body.rstrip("\n") + "\n\n" + text + "\n"
    return text + "\n"


def handoff(
    cfg: Config,
    id_: int,
    actor: str,
    note: str = "",
    timestamp: bool = False,
    block_reason: str | None = None,
    release: bool = False,
    force: bool = False,
    now: datetime | None = None,
) -> OpResult:
    """Move to review, refresh the claim, optionally block, note and release, all in one write.

    Log order is fixed: move, handoff, block, release.
    """
    if not actor:
        raise KanbanError(ErrorCode.INVALID_INPUT, "claim name is required (use --claim NAME)")
    if REVIEW_STATUS not in cfg.status_names():
        raise KanbanError(ErrorCode.INVALID_INPUT, "board has no 'review' status; add one to use handoff")
    if block_reason is not None and not block_reason.strip():
        raise KanbanError(ErrorCode.INVALID_INPUT, "block reason is required (use --block REASON)")

    now = now or utcnow()
    task = read(find_by_id(cfg.tasks_path, id_))
    result = OpResult(task=task, old_status=task.status)

    warning = check_claim(task, actor, force, cfg.claim_timeout_duration(), now)
    if warning:
        result.warnings.append(warning)

    old_status = task.status
    if task.status != REVIEW_STATUS:
        tasks, _ = read_all_lenient(cfg.tasks_path)
        result.warnings.extend(check_wip(cfg, tasks, task, REVIEW_STATUS, force))
        task.status = REVIEW_STATUS
        update_timestamps(task, old_status, REVIEW_STATUS, cfg, now)

    _claim(task, actor, now)
    if block_reason is not None:
        task.blocked = True
        task.block_reason = block_reason
    if note:
        task.body = append_note(task.body, note, timestamp, now)
    if release:
        task.claimed_by = ""
        task.claimed_at = None
    task.updated = now
    save_task(cfg.tasks_path, task)

    if old_status != task.status:
        _log(cfg, result, "move", f"{old_status} -> {task.status}", now)
    _log(cfg, result, "handoff", task.title, now)
    if block_reason is not None:
        _log(cfg, result, "block", block_reason, now)
    if release:
        _log(cfg, result, "release", actor, now)
    return result


def pick_and_claim(
    cfg: Config,
    actor: str,
    statuses: list[str] | None = None,
    move_to: str = "",
    tags: list[str] | None = None,
    force: bool = False,
    now: datetime | None = None,
) -> OpResult:
    """Pick the next task, claim it for actor and optionally move it, in a single write."""
    if not actor:
        raise KanbanError(ErrorCode.INVALID_INPUT, "claim name is required (use --claim NAME)")
    for status in statuses or []:
        validate_status(cfg, status)
    if move_to:
        validate_status(cfg, move_to)

    now = now or utcnow()
    tasks, warnings = read_all_lenient(cfg.tasks_path)
    opts = PickOptions(
        statuses=list(statuses or []),
        tags=list(tags or []),
        claim_timeout=cfg.claim_timeout_duration(),
    )
    chosen = pick(cfg, tasks, opts, now)
    if chosen is None:
        raise KanbanError(
            ErrorCode.NOTHING_TO_PICK,
            "no unclaimed, unblocked tasks available",
            {"statuses": opts.statuses or cfg.active_statuses(), "tags": opts.tags},
        )

    result = OpResult(task=chosen, old_status=chosen.status, warnings=[str(w) for w in warnings])
    old_status = chosen.status
    _claim(chosen, actor, now)
    if move_to and move_to != old_status:
        result.warnings.extend(check_wip(cfg, tasks, chosen, move_to, force))
        chosen.status = move_to
        update_timestamps(chosen, old_status, move_to, cfg, now)
    chosen.updated = now
    save_task(cfg.tasks_path, chosen)

    _log(cfg, result, "claim", actor, now)
    if chosen.status != old_status:
        _log(cfg, result, "move", f"{old_status} -> {chosen.status}", now)
    return result
