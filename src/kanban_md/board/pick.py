"""Select the next task an agent should work on."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from kanban_md.board.filter import deps_satisfied, is_unclaimed
from kanban_md.model.config import Config
from kanban_md.model.task import Task


@dataclass
class PickOptions:
    statuses: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    claim_timeout: timedelta = timedelta(0)


def candidates(cfg: Config, tasks: list[Task], opts: PickOptions, now: datetime) -> list[Task]:
    """Eligible tasks in pick order."""
    statuses = opts.statuses or cfg.active_statuses()
    status_by_id = {t.id: t.status for t in tasks}
    eligible = [
        t
        for t in tasks
        if t.status in statuses
        and not cfg.is_archived_status(t.status)
        and not t.blocked
        and is_unclaimed(t, opts.claim_timeout, now)
        and (not opts.tags or any(tag in t.tags for tag in opts.tags))
        and deps_satisfied(t, status_by_id, cfg)
    ]
    far_future = datetime.max.replace(tzinfo=now.tzinfo)
    eligible.sort(key=lambda t: (-cfg.priority_index(t.priority), t.created or far_future, t.id))
    return eligible


def pick(cfg: Config, tasks: list[Task], opts: PickOptions, now: datetime) -> Task | None:
    """Highest priority, then oldest, then lowest id. None when nothing is eligible."""
    found = candidates(cfg, tasks, opts, now)
    return found[0] if found else None
