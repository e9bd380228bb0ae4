"""Field validators that raise structured errors."""

from pathlib import Path

from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.model.config import Config
from kanban_md.model.store import find_by_id


def validate_status(cfg: Config, status: str) -> None:
    allowed = cfg.status_names()
    if status not in allowed:
        raise KanbanError(
            ErrorCode.INVALID_STATUS,
            f"invalid status {status!r} (allowed: {', '.join(allowed)})",
            {"status": status, "allowed": allowed},
        )


def validate_priority(cfg: Config, priority: str) -> None:
    if priority not in cfg.priorities:
        raise KanbanError(
            ErrorCode.INVALID_PRIORITY,
            f"invalid priority {priority!r} (allowed: {', '.join(cfg.priorities)})",
            {"priority": priority, "allowed": list(cfg.priorities)},
        )


def validate_class(cfg: Config, class_: str) -> None:
    if class_ and cfg.class_by_name(class_) is None:
        allowed = cfg.class_names()
        raise KanbanError(
            ErrorCode.INVALID_CLASS,
            f"invalid class {class_!r} (allowed: {', '.join(allowed)})",
            {"class": class_, "allowed": allowed},
        )


def validate_refs(tasks_dir: Path, self_id: int, parent: int | None, depends_on: list[int]) -> None:
    """Parent and dependencies must exist and must not point back at the task itself.

    Cycles are not detected here. A cycle never satisfies the ``unblocked``
    rule, so its members stay visibly stuck instead.
    """
    refs = ([parent] if parent is not None else []) + list(depends_on)
    for ref in refs:
        if ref == self_id:
            raise KanbanError(
                ErrorCode.SELF_REFERENCE,
                f"task cannot reference itself (ID {ref})",
                {"id": ref},
            )
        try:
            find_by_id(tasks_dir, ref)
        except KanbanError:
            raise KanbanError(
                ErrorCode.DEPENDENCY_NOT_FOUND,
                f"referenced task #{ref} not found",
                {"id": ref},
            ) from None
