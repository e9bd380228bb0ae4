"""Task ID parsing and padding."""

from kanban_md.errors import ErrorCode, KanbanError

ID_WIDTH = 3


def normalize_id(s: str) -> str:
    """Strip leading zeros and a leading '#' from an ID, preserving at least one digit.

    "001" → "1", "#7" → "7", "010" → "10"
    """
    stripped = s.strip().lstrip("#").lstrip("0")
    return stripped or "0"


def parse_id(s: str) -> int:
    """Parse a single user-supplied task ID. Raises INVALID_TASK_ID."""
    normalized = normalize_id(str(s))
    if not normalized.isdigit() or int(normalized) < 1:
        raise KanbanError(ErrorCode.INVALID_TASK_ID, f"invalid task ID: {s!r}", {"value": s})
    return int(normalized)


def parse_ids(s: str) -> list[int]:
    """Parse a comma-separated ID list, keeping first-seen order and dropping repeats.

    "1,2, 3" → [1, 2, 3], "5,5" → [5]
    """
    ids: list[int] = []
    for part in str(s).split(","):
        if not part.strip():
            continue
        id_ = parse_id(part)
        if id_ not in ids:
            ids.append(id_)
    if not ids:
        raise KanbanError(ErrorCode.INVALID_TASK_ID, f"no task IDs in {s!r}", {"value": s})
    return ids


def pad_id(id_: int, width: int = ID_WIDTH) -> str:
    """Zero-pad an ID to the given width.

    1 → "001", 10 → "010", 1234 → "1234"
    """
    return str(id_).zfill(width)
