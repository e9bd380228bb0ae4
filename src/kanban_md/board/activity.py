"""Append-only activity log (``activity.jsonl``)."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from kanban_md.dates import format_instant, parse_instant, utcnow
from kanban_md.model.defaults import LOG_FILE_NAME

logger = logging.getLogger(__name__)

ACTIONS = ("create", "edit", "move", "delete", "block", "unblock", "claim", "release", "handoff")


@dataclass
class LogEntry:
    timestamp: datetime
    action: str
    task_id: int
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "timestamp": format_instant(self.timestamp),
            "action": self.action,
            "task_id": self.task_id,
            "detail": self.detail,
        }


@dataclass
class LogFilter:
    since: datetime | None = None
    limit: int = 0
    actions: list[str] = field(default_factory=list)
    task_id: int | None = None


def append_log(
    board_dir: Path, action: str, task_id: int, detail: str = "", now: datetime | None = None
) -> str | None:
    """Append one entry. Returns a warning string instead of raising when the write fails."""
    path = Path(board_dir) / LOG_FILE_NAME
    entry = LogEntry(timestamp=now or utcnow(), action=action, task_id=task_id, detail=detail)
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict()) + "\n")
    except OSError as e:
        logger.warning("could not write activity log %s: %s", path, e)
        return f"activity log not written: {e}"
    return None


def read_log(board_dir: Path, log_filter: LogFilter | None = None) -> tuple[list[LogEntry], list[str]]:
    """Read entries oldest-first, skipping malformed lines with a warning each.

    ``limit`` keeps the most recent N entries after filtering.
    """
    log_filter = log_filter or LogFilter()
    path = Path(board_dir) / LOG_FILE_NAME
    if not path.exists():
        return [], []

    entries: list[LogEntry] = []
    warnings: list[str] = []
    with open(path, "rb") as f:
        for lineno, data in enumerate(f, start=1):
            data = data.strip()
            if not data:
                continue
            try:
                raw = json.loads(data.decode("utf-8"))
                entry = LogEntry(
                    timestamp=parse_instant(raw["timestamp"]),
                    action=str(raw["action"]),
                    task_id=int(raw["task_id"]),
                    detail=str(raw.get("detail", "")),
                )
            except (ValueError, KeyError, TypeError) as e:
                warnings.append(f"{LOG_FILE_NAME}:{lineno}: skipping malformed entry ({e})")
                continue
            if log_filter.since is not None and entry.timestamp < log_filter.since:
                continue
            if log_filter.actions and entry.action not in log_filter.actions:
                continue
            if log_filter.task_id is not None and entry.task_id != log_filter.task_id:
                continue
            entries.append(entry)

    if log_filter.limit > 0:
        entries = entries[-log_filter.limit :]
    return entries, warnings
