"""Date, instant and duration parsing."""

import re
from datetime import date, datetime, time, timedelta, timezone

from kanban_md.errors import ErrorCode, KanbanError

_RELATIVE = re.compile(r"^([+-])(\d+)d$")
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def utcnow() -> datetime:
    """Current instant, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize an aware or naive datetime to UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(text: str, now: datetime | None = None) -> datetime:
    """Parse a user date into a UTC instant.

    Accepted forms, tried in order:
    - ISO date: 2025-01-02
    - ISO datetime with optional zone: 2025-01-02T12:00:00Z, 2025-01-02T12:00:00+02:00
    - today, tomorrow, yesterday
    - relative days: +3d, -1d
    """
    raw = text.strip()
    now = to_utc(now) if now else utcnow()
    today = now.date()

    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", raw):
        try:
            return _midnight(date.fromisoformat(raw))
        except ValueError:
            pass
    else:
        try:
            candidate = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
            return to_utc(datetime.fromisoformat(candidate))
        except ValueError:
            pass

    keyword = raw.lower()
    if keyword == "today":
        return _midnight(today)
    if keyword == "tomorrow":
        return _midnight(today + timedelta(days=1))
    if keyword == "yesterday":
        return _midnight(today - timedelta(days=1))

    match = _RELATIVE.match(keyword)
    if match:
        days = int(match.group(2))
        if match.group(1) == "-":
            days = -days
        return _midnight(today + timedelta(days=days))

    raise KanbanError(
        ErrorCode.INVALID_DATE,
        f"invalid date {text!r} (use YYYY-MM-DD, an ISO datetime, today/tomorrow/yesterday, or +Nd/-Nd)",
        {"value": text},
    )


def format_instant(value: datetime) -> str:
    """Render an instant as RFC 3339 in UTC with a Z suffix."""
    value = to_utc(value)
    if value.microsecond:
        return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_instant(value) -> datetime | None:
    """Parse a stored frontmatter instant. YAML may already have produced a datetime or date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return _midnight(value)
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as 1h, 30m, 1h30m, 45s, 0s or 2d.

    Raises ValueError on anything else.
    """
    raw = text.strip().lower()
    if not raw:
        raise ValueError("empty duration")
    if raw == "0":
        return timedelta(0)
    total = timedelta(0)
    pos = 0
    for match in _DURATION_PART.finditer(raw):
        if match.start() != pos:
            raise ValueError(f"invalid duration {text!r}")
        total += _DURATION_UNITS[match.group(2)] * float(match.group(1))
        pos = match.end()
    if pos != len(raw):
        raise ValueError(f"invalid duration {text!r}")
    return total


def format_duration(value: timedelta) -> str:
    """Short human rendering: 3d 4h, 5h 12m or 7m."""
    minutes = int(value.total_seconds() // 60)
    if minutes < 0:
        minutes = 0
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
