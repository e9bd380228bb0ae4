"""Output formats for command results: rich tables, compact lines and JSON."""

import os
import sys
from enum import Enum


class Format(str, Enum):
    JSON = "json"
    TABLE = "table"
    COMPACT = "compact"


def detect_format(json_flag: bool = False, table_flag: bool = False, compact_flag: bool = False, isatty=None) -> Format:
    """Flags win, then ``KANBAN_OUTPUT``, then a terminal gets a table and a pipe gets JSON."""
    if json_flag:
        return Format.JSON
    if table_flag:
        return Format.TABLE
    if compact_flag:
        return Format.COMPACT

    env = os.environ.get("KANBAN_OUTPUT", "").strip().lower()
    if env in (f.value for f in Format):
        return Format(env)

    if isatty is None:
        isatty = sys.stdout.isatty()
    return Format.TABLE if isatty else Format.JSON


__all__ = ["Format", "detect_format"]
