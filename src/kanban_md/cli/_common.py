"""Shared helpers for CLI command handlers."""

import functools
import sys
from collections.abc import Callable
from pathlib import Path

from rich.console import Console

from kanban_md.dates import parse_date
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.ids import parse_id, parse_ids
from kanban_md.model.config import Config, find_dir, load
from kanban_md.model.store import ReadWarning
from kanban_md.output import Format, detect_format
from kanban_md.output.serialize import batch_item, error_json, output_json
from kanban_md.output.table import make_console


def output_format(args) -> Format:
    return detect_format(
        getattr(args, "json", False),
        getattr(args, "table", False),
        getattr(args, "compact", False),
    )


def json_mode(args) -> bool:
    return output_format(args) == Format.JSON


def console(args) -> Console:
    return make_console(getattr(args, "no_color", False))


def fail(err: KanbanError, args) -> None:
    """Report err as JSON on stdout or as text on stderr, then exit with its code."""
    if json_mode(args):
        error_json(err)
    else:
        print(f"error: {err.message}", file=sys.stderr)
    sys.exit(err.exit_code)


def error(message: str, args, code: ErrorCode = ErrorCode.INVALID_INPUT) -> None:
    fail(KanbanError(code, message), args)


def handles_errors(func: Callable) -> Callable:
    """Turn a KanbanError escaping a handler into its error output and exit code."""

    @functools.wraps(func)
    def wrapper(args) -> int:
        try:
            return func(args)
        except KanbanError as e:
            fail(e, args)

    return wrapper


def load_config_or_die(args) -> Config:
    """Load the board named by --dir, or the nearest one above the working directory."""
    try:
        board_dir = getattr(args, "dir", None)
        if board_dir:
            return load(board_dir)
        return load(find_dir(Path.cwd()))
    except KanbanError as e:
        fail(e, args)


def output_result(data: dict | list, text: str, args) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode(args):
        output_json(data)
    else:
        print(text)


def print_warnings(warnings: list[str | ReadWarning]) -> None:
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)


def split_list(value: str | None) -> list[str]:
    """Comma-separated flag value as a list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def optional_id(value: str | None) -> int | None:
    return parse_id(value) if value else None


def id_list(value: str | None) -> list[int]:
    return parse_ids(value) if value else []


def optional_date(value: str | None, field: str):
    if not value:
        return None
    try:
        return parse_date(value)
    except KanbanError as e:
        e.details.setdefault("field", field)
        raise


def run_batch(args, ids: list[int], op: Callable[[int], tuple[dict, str]]) -> int:
    """Apply op to each id. op returns (json data, text line) or raises KanbanError.

    A single id behaves like a plain command. Several ids report per-id
    outcomes and exit 1 if any failed.
    """
    if len(ids) == 1:
        data, text = op(ids[0])
        output_result(data, text, args)
        return 0

    results = []
    failed = False
    for id_ in ids:
        try:
            data, text = op(id_)
        except KanbanError as e:
            failed = True
            results.append(batch_item(id_, e))
            if not json_mode(args):
                print(f"error: #{id_}: {e.message}", file=sys.stderr)
            continue
        results.append(batch_item(id_))
        if not json_mode(args):
            print(text)

    if json_mode(args):
        output_json(results)
    return 1 if failed else 0
