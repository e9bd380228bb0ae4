"""JSON output: indented, snake_case keys, RFC 3339 instants."""

import json

from kanban_md.errors import KanbanError


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False))


def error_json(err: KanbanError) -> None:
    """Structured error object on stdout, for callers that parse JSON."""
    output_json(err.to_dict())


def batch_item(id_: int, err: KanbanError | None = None) -> dict:
    if err is None:
        return {"id": id_, "ok": True}
    return {"id": id_, "ok": False, "error": err.message, "error_code": err.code.value}
