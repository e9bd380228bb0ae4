"""Handlers for 'kanban-md config' commands."""

import json

from kanban_md.cli._common import console, handles_errors, load_config_or_die, output_format, output_result
from kanban_md.model.config import CONFIG_ACCESSORS, get_value, set_value
from kanban_md.output import Format
from kanban_md.output.serialize import output_json
from kanban_md.output.table import config_table


def _text(value) -> str:
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


@handles_errors
def config_show(args) -> int:
    """Show every config key and its value."""
    cfg = load_config_or_die(args)
    fmt = output_format(args)
    if fmt == Format.JSON:
        output_json(cfg.to_dict())
        return 0

    values = {key: _text(get_value(cfg, key)) for key in CONFIG_ACCESSORS}
    if fmt == Format.COMPACT:
        for key, value in values.items():
            print(f"{key}={value}")
    else:
        config_table(console(args), values)
    return 0


@handles_errors
def config_get(args) -> int:
    """Print one config value."""
    cfg = load_config_or_die(args)
    value = get_value(cfg, args.key)
    output_result({"key": args.key, "value": value}, _text(value), args)
    return 0


@handles_errors
def config_set(args) -> int:
    """Set a writable config value."""
    cfg = load_config_or_die(args)
    set_value(cfg, args.key, args.value)
    value = get_value(cfg, args.key)
    output_result({"key": args.key, "value": value}, f"Set {args.key} = {_text(value)}", args)
    return 0
