"""Entry point for the kanban-md CLI."""

import logging
import sys

from kanban_md.cli import build_parser
from kanban_md.cli._common import json_mode
from kanban_md.cli.tui import tui
from kanban_md.errors import ErrorCode, KanbanError
from kanban_md.output.serialize import error_json


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # No command = TUI mode
    func = getattr(args, "func", tui)

    try:
        code = func(args)
    except KanbanError as e:
        # Raised outside a handler's own error handling
        code = e.exit_code
        if json_mode(args):
            error_json(e)
        else:
            print(f"error: {e.message}", file=sys.stderr)
    except (OSError, ValueError) as e:
        logging.getLogger(__name__).debug("unhandled error", exc_info=True)
        if json_mode(args):
            error_json(KanbanError(ErrorCode.INTERNAL_ERROR, str(e)))
            code = 2
        else:
            print(f"error: {e}", file=sys.stderr)
            code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
