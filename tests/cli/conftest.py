"""Shared fixtures for CLI tests."""

import pytest

from kanban_md.cli import build_parser


@pytest.fixture
def run(board_dir):
    """Parse a command line against the test board and call its handler."""

    def _run(*argv):
        args = build_parser().parse_args(["--dir", str(board_dir), *argv])
        return args.func(args)

    return _run


@pytest.fixture
def no_tty(monkeypatch):
    import io

    monkeypatch.setattr("sys.stdin", io.StringIO(""))
