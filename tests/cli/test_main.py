"""Tests for argument parsing and the main entry point."""

import json

import pytest

from kanban_md.__main__ import main
from kanban_md.cli import build_parser
from kanban_md.cli.task import task_list
from kanban_md.cli.tui import tui


def _main(*argv):
    with pytest.raises(SystemExit) as exc:
        main(list(argv))
    return exc.value.code


def test_global_flags_before_and_after_command():
    parser = build_parser()

    before = parser.parse_args(["--json", "--dir", "/tmp/b", "list"])
    after = parser.parse_args(["list", "--json", "--dir", "/tmp/b"])
    for args in (before, after):
        assert args.json is True
        assert args.dir == "/tmp/b"
        assert args.func is task_list


def test_global_defaults():
    args = build_parser().parse_args(["list"])
    assert args.json is False
    assert args.table is False
    assert args.compact is False
    assert args.dir is None
    assert args.verbose is False
    assert args.sort == "id"
    assert args.limit == 0


def test_oneline_alias():
    args = build_parser().parse_args(["ls", "--oneline"])
    assert args.compact is True


def test_output_flags_are_exclusive(capsys):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["list", "--json", "--table"])


def test_no_command_means_tui():
    args = build_parser().parse_args([])
    assert getattr(args, "func", tui) is tui


def test_main_create_and_list(board_dir, capsys):
    assert _main("--dir", str(board_dir), "create", "First", "--json") == 0
    capsys.readouterr()

    assert _main("list", "--dir", str(board_dir), "--json") == 0
    assert [t["title"] for t in json.loads(capsys.readouterr().out)] == ["First"]


def test_main_error_exit_code(board_dir, capsys):
    assert _main("--dir", str(board_dir), "show", "5", "--json") == 1
    data = json.loads(capsys.readouterr().out)
    assert data == {"error_code": "TASK_NOT_FOUND", "message": "task not found: #5", "details": {"id": 5}}


def test_main_missing_board(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert _main("list", "--table") == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_main_internal_error_in_json(board_dir, tmp_path, capsys):
    target = tmp_path / "a-directory"
    target.mkdir()
    assert _main("--dir", str(board_dir), "context", "--write-to", str(target), "--json") == 2
    assert json.loads(capsys.readouterr().out)["error_code"] == "INTERNAL_ERROR"


def test_main_internal_error_in_text(board_dir, tmp_path, capsys):
    target = tmp_path / "a-directory"
    target.mkdir()
    assert _main("--dir", str(board_dir), "context", "--write-to", str(target), "--table") == 1
    assert capsys.readouterr().err.startswith("error: ")
