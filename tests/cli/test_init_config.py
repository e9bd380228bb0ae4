"""Tests for 'init' and 'config' commands."""

import json
from argparse import Namespace

import pytest

from kanban_md.cli.init import init
from kanban_md.model.config import load


def _init_args(**overrides):
    args = dict(dir=None, json=True, name=None, statuses=None, wip_limit=None)
    args.update(overrides)
    return Namespace(**args)


def test_init_default_dir(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert init(_init_args()) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["status"] == "initialized"
    assert data["dir"] == str((tmp_path / "kanban").resolve())
    assert data["name"] == tmp_path.resolve().name
    assert data["columns"] == ["backlog", "todo", "in-progress", "review", "done", "archived"]
    assert (tmp_path / "kanban" / "config.yml").exists()
    assert (tmp_path / "kanban" / "tasks").is_dir()


def test_init_custom(tmp_path, capsys):
    board_dir = tmp_path / "board"
    args = _init_args(dir=str(board_dir), name="Sprint", statuses="open,doing,closed", wip_limit=["doing:2"])
    assert init(args) == 0
    capsys.readouterr()

    cfg = load(board_dir)
    assert cfg.board_name == "Sprint"
    assert cfg.status_names() == ["open", "doing", "closed", "archived"]
    assert cfg.wip_limits == {"doing": 2}


def test_init_twice(board_dir, capsys):
    with pytest.raises(SystemExit):
        init(_init_args(dir=str(board_dir)))
    assert json.loads(capsys.readouterr().out)["error_code"] == "BOARD_ALREADY_EXISTS"


def test_init_bad_wip_limit(tmp_path, capsys):
    with pytest.raises(SystemExit):
        init(_init_args(dir=str(tmp_path / "kb"), wip_limit=["doing"]))
    assert json.loads(capsys.readouterr().out)["error_code"] == "INVALID_INPUT"


def test_init_text(tmp_path, capsys):
    init(_init_args(dir=str(tmp_path / "kb"), json=False, table=True, name="Home"))
    out = capsys.readouterr().out
    assert out.startswith("Initialized board 'Home' in ")
    assert "Columns: backlog, todo, in-progress, review, done, archived" in out


def test_config_show(run, capsys):
    assert run("config", "--json") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["board"] == {"name": "Test Board"}
    assert data["next_id"] == 1

    run("config", "show", "--compact")
    lines = capsys.readouterr().out.splitlines()
    assert "board.name=Test Board" in lines
    assert 'priorities=["low", "medium", "high", "critical"]' in lines


def test_config_get_set(run, board_dir, capsys):
    assert run("config", "set", "defaults.priority", "high", "--json") == 0
    assert json.loads(capsys.readouterr().out) == {"key": "defaults.priority", "value": "high"}
    assert load(board_dir).default_priority == "high"

    run("config", "get", "defaults.priority", "--table")
    assert capsys.readouterr().out == "high\n"


def test_config_set_read_only(run, capsys):
    with pytest.raises(SystemExit):
        run("config", "set", "next_id", "5", "--json")
    assert "read-only" in json.loads(capsys.readouterr().out)["message"]


def test_config_unknown_key(run, capsys):
    with pytest.raises(SystemExit):
        run("config", "get", "board.colour", "--table")
    assert capsys.readouterr().err.startswith("error: unknown config key 'board.colour'")
