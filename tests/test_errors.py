"""Tests for structured errors."""

from kanban_md.errors import ErrorCode, KanbanError


def test_user_errors_exit_1():
    assert KanbanError(ErrorCode.TASK_NOT_FOUND, "nope").exit_code == 1
    assert KanbanError(ErrorCode.NOTHING_TO_PICK, "nothing").exit_code == 1


def test_internal_error_exits_2():
    assert KanbanError(ErrorCode.INTERNAL_ERROR, "boom").exit_code == 2


def test_to_dict_omits_empty_details():
    err = KanbanError(ErrorCode.INVALID_INPUT, "bad input")
    assert err.to_dict() == {"error_code": "INVALID_INPUT", "message": "bad input"}


def test_to_dict_with_details():
    err = KanbanError(ErrorCode.TASK_NOT_FOUND, "task not found: #9", {"id": 9})
    assert err.to_dict() == {"error_code": "TASK_NOT_FOUND", "message": "task not found: #9", "details": {"id": 9}}


def test_str_is_message():
    assert str(KanbanError(ErrorCode.INVALID_INPUT, "bad input")) == "bad input"
