"""Machine-readable error codes and the exception that carries them."""

from enum import Enum


class ErrorCode(str, Enum):
    BOARD_NOT_FOUND = "BOARD_NOT_FOUND"
    BOARD_ALREADY_EXISTS = "BOARD_ALREADY_EXISTS"
    INVALID_CONFIG = "INVALID_CONFIG"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    INVALID_TASK_ID = "INVALID_TASK_ID"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_PRIORITY = "INVALID_PRIORITY"
    INVALID_CLASS = "INVALID_CLASS"
    INVALID_DATE = "INVALID_DATE"
    INVALID_INPUT = "INVALID_INPUT"
    WIP_LIMIT_EXCEEDED = "WIP_LIMIT_EXCEEDED"
    STATUS_BOUNDARY = "STATUS_BOUNDARY"
    STATUS_CONFLICT = "STATUS_CONFLICT"
    TASK_CLAIMED = "TASK_CLAIMED"
    CLAIM_REQUIRED = "CLAIM_REQUIRED"
    NOTHING_TO_PICK = "NOTHING_TO_PICK"
    NO_CHANGES = "NO_CHANGES"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    DEPENDENCY_NOT_FOUND = "DEPENDENCY_NOT_FOUND"
    SELF_REFERENCE = "SELF_REFERENCE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Every user-facing kind exits 1; only internal failures exit 2.
EXIT_CODES: dict[ErrorCode, int] = {code: 1 for code in ErrorCode}
EXIT_CODES[ErrorCode.INTERNAL_ERROR] = 2


class KanbanError(Exception):
    """A structured failure with a stable code, a human message and optional details."""

    def __init__(self, code: ErrorCode, message: str, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.code]

    def to_dict(self) -> dict:
        data: dict = {"error_code": self.code.value, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data

    def __repr__(self) -> str:
        return f"KanbanError({self.code.value}, {self.message!r})"
