"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    EXHAUSTED = 5
    CANCELLED = 6
    COMMAND_FAILED = 7


@dataclass
class RetrierError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class RetryExhaustedError(RetrierError):
    """Raised by the wait-policy layer once no more attempts are permitted."""

    message: str = "Operation never succeeded within the allowed attempts."
    code: ExitCode = ExitCode.EXHAUSTED
    hint: str = ""


@dataclass
class RetryCancelledError(RetrierError):
    message: str = "Retry was cancelled while waiting for the next attempt."
    code: ExitCode = ExitCode.CANCELLED
    hint: str = ""


@dataclass
class CommandFailedError(RetrierError):
    message: str = "Command failed."
    code: ExitCode = ExitCode.COMMAND_FAILED
    hint: str = ""
    returncode: int = 1


def is_exhausted(error: BaseException | None) -> bool:
    return isinstance(error, RetryExhaustedError)


def user_facing_error(message: str, *, hint: str = "") -> str:
    message = message.rstrip(".")
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
