"""Error model tests."""

from __future__ import annotations

from retrier.errors import (
    CommandFailedError,
    ExitCode,
    RetrierError,
    RetryCancelledError,
    RetryExhaustedError,
    is_exhausted,
    user_facing_error,
)
from retrier.retry import FatalError, RecoverableError


def test_exit_code_values() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.CONFIG_ERROR) == 3
    assert int(ExitCode.RUNTIME_ERROR) == 4
    assert int(ExitCode.EXHAUSTED) == 5
    assert int(ExitCode.CANCELLED) == 6
    assert int(ExitCode.COMMAND_FAILED) == 7


def test_user_facing_error_without_hint() -> None:
    assert user_facing_error("something went wrong") == "Error: something went wrong."


def test_user_facing_error_with_hint() -> None:
    result = user_facing_error("something went wrong", hint="try again")
    assert result == "Error: something went wrong. Next step: try again"


def test_retrier_error_str_with_and_without_hint() -> None:
    assert str(RetrierError("msg")) == "msg"
    assert "hint" in str(RetrierError("msg", hint="hint"))


def test_exhaustion_error_defaults() -> None:
    error = RetryExhaustedError()

    assert error.code == ExitCode.EXHAUSTED
    assert isinstance(error, RetrierError)
    assert "never succeeded" in str(error)


def test_is_exhausted_only_matches_exhaustion() -> None:
    assert is_exhausted(RetryExhaustedError())
    assert not is_exhausted(None)
    assert not is_exhausted(RetrierError("other"))
    assert not is_exhausted(RetryCancelledError())
    assert not is_exhausted(CommandFailedError(returncode=3))
    assert not is_exhausted(RecoverableError("temporary"))
    assert not is_exhausted(FatalError("fatal"))
    assert not is_exhausted(ValueError("nope"))
