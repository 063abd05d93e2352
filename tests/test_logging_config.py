from __future__ import annotations

import io
import logging as py_logging
import logging.handlers as py_handlers
from pathlib import Path

import pytest

import retrier.logging as rt_logging


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(rt_logging.LOG_LEVEL_ENV, raising=False)


def test_level_defaults_to_info_and_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    assert rt_logging.resolve_level() == py_logging.INFO

    monkeypatch.setenv(rt_logging.LOG_LEVEL_ENV, "debug")

    assert rt_logging.resolve_level() == py_logging.DEBUG
    assert rt_logging.resolve_level("error") == py_logging.ERROR


def test_unknown_level_falls_back_to_info() -> None:
    assert rt_logging.resolve_level("not-a-level") == py_logging.INFO


def test_console_only_logger_uses_requested_level() -> None:
    logger = rt_logging.configure_logging("warning", io.StringIO())

    assert logger.level == py_logging.WARNING
    assert len(logger.handlers) == 1


def test_repeated_configuration_replaces_handlers() -> None:
    rt_logging.configure_logging("INFO", io.StringIO())
    logger = rt_logging.configure_logging("INFO", io.StringIO())

    assert len(logger.handlers) == 1


def test_log_file_rotates_and_keeps_debug_attempts(tmp_path: Path) -> None:
    stream = io.StringIO()
    log_file = tmp_path / "logs" / "retrier.log"

    logger = rt_logging.configure_logging("ERROR", stream, log_file=log_file)
    py_logging.getLogger("retrier.retry").debug("attempt=3 waiting")

    rotating = [h for h in logger.handlers if isinstance(h, py_handlers.RotatingFileHandler)]
    assert len(rotating) == 1
    assert rotating[0].maxBytes == rt_logging.LOG_FILE_MAX_BYTES
    rotating[0].flush()
    assert "attempt=3 waiting" in log_file.read_text(encoding="utf-8")
    assert stream.getvalue() == ""


def test_unwritable_log_file_keeps_console_only(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(rt_logging.py_handlers, "RotatingFileHandler", raise_os_error)

    logger = rt_logging.configure_logging("INFO", io.StringIO(), log_file=tmp_path / "nope" / "retrier.log")

    assert [type(handler) for handler in logger.handlers] == [py_logging.StreamHandler]
    assert logger.level == py_logging.INFO


def test_console_lines_are_prefixed_with_program_name() -> None:
    stream = io.StringIO()
    rt_logging.configure_logging("DEBUG", stream)

    py_logging.getLogger("retrier.combinators").warning("deadline passed")

    assert stream.getvalue().strip() == "retrier WARNING deadline passed"
