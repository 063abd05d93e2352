"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import math
import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import ValidationError

from .command import CommandOperation
from .config import RetryConfig, build_wait_policy, load_config
from .errors import ExitCode, RetrierError, RetryExhaustedError, user_facing_error
from .logging import configure_logging, resolve_level
from .retry import Retrier

_VALID_BACKOFFS = ("exponential", "linear", "constant")
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("value must not be negative")
    return number


def _seconds_type(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected seconds, got {value!r}") from exc
    if not math.isfinite(seconds):
        raise argparse.ArgumentTypeError(f"seconds must be finite, got {value!r}")
    if seconds < 0:
        raise argparse.ArgumentTypeError("seconds must not be negative")
    return seconds


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retrier",
        description="Run a command until it succeeds, backing off between attempts.",
    )
    parser.add_argument("--config", type=Path, default=None, help="TOML config file")
    parser.add_argument("--backoff", choices=_VALID_BACKOFFS, default=None)
    parser.add_argument("--unit", type=_seconds_type, default=None, help="Linear unit or constant delay")
    parser.add_argument(
        "--max-tries",
        type=_non_negative_int,
        default=None,
        help="Highest attempt index allowed (the command runs at most N+1 times)",
    )
    parser.add_argument("--min-interval", type=_seconds_type, default=None)
    parser.add_argument("--max-interval", type=_seconds_type, default=None)
    parser.add_argument("--deadline", type=_seconds_type, default=None)
    parser.add_argument("--timeout", type=_seconds_type, default=None, help="Per-attempt timeout")
    parser.add_argument(
        "--retry-on",
        type=int,
        action="append",
        default=None,
        help="Only retry these exit codes (repeatable)",
    )
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("command", nargs="+", help="Command to run, after --")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_config(namespace: argparse.Namespace) -> RetryConfig:
    config = load_config(namespace.config)
    overrides = {
        "backoff": namespace.backoff,
        "unit_seconds": namespace.unit,
        "max_tries": namespace.max_tries,
        "min_interval_seconds": namespace.min_interval,
        "max_interval_seconds": namespace.max_interval,
        "deadline_seconds": namespace.deadline,
    }
    merged = config.model_dump()
    merged.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return RetryConfig.model_validate(merged)
    except ValidationError as exc:
        raise RetrierError(
            "Invalid retry configuration.",
            code=ExitCode.CONFIG_ERROR,
            hint="; ".join(error["msg"] for error in exc.errors()),
        ) from exc


def run_cli_flow(
    namespace: argparse.Namespace,
    *,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    config = resolve_config(namespace)
    operation = CommandOperation(
        namespace.command,
        runner=runner,
        timeout_seconds=namespace.timeout,
        retry_on=set(namespace.retry_on) if namespace.retry_on else None,
        history_limit=1,
    )
    retrier = Retrier(
        build_wait_policy(config),
        operation,
        sleep=sleep,
        history_limit=config.history_limit,
    )
    try:
        retrier.do()
    except RetryExhaustedError as exc:
        last_error = next((error for error in reversed(retrier.errors) if error is not None), None)
        if last_error is not None:
            exc.hint = f"Last error: {last_error}"
        raise
    finally:
        if operation.history and operation.history[-1].output:
            print(operation.history[-1].output)
    return int(ExitCode.SUCCESS)


def main(
    argv: Sequence[str] | None = None,
    *,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    logger = configure_logging()
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    logger = configure_logging(level=namespace.log_level, log_file=namespace.log_file)

    try:
        logger.debug("Starting retry flow command=%s", namespace.command)
        return run_cli_flow(namespace, runner=runner, sleep=sleep)
    except RetrierError as exc:
        logger.error(
            "Handled RetrierError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=resolve_level(namespace.log_level) <= py_logging.DEBUG,
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        if namespace.log_file is not None:
            hint = f"Inspect logs: {namespace.log_file.expanduser()}"
        else:
            hint = "Re-run with --log-level DEBUG."
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
