"""Operation adapter that runs a subprocess command per attempt."""

from __future__ import annotations

import logging as py_logging
import subprocess
from collections import deque
from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field

from retrier.errors import CommandFailedError
from retrier.retry import AttemptResult

logger = py_logging.getLogger(__name__)

TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True)
class CommandAttempt:
    attempt: int
    returncode: int
    output: str


@dataclass
class CommandOperation:
    """Run ``argv`` once per attempt; exit code 0 reports done.

    Non-zero exits are retried. When ``retry_on`` is given, only those exit
    codes are retried and any other non-zero exit is done-with-error.

    ``history`` starts over at attempt 0 and keeps at most ``history_limit``
    entries, the most recent last.
    """

    argv: Sequence[str]
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run
    timeout_seconds: float | None = None
    retry_on: Collection[int] | None = None
    history_limit: int | None = None
    history: deque[CommandAttempt] = field(init=False)

    def __post_init__(self) -> None:
        if self.history_limit is not None and self.history_limit < 1:
            raise ValueError(f"history_limit must be positive: {self.history_limit}")
        self.history = deque(maxlen=self.history_limit)

    def __call__(self, attempt: int) -> AttemptResult:
        if attempt == 0:
            self.history.clear()
        logger.debug("Running command attempt=%s argv=%s", attempt, list(self.argv))
        try:
            completed = self.runner(
                list(self.argv),
                shell=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out attempt=%s timeout=%ss", attempt, self.timeout_seconds)
            self.history.append(CommandAttempt(attempt, TIMEOUT_RETURNCODE, "Command timed out."))
            return False, CommandFailedError(
                "Command timed out.",
                hint="Increase --timeout or inspect the hanging process.",
                returncode=TIMEOUT_RETURNCODE,
            )
        except OSError as exc:
            logger.error("Command could not be started argv=%s: %s", list(self.argv), exc)
            self.history.append(CommandAttempt(attempt, 127, str(exc)))
            return True, CommandFailedError(
                "Command could not be started.",
                hint=str(exc),
                returncode=127,
            )

        output = f"{completed.stdout or ''}{completed.stderr or ''}".strip()
        self.history.append(CommandAttempt(attempt, completed.returncode, output))
        if completed.returncode == 0:
            return True, None

        retryable = self.retry_on is None or completed.returncode in self.retry_on
        logger.warning(
            "Command failed attempt=%s returncode=%s retryable=%s",
            attempt,
            completed.returncode,
            retryable,
        )
        error = CommandFailedError(
            f"Command exited with status {completed.returncode}.",
            hint=(completed.stderr or "").strip(),
            returncode=completed.returncode,
        )
        return not retryable, error
