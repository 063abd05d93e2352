"""Retry driver and retry/backoff helpers for recoverable operations."""

from __future__ import annotations

import logging as py_logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from retrier.backoff import WaitPolicy
from retrier.combinators import max_tries
from retrier.errors import RetryCancelledError, RetryExhaustedError, is_exhausted

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

AttemptResult = tuple[bool, BaseException | None]
Operation = Callable[[int], AttemptResult]


class RecoverableError(Exception):
    """Transient failure that can be retried."""


class FatalError(Exception):
    """Non-recoverable failure that should stop immediately."""


class RetryState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


class Retrier:
    """Alternate wait, sleep and operation until the operation reports done.

    The wait policy is the single source of truth for termination: the loop
    has no attempt limit of its own, so a policy without ``max_tries`` or
    ``deadline`` retries forever unless the operation reports done.

    Every completed attempt appends its error (or ``None``) to a history that
    is cleared at the start of each :meth:`do` call and can be bounded with
    ``history_limit``.
    """

    def __init__(
        self,
        wait: WaitPolicy,
        operation: Operation,
        *,
        sleep: Callable[[float], None] = time.sleep,
        history_limit: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        if history_limit is not None and history_limit < 1:
            raise ValueError(f"history_limit must be positive: {history_limit}")
        self.wait = wait
        self.operation = operation
        self.sleep = sleep
        self.cancel_event = cancel_event
        self._errors: deque[BaseException | None] = deque(maxlen=history_limit)
        self._state = RetryState.IDLE
        self._attempts = 0

    @property
    def errors(self) -> list[BaseException | None]:
        return list(self._errors)

    @property
    def state(self) -> RetryState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    def reset(self) -> None:
        self._errors.clear()
        self._state = RetryState.IDLE
        self._attempts = 0

    def do(self) -> None:
        """Run until the operation is done or the wait policy raises.

        Returns ``None`` when the final attempt reports done without error.
        The error of a done attempt, any exception raised by the wait policy
        (``RetryExhaustedError`` included) and ``RetryCancelledError`` are
        raised to the caller.
        """
        self.reset()
        self._state = RetryState.RUNNING
        try:
            self._run()
        finally:
            self._state = RetryState.TERMINATED

    def _run(self) -> None:
        attempt = 0
        while True:
            try:
                delay = self.wait(attempt)
            except Exception as exc:
                if is_exhausted(exc):
                    logger.warning("Retries exhausted after %s attempts", self._attempts)
                else:
                    logger.warning("Wait policy failed at attempt=%s: %s", attempt, exc)
                raise

            logger.debug("Waiting %.3fs before attempt=%s", delay, attempt)
            self._pause(delay)

            done, error = self._invoke(attempt)
            self._attempts += 1
            self._errors.append(error)
            if error is not None:
                logger.debug("Attempt=%s done=%s error=%s", attempt, done, error)
            if done:
                if error is not None:
                    logger.warning("Operation finished with error at attempt=%s: %s", attempt, error)
                    raise error
                logger.debug("Operation succeeded at attempt=%s", attempt)
                return
            attempt += 1

    def _pause(self, delay: float) -> None:
        if self.cancel_event is None:
            if delay > 0:
                self.sleep(delay)
            return
        if self.cancel_event.wait(max(delay, 0.0)):
            logger.warning("Retry cancelled while waiting %.3fs", delay)
            raise RetryCancelledError()

    def _invoke(self, attempt: int) -> AttemptResult:
        try:
            return self.operation(attempt)
        except RecoverableError as exc:
            return False, exc
        except FatalError as exc:
            return True, exc


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_backoff_seconds: float = 0.5
    multiplier: float = 2.0

    def wait_policy(self) -> WaitPolicy:
        """First attempt runs immediately, later ones back off geometrically."""

        def wait(attempt: int) -> float:
            if attempt == 0:
                return 0.0
            return self.initial_backoff_seconds * self.multiplier ** (attempt - 1)

        return max_tries(self.max_attempts - 1, wait)


def run_with_retry(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    results: list[T] = []

    def attempt_once(attempt: int) -> AttemptResult:
        results.append(operation())
        return True, None

    retrier = Retrier(policy.wait_policy(), attempt_once, sleep=sleep)
    try:
        retrier.do()
    except RetryExhaustedError:
        last_error = next((error for error in reversed(retrier.errors) if error is not None), None)
        if last_error is not None:
            raise last_error from None
        raise RuntimeError("Retry policy exhausted without executing operation.") from None
    return results[-1]
