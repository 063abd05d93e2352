"""Wait-policy combinators.

Every combinator takes a wait policy and returns a wait policy. The wrapped
policy is called at most once per invocation and anything it raises passes
through unchanged.
"""

from __future__ import annotations

import logging as py_logging
import time
from collections.abc import Callable

from retrier.backoff import WaitPolicy
from retrier.errors import RetryExhaustedError

logger = py_logging.getLogger(__name__)


def max_tries(max_iterations: int, policy: WaitPolicy) -> WaitPolicy:
    """Reject every attempt index greater than ``max_iterations``.

    The operation therefore runs at most ``max_iterations + 1`` times
    (indices ``0..max_iterations``).
    """

    def bounded(attempt: int) -> float:
        if attempt > max_iterations:
            logger.debug("Attempt %s exceeds max_tries=%s", attempt, max_iterations)
            raise RetryExhaustedError(hint=f"Allowed attempt indices are 0..{max_iterations}.")
        return policy(attempt)

    return bounded


def max_interval(ceiling: float, policy: WaitPolicy) -> WaitPolicy:
    def clamped(attempt: int) -> float:
        delay = policy(attempt)
        if delay > ceiling:
            return ceiling
        return delay

    return clamped


def min_interval(floor: float, policy: WaitPolicy) -> WaitPolicy:
    def clamped(attempt: int) -> float:
        delay = policy(attempt)
        if delay < floor:
            return floor
        return delay

    return clamped


def deadline(
    seconds: float,
    policy: WaitPolicy,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> WaitPolicy:
    """Exhaust once ``seconds`` have elapsed since attempt 0 of the current run.

    The clock restarts whenever attempt 0 is requested, so the same policy can
    drive repeated ``Retrier.do`` calls.
    """
    started: list[float] = []

    def bounded(attempt: int) -> float:
        now = clock()
        if attempt == 0 or not started:
            started[:] = [now]
        elapsed = now - started[0]
        if elapsed > seconds:
            logger.debug("Deadline of %ss passed at attempt %s (elapsed=%.3fs)", seconds, attempt, elapsed)
            raise RetryExhaustedError(hint=f"Deadline of {seconds}s elapsed.")
        return policy(attempt)

    return bounded
