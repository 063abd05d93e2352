"""Backoff policies mapping an attempt index to a wait duration in seconds."""

from __future__ import annotations

import math
from collections.abc import Callable

WaitPolicy = Callable[[int], float]

SECOND = 1.0
MILLISECOND = 0.001


def _check_attempt(attempt: int) -> int:
    if attempt < 0:
        raise ValueError(f"Attempt index must be non-negative: {attempt}")
    return attempt


def exponential_backoff(attempt: int) -> float:
    """Wait ``2 ** attempt`` seconds. Unbounded; clamp with ``max_interval``.

    Indices too large for a float map to ``math.inf`` so a clamp still applies.
    """
    try:
        return float(2 ** _check_attempt(attempt)) * SECOND
    except OverflowError:
        return math.inf


def linear_backoff(attempt: int, unit: float) -> float:
    return _check_attempt(attempt) * unit


def linear_backoff_second(attempt: int) -> float:
    return linear_backoff(attempt, SECOND)


def linear_backoff_millisecond(attempt: int) -> float:
    return linear_backoff(attempt, MILLISECOND)


def linear(unit: float) -> WaitPolicy:
    def policy(attempt: int) -> float:
        return linear_backoff(attempt, unit)

    return policy


def constant(seconds: float) -> WaitPolicy:
    """Wait the same duration before every attempt, including the first."""

    def policy(attempt: int) -> float:
        _check_attempt(attempt)
        return seconds

    return policy
