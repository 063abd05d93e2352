"""Retry an operation with composable backoff policies."""

from .backoff import (
    WaitPolicy,
    constant,
    exponential_backoff,
    linear,
    linear_backoff,
    linear_backoff_millisecond,
    linear_backoff_second,
)
from .combinators import deadline, max_interval, max_tries, min_interval
from .errors import (
    CommandFailedError,
    ExitCode,
    RetrierError,
    RetryCancelledError,
    RetryExhaustedError,
    is_exhausted,
)
from .retry import (
    FatalError,
    Operation,
    RecoverableError,
    Retrier,
    RetryPolicy,
    RetryState,
    run_with_retry,
)

__all__ = [
    "CommandFailedError",
    "constant",
    "deadline",
    "ExitCode",
    "exponential_backoff",
    "FatalError",
    "is_exhausted",
    "linear",
    "linear_backoff",
    "linear_backoff_millisecond",
    "linear_backoff_second",
    "max_interval",
    "max_tries",
    "min_interval",
    "Operation",
    "RecoverableError",
    "Retrier",
    "RetrierError",
    "RetryCancelledError",
    "RetryExhaustedError",
    "RetryPolicy",
    "RetryState",
    "run_with_retry",
    "WaitPolicy",
]
