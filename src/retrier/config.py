"""TOML-backed retry configuration."""

from __future__ import annotations

import math
import os
import sys
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, model_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from retrier.backoff import WaitPolicy, constant, exponential_backoff, linear
from retrier.combinators import deadline, max_interval, max_tries, min_interval

DEFAULT_CONFIG_PATH = Path("~/.config/retrier/config.toml").expanduser()
DEFAULT_BACKOFF: Literal["exponential", "linear", "constant"] = "exponential"
DEFAULT_UNIT_SECONDS = 1.0
DEFAULT_MAX_TRIES = 5
MAX_TRIES_ENV = "RETRIER_MAX_TRIES"

_VALID_BACKOFFS = {"exponential", "linear", "constant"}
_OPTIONAL_SECONDS = ("min_interval_seconds", "max_interval_seconds", "deadline_seconds")


class RetryConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    backoff: Literal["exponential", "linear", "constant"] = DEFAULT_BACKOFF
    unit_seconds: float = Field(default=DEFAULT_UNIT_SECONDS, ge=0, allow_inf_nan=False)
    max_tries: int | None = Field(default=DEFAULT_MAX_TRIES, ge=0)
    min_interval_seconds: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    max_interval_seconds: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    deadline_seconds: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    history_limit: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _validate_interval_bounds(self) -> RetryConfig:
        low = self.min_interval_seconds
        high = self.max_interval_seconds
        if low is not None and high is not None and low > high:
            raise ValueError(f"min_interval_seconds ({low}) exceeds max_interval_seconds ({high})")
        return self


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _optional_seconds(value: object) -> float | None:
    if _is_number(value) and value >= 0:
        return float(value)
    return None


def _env_max_tries() -> int | None:
    raw = os.getenv(MAX_TRIES_ENV, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def _sanitize(raw: dict[str, object]) -> RetryConfig:
    cfg = RetryConfig()

    backoff = raw.get("backoff", cfg.backoff)
    if isinstance(backoff, str) and backoff in _VALID_BACKOFFS:
        cfg.backoff = cast(Literal["exponential", "linear", "constant"], backoff)

    unit_seconds = raw.get("unit_seconds", cfg.unit_seconds)
    if _is_number(unit_seconds) and unit_seconds >= 0:
        cfg.unit_seconds = float(unit_seconds)

    # TOML has no null; "max_tries = -1" disables the attempt bound.
    max_tries_value = raw.get("max_tries", cfg.max_tries)
    if isinstance(max_tries_value, int) and not isinstance(max_tries_value, bool):
        cfg.max_tries = max_tries_value if max_tries_value >= 0 else None
    env_max_tries = _env_max_tries()
    if env_max_tries is not None:
        cfg.max_tries = env_max_tries

    min_seconds = _optional_seconds(raw.get("min_interval_seconds"))
    max_seconds = _optional_seconds(raw.get("max_interval_seconds"))
    if min_seconds is not None and max_seconds is not None and min_seconds > max_seconds:
        max_seconds = None
    cfg.min_interval_seconds = min_seconds
    cfg.max_interval_seconds = max_seconds

    deadline_seconds = _optional_seconds(raw.get("deadline_seconds"))
    if deadline_seconds:
        cfg.deadline_seconds = deadline_seconds

    history_limit = raw.get("history_limit")
    if isinstance(history_limit, int) and not isinstance(history_limit, bool) and history_limit >= 1:
        cfg.history_limit = history_limit

    return cfg


def load_config(path: str | Path | None = None) -> RetryConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _sanitize({})
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _sanitize({})
    if not isinstance(raw, dict):
        return _sanitize({})
    return _sanitize(raw)


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def save_config(config: RetryConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"backoff = {_toml_scalar(config.backoff)}",
        f"unit_seconds = {_toml_scalar(config.unit_seconds)}",
        f"max_tries = {_toml_scalar(config.max_tries if config.max_tries is not None else -1)}",
    ]
    for key in (*_OPTIONAL_SECONDS, "history_limit"):
        value = getattr(config, key)
        if value is not None:
            lines.append(f"{key} = {_toml_scalar(value)}")

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return resolved


def build_wait_policy(config: RetryConfig) -> WaitPolicy:
    """Compose backoff, then clamps, then the attempt bound, then the deadline."""
    policy: WaitPolicy
    if config.backoff == "linear":
        policy = linear(config.unit_seconds)
    elif config.backoff == "constant":
        policy = constant(config.unit_seconds)
    else:
        policy = exponential_backoff

    if config.min_interval_seconds is not None:
        policy = min_interval(config.min_interval_seconds, policy)
    if config.max_interval_seconds is not None:
        policy = max_interval(config.max_interval_seconds, policy)
    if config.max_tries is not None:
        policy = max_tries(config.max_tries, policy)
    if config.deadline_seconds is not None:
        policy = deadline(config.deadline_seconds, policy)
    return policy
