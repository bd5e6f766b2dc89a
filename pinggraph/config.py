"""Configuration for PingGraph.

There are no command line flags. Everything tunable comes from environment
variables, read once at startup:

    PINGGRAPH_PROBER            "ping" (default) or "fake"
    PINGGRAPH_PROBE_TIMEOUT_MS  ping deadline, 1000..4000 (default 2000)
    PINGGRAPH_SUCCESS_DELAY_S   pause after a successful cycle (default 1.0)
    PINGGRAPH_FAILURE_DELAY_S   pause after a failed cycle (default 2.0)
    PINGGRAPH_MAX_SAMPLES       series length cap, 0 for unbounded (default 0)

PINGGRAPH_LOG_LEVEL is read by pinggraph.logging_config.
"""

import os
from dataclasses import dataclass

# The target always starts here; nothing is persisted between runs
DEFAULT_ADDRESS = "8.8.8.8"

ERROR_DISPLAY_LIMIT = 90

# Plot scale
AUTO_SCALE_HEADROOM_MS = 10.0
AUTO_SCALE_FALLBACK_MAX_MS = 100.0
MANUAL_SCALE_RANGE = (10, 2000)
MANUAL_SCALE_DEFAULT = 100

# Consumer tick, roughly 60 Hz when focused and 5 Hz otherwise
ACTIVE_TICK_MS = 16
INACTIVE_TICK_MS = 200

PROBE_TIMEOUT_RANGE_MS = (1000, 4000)
PROBER_CHOICES = ("ping", "fake")


class ConfigError(ValueError):
    """An environment variable holds an unusable value."""


def _read_float(env, name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


def _read_int(env, name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class AppConfig:
    """Settings resolved at startup."""

    prober: str = "ping"
    probe_timeout_ms: int = 2000
    success_delay_s: float = 1.0
    failure_delay_s: float = 2.0
    max_samples: int | None = None

    @classmethod
    def from_env(cls, env=None) -> "AppConfig":
        """Build settings from environment variables.

        Args:
            env: Mapping to read from, defaults to os.environ

        Raises:
            ConfigError: If a variable is set to an invalid value
        """
        if env is None:
            env = os.environ

        prober = env.get("PINGGRAPH_PROBER", "ping").strip().lower() or "ping"
        if prober not in PROBER_CHOICES:
            raise ConfigError(
                f"PINGGRAPH_PROBER must be one of {', '.join(PROBER_CHOICES)}, got {prober!r}"
            )

        timeout_ms = _read_int(env, "PINGGRAPH_PROBE_TIMEOUT_MS", cls.probe_timeout_ms)
        low, high = PROBE_TIMEOUT_RANGE_MS
        if not low <= timeout_ms <= high:
            raise ConfigError(
                f"PINGGRAPH_PROBE_TIMEOUT_MS must be between {low} and {high}, got {timeout_ms}"
            )

        success_delay = _read_float(env, "PINGGRAPH_SUCCESS_DELAY_S", cls.success_delay_s)
        failure_delay = _read_float(env, "PINGGRAPH_FAILURE_DELAY_S", cls.failure_delay_s)
        if failure_delay < success_delay:
            raise ConfigError(
                "PINGGRAPH_FAILURE_DELAY_S must not be shorter than PINGGRAPH_SUCCESS_DELAY_S"
            )

        max_samples = _read_int(env, "PINGGRAPH_MAX_SAMPLES", 0)
        if max_samples < 0:
            raise ConfigError(f"PINGGRAPH_MAX_SAMPLES must not be negative, got {max_samples}")

        return cls(
            prober=prober,
            probe_timeout_ms=timeout_ms,
            success_delay_s=success_delay,
            failure_delay_s=failure_delay,
            max_samples=max_samples or None,
        )
