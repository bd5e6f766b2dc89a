"""Data models for PingGraph sampling."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FailureReason(Enum):
    """Why a sampling cycle produced a lost sample."""

    INVALID_ADDRESS = "invalid_address"
    RESOLUTION_FAILED = "resolution_failed"
    PROBE_FAILED = "probe_failed"


class ProbeError(Exception):
    """Base class for failures of a single sampling cycle.

    Raised by the resolver and the prober, caught only by the sampler, which
    turns it into a lost sample and an inline error message.
    """

    reason = FailureReason.PROBE_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAddressError(ProbeError):
    """The address string cannot be parsed into a resolvable host."""

    reason = FailureReason.INVALID_ADDRESS


class ResolutionFailedError(ProbeError):
    """The address parsed but the system resolver returned no endpoint."""

    reason = FailureReason.RESOLUTION_FAILED


class ProbeFailedError(ProbeError):
    """The endpoint did not answer (timeout, unreachable, permission...)."""

    reason = FailureReason.PROBE_FAILED


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one sampling cycle: a latency or a failure reason."""

    address: str
    latency_ms: float | None = None
    reason: FailureReason | None = None
    message: str = ""
    ts: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Reject outcomes that are neither a clean success nor a clean failure."""
        if self.latency_ms is None and self.reason is None:
            raise ValueError("outcome needs either latency_ms or reason")
        if self.latency_ms is not None and self.reason is not None:
            raise ValueError("outcome cannot carry both latency_ms and reason")
        if self.latency_ms is not None and not self.latency_ms >= 0:
            raise ValueError(f"latency_ms must be >= 0, got {self.latency_ms}")

    @classmethod
    def success(cls, address: str, latency_ms: float) -> "ProbeOutcome":
        return cls(address=address, latency_ms=float(latency_ms))

    @classmethod
    def failure(cls, address: str, reason: FailureReason, message: str) -> "ProbeOutcome":
        return cls(address=address, reason=reason, message=message)

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass(frozen=True)
class Sample:
    """A single point of the series; latency_ms is None for a lost cycle."""

    sequence_index: int
    latency_ms: float | None
    ts: datetime = field(default_factory=datetime.now)

    @property
    def lost(self) -> bool:
        return self.latency_ms is None

    @property
    def value(self) -> float:
        """Plottable value: NaN for a lost sample so it renders as a gap."""
        if self.latency_ms is None:
            return math.nan
        return self.latency_ms


@dataclass(frozen=True)
class Stats:
    """Latency summary over the successful samples of a series."""

    best: float
    worst: float
    average: float


@dataclass
class LossCounters:
    """Attempt and loss totals since the last reset."""

    total_attempts: int = 0
    lost_count: int = 0

    def record(self, lost: bool) -> None:
        self.total_attempts += 1
        if lost:
            self.lost_count += 1

    def reset(self) -> None:
        self.total_attempts = 0
        self.lost_count = 0

    @property
    def loss_percent(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return 100.0 * self.lost_count / self.total_attempts
