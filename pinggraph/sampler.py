"""The latency sampling loop.

One cycle snapshots the target, resolves it, probes it, classifies the
outcome, puts exactly one item on the feed and then paces itself: a short
pause after a success, a longer one after a failure. The loop never gives up
on a target; it runs until its stop event is set.
"""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from pinggraph.feed import FeedItem, SampleFeed
from pinggraph.models import FailureReason, ProbeError, ProbeOutcome
from pinggraph.prober import Prober
from pinggraph.resolver import resolve_address
from pinggraph.target_state import SharedTargetState

logger = logging.getLogger(__name__)


class SamplerState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    PROBING = "probing"
    EMITTING = "emitting"
    WAITING = "waiting"


class PacingPolicy:
    """Delay between cycles, chosen by the outcome of the last cycle.

    With the default backoff_factor of 1.0 this is a fixed two-state policy.
    A larger factor grows the failure delay over consecutive failures up to
    max_failure_delay. The failure delay never drops below the success delay.
    """

    def __init__(
        self,
        success_delay: float = 1.0,
        failure_delay: float = 2.0,
        backoff_factor: float = 1.0,
        max_failure_delay: float | None = None,
    ):
        if success_delay < 0 or failure_delay < 0:
            raise ValueError("delays must not be negative")
        if failure_delay < success_delay:
            raise ValueError("failure_delay must be >= success_delay")
        if backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")
        if max_failure_delay is None:
            max_failure_delay = failure_delay
        if max_failure_delay < failure_delay:
            raise ValueError("max_failure_delay must be >= failure_delay")

        self.success_delay = success_delay
        self.failure_delay = failure_delay
        self.backoff_factor = backoff_factor
        self.max_failure_delay = max_failure_delay
        self._consecutive_failures = 0

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def next_delay(self, ok: bool) -> float:
        """Record the outcome of a cycle and return the pause before the next one."""
        if ok:
            self._consecutive_failures = 0
            return self.success_delay

        delay = self.failure_delay * self.backoff_factor ** self._consecutive_failures
        self._consecutive_failures += 1
        return min(delay, self.max_failure_delay)


class Sampler:
    """Resolve-probe-emit-pace loop for the current target.

    Args:
        state: Shared target; read once per cycle, written with the error text
        feed: Receives exactly one FeedItem per cycle
        prober: Performs the timed check against the resolved endpoint
        pacing: Delay policy, defaults to 1 s after success and 2 s after failure
        resolver: Address resolution function, injectable for tests
    """

    def __init__(
        self,
        state: SharedTargetState,
        feed: SampleFeed,
        prober: Prober,
        pacing: PacingPolicy | None = None,
        resolver: Callable[[str], str] = resolve_address,
    ):
        self.state = state
        self.feed = feed
        self.prober = prober
        self.pacing = pacing if pacing is not None else PacingPolicy()
        self.resolver = resolver
        self.current_state = SamplerState.IDLE
        self.cycles = 0

    def _enter(self, new_state: SamplerState) -> None:
        self.current_state = new_state

    def run_cycle(self) -> ProbeOutcome:
        """Run one cycle up to and including emission; pacing is left to run()."""
        self._enter(SamplerState.IDLE)
        snapshot = self.state.snapshot()
        address = snapshot.address

        try:
            self._enter(SamplerState.RESOLVING)
            endpoint = self.resolver(address)

            self._enter(SamplerState.PROBING)
            latency_ms = self.prober.probe(endpoint)

            outcome = ProbeOutcome.success(address, latency_ms)
        except ProbeError as e:
            logger.debug("Cycle failed: address=%s, reason=%s, message=%s", address, e.reason.value, e)
            outcome = ProbeOutcome.failure(address, e.reason, e.message)
        except Exception as e:
            logger.exception("Unexpected error while sampling: address=%s", address)
            outcome = ProbeOutcome.failure(
                address, FailureReason.PROBE_FAILED, f"Unexpected error: {e}"
            )

        self._enter(SamplerState.EMITTING)
        if outcome.ok:
            self.state.clear_last_error()
        else:
            self.state.set_last_error(outcome.message)
        self.feed.put(FeedItem(outcome=outcome, generation=snapshot.generation))
        self.cycles += 1

        if outcome.ok:
            logger.debug("Cycle ok: address=%s, latency=%.2fms", address, outcome.latency_ms)
        return outcome

    def run(self, stop_event: threading.Event, max_cycles: int | None = None) -> None:
        """Sample until stop_event is set (or max_cycles cycles have run).

        The stop event is checked at the start of each cycle and interrupts
        the pacing wait, so shutdown never waits for a full delay.
        """
        logger.info("Sampler started")
        completed = 0
        while not stop_event.is_set():
            outcome = self.run_cycle()
            completed += 1
            if max_cycles is not None and completed >= max_cycles:
                break

            self._enter(SamplerState.WAITING)
            delay = self.pacing.next_delay(outcome.ok)
            if stop_event.wait(delay):
                break

        self._enter(SamplerState.IDLE)
        logger.info("Sampler stopped after %d cycles", completed)
