"""Tests for the sampling loop, its pacing and end-to-end scenarios."""

import socket
import threading
import time

import pytest

from pinggraph import resolver as resolver_module
from pinggraph.feed import SampleFeed
from pinggraph.models import (
    FailureReason,
    InvalidAddressError,
    ProbeFailedError,
    ResolutionFailedError,
    Stats,
)
from pinggraph.resolver import resolve_address
from pinggraph.sampler import PacingPolicy, Sampler, SamplerState
from pinggraph.series import SeriesBuffer
from pinggraph.target_state import SharedTargetState


class ScriptedProber:
    """Prober returning queued latencies; None in the script raises a failure."""

    def __init__(self, script):
        self.script = list(script)
        self.endpoints = []

    def probe(self, endpoint):
        self.endpoints.append(endpoint)
        value = self.script.pop(0)
        if value is None:
            raise ProbeFailedError("Ping failed: Request timed out")
        return value


def literal_resolver(address):
    """Resolver that accepts anything without spaces and never touches DNS."""
    if " " in address or not address:
        raise InvalidAddressError(f"Invalid address: {address}")
    return address


def no_pacing():
    return PacingPolicy(success_delay=0.0, failure_delay=0.0)


def make_sampler(address="8.8.8.8", script=(), resolver=literal_resolver):
    state = SharedTargetState(address)
    feed = SampleFeed()
    prober = ScriptedProber(script)
    sampler = Sampler(state, feed, prober, pacing=no_pacing(), resolver=resolver)
    return sampler, state, feed, prober


def consume(feed, series, state):
    """Drain the feed into the series the way the window does."""
    generation = state.generation
    for item in feed.drain():
        if item.generation == generation:
            series.append(item.outcome)


class TestPacingPolicy:
    """Test the delay chosen after each cycle."""

    def test_default_delays(self):
        pacing = PacingPolicy()
        assert pacing.next_delay(True) == 1.0
        assert pacing.next_delay(False) == 2.0
        assert pacing.next_delay(False) == 2.0

    def test_failure_delay_must_not_be_shorter(self):
        with pytest.raises(ValueError):
            PacingPolicy(success_delay=2.0, failure_delay=1.0)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            PacingPolicy(success_delay=-1.0)

    def test_backoff_factor_below_one_rejected(self):
        with pytest.raises(ValueError):
            PacingPolicy(backoff_factor=0.5)

    def test_exponential_backoff_is_capped(self):
        pacing = PacingPolicy(success_delay=1.0, failure_delay=2.0, backoff_factor=2.0, max_failure_delay=10.0)
        delays = [pacing.next_delay(False) for _ in range(5)]
        assert delays == [2.0, 4.0, 8.0, 10.0, 10.0]
        assert pacing.consecutive_failures == 5

    def test_success_resets_backoff(self):
        pacing = PacingPolicy(backoff_factor=2.0, max_failure_delay=30.0)
        pacing.next_delay(False)
        pacing.next_delay(False)
        assert pacing.next_delay(True) == 1.0
        assert pacing.next_delay(False) == 2.0


class TestSamplerCycle:
    """Test classification of one cycle."""

    def test_success_cycle(self):
        sampler, state, feed, prober = make_sampler(script=[12.5])
        state.set_last_error("old error")

        outcome = sampler.run_cycle()

        assert outcome.ok
        assert outcome.latency_ms == 12.5
        assert state.get_last_error() == ""
        assert prober.endpoints == ["8.8.8.8"]
        assert sampler.current_state is SamplerState.EMITTING
        items = feed.drain()
        assert len(items) == 1
        assert items[0].outcome is outcome

    def test_invalid_address_cycle(self):
        sampler, state, feed, prober = make_sampler(address="!!!", resolver=resolve_address)

        outcome = sampler.run_cycle()

        assert outcome.reason is FailureReason.INVALID_ADDRESS
        assert state.get_last_error() == "Invalid address: !!!"
        assert prober.endpoints == []  # never probed
        assert len(feed.drain()) == 1

    def test_resolution_failure_emits_exactly_one_lost_sample(self):
        def unresolvable(address):
            raise ResolutionFailedError(f"Could not resolve address: {address}")

        sampler, state, feed, _ = make_sampler(address="no-such-host.invalid", resolver=unresolvable)

        outcome = sampler.run_cycle()

        assert outcome.reason is FailureReason.RESOLUTION_FAILED
        items = feed.drain()
        assert len(items) == 1
        assert items[0].outcome.latency_ms is None
        assert "no-such-host.invalid" in state.get_last_error()

    def test_probe_failure_cycle(self):
        sampler, state, feed, _ = make_sampler(script=[None])

        outcome = sampler.run_cycle()

        assert outcome.reason is FailureReason.PROBE_FAILED
        assert state.get_last_error() == "Ping failed: Request timed out"
        assert len(feed.drain()) == 1

    def test_unexpected_exception_does_not_escape(self):
        class BrokenProber:
            def probe(self, endpoint):
                raise RuntimeError("boom")

        state = SharedTargetState()
        feed = SampleFeed()
        sampler = Sampler(state, feed, BrokenProber(), pacing=no_pacing(), resolver=literal_resolver)

        outcome = sampler.run_cycle()

        assert outcome.reason is FailureReason.PROBE_FAILED
        assert "boom" in state.get_last_error()
        assert len(feed.drain()) == 1

    def test_success_clears_previous_error(self):
        sampler, state, _, _ = make_sampler(script=[None, 3.0])
        sampler.run_cycle()
        assert state.get_last_error() != ""
        sampler.run_cycle()
        assert state.get_last_error() == ""


class TestSamplerRun:
    """Test the loop itself."""

    def test_one_item_per_cycle(self):
        sampler, _, feed, _ = make_sampler(script=[1.0, None, 2.0, None, 3.0])
        sampler.run(threading.Event(), max_cycles=5)

        assert len(feed.drain()) == 5
        assert sampler.cycles == 5
        assert sampler.current_state is SamplerState.IDLE

    def test_stop_event_set_before_start(self):
        sampler, _, feed, _ = make_sampler(script=[1.0])
        stop = threading.Event()
        stop.set()

        sampler.run(stop)

        assert feed.drain() == []

    def test_stop_interrupts_pacing_wait(self):
        state = SharedTargetState()
        feed = SampleFeed()
        sampler = Sampler(
            state,
            feed,
            ScriptedProber([1.0] * 10),
            pacing=PacingPolicy(success_delay=30.0, failure_delay=30.0),
            resolver=literal_resolver,
        )
        stop = threading.Event()
        thread = threading.Thread(target=sampler.run, args=(stop,))
        thread.start()

        # First cycle runs immediately, then the loop waits 30 s
        for _ in range(200):
            if len(feed):
                break
            time.sleep(0.01)
        stop.set()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert len(feed.drain()) == 1

    def test_uses_configured_pacing(self):
        delays = []

        class RecordingEvent(threading.Event):
            def wait(self, timeout=None):
                delays.append(timeout)
                return False

        state = SharedTargetState()
        sampler = Sampler(
            state,
            SampleFeed(),
            ScriptedProber([1.0, None, 2.0]),
            pacing=PacingPolicy(success_delay=1.0, failure_delay=2.0),
            resolver=literal_resolver,
        )
        sampler.run(RecordingEvent(), max_cycles=3)

        # No wait after the last cycle once max_cycles is reached
        assert delays == [1.0, 2.0]


class TestScenarios:
    """End-to-end behaviour from target to series."""

    def test_three_successful_probes(self):
        sampler, state, feed, _ = make_sampler(address="8.8.8.8", script=[10.0, 30.0, 20.0])
        series = SeriesBuffer()

        sampler.run(threading.Event(), max_cycles=3)
        consume(feed, series, state)

        assert series.stats() == Stats(best=10.0, worst=30.0, average=20.0)
        assert series.counters.loss_percent == 0.0

    def test_unresolvable_target(self, monkeypatch):
        lookups = []

        def fake_getaddrinfo(host, *args, **kwargs):
            lookups.append(host)
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(resolver_module.socket, "getaddrinfo", fake_getaddrinfo)
        sampler, state, feed, prober = make_sampler(address="not a real host", resolver=resolve_address)
        series = SeriesBuffer()

        sampler.run(threading.Event(), max_cycles=4)
        items = feed.drain()
        assert {item.outcome.reason for item in items} == {FailureReason.INVALID_ADDRESS}
        for item in items:
            feed.put(item)
        consume(feed, series, state)

        # Rejected as malformed before any DNS lookup
        assert lookups == []
        assert state.get_last_error() == "Invalid address: not a real host"

        assert series.stats() is None
        assert series.counters.loss_percent == 100.0
        samples = series.samples()
        assert all(s.lost for s in samples)
        assert [s.sequence_index for s in samples] == [0, 1, 2, 3]
        assert prober.endpoints == []

    def test_address_change_during_probe(self):
        """The in-flight cycle keeps its snapshot; the next cycle sees the edit."""
        state = SharedTargetState("8.8.8.8")
        feed = SampleFeed()
        probe_started = threading.Event()
        release_probe = threading.Event()
        endpoints = []

        class BlockingProber:
            def probe(self, endpoint):
                endpoints.append(endpoint)
                if len(endpoints) == 1:
                    probe_started.set()
                    assert release_probe.wait(timeout=5)
                return 5.0

        sampler = Sampler(state, feed, BlockingProber(), pacing=no_pacing(), resolver=literal_resolver)
        thread = threading.Thread(target=sampler.run, args=(threading.Event(), 2))
        thread.start()

        assert probe_started.wait(timeout=5)
        # The lock is not held while probing, so this must not block
        state.set_address("1.1.1.1")
        release_probe.set()
        thread.join(timeout=5)

        assert endpoints == ["8.8.8.8", "1.1.1.1"]
        addresses = [item.outcome.address for item in feed.drain()]
        assert addresses == ["8.8.8.8", "1.1.1.1"]

    def test_reset_after_fifty_samples(self):
        sampler, state, feed, _ = make_sampler(script=[float(i + 1) for i in range(51)])
        series = SeriesBuffer()

        sampler.run(threading.Event(), max_cycles=50)
        consume(feed, series, state)
        assert len(series) == 50

        state.bump_generation()
        series.clear()
        assert len(series) == 0
        assert (series.counters.total_attempts, series.counters.lost_count) == (0, 0)

        sampler.run(threading.Event(), max_cycles=1)
        consume(feed, series, state)
        assert series.samples()[0].sequence_index == 0

    def test_in_flight_sample_from_before_reset_is_dropped(self):
        sampler, state, feed, _ = make_sampler(script=[1.0, 2.0])
        series = SeriesBuffer()

        sampler.run_cycle()  # produced before the reset, not yet drained
        state.bump_generation()
        series.clear()
        sampler.run_cycle()
        consume(feed, series, state)

        samples = series.samples()
        assert len(samples) == 1
        assert samples[0].sequence_index == 0
        assert samples[0].latency_ms == 2.0
