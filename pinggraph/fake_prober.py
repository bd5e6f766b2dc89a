"""Simulated prober for PingGraph development and testing."""

import random

from pinggraph.models import ProbeFailedError


class FakeProber:
    """Generates fake latencies without touching the network."""

    def __init__(self, seed: int | None = None):
        """Initialize with optional random seed for deterministic behavior."""
        # Isolated random instance, the sampler thread is its only user
        self._random = random.Random(seed)

        # Simulation parameters
        self.base_latency = 25.0  # Base latency in ms
        self.latency_variance = 5.0  # Normal variance
        self.spike_probability = 0.05  # 5% chance of latency spike
        self.spike_multiplier = 3.0  # Spike makes latency 3x higher
        self.loss_probability = 0.02  # 2% chance of packet loss

    def probe(self, endpoint: str) -> float:
        """Return a simulated latency for endpoint, or raise on simulated loss."""
        if self._random.random() < self.loss_probability:
            raise ProbeFailedError(f"Simulated packet loss to {endpoint}")

        if self._random.random() < self.spike_probability:
            latency = self.base_latency * self.spike_multiplier + self._random.gauss(
                0, self.latency_variance
            )
        else:
            latency = self.base_latency + self._random.gauss(0, self.latency_variance)

        return round(max(0.1, latency), 2)
