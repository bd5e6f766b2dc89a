"""Consumer-side sample series with loss counters and running stats."""

import logging
from collections import deque

from pinggraph.models import LossCounters, ProbeOutcome, Sample, Stats
from pinggraph.stats import StatsAggregator

logger = logging.getLogger(__name__)


class SeriesBuffer:
    """Ordered samples since the last reset.

    Assigns gapless sequence indices starting at 0. Optionally bounded: when
    max_samples is reached the oldest sample is dropped and stats are rebuilt
    from what remains. Loss counters cover every attempt since the last
    reset, dropped samples included.

    Owned by the UI thread; not thread-safe.
    """

    def __init__(self, max_samples: int | None = None):
        if max_samples is not None and max_samples <= 0:
            raise ValueError("max_samples must be positive")
        self.max_samples = max_samples
        self._samples = deque()
        self._next_index = 0
        self.counters = LossCounters()
        self._aggregator = StatsAggregator()

    def append(self, outcome: ProbeOutcome) -> Sample:
        """Turn an outcome into the next Sample and store it."""
        sample = Sample(
            sequence_index=self._next_index,
            latency_ms=outcome.latency_ms,
            ts=outcome.ts,
        )
        self._next_index += 1

        evicted = False
        if self.max_samples is not None and len(self._samples) >= self.max_samples:
            dropped = self._samples.popleft()
            evicted = not dropped.lost

        self._samples.append(sample)
        self.counters.record(sample.lost)

        if evicted:
            self._aggregator.reset()
            self._aggregator.extend(self._samples)
        else:
            self._aggregator.add(sample)

        return sample

    def clear(self) -> None:
        """Drop all samples, zero the counters and restart indexing at 0."""
        self._samples.clear()
        self._next_index = 0
        self.counters.reset()
        self._aggregator.reset()
        logger.debug("Series cleared")

    @property
    def next_index(self) -> int:
        return self._next_index

    def stats(self) -> Stats | None:
        return self._aggregator.stats()

    def samples(self) -> list[Sample]:
        return list(self._samples)

    def points(self) -> tuple[list[float], list[float]]:
        """Plot coordinates (x, y); lost samples carry NaN so they render as gaps."""
        xs = [float(s.sequence_index) for s in self._samples]
        ys = [s.value for s in self._samples]
        return xs, ys

    def __len__(self) -> int:
        return len(self._samples)
