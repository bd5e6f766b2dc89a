"""Latency statistics over a sample series."""

from collections.abc import Iterable

from pinggraph.models import LossCounters, Sample, Stats

NO_STATS_TEXT = "No ping times available."


class StatsAggregator:
    """Incremental best/worst/average over the successful samples.

    Lost samples are ignored entirely. Values are summed in arrival order
    with plain float addition, the same order compute_stats() uses, so both
    paths produce bit-identical averages.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._count = 0
        self._total = 0.0
        self._best = 0.0
        self._worst = 0.0

    def add(self, sample: Sample) -> None:
        if sample.lost:
            return
        value = sample.latency_ms
        if self._count == 0:
            self._best = value
            self._worst = value
        else:
            if value < self._best:
                self._best = value
            if value > self._worst:
                self._worst = value
        self._total += value
        self._count += 1

    def extend(self, samples: Iterable[Sample]) -> None:
        for sample in samples:
            self.add(sample)

    @property
    def count(self) -> int:
        return self._count

    def stats(self) -> Stats | None:
        if self._count == 0:
            return None
        return Stats(best=self._best, worst=self._worst, average=self._total / self._count)


def compute_stats(samples: Iterable[Sample]) -> Stats | None:
    """Compute best/worst/average from scratch.

    Args:
        samples: Series in arrival order, lost samples allowed

    Returns:
        Stats over the non-lost samples, or None if there are none
    """
    aggregator = StatsAggregator()
    aggregator.extend(samples)
    return aggregator.stats()


def format_stats_line(stats: Stats | None) -> str:
    """Format the stats line shown under the plot."""
    if stats is None:
        return NO_STATS_TEXT
    return (
        f"{stats.best:.2f}ms best, {stats.worst:.2f}ms worst, "
        f"{stats.average:.2f}ms average"
    )


def format_loss_line(counters: LossCounters) -> str:
    return (
        f"Loss: {counters.loss_percent:.2f}% "
        f"({counters.lost_count}/{counters.total_attempts})"
    )
