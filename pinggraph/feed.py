"""Ordered channel carrying sampling outcomes from the sampler to the UI."""

import queue
from dataclasses import dataclass

from pinggraph.models import ProbeOutcome


@dataclass(frozen=True)
class FeedItem:
    """An outcome tagged with the reset generation it was sampled under."""

    outcome: ProbeOutcome
    generation: int


class SampleFeed:
    """FIFO queue with a non-blocking drain.

    Producers call put() from any thread; the single consumer calls drain()
    once per UI tick and never waits.
    """

    def __init__(self):
        self._queue = queue.SimpleQueue()

    def put(self, item: FeedItem) -> None:
        self._queue.put(item)

    def drain(self) -> list[FeedItem]:
        """Return every item currently queued, oldest first (possibly none)."""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def __len__(self) -> int:
        return self._queue.qsize()
