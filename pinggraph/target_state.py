"""Target address and error message shared by the sampler and the UI."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass

from pinggraph.config import DEFAULT_ADDRESS, ERROR_DISPLAY_LIMIT

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Readers/writer lock built on threading.Condition.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers so a steady stream of reads
    cannot starve the UI's address edits.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class TargetSnapshot:
    """Address and reset generation read together under one lock."""

    address: str
    generation: int


class SharedTargetState:
    """Current address, last error and reset generation.

    Critical sections only copy values in or out. Callers must never resolve
    or probe while holding the lock, which is why there is no public access
    to it.
    """

    def __init__(self, address: str = DEFAULT_ADDRESS):
        self._check_text(address, "address")
        self._lock = ReadWriteLock()
        self._address = address
        self._last_error = ""
        self._generation = 0

    @staticmethod
    def _check_text(value, name: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"{name} must be str, got {type(value).__name__}")

    def get_address(self) -> str:
        with self._lock.read_locked():
            return self._address

    def set_address(self, address: str) -> None:
        self._check_text(address, "address")
        with self._lock.write_locked():
            self._address = address
        logger.debug("Target address set: %s", address)

    def get_last_error(self) -> str:
        with self._lock.read_locked():
            return self._last_error

    def set_last_error(self, message: str) -> None:
        self._check_text(message, "message")
        with self._lock.write_locked():
            self._last_error = message

    def clear_last_error(self) -> None:
        self.set_last_error("")

    @property
    def generation(self) -> int:
        with self._lock.read_locked():
            return self._generation

    def bump_generation(self) -> int:
        """Invalidate samples produced before this call; returns the new generation."""
        with self._lock.write_locked():
            self._generation += 1
            generation = self._generation
        logger.debug("Generation bumped: %d", generation)
        return generation

    def snapshot(self) -> TargetSnapshot:
        with self._lock.read_locked():
            return TargetSnapshot(address=self._address, generation=self._generation)


def truncate_for_display(text: str, limit: int = ERROR_DISPLAY_LIMIT) -> str:
    """Shorten text for inline display, appending an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 1)] + "…"
