"""Worker that runs the sampling loop on a background thread."""

import logging
import threading

from PySide6.QtCore import QObject, QRunnable, Signal

from pinggraph.sampler import Sampler

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for communicating between the sampler thread and main thread."""

    error = Signal(str)  # Emits error message if the loop dies
    finished = Signal()  # Emits when the loop returns


class SamplerWorker(QRunnable):
    """Runs Sampler.run() in the Qt thread pool until stop() is called.

    Samples travel through the sampler's feed, not through signals; the UI
    drains the feed on its own tick.
    """

    def __init__(self, sampler: Sampler):
        super().__init__()
        self.sampler = sampler
        self.stop_event = threading.Event()
        self.signals = WorkerSignals()
        self.setAutoDelete(False)

    def stop(self):
        """Ask the loop to exit at the next cycle boundary or pacing wait."""
        self.stop_event.set()

    def run(self):
        """Execute the sampling loop in background thread."""
        try:
            logger.info("Sampler worker starting")
            self.sampler.run(self.stop_event)
        except Exception as e:
            logger.exception("Sampler worker exception: error=%s", str(e))
            self.signals.error.emit(str(e))
        finally:
            logger.info("Sampler worker finished")
            self.signals.finished.emit()
