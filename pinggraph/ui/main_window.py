"""Main window for PingGraph application."""

import logging

from PySide6.QtCore import QEvent, Qt, QThreadPool, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from pinggraph.config import (
    ACTIVE_TICK_MS,
    INACTIVE_TICK_MS,
    MANUAL_SCALE_DEFAULT,
    MANUAL_SCALE_RANGE,
)
from pinggraph.feed import SampleFeed
from pinggraph.sampler import Sampler
from pinggraph.series import SeriesBuffer
from pinggraph.stats import format_loss_line, format_stats_line
from pinggraph.target_state import SharedTargetState, truncate_for_display
from pinggraph.ui.latency_plot import LatencyPlot, plot_y_max
from pinggraph.workers import SamplerWorker

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window and consumer side of the sample feed.

    Every tick drains the feed without blocking, appends the samples of the
    current generation to the series and refreshes the plot and labels.
    """

    def __init__(
        self,
        state: SharedTargetState,
        feed: SampleFeed,
        max_samples: int | None = None,
        shutdown_timeout_ms: int = 5000,
    ):
        super().__init__()
        self.setWindowTitle("Ping Graph")
        self.resize(800, 600)
        self.setMinimumSize(300, 220)

        self.state = state
        self.feed = feed
        self.series = SeriesBuffer(max_samples=max_samples)
        self.shutdown_timeout_ms = shutdown_timeout_ms

        # Threading for the sampling loop
        self.thread_pool = QThreadPool.globalInstance()
        self._worker = None

        # Consumer tick, slowed down while the window is in the background
        self.timer = QTimer(self)
        self.timer.setInterval(ACTIVE_TICK_MS)
        self.timer.timeout.connect(self.on_tick)

        self._shown_error = None

        self.setup_ui()

    def setup_ui(self):
        """Set up the main user interface."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)

        title = QLabel("Ping Graph")
        title.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(title)

        # Address and reset
        address_row = QHBoxLayout()
        address_row.addWidget(QLabel("Address to ping:"))
        self.address_edit = QLineEdit(self.state.get_address())
        self.address_edit.textChanged.connect(self.on_address_changed)
        address_row.addWidget(self.address_edit, 1)
        self.reset_button = QPushButton("Reset")
        self.reset_button.clicked.connect(self.reset_series)
        address_row.addWidget(self.reset_button)
        layout.addLayout(address_row)

        # Plot scale
        scale_row = QHBoxLayout()
        self.auto_scale_check = QCheckBox("Auto scale")
        self.auto_scale_check.setChecked(True)
        self.auto_scale_check.toggled.connect(self.on_scale_changed)
        scale_row.addWidget(self.auto_scale_check)
        scale_row.addWidget(QLabel("Max (ms):"))
        self.manual_max_spin = QSpinBox()
        self.manual_max_spin.setRange(*MANUAL_SCALE_RANGE)
        self.manual_max_spin.setValue(MANUAL_SCALE_DEFAULT)
        self.manual_max_spin.setEnabled(False)
        self.manual_max_spin.valueChanged.connect(self.on_scale_changed)
        scale_row.addWidget(self.manual_max_spin)
        scale_row.addStretch()
        layout.addLayout(scale_row)

        self.plot = LatencyPlot()
        layout.addWidget(self.plot, 1)

        self.stats_label = QLabel(format_stats_line(None))
        self.loss_label = QLabel(format_loss_line(self.series.counters))
        for label in (self.stats_label, self.loss_label):
            label.setStyleSheet("font-family: monospace;")
            layout.addWidget(label)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: red;")
        self.error_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout.addWidget(self.error_label)

        self.status_label = QLabel("Status: Ready")
        layout.addWidget(self.status_label)

    def start_sampling(self, sampler: Sampler):
        """Start the background sampling loop and the consumer tick."""
        if self._worker is not None:
            return

        self._worker = SamplerWorker(sampler)
        self._worker.signals.error.connect(self.on_sampler_error)
        self.thread_pool.start(self._worker)
        self.timer.start()
        self.status_label.setText("Status: Sampling")
        logger.info("Sampling started: address=%s", self.state.get_address())

    def stop_sampling(self):
        """Stop the sampling loop and wait for it to leave the thread pool."""
        self.timer.stop()
        if self._worker is None:
            return

        self._worker.stop()
        if not self.thread_pool.waitForDone(self.shutdown_timeout_ms):
            logger.warning("Sampler did not stop within %d ms", self.shutdown_timeout_ms)
        self._worker = None

    def closeEvent(self, event: QCloseEvent) -> None:
        """Handle application close event - stop the sampler."""
        self.stop_sampling()
        super().closeEvent(event)

    def changeEvent(self, event: QEvent) -> None:
        if event.type() == QEvent.ActivationChange:
            interval = ACTIVE_TICK_MS if self.isActiveWindow() else INACTIVE_TICK_MS
            self.timer.setInterval(interval)
        super().changeEvent(event)

    def on_address_changed(self, text: str):
        self.state.set_address(text)

    def on_scale_changed(self, *_):
        self.manual_max_spin.setEnabled(not self.auto_scale_check.isChecked())
        self.refresh_plot()

    def on_sampler_error(self, error_msg: str):
        self.status_label.setText(f"Status: Sampler stopped - {error_msg}")

    def on_tick(self):
        """Drain the feed and refresh the views (one consumer tick)."""
        appended = self.drain_feed()
        if appended:
            self.refresh_plot()
            self.refresh_stats()
        self.refresh_error()

    def drain_feed(self) -> int:
        """Move pending outcomes into the series.

        Items sampled before the last reset carry an older generation and are
        dropped. Returns the number of samples appended.
        """
        generation = self.state.generation
        appended = 0
        for item in self.feed.drain():
            if item.generation != generation:
                logger.debug(
                    "Ignoring stale sample: generation=%d (current=%d)",
                    item.generation,
                    generation,
                )
                continue
            self.series.append(item.outcome)
            appended += 1
        return appended

    def reset_series(self):
        """Clear the series and counters; the next sample gets index 0."""
        self.state.bump_generation()
        self.series.clear()
        self.plot.clear_series()
        self.refresh_stats()
        self.refresh_plot()
        logger.info("Series reset")

    def current_y_max(self) -> float:
        return plot_y_max(
            self.series.stats(),
            self.auto_scale_check.isChecked(),
            self.manual_max_spin.value(),
        )

    def refresh_plot(self):
        xs, ys = self.series.points()
        self.plot.update_series(xs, ys, self.current_y_max())

    def refresh_stats(self):
        self.stats_label.setText(format_stats_line(self.series.stats()))
        self.loss_label.setText(format_loss_line(self.series.counters))

    def refresh_error(self):
        error = self.state.get_last_error()
        if error == self._shown_error:
            return
        self._shown_error = error
        self.error_label.setText(truncate_for_display(error))
        self.error_label.setToolTip(error)
