"""Latency plot widget built on pyqtgraph."""

import pyqtgraph as pg

from pinggraph.config import AUTO_SCALE_FALLBACK_MAX_MS, AUTO_SCALE_HEADROOM_MS
from pinggraph.models import Stats


def plot_y_max(stats: Stats | None, auto_scale: bool, manual_max: float) -> float:
    """Upper bound of the latency axis.

    Auto scale follows the worst latency seen plus a fixed headroom; with no
    successful sample yet it shows a fixed default range. Manual scale pins
    the value chosen by the user.
    """
    if not auto_scale:
        return float(manual_max)
    if stats is None:
        return AUTO_SCALE_FALLBACK_MAX_MS
    return stats.worst + AUTO_SCALE_HEADROOM_MS


class LatencyPlot(pg.PlotWidget):
    """Line plot of the series; NaN values (lost samples) are drawn as gaps."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMenuEnabled(False)
        self.setMouseEnabled(x=False, y=False)
        self.hideButtons()
        self.showGrid(x=False, y=True, alpha=0.2)
        self.setLabel("left", "Latency", units="ms")
        # Keep "ms" at every scale, never "kms" past 1000
        self.getAxis("left").enableAutoSIPrefix(False)
        self.setLabel("bottom", "Sample")

        # connect="finite" breaks the line at every NaN instead of drawing to 0
        self.curve = self.plot([], [], pen=pg.mkPen(width=2), connect="finite")

    def update_series(self, xs: list[float], ys: list[float], y_max: float) -> None:
        self.curve.setData(xs, ys, connect="finite")
        x_min = xs[0] if xs else 0.0
        x_max = xs[-1] + 1.0 if xs else 1.0
        self.setXRange(x_min, x_max, padding=0)
        self.setYRange(0.0, y_max, padding=0)

    def clear_series(self) -> None:
        self.curve.setData([], [])
        self.setXRange(0.0, 1.0, padding=0)
