"""Entry point for PingGraph application."""

import logging
import sys

from PySide6.QtWidgets import QApplication

from pinggraph.config import AppConfig, ConfigError
from pinggraph.fake_prober import FakeProber
from pinggraph.feed import SampleFeed
from pinggraph.logging_config import configure_logging
from pinggraph.sampler import PacingPolicy, Sampler
from pinggraph.target_state import SharedTargetState
from pinggraph.ui.main_window import MainWindow

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def build_prober(config: AppConfig):
    """Pick the prober, falling back to FakeProber when ping is unusable.

    Returns:
        (prober, user_message) where user_message is None unless a fallback
        happened
    """
    if config.prober == "fake":
        logger.info("Fake prober explicitly requested via environment variable")
        return FakeProber(), "Using simulated data (PINGGRAPH_PROBER=fake)"

    try:
        from pinggraph.prober import PingProber

        prober = PingProber(timeout_ms=config.probe_timeout_ms)
        logger.info("PingProber initialized successfully")
        return prober, None
    except ValueError as e:
        logger.error("PingProber configuration invalid: %s", e)
        return FakeProber(), "Using simulated data (configuration error)"


def main():
    """Main entry point for the PingGraph application."""
    try:
        config = AppConfig.from_env()
    except ConfigError as e:
        logger.error("Invalid configuration, using defaults: %s", e)
        config = AppConfig()

    try:
        app = QApplication(sys.argv)
    except RuntimeError as e:
        logger.critical("Could not start the Qt application: %s", e)
        sys.exit(1)

    prober, user_message = build_prober(config)

    state = SharedTargetState()
    feed = SampleFeed()
    sampler = Sampler(
        state,
        feed,
        prober,
        pacing=PacingPolicy(
            success_delay=config.success_delay_s,
            failure_delay=config.failure_delay_s,
        ),
    )

    window = MainWindow(
        state,
        feed,
        max_samples=config.max_samples,
        shutdown_timeout_ms=config.probe_timeout_ms + 1000,
    )

    window.show()
    window.start_sampling(sampler)

    # Show user-friendly message in status label if fallback occurred
    if user_message:
        window.status_label.setText(f"Status: {user_message}")
        window.status_label.setStyleSheet("font-weight: bold; color: orange;")

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
