"""Reachability probes for PingGraph using the system ping command."""

import ipaddress
import logging
import platform
import re
import subprocess
import time
from math import ceil
from typing import Protocol

from pinggraph.models import ProbeFailedError

logger = logging.getLogger(__name__)

# "time=12.3 ms", "time = 12 ms" (Linux/macOS/Windows), "time<1ms" (Windows)
_REPLY_PATTERN = re.compile(r"time\s*[=<]\s*(\d+(?:\.\d+)?)\s*ms", re.IGNORECASE)
_LESS_THAN_PATTERN = re.compile(r"time<(\d+)", re.IGNORECASE)

# Checked in order, first match becomes the error message
_FAILURE_HINTS = (
    "Destination Host Unreachable",
    "Destination Net Unreachable",
    "Destination Port Unreachable",
    "Request timed out",
    "General failure",
    "Transmit failed",
    "Network is unreachable",
    "Operation not permitted",
    "Name or service not known",
    "Unknown host",
    "100% packet loss",
    "100.0% packet loss",
)


class Prober(Protocol):
    """Interface for a single timed reachability check."""

    def probe(self, endpoint: str) -> float:
        """Probe endpoint once and return elapsed milliseconds.

        Raises ProbeFailedError when the endpoint does not answer.
        """
        ...


def parse_ping_latency_ms(output: str) -> float | None:
    """Parse the latency ping itself reports (pure function).

    Used to confirm that a reply line is present. Handles:
    - Linux/macOS: "time=12.3 ms"
    - Windows: "time=12ms" or "time<1ms"

    Windows "time<Nms" is interpreted as N/2 ms (midpoint estimate).

    Args:
        output: Raw ping command output

    Returns:
        Latency in milliseconds, or None if no reply line was found

    Examples:
        >>> parse_ping_latency_ms("time=12.3 ms")
        12.3
        >>> parse_ping_latency_ms("time<1ms")
        0.5
        >>> parse_ping_latency_ms("Request timed out.")
    """
    if not output:
        return None

    match = _LESS_THAN_PATTERN.search(output)
    if match:
        return float(match.group(1)) / 2.0

    match = _REPLY_PATTERN.search(output)
    if match:
        return float(match.group(1))

    return None


def summarize_ping_failure(output: str, returncode: int) -> str:
    """Build a short human-readable reason from failed ping output.

    Args:
        output: Combined stdout and stderr of the ping command
        returncode: Exit status of the ping command

    Returns:
        Message suitable for the inline error display
    """
    if output:
        lowered = output.lower()
        for hint in _FAILURE_HINTS:
            if hint.lower() in lowered:
                return f"Ping failed: {hint}"

        # Fall back to the last non-empty line, usually the most specific
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        if lines:
            return f"Ping failed: {lines[-1]}"

    return f"Ping failed: exit status {returncode}"


class PingProber:
    """Prober that runs the OS ping command once per call.

    Cross-platform implementation supporting Windows, Linux, and macOS.
    Elapsed time is measured on the wall clock around the subprocess call,
    so every platform reports the same metric regardless of the output
    language. Resolution is done by the caller, never here.

    The timed window spans process start-up and exit, so every sample carries
    a few milliseconds of spawn overhead on top of the network round trip and
    "best" never drops below that floor. The RTT ping itself reports is
    logged next to the wall-clock value at DEBUG for comparison.
    """

    def __init__(self, timeout_ms: int = 2000):
        """Initialize ping prober with timeout.

        Args:
            timeout_ms: Maximum time to wait for a reply in milliseconds.
        """
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        self.timeout_ms = timeout_ms
        self.timeout_seconds = timeout_ms / 1000.0
        self.system = platform.system()

        logger.debug(
            "PingProber initialized: timeout_ms=%d, system=%s",
            timeout_ms,
            self.system,
        )

    def probe(self, endpoint: str) -> float:
        """Ping endpoint once.

        Args:
            endpoint: Resolved IP address

        Returns:
            Elapsed wall-clock time in milliseconds

        Raises:
            ProbeFailedError: On timeout, non-zero exit, missing reply or OS error
        """
        cmd = self._build_ping_command(endpoint)
        logger.debug("Executing ping: endpoint=%s, timeout=%.1fs", endpoint, self.timeout_seconds)

        try:
            start = time.perf_counter()
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds + 0.5,  # ping's own deadline should fire first
                shell=False,
            )
            elapsed_ms = (time.perf_counter() - start) * 1000.0
        except subprocess.TimeoutExpired:
            logger.debug("Ping timeout: endpoint=%s", endpoint)
            raise ProbeFailedError(f"Ping timed out after {self.timeout_ms} ms") from None
        except OSError as e:
            # ping missing from PATH, permission denied, ...
            logger.warning("Ping could not run: endpoint=%s, error=%s", endpoint, e)
            raise ProbeFailedError(f"Ping could not run: {e}") from e

        output = (result.stdout or "") + (result.stderr or "")

        if result.returncode != 0:
            logger.debug(
                "Ping failed (non-zero returncode): endpoint=%s, returncode=%d",
                endpoint,
                result.returncode,
            )
            raise ProbeFailedError(summarize_ping_failure(output, result.returncode))

        # Windows exits 0 on "Destination host unreachable" replies from a router
        reported_ms = parse_ping_latency_ms(result.stdout)
        if reported_ms is None:
            logger.debug(
                "No reply line: endpoint=%s, output_preview=%s",
                endpoint,
                result.stdout[:100] if result.stdout else "(empty)",
            )
            raise ProbeFailedError(summarize_ping_failure(output, result.returncode))

        logger.debug(
            "Ping completed: endpoint=%s, elapsed=%.2fms, reported=%.2fms",
            endpoint,
            elapsed_ms,
            reported_ms,
        )
        return elapsed_ms

    def _build_ping_command(self, endpoint: str) -> list[str]:
        """Build platform-specific ping command.

        Args:
            endpoint: IP address to ping

        Returns:
            List of command arguments for subprocess
        """
        if self.system == "Windows":
            return ["ping", "-n", "1", "-w", str(self.timeout_ms), endpoint]

        elif self.system == "Linux":
            timeout_secs = max(1, ceil(self.timeout_seconds))
            return ["ping", "-c", "1", "-W", str(timeout_secs), endpoint]

        else:
            # macOS/BSD: -W has different semantics, rely on subprocess timeout.
            # Their ping is IPv4 only; IPv6 goes through ping6.
            if ipaddress.ip_address(endpoint).version == 6:
                return ["ping6", "-c", "1", endpoint]
            return ["ping", "-c", "1", endpoint]
