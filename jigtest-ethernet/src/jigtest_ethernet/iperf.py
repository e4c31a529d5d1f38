"""Throughput measurement against the JIG's iperf3 peer.

iperf3 prints one summary line per role at the end of a run, e.g.::

    [  5]   0.00-1.00   sec   112 MBytes   941 Mbits/sec    0             sender
    [  5]   0.00-1.04   sec   111 MBytes   897 Mbits/sec                  receiver

The bitrate following the transfer column on the line tagged with the
requested role is the measurement. The peer serves one client at a time, so
while another JIG is testing it answers "server is busy" and no summary line
appears; the probe then retries with the bounded retry shape.
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from enum import Enum
from typing import Any, Callable

from jigtest_core.retry import retry

from jigtest_ethernet.facts import HardwareFacts
from jigtest_ethernet.link import LinkNegotiator, LinkSpeed

logger = logging.getLogger(__name__)

PROBE_ATTEMPTS = 10
PROBE_BACKOFF_S = 1.0
PROBE_DURATION_S = 1
PROBE_TIMEOUT_S = 30.0

_BITRATE_RE = re.compile(r"MBytes\s+(?P<value>\d+(?:\.\d+)?)\s+(?P<unit>[KMG])bits/sec")

_UNIT_SCALE = {"K": 0.001, "M": 1.0, "G": 1000.0}


class Role(Enum):
    """Which end of the iperf3 session reports the rate."""

    SENDER = "sender"
    RECEIVER = "receiver"


def parse_iperf_output(text: str, role: Role) -> int:
    """Extract the bitrate reported for a role.

    Args:
        text: iperf3 standard output.
        role: Role whose summary line is wanted.

    Returns:
        Rate in Mbit/s from the last matching line, or 0 if none matches.
    """
    mbps = 0
    for line in text.splitlines():
        if role.value not in line:
            continue
        match = _BITRATE_RE.search(line)
        if match is None:
            continue
        mbps = round(float(match.group("value")) * _UNIT_SCALE[match.group("unit")])
    return mbps


class ThroughputProbe:
    """Runs iperf3 against the configured peer.

    Args:
        facts: Hardware queries for the interface.
        link: Link negotiator, used to bring the link to gigabit first.
        peer_address: Host running ``iperf3 -s``.
        runner: subprocess.run-compatible callable (for testing).
        sleep: Sleep function (for testing).
        attempts: Maximum iperf3 runs per measurement.
        backoff: Seconds between runs.
        timeout: Timeout for a single iperf3 run.
    """

    def __init__(
        self,
        facts: HardwareFacts,
        link: LinkNegotiator,
        peer_address: str,
        runner: Callable[..., Any] = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
        attempts: int = PROBE_ATTEMPTS,
        backoff: float = PROBE_BACKOFF_S,
        timeout: float = PROBE_TIMEOUT_S,
    ) -> None:
        self._facts = facts
        self._link = link
        self._peer_address = peer_address
        self._runner = runner
        self._sleep = sleep
        self._attempts = attempts
        self._backoff = backoff
        self._timeout = timeout

    @property
    def peer_address(self) -> str:
        """Return the iperf3 peer."""
        return self._peer_address

    def measure(self, role: Role) -> int:
        """Measure throughput for a role.

        Returns:
            Rate in Mbit/s, 0 when the interface has no address or every
            attempt failed.
        """
        if self._facts.ipv4_address() is None:
            logger.warning("No IPv4 address on %s, skipping throughput probe", self._facts.interface)
            return 0

        if self._link.current_speed() != LinkSpeed.GIGABIT:
            if not self._link.negotiate(LinkSpeed.GIGABIT):
                logger.warning("Measuring %s throughput below gigabit", role.value)

        result = retry(
            self._attempts,
            self._backoff,
            lambda: self._run_once(role),
            accept=lambda mbps: mbps > 0,
            sleep=self._sleep,
        )
        if result.succeeded:
            logger.info(
                "%s throughput %d Mbps (attempt %d)", role.value, result.value, result.attempts
            )
        else:
            logger.warning(
                "No %s throughput from %s after %d attempts",
                role.value,
                self._peer_address,
                result.attempts,
            )
        return int(result.value)

    def _run_once(self, role: Role) -> int:
        cmd = ["iperf3", "-t", str(PROBE_DURATION_S), "-c", self._peer_address]
        try:
            proc = self._runner(
                cmd, capture_output=True, text=True, check=False, timeout=self._timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning("iperf3 to %s timed out after %.0f s", self._peer_address, self._timeout)
            return 0
        except OSError as exc:
            logger.error("Cannot run iperf3: %s", exc)
            return 0
        mbps = parse_iperf_output(proc.stdout or "", role)
        if mbps == 0:
            logger.debug("iperf3 gave no %s result: %s", role.value, (proc.stderr or "").strip())
        return mbps
