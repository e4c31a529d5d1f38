"""Link speed negotiation for the Ethernet interface.

The interface is forced to a speed with ethtool and the kernel-reported rate
is then polled once per second for at most ten seconds; a PHY normally
renegotiates within two to three seconds.
"""

from __future__ import annotations

import logging
import subprocess
import time
from enum import IntEnum
from typing import Any, Callable

from jigtest_core.retry import retry

from jigtest_ethernet.facts import HardwareFacts

logger = logging.getLogger(__name__)

POLL_ATTEMPTS = 10
POLL_INTERVAL_S = 1.0


class LinkSpeed(IntEnum):
    """Link speeds targeted by the JIG."""

    FAST = 100
    GIGABIT = 1000


class LinkNegotiator:
    """Forces and confirms the physical link speed.

    Args:
        facts: Hardware queries for the interface.
        runner: subprocess.run-compatible callable (for testing).
        sleep: Sleep function (for testing).
        poll_attempts: Number of speed polls after forcing the link.
        poll_interval: Seconds between polls.
    """

    def __init__(
        self,
        facts: HardwareFacts,
        runner: Callable[..., Any] = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
        poll_attempts: int = POLL_ATTEMPTS,
        poll_interval: float = POLL_INTERVAL_S,
    ) -> None:
        self._facts = facts
        self._runner = runner
        self._sleep = sleep
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval

    def current_speed(self) -> int:
        """Return the kernel-reported link speed, 0 without link."""
        return self._facts.link_speed()

    def negotiate(self, target: int) -> bool:
        """Force the link to a speed and wait for the kernel to report it.

        Args:
            target: Speed in Mbps (100 or 1000).

        Returns:
            True as soon as the observed speed equals the target, False if it
            does not within the polling window.

        Raises:
            ValueError: If the target is not a supported speed.
        """
        speed = LinkSpeed(target)
        cmd = [
            "ethtool",
            "-s",
            self._facts.interface,
            "speed",
            str(speed.value),
            "duplex",
            "full",
        ]
        logger.info("Forcing %s to %d Mbps full duplex", self._facts.interface, speed.value)
        try:
            proc = self._runner(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            logger.error("Cannot run ethtool: %s", exc)
            return False
        if proc.returncode != 0:
            logger.warning("ethtool exited with %d: %s", proc.returncode, (proc.stderr or "").strip())

        result = retry(
            self._poll_attempts,
            self._poll_interval,
            self.current_speed,
            accept=lambda observed: observed == speed.value,
            sleep=self._sleep,
        )
        if result.succeeded:
            logger.info("Link up at %d Mbps after %d poll(s)", speed.value, result.attempts)
        else:
            logger.warning(
                "Link did not reach %d Mbps within %d polls (last %d Mbps)",
                speed.value,
                result.attempts,
                result.value,
            )
        return result.succeeded
