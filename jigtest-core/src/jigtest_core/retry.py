"""Bounded retry for hardware settling and external-resource contention.

Every operation that waits on hardware or on a busy peer uses the same shape:
a fixed number of attempts with a fixed sleep between them. Link negotiation
polls the kernel-reported speed with it, and the throughput probe re-runs
iperf3 with it while the peer is serving another client.

Example:
    result = retry(10, 1.0, read_speed, accept=lambda speed: speed == 1000)
    if result.succeeded:
        ...
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryResult:
    """Outcome of a bounded retry.

    Attributes:
        value: Value returned by the last attempt.
        attempts: Number of times the operation was called.
        succeeded: True if the last value was accepted.
    """

    value: Any
    attempts: int
    succeeded: bool


def retry(
    times: int,
    backoff: float,
    operation: Callable[[], Any],
    accept: Callable[[Any], bool] = bool,
    sleep: Callable[[float], None] = time.sleep,
) -> RetryResult:
    """Call an operation until its result is accepted or attempts run out.

    The operation is called at most ``times`` times. ``sleep(backoff)`` runs
    between attempts only, so the total wait never exceeds
    ``(times - 1) * backoff`` plus the time spent in the operation itself.

    Args:
        times: Maximum number of attempts (>= 1).
        backoff: Seconds to sleep between attempts (>= 0).
        operation: Zero-argument callable producing a value.
        accept: Predicate deciding whether a value ends the retry.
        sleep: Sleep function (injectable for testing).

    Returns:
        The last value, the number of attempts and whether it was accepted.

    Raises:
        ValueError: If times < 1 or backoff < 0.
    """
    if times < 1:
        raise ValueError(f"times must be >= 1, got {times}")
    if backoff < 0:
        raise ValueError(f"backoff must be >= 0, got {backoff}")

    value: Any = None
    for attempt in range(1, times + 1):
        value = operation()
        if accept(value):
            return RetryResult(value=value, attempts=attempt, succeeded=True)
        if attempt < times:
            logger.debug("Attempt %d/%d not accepted (%r), retrying", attempt, times, value)
            sleep(backoff)

    return RetryResult(value=value, attempts=times, succeeded=False)
