"""Read-only queries against the board's network interface and fuses.

All queries are best effort: an absent interface, a link that is down or an
interface without an address produce zero/None instead of an exception, so
handlers can short-circuit to a failure response without waiting on
hardware that is not there.
"""

from __future__ import annotations

import logging
import socket
from pathlib import Path
from typing import Any, Callable

import psutil

from jigtest_ethernet.efuse import OtpMemory

logger = logging.getLogger(__name__)

DEFAULT_INTERFACE = "eth0"
SYSFS_NET_ROOT = Path("/sys/class/net")


class HardwareFacts:
    """Live hardware queries for the Ethernet module.

    Args:
        otp: Provisioning memory primitive.
        interface: Network interface name.
        sysfs_root: Root of the kernel network class directory (for testing).
        net_if_addrs: Address enumeration function (for testing).
    """

    def __init__(
        self,
        otp: OtpMemory,
        interface: str = DEFAULT_INTERFACE,
        sysfs_root: str | Path = SYSFS_NET_ROOT,
        net_if_addrs: Callable[[], dict[str, list[Any]]] | None = None,
    ) -> None:
        self._otp = otp
        self._interface = interface
        self._sysfs_root = Path(sysfs_root)
        self._net_if_addrs = net_if_addrs or psutil.net_if_addrs

    @property
    def interface(self) -> str:
        """Return the network interface name."""
        return self._interface

    def link_speed(self) -> int:
        """Return the kernel-reported link speed in Mbps.

        Returns:
            The negotiated rate, or 0 when the interface is absent, the link
            is down or the value cannot be parsed.
        """
        speed_path = self._sysfs_root / self._interface / "speed"
        if not speed_path.exists():
            return 0
        try:
            text = speed_path.read_text(encoding="ascii").strip()
        except OSError as exc:
            # The kernel answers EINVAL while the link is down
            logger.debug("Cannot read %s: %s", speed_path, exc)
            return 0
        try:
            speed = int(text)
        except ValueError:
            logger.warning("Unexpected link speed %r in %s", text, speed_path)
            return 0
        return max(speed, 0)

    def ipv4_address(self) -> str | None:
        """Return the first IPv4 address of the interface, or None."""
        for addr in self._net_if_addrs().get(self._interface, []):
            if addr.family == socket.AF_INET and addr.address:
                return str(addr.address)
        return None

    def provisioning_memory(self) -> bytes:
        """Return the raw provisioning memory contents.

        Raises:
            HardwareError: If the memory cannot be read.
        """
        return self._otp.read()
