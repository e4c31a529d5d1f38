"""Known-good values of the Ethernet module.

One DeviceState is created per Ethernet group at startup, repopulated from
live hardware by the group's init, and then updated by each check. It is the
single source of truth for the cached ``I`` actions.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MAC_PREFIX = "001E06"
"""Manufacturer prefix of every MAC address programmed by the JIG."""

SUPPORTED_LINK_SPEEDS = (0, 100, 1000)

_MAC_RE = re.compile(r"^[0-9A-F]{12}$")


@dataclass
class DeviceState:
    """Cached Ethernet values.

    Attributes:
        link_speed_mbps: Last observed or negotiated link rate, 0 for no link.
        address_octet: Last octet of the interface IPv4 address, 0 for none.
        ip_address: Dotted-decimal address text, empty for none.
        throughput_receiver_mbps: Last receiver-side iperf3 result.
        throughput_sender_mbps: Last sender-side iperf3 result.
        mac_provisioned: True once provisioning memory verified as valid.
        mac_address: 12 upper-case hex characters when provisioned, else empty.
    """

    link_speed_mbps: int = 0
    address_octet: int = 0
    ip_address: str = ""
    throughput_receiver_mbps: int = 0
    throughput_sender_mbps: int = 0
    mac_provisioned: bool = False
    mac_address: str = ""

    @property
    def mac_suffix(self) -> str:
        """Return the reportable lower 6 characters of the MAC address."""
        return self.mac_address[6:]

    def set_link_speed(self, speed: int) -> None:
        """Cache a link speed, treating untargeted rates as no link."""
        if speed not in SUPPORTED_LINK_SPEEDS:
            logger.warning("Link speed %d Mbps is not a test target, caching as 0", speed)
            speed = 0
        self.link_speed_mbps = speed

    def set_address(self, address: str | None) -> None:
        """Cache the interface IPv4 address (None when absent)."""
        if not address:
            self.ip_address = ""
            self.address_octet = 0
            return
        octet = int(address.rsplit(".", 1)[-1])
        if not 0 <= octet <= 255:
            raise ValueError(f"invalid IPv4 address {address!r}")
        self.ip_address = address
        self.address_octet = octet

    def mark_provisioned(self, mac_address: str) -> None:
        """Record a MAC address read back from verified provisioning memory.

        Raises:
            ValueError: If the address is not 12 hex characters.
        """
        mac = mac_address.upper()
        if not _MAC_RE.match(mac):
            raise ValueError(f"MAC address must be 12 hex characters, got {mac_address!r}")
        self.mac_address = mac
        self.mac_provisioned = True

    def clear_mac(self) -> None:
        """Forget the MAC address."""
        self.mac_address = ""
        self.mac_provisioned = False

    def reset(self) -> None:
        """Zero every cached value."""
        self.link_speed_mbps = 0
        self.set_address(None)
        self.throughput_receiver_mbps = 0
        self.throughput_sender_mbps = 0
        self.clear_mac()
