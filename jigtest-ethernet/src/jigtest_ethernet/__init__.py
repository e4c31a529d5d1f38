"""jigtest-ethernet: Ethernet device group for the JIG test firmware.

Tests the unit's Ethernet port: interface address, one-shot MAC address
provisioning into OTP memory, link speed negotiation with ethtool and
throughput against an iperf3 peer.

Key components:
    - EthernetGroup / create_group: the device group and its factory.
    - DeviceState: cached values reported by the ``I`` actions.
    - HardwareFacts: sysfs, psutil and OTP queries.
    - LinkNegotiator, ThroughputProbe: link and iperf3 tests.
    - ProvisioningWriter: allocate, program and verify the MAC address.
"""

from jigtest_ethernet.config import ConfigStore, EthernetConfig
from jigtest_ethernet.efuse import NvmemOtp, OtpMemory, encode_record, is_valid_record, mac_from_record
from jigtest_ethernet.emulator import OtpEmulator
from jigtest_ethernet.facts import HardwareFacts
from jigtest_ethernet.group import (
    AddressAction,
    EthernetContext,
    EthernetDevice,
    EthernetGroup,
    LinkAction,
    MacAction,
    ThroughputAction,
    create_group,
)
from jigtest_ethernet.iperf import Role, ThroughputProbe, parse_iperf_output
from jigtest_ethernet.link import LinkNegotiator, LinkSpeed
from jigtest_ethernet.macserver import MacAllocation, MacServerClient
from jigtest_ethernet.provision import ProvisioningOutcome, ProvisioningResult, ProvisioningWriter
from jigtest_ethernet.state import MAC_PREFIX, DeviceState

__version__ = "0.1.0"

__all__ = [
    # Group
    "AddressAction",
    "EthernetContext",
    "EthernetDevice",
    "EthernetGroup",
    "LinkAction",
    "MacAction",
    "ThroughputAction",
    "create_group",
    # State and config
    "ConfigStore",
    "DeviceState",
    "EthernetConfig",
    "MAC_PREFIX",
    # Hardware
    "HardwareFacts",
    "LinkNegotiator",
    "LinkSpeed",
    "Role",
    "ThroughputProbe",
    "parse_iperf_output",
    # Provisioning
    "MacAllocation",
    "MacServerClient",
    "NvmemOtp",
    "OtpEmulator",
    "OtpMemory",
    "ProvisioningOutcome",
    "ProvisioningResult",
    "ProvisioningWriter",
    "encode_record",
    "is_valid_record",
    "mac_from_record",
]
