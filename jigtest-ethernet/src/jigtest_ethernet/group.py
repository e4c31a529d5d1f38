"""Ethernet device group.

Four devices are tested on the Ethernet port:

    device  name        actions
    0       address     I cached, R/W re-query the IPv4 address
    1       MAC         I/R cached, W provisions first when unprovisioned
    2       throughput  I cached receiver rate, R receiver, W sender
    3       link        I cached, R re-query, S force 1000, C force 100

Every payload is a 6-digit zero-padded number except the MAC, which reports
the lower 6 hex characters of the address.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Callable

from jigtest_core.dispatcher import CheckResult, parse_action
from jigtest_core.errors import ConfigError, HardwareError, UnknownDeviceError
from jigtest_core.protocol import format_value

from jigtest_ethernet.config import ConfigStore, EthernetConfig
from jigtest_ethernet.efuse import NvmemOtp, OtpMemory, is_valid_record, mac_from_record
from jigtest_ethernet.emulator import OtpEmulator
from jigtest_ethernet.facts import DEFAULT_INTERFACE, HardwareFacts
from jigtest_ethernet.iperf import Role, ThroughputProbe
from jigtest_ethernet.link import LinkNegotiator, LinkSpeed
from jigtest_ethernet.macserver import DEFAULT_MAC_SERVER_URL, DEFAULT_MODEL, MacServerClient
from jigtest_ethernet.provision import ProvisioningWriter
from jigtest_ethernet.state import DeviceState

logger = logging.getLogger(__name__)


class EthernetDevice(IntEnum):
    """Device indices of the Ethernet group."""

    ADDRESS = 0
    MAC = 1
    THROUGHPUT = 2
    LINK = 3


class AddressAction(Enum):
    """Actions of the address device."""

    INIT = "I"
    READ = "R"
    WRITE = "W"


class MacAction(Enum):
    """Actions of the MAC device."""

    INIT = "I"
    READ = "R"
    WRITE = "W"


class ThroughputAction(Enum):
    """Actions of the throughput device."""

    INIT = "I"
    RECEIVER = "R"
    SENDER = "W"


class LinkAction(Enum):
    """Actions of the link device."""

    INIT = "I"
    READ = "R"
    GIGABIT = "S"
    FAST = "C"


@dataclass
class EthernetContext:
    """Everything an Ethernet handler needs, passed to every call.

    Attributes:
        state: Cached device values.
        config: Throughput test configuration.
        facts: Live hardware queries.
        link: Link speed negotiator.
        probe: Throughput probe.
        writer: MAC provisioning writer.
    """

    state: DeviceState
    config: EthernetConfig
    facts: HardwareFacts
    link: LinkNegotiator
    probe: ThroughputProbe
    writer: ProvisioningWriter


def check_address(ctx: EthernetContext, code: str) -> CheckResult:
    """Report the last octet of the interface address."""
    action = parse_action(AddressAction, code)
    if action is not AddressAction.INIT:
        ctx.state.set_address(ctx.facts.ipv4_address())
    octet = ctx.state.address_octet
    if octet == 0:
        return CheckResult.fail()
    return CheckResult.ok(format_value(octet))


def check_mac(ctx: EthernetContext, code: str) -> CheckResult:
    """Report the provisioned MAC, provisioning it first on W."""
    action = parse_action(MacAction, code)
    if action is MacAction.WRITE and not ctx.state.mac_provisioned:
        ctx.writer.provision(ctx.state)
    if not ctx.state.mac_provisioned:
        return CheckResult.fail()
    return CheckResult.ok(ctx.state.mac_suffix)


def check_throughput(ctx: EthernetContext, code: str) -> CheckResult:
    """Measure or report throughput and compare it with the threshold."""
    action = parse_action(ThroughputAction, code)
    if ctx.state.address_octet == 0:
        logger.warning("No address on %s, throughput check fails", ctx.facts.interface)
        return CheckResult.fail()

    if action is ThroughputAction.RECEIVER:
        ctx.state.throughput_receiver_mbps = ctx.probe.measure(Role.RECEIVER)
        mbps = ctx.state.throughput_receiver_mbps
    elif action is ThroughputAction.SENDER:
        ctx.state.throughput_sender_mbps = ctx.probe.measure(Role.SENDER)
        mbps = ctx.state.throughput_sender_mbps
    else:
        mbps = ctx.state.throughput_receiver_mbps

    payload = format_value(mbps)
    if mbps > 0 and mbps >= ctx.config.pass_threshold_mbps:
        return CheckResult.ok(payload)
    return CheckResult.fail(payload)


def check_link(ctx: EthernetContext, code: str) -> CheckResult:
    """Report or force the link speed."""
    action = parse_action(LinkAction, code)
    if action is LinkAction.INIT:
        speed = ctx.state.link_speed_mbps
        return CheckResult.ok(format_value(speed)) if speed else CheckResult.fail()
    if action is LinkAction.READ:
        ctx.state.set_link_speed(ctx.link.current_speed())
        speed = ctx.state.link_speed_mbps
        return CheckResult.ok(format_value(speed)) if speed else CheckResult.fail()

    target = LinkSpeed.GIGABIT if action is LinkAction.GIGABIT else LinkSpeed.FAST
    if ctx.link.current_speed() != target:
        ctx.link.negotiate(target)
    ctx.state.set_link_speed(ctx.link.current_speed())
    payload = format_value(ctx.state.link_speed_mbps)
    if ctx.state.link_speed_mbps == target:
        return CheckResult.ok(payload)
    return CheckResult.fail(payload)


_HANDLERS: dict[EthernetDevice, Callable[[EthernetContext, str], CheckResult]] = {
    EthernetDevice.ADDRESS: check_address,
    EthernetDevice.MAC: check_mac,
    EthernetDevice.THROUGHPUT: check_throughput,
    EthernetDevice.LINK: check_link,
}


class EthernetGroup:
    """Device group for the Ethernet port.

    Args:
        ctx: Handler context; its state is repopulated by ``init()``.
    """

    def __init__(self, ctx: EthernetContext) -> None:
        self._ctx = ctx

    @property
    def context(self) -> EthernetContext:
        """Return the handler context."""
        return self._ctx

    @property
    def state(self) -> DeviceState:
        """Return the cached device values."""
        return self._ctx.state

    def init(self) -> None:
        """Repopulate the cached state from live hardware.

        Best effort: values that cannot be read stay zero. No throughput is
        measured here.
        """
        ctx = self._ctx
        ctx.state.reset()
        ctx.state.set_address(ctx.facts.ipv4_address())

        try:
            raw = ctx.facts.provisioning_memory()
        except HardwareError as exc:
            logger.warning("Cannot read provisioning memory: %s", exc)
        else:
            if is_valid_record(raw):
                ctx.state.mark_provisioned(mac_from_record(raw))

        ctx.state.set_link_speed(ctx.facts.link_speed())
        logger.info(
            "Ethernet %s: address=%s link=%d Mbps mac=%s",
            ctx.facts.interface,
            ctx.state.ip_address or "none",
            ctx.state.link_speed_mbps,
            ctx.state.mac_address or "unprovisioned",
        )

    def check(self, device: int, action: str) -> CheckResult:
        """Run one check.

        Raises:
            UnknownDeviceError: If the device index is not an Ethernet device.
            UnknownActionError: If the action is not valid for the device.
        """
        try:
            handler = _HANDLERS[EthernetDevice(device)]
        except ValueError as exc:
            raise UnknownDeviceError(f"Ethernet has no device {device}") from exc
        return handler(self._ctx, action)


def create_group(
    interface: str = DEFAULT_INTERFACE,
    config_path: str | Path | None = None,
    mac_server_url: str = DEFAULT_MAC_SERVER_URL,
    model: str = DEFAULT_MODEL,
    otp: OtpMemory | None = None,
    emulate_otp: bool = False,
    runner: Callable[..., Any] = subprocess.run,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> EthernetGroup:
    """Create the Ethernet group with production wiring.

    Standard factory entry point for the dispatcher bootstrap.

    Args:
        interface: Network interface under test.
        config_path: Throughput config file; None for the default lookup.
        mac_server_url: Base URL of the MAC allocation service.
        model: Device model identifier for MAC allocation.
        otp: Provisioning memory; None for the nvmem device.
        emulate_otp: Use an in-memory provisioning memory instead of fuses.
        runner: subprocess.run-compatible callable for ethtool and iperf3.
        sleep: Sleep function used between retries.
        **kwargs: Options meant for other groups, ignored.

    Returns:
        Initialised Ethernet group.
    """
    if kwargs:
        logger.debug("Ignoring options not used by the Ethernet group: %s", sorted(kwargs))

    try:
        config = ConfigStore(config_path).load()
    except ConfigError as exc:
        logger.error("Using default Ethernet config: %s", exc)
        config = EthernetConfig()

    if otp is None:
        otp = OtpEmulator() if emulate_otp else NvmemOtp()

    facts = HardwareFacts(otp, interface=interface)
    link = LinkNegotiator(facts, runner=runner, sleep=sleep)
    probe = ThroughputProbe(facts, link, config.peer_address, runner=runner, sleep=sleep)
    writer = ProvisioningWriter(otp, MacServerClient(mac_server_url), model)
    ctx = EthernetContext(
        state=DeviceState(),
        config=config,
        facts=facts,
        link=link,
        probe=probe,
        writer=writer,
    )

    group = EthernetGroup(ctx)
    group.init()
    return group
