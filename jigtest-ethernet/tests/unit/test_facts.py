"""Unit tests for the hardware queries."""

from __future__ import annotations

import socket
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from jigtest_core.errors import HardwareError
from jigtest_ethernet.efuse import encode_record
from jigtest_ethernet.emulator import OtpEmulator
from jigtest_ethernet.facts import HardwareFacts

UUID = "6a1b2c3d-4e5f-6071-8293-001e06a1b2c3"


def _addr(family: int, address: str) -> SimpleNamespace:
    return SimpleNamespace(family=family, address=address, netmask=None, broadcast=None, ptp=None)


def _facts(
    tmp_path: Path,
    addrs: dict[str, list[Any]] | None = None,
    otp: OtpEmulator | None = None,
) -> HardwareFacts:
    return HardwareFacts(
        otp or OtpEmulator(),
        interface="eth0",
        sysfs_root=tmp_path,
        net_if_addrs=lambda: addrs or {},
    )


def _write_speed(tmp_path: Path, text: str) -> None:
    (tmp_path / "eth0").mkdir(exist_ok=True)
    (tmp_path / "eth0" / "speed").write_text(text, encoding="ascii")


class TestLinkSpeed:
    def test_reads_sysfs(self, tmp_path: Path) -> None:
        _write_speed(tmp_path, "1000\n")
        assert _facts(tmp_path).link_speed() == 1000

    def test_missing_interface(self, tmp_path: Path) -> None:
        assert _facts(tmp_path).link_speed() == 0

    def test_link_down_reports_negative(self, tmp_path: Path) -> None:
        _write_speed(tmp_path, "-1\n")
        assert _facts(tmp_path).link_speed() == 0

    def test_non_numeric(self, tmp_path: Path) -> None:
        _write_speed(tmp_path, "unknown\n")
        assert _facts(tmp_path).link_speed() == 0

    def test_unreadable_node(self, tmp_path: Path) -> None:
        # A directory where the node should be makes the read fail
        (tmp_path / "eth0" / "speed").mkdir(parents=True)
        assert _facts(tmp_path).link_speed() == 0


class TestAddress:
    def test_first_ipv4_address(self, tmp_path: Path) -> None:
        facts = _facts(
            tmp_path,
            {
                "eth0": [
                    _addr(socket.AF_INET6, "fe80::1"),
                    _addr(socket.AF_INET, "192.168.20.117"),
                    _addr(socket.AF_INET, "10.0.0.9"),
                ]
            },
        )
        assert facts.ipv4_address() == "192.168.20.117"

    def test_no_ipv4_address(self, tmp_path: Path) -> None:
        facts = _facts(tmp_path, {"eth0": [_addr(socket.AF_INET6, "fe80::1")]})
        assert facts.ipv4_address() is None

    def test_other_interface_ignored(self, tmp_path: Path) -> None:
        facts = _facts(tmp_path, {"wlan0": [_addr(socket.AF_INET, "10.0.0.9")]})
        assert facts.ipv4_address() is None

    def test_interface_property(self, tmp_path: Path) -> None:
        assert _facts(tmp_path).interface == "eth0"


class TestProvisioningMemory:
    def test_reads_otp(self, tmp_path: Path) -> None:
        facts = _facts(tmp_path, otp=OtpEmulator(uuid=UUID))
        assert facts.provisioning_memory() == encode_record(UUID)

    def test_read_failure_propagates(self, tmp_path: Path) -> None:
        otp = OtpEmulator()
        otp.set_fail_read(True)
        with pytest.raises(HardwareError):
            _facts(tmp_path, otp=otp).provisioning_memory()


@pytest.mark.hardware
class TestRealInterface:
    def test_eth0_reports_a_speed(self) -> None:
        facts = HardwareFacts(OtpEmulator())
        assert facts.link_speed() >= 0
        address = facts.ipv4_address()
        assert address is None or address.count(".") == 3
