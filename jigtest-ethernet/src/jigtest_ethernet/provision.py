"""One-shot MAC address provisioning.

Programming the OTP memory is meant to happen once per physical unit. The
writer never reports success unless the record read back from memory is
valid, and erases the region whenever a write may have left a partial or
invalid record behind, so the next attempt starts from a blank state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from jigtest_core.errors import HardwareError, ProvisioningError

from jigtest_ethernet.efuse import OtpMemory, encode_record, is_valid_record, mac_from_record
from jigtest_ethernet.state import DeviceState

logger = logging.getLogger(__name__)


class UuidSource(Protocol):
    """Anything that can allocate a provisioning UUID."""

    def request_uuid(self, model: str) -> str:
        """Allocate a UUID for the model."""
        ...


class ProvisioningOutcome(Enum):
    """Terminal outcome of a provisioning attempt."""

    ALREADY_PROVISIONED = "already_provisioned"
    NEWLY_PROVISIONED = "newly_provisioned"
    FAILED = "failed"


@dataclass(frozen=True)
class ProvisioningResult:
    """Result of ``ProvisioningWriter.provision``.

    Attributes:
        outcome: Terminal outcome.
        mac_address: Provisioned MAC address, empty on failure.
    """

    outcome: ProvisioningOutcome
    mac_address: str = ""

    @property
    def succeeded(self) -> bool:
        """Return True if the unit ends up provisioned."""
        return self.outcome is not ProvisioningOutcome.FAILED


class ProvisioningWriter:
    """Allocates, programs and verifies the unit MAC address.

    Args:
        otp: Provisioning memory primitive.
        mac_server: Allocation service client.
        model: Device model identifier sent to the allocation service.
    """

    def __init__(self, otp: OtpMemory, mac_server: UuidSource, model: str) -> None:
        self._otp = otp
        self._mac_server = mac_server
        self._model = model

    def provision(self, state: DeviceState) -> ProvisioningResult:
        """Provision the unit unless it already is.

        Args:
            state: Ethernet state; marked provisioned only after the record
                read back from memory validates.

        Returns:
            The provisioning result. Never raises for hardware or service
            failures.
        """
        if state.mac_provisioned:
            return ProvisioningResult(ProvisioningOutcome.ALREADY_PROVISIONED, state.mac_address)

        try:
            existing = self._otp.read()
        except HardwareError as exc:
            logger.error("Cannot read provisioning memory, not programming: %s", exc)
            return ProvisioningResult(ProvisioningOutcome.FAILED)

        if is_valid_record(existing):
            mac = mac_from_record(existing)
            logger.info("Provisioning memory already holds MAC %s", mac)
            state.mark_provisioned(mac)
            return ProvisioningResult(ProvisioningOutcome.ALREADY_PROVISIONED, state.mac_address)

        try:
            mac = self._program()
        except (ProvisioningError, HardwareError, ValueError) as exc:
            logger.error("MAC provisioning failed: %s", exc)
            self._erase()
            state.clear_mac()
            return ProvisioningResult(ProvisioningOutcome.FAILED)

        state.mark_provisioned(mac)
        logger.info("Provisioned MAC %s", state.mac_address)
        return ProvisioningResult(ProvisioningOutcome.NEWLY_PROVISIONED, state.mac_address)

    def _program(self) -> str:
        uuid = self._mac_server.request_uuid(self._model)
        record = encode_record(uuid)
        self._otp.write(record)
        readback = self._otp.read()
        if not is_valid_record(readback):
            raise ProvisioningError("record read back from provisioning memory is not valid")
        if readback != record:
            raise ProvisioningError("record read back differs from record written")
        return mac_from_record(readback)

    def _erase(self) -> None:
        try:
            self._otp.erase()
        except HardwareError as exc:
            logger.error("Failed to erase provisioning memory: %s", exc)
