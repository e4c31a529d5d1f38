"""Request dispatch across the JIG device groups.

The dispatcher maps a (group, device, action) triple onto the device group
registered for that group ID and wraps the result in a response frame. It is
the one place where errors become failure responses: unknown groups, devices
and actions, as well as any exception escaping a handler, produce a FAIL
status with a zero payload, so every request gets a well-formed answer.

Example:
    dispatcher = Dispatcher()
    dispatcher.register(GroupId.ETHERNET, ethernet_group)

    response = dispatcher.handle(Request.decode("@C000105003R000000#"))
    serial_port.write(response.encode().encode("ascii"))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Mapping, Protocol, TypeVar, runtime_checkable

from jigtest_core.errors import JigError, UnknownActionError, UnknownGroupError
from jigtest_core.protocol import ZERO_VALUE, DeviceAddress, Request, Response, Status

logger = logging.getLogger(__name__)


class GroupId(IntEnum):
    """Hardware domains addressable by the JIG host."""

    SYSTEM = 0
    STORAGE = 1
    USB = 2
    HDMI = 3
    ADC = 4
    ETHERNET = 5
    HEADER = 6
    AUDIO = 7
    LED = 8
    PWM = 9
    IR = 10
    GPIO = 11
    FW = 12


@dataclass(frozen=True)
class CheckResult:
    """Result of a single device check.

    Attributes:
        status: PASS or FAIL.
        data: Payload text placed in the response data field.
    """

    status: Status
    data: str

    @property
    def passed(self) -> bool:
        """Return True if the check passed."""
        return self.status is Status.PASS

    @classmethod
    def ok(cls, data: str) -> CheckResult:
        """Create a passing result."""
        return cls(status=Status.PASS, data=data)

    @classmethod
    def fail(cls, data: str = ZERO_VALUE) -> CheckResult:
        """Create a failing result, with a zero payload by default."""
        return cls(status=Status.FAIL, data=data)


@runtime_checkable
class DeviceGroup(Protocol):
    """Protocol for a hardware domain handler."""

    def check(self, device: int, action: str) -> CheckResult:
        """Run one check against a device of this group.

        Args:
            device: Device index within the group.
            action: Single-character action code.

        Returns:
            The check result.
        """
        ...


ActionT = TypeVar("ActionT", bound=Enum)


def parse_action(actions: type[ActionT], code: str) -> ActionT:
    """Parse an action code into a device's closed action enumeration.

    Args:
        actions: Enum class whose values are the accepted action codes.
        code: Action code from the request.

    Returns:
        The matching enum member.

    Raises:
        UnknownActionError: If the code is not a member of the enumeration.
    """
    try:
        return actions(code)
    except ValueError as exc:
        valid = "".join(str(member.value) for member in actions)
        raise UnknownActionError(
            f"action {code!r} not valid for {actions.__name__} (expected one of {valid!r})"
        ) from exc


class Dispatcher:
    """Routes checks to registered device groups.

    Calls into one group are serialised with a per-group lock, because each
    group drives one physical resource (one network interface, one fuse
    block) that cannot run two operations at once.

    Args:
        groups: Initial group registrations.
    """

    def __init__(self, groups: Mapping[GroupId, DeviceGroup] | None = None) -> None:
        self._groups: dict[GroupId, DeviceGroup] = {}
        self._locks: dict[GroupId, threading.Lock] = {}
        for gid, group in (groups or {}).items():
            self.register(gid, group)

    @property
    def groups(self) -> dict[GroupId, DeviceGroup]:
        """Return a copy of the registered groups."""
        return dict(self._groups)

    def register(self, gid: GroupId, group: DeviceGroup) -> None:
        """Register the handler for a group ID.

        Raises:
            ValueError: If the group ID is already registered.
        """
        if gid in self._groups:
            raise ValueError(f"Group {gid.name} already registered")
        self._groups[gid] = group
        self._locks[gid] = threading.Lock()
        logger.info("Registered device group %s (%d)", gid.name, gid.value)

    def check(self, gid: int, did: int, action: str) -> CheckResult:
        """Run a check; never raises.

        Args:
            gid: Group ID.
            did: Device ID (action class and device index).
            action: Single-character action code.

        Returns:
            The group's result, or a FAIL result with a zero payload.
        """
        try:
            group_id = GroupId(gid)
        except ValueError:
            logger.warning("Unknown group id %d", gid)
            return CheckResult.fail()

        try:
            group = self._groups.get(group_id)
            if group is None:
                raise UnknownGroupError(f"No device group registered for {group_id.name}")

            # GPIO groups decode their own wide pin addressing
            if group_id is GroupId.GPIO:
                device = did
            else:
                address = DeviceAddress.from_did(did)
                device = address.device
                logger.debug("Device id %04d is %s class", did, address.action_class.name)

            logger.debug("Check %s device %d action %r", group_id.name, device, action)
            with self._locks[group_id]:
                return group.check(device, action)
        except JigError as exc:
            logger.warning("Check %s/%04d/%r failed: %s", group_id.name, did, action, exc)
        except ValueError as exc:
            logger.warning("Invalid check %s/%04d/%r: %s", group_id.name, did, action, exc)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error in %s check", group_id.name)
        return CheckResult.fail()

    def handle(self, request: Request) -> Response:
        """Run the check named by a request and wrap it in a response frame."""
        result = self.check(request.gid, request.did, request.action)
        try:
            return Response(gid=request.gid, did=request.did, status=result.status, data=result.data)
        except ValueError:
            logger.error("Group %d produced an unencodable payload %r", request.gid, result.data)
            return Response(gid=request.gid, did=request.did, status=Status.FAIL, data=ZERO_VALUE)
