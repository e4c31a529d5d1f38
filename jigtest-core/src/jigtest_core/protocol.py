"""Fixed-width text protocol spoken between the JIG host and the firmware.

Request frames are sent by the JIG host, one per check, with no separators:

    @ C 0001 05 003 R 000000 #
    | |  |   |   |  |   |    +-- end marker
    | |  |   |   |  |   +------- extra (6 opaque characters)
    | |  |   |   |  +----------- action code
    | |  |   |   +-------------- device ID (3 digits)
    | |  |   +------------------ group ID (2 digits)
    | |  +---------------------- host UI slot (4 digits)
    | +------------------------- command
    +--------------------------- start marker

Response frames are comma separated and always 38 bytes long:

    @,S,05,0003,P,              001000,#\\r\\n

The data field is right-aligned in 20 characters, so every response has the
same size regardless of group, device or action. Responses carry a 4-digit
device ID even though requests only have room for 3.

Device IDs carry an action class in their tens digit (``did // 10``) and a
device index in their units digit (``did % 10``). The GPIO group uses a wider
scheme, ``did // 1000`` for clear/set and ``did % 1000`` for the pin number.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from jigtest_core.errors import ProtocolError

REQUEST_SIZE = 19
RESPONSE_SIZE = 38
RESPONSE_DATA_WIDTH = 20
EXTRA_SIZE = 6
VALUE_WIDTH = 6

START_MARKER = "@"
END_MARKER = "#"
RESPONSE_COMMAND = "S"
LINE_END = "\r\n"

ZERO_VALUE = "0" * VALUE_WIDTH


class Status(Enum):
    """Status marker carried in a response frame."""

    PASS = "P"
    FAIL = "F"
    INIT = "I"
    WRITE = "W"


class ActionClass(Enum):
    """Action class encoded in the tens digit of a device ID."""

    READ = 0
    WRITE = 1
    LINK = 2
    RESERVED = 3


def format_value(value: int, width: int = VALUE_WIDTH) -> str:
    """Render a non-negative integer as a zero-padded decimal field.

    Args:
        value: Value to render.
        width: Number of digits in the field.

    Returns:
        Exactly ``width`` ASCII digits.

    Raises:
        ValueError: If the value is negative or does not fit the field.
    """
    if value < 0:
        raise ValueError(f"value must be >= 0, got {value}")
    text = f"{value:0{width}d}"
    if len(text) != width:
        raise ValueError(f"value {value} does not fit in {width} digits")
    return text


@dataclass(frozen=True)
class DeviceAddress:
    """Device ID split into its action class and device index.

    Attributes:
        action_class: Action class from the tens digit.
        device: Device index within the group (0-9).
    """

    action_class: ActionClass
    device: int

    def __post_init__(self) -> None:
        if not 0 <= self.device <= 9:
            raise ValueError(f"device must be 0-9, got {self.device}")

    @property
    def did(self) -> int:
        """Return the encoded device ID."""
        return self.action_class.value * 10 + self.device

    @classmethod
    def from_did(cls, did: int) -> DeviceAddress:
        """Decode a device ID.

        Raises:
            ValueError: If the action class is unknown.
        """
        if did < 0:
            raise ValueError(f"did must be >= 0, got {did}")
        return cls(action_class=ActionClass(did // 10), device=did % 10)


@dataclass(frozen=True)
class GpioAddress:
    """GPIO device ID: clear/set flag plus an arbitrary pin number.

    Attributes:
        set: True to drive the pin high, False to clear it.
        pin: Pin number (0-999).
    """

    set: bool
    pin: int

    def __post_init__(self) -> None:
        if not 0 <= self.pin <= 999:
            raise ValueError(f"pin must be 0-999, got {self.pin}")

    @property
    def did(self) -> int:
        """Return the encoded device ID."""
        return (1000 if self.set else 0) + self.pin

    @classmethod
    def from_did(cls, did: int) -> GpioAddress:
        """Decode a GPIO device ID.

        Raises:
            ValueError: If the action part is neither clear (0) nor set (1).
        """
        action = did // 1000
        if did < 0 or action > 1:
            raise ValueError(f"invalid GPIO did {did}")
        return cls(set=action == 1, pin=did % 1000)


def _parse_digits(text: str, name: str) -> int:
    if not text.isdigit():
        raise ProtocolError(f"{name} must be decimal digits, got {text!r}")
    return int(text)


@dataclass(frozen=True)
class Request:
    """Check request received from the JIG host.

    Attributes:
        command: Single-character command (``C`` runs a check).
        ui_id: Host UI slot that issued the request (0-9999).
        gid: Group ID (0-99).
        did: Device ID (0-999).
        action: Single-character action code.
        extra: Six opaque characters reserved by the host.
    """

    command: str
    ui_id: int
    gid: int
    did: int
    action: str
    extra: str = "0" * EXTRA_SIZE

    def __post_init__(self) -> None:
        if len(self.command) != 1 or len(self.action) != 1:
            raise ValueError("command and action must be single characters")
        if not 0 <= self.ui_id <= 9999:
            raise ValueError(f"ui_id must be 0-9999, got {self.ui_id}")
        if not 0 <= self.gid <= 99:
            raise ValueError(f"gid must be 0-99, got {self.gid}")
        if not 0 <= self.did <= 999:
            raise ValueError(f"did must be 0-999, got {self.did}")
        if len(self.extra) != EXTRA_SIZE:
            raise ValueError(f"extra must be {EXTRA_SIZE} characters, got {self.extra!r}")
        if END_MARKER in self.extra:
            raise ValueError("extra must not contain the end marker")

    def encode(self) -> str:
        """Encode the request as a wire frame."""
        return (
            f"{START_MARKER}{self.command}{self.ui_id:04d}{self.gid:02d}"
            f"{self.did:03d}{self.action}{self.extra}{END_MARKER}"
        )

    @classmethod
    def decode(cls, frame: str) -> Request:
        """Decode a wire frame.

        Args:
            frame: Frame text, optionally followed by a line ending.

        Returns:
            The decoded request.

        Raises:
            ProtocolError: If the frame is malformed.
        """
        frame = frame.rstrip("\r\n")
        if len(frame) != REQUEST_SIZE:
            raise ProtocolError(f"request must be {REQUEST_SIZE} characters, got {len(frame)}")
        if frame[0] != START_MARKER or frame[-1] != END_MARKER:
            raise ProtocolError(f"request is not framed by '@' and '#': {frame!r}")

        try:
            return cls(
                command=frame[1],
                ui_id=_parse_digits(frame[2:6], "ui_id"),
                gid=_parse_digits(frame[6:8], "gid"),
                did=_parse_digits(frame[8:11], "did"),
                action=frame[11],
                extra=frame[12:18],
            )
        except ValueError as exc:
            raise ProtocolError(str(exc)) from exc


@dataclass(frozen=True)
class Response:
    """Response frame sent back to the JIG host.

    Attributes:
        gid: Group ID echoed from the request.
        did: Device ID echoed from the request.
        status: Pass/fail/init/write marker.
        data: Payload, at most 20 characters, no commas or padding.
    """

    gid: int
    did: int
    status: Status
    data: str

    def __post_init__(self) -> None:
        if not 0 <= self.gid <= 99:
            raise ValueError(f"gid must be 0-99, got {self.gid}")
        if not 0 <= self.did <= 9999:
            raise ValueError(f"did must be 0-9999, got {self.did}")
        if len(self.data) > RESPONSE_DATA_WIDTH:
            raise ValueError(f"data must be <= {RESPONSE_DATA_WIDTH} characters, got {self.data!r}")
        if "," in self.data or self.data != self.data.strip():
            raise ValueError(f"data must not contain commas or padding, got {self.data!r}")

    def encode(self) -> str:
        """Encode the response as a 38-byte wire frame including CRLF."""
        return (
            f"{START_MARKER},{RESPONSE_COMMAND},{self.gid:02d},{self.did:04d},"
            f"{self.status.value},{self.data:>{RESPONSE_DATA_WIDTH}},{END_MARKER}{LINE_END}"
        )

    @classmethod
    def decode(cls, frame: str) -> Response:
        """Decode a wire frame.

        Raises:
            ProtocolError: If the frame is malformed.
        """
        if len(frame) != RESPONSE_SIZE or not frame.endswith(LINE_END):
            raise ProtocolError(f"response must be {RESPONSE_SIZE} bytes ending in CRLF")

        fields = frame[: -len(LINE_END)].split(",")
        if len(fields) != 7:
            raise ProtocolError(f"response must have 7 fields, got {len(fields)}")

        start, command, gid, did, status, data, end = fields
        if start != START_MARKER or end != END_MARKER or command != RESPONSE_COMMAND:
            raise ProtocolError(f"response is not framed correctly: {frame!r}")
        if len(gid) != 2 or len(did) != 4 or len(data) != RESPONSE_DATA_WIDTH:
            raise ProtocolError(f"response fields have wrong widths: {frame!r}")

        try:
            return cls(
                gid=_parse_digits(gid, "gid"),
                did=_parse_digits(did, "did"),
                status=Status(status),
                data=data.lstrip(" "),
            )
        except ValueError as exc:
            raise ProtocolError(str(exc)) from exc
