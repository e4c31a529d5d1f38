"""One-time-programmable provisioning memory holding the board MAC address.

The memory stores a record written once at the factory: a 36-character UUID
in ASCII whose node field (the last 12 hex digits) is the MAC address,
NUL-padded to the size of the region:

    6a1b2c3d-4e5f-6071-8293-001e06a1b2c3\\0\\0\\0...
                            ^^^^^^^^^^^^ MAC address

A record is valid only when it has exactly that shape and the MAC carries the
manufacturer prefix; anything else (blank memory, a torn write, stray bytes
after the UUID) is treated as unprovisioned.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from jigtest_core.errors import HardwareError

from jigtest_ethernet.state import MAC_PREFIX

logger = logging.getLogger(__name__)

UUID_SIZE = 36
RECORD_SIZE = 48

DEFAULT_NVMEM_PATH = Path("/sys/bus/nvmem/devices/rockchip-otp0/nvmem")

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-(?P<mac>[0-9a-f]{12})$",
    re.IGNORECASE,
)


@runtime_checkable
class OtpMemory(Protocol):
    """Protocol for the provisioning memory primitive."""

    def read(self) -> bytes:
        """Read the whole record region.

        Raises:
            HardwareError: If the memory cannot be read.
        """
        ...

    def write(self, data: bytes) -> None:
        """Program the record region.

        Raises:
            HardwareError: If the memory cannot be written.
        """
        ...

    def erase(self) -> None:
        """Return the record region to its blank state.

        Raises:
            HardwareError: If the memory cannot be erased.
        """
        ...


def encode_record(uuid: str, size: int = RECORD_SIZE) -> bytes:
    """Build a provisioning record from a UUID string.

    Args:
        uuid: UUID text whose node field is the MAC address.
        size: Size of the record region.

    Returns:
        The NUL-padded record.

    Raises:
        ValueError: If the UUID is not valid for provisioning.
    """
    record = uuid.lower().encode("ascii").ljust(size, b"\0")
    if not is_valid_record(record):
        raise ValueError(f"not a provisionable UUID: {uuid!r}")
    return record


def is_valid_record(raw: bytes) -> bool:
    """Check the structure of a provisioning record.

    Args:
        raw: Bytes read from provisioning memory.

    Returns:
        True if the record holds a well-formed UUID with a manufacturer MAC
        and nothing but NUL padding after it.
    """
    head, tail = raw[:UUID_SIZE], raw[UUID_SIZE:]
    if tail.strip(b"\0"):
        return False
    try:
        text = head.decode("ascii")
    except UnicodeDecodeError:
        return False
    match = _UUID_RE.match(text)
    if match is None:
        return False
    return match.group("mac").upper().startswith(MAC_PREFIX)


def mac_from_record(raw: bytes) -> str:
    """Extract the MAC address from a valid record.

    Returns:
        12 upper-case hex characters.

    Raises:
        ValueError: If the record is not valid.
    """
    if not is_valid_record(raw):
        raise ValueError("provisioning record is not valid")
    return raw[UUID_SIZE - 12 : UUID_SIZE].decode("ascii").upper()


class NvmemOtp:
    """Provisioning memory exposed as a kernel nvmem device node.

    Args:
        path: Path of the nvmem node.
        offset: Byte offset of the record region within the node.
        size: Size of the record region.
    """

    def __init__(
        self,
        path: str | Path = DEFAULT_NVMEM_PATH,
        offset: int = 0,
        size: int = RECORD_SIZE,
    ) -> None:
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if size < UUID_SIZE:
            raise ValueError(f"size must be >= {UUID_SIZE}, got {size}")
        self._path = Path(path)
        self._offset = offset
        self._size = size

    @property
    def path(self) -> Path:
        """Return the nvmem node path."""
        return self._path

    def read(self) -> bytes:
        try:
            with open(self._path, "rb") as f:
                f.seek(self._offset)
                data = f.read(self._size)
        except OSError as exc:
            raise HardwareError(f"Failed to read {self._path}: {exc}") from exc
        if len(data) != self._size:
            raise HardwareError(f"Short read from {self._path}: {len(data)} of {self._size} bytes")
        return data

    def write(self, data: bytes) -> None:
        if len(data) != self._size:
            raise ValueError(f"data must be {self._size} bytes, got {len(data)}")
        try:
            with open(self._path, "r+b") as f:
                f.seek(self._offset)
                f.write(data)
        except OSError as exc:
            raise HardwareError(f"Failed to write {self._path}: {exc}") from exc
        logger.info("Programmed %d bytes at %s+0x%X", self._size, self._path, self._offset)

    def erase(self) -> None:
        try:
            with open(self._path, "r+b") as f:
                f.seek(self._offset)
                f.write(b"\0" * self._size)
        except OSError as exc:
            raise HardwareError(f"Failed to erase {self._path}: {exc}") from exc
        logger.warning("Erased provisioning region at %s+0x%X", self._path, self._offset)
