"""In-process provisioning memory emulator implementing ``OtpMemory``.

Used by the unit tests and by ``jigtest --emulate-otp`` to exercise the MAC
provisioning workflow without burning real fuses.
"""

from __future__ import annotations

from jigtest_core.errors import HardwareError

from jigtest_ethernet.efuse import RECORD_SIZE, encode_record


class OtpEmulator:
    """In-memory provisioning memory.

    Args:
        size: Size of the record region.
        uuid: Optional UUID to start out provisioned with.
    """

    def __init__(self, size: int = RECORD_SIZE, uuid: str | None = None) -> None:
        self._size = size
        self._data = bytes(size) if uuid is None else encode_record(uuid, size)
        self._write_count = 0
        self._erase_count = 0
        self._fail_read = False
        self._fail_write = False
        self._corrupt_writes = False

    # -- OtpMemory interface ------------------------------------------------

    def read(self) -> bytes:
        if self._fail_read:
            raise HardwareError("emulated read failure")
        return self._data

    def write(self, data: bytes) -> None:
        if len(data) != self._size:
            raise ValueError(f"data must be {self._size} bytes, got {len(data)}")
        self._write_count += 1
        if self._fail_write:
            raise HardwareError("emulated write failure")
        if self._corrupt_writes:
            # Torn write: only the first half of the record lands
            half = self._size // 2
            data = data[:half] + bytes(self._size - half)
        self._data = data

    def erase(self) -> None:
        self._erase_count += 1
        self._data = bytes(self._size)

    # -- Test helpers -------------------------------------------------------

    @property
    def data(self) -> bytes:
        """Return the current memory contents."""
        return self._data

    @property
    def write_count(self) -> int:
        """Return the number of write attempts."""
        return self._write_count

    @property
    def erase_count(self) -> int:
        """Return the number of erases."""
        return self._erase_count

    def set_fail_read(self, enabled: bool) -> None:
        """Make subsequent reads raise HardwareError."""
        self._fail_read = enabled

    def set_fail_write(self, enabled: bool) -> None:
        """Make subsequent writes raise HardwareError."""
        self._fail_write = enabled

    def set_corrupt_writes(self, enabled: bool) -> None:
        """Make subsequent writes land only partially."""
        self._corrupt_writes = enabled
