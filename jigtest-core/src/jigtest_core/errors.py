"""Exception types for jigtest-core.

This module defines the exception hierarchy used throughout the JIG firmware.
All jigtest exceptions inherit from JigError, allowing the dispatcher to turn
any framework-specific error into a failure response with a single except
clause.

Exception hierarchy:
    JigError (base)
    +-- ProtocolError: Malformed request or response frames
    +-- UnknownGroupError: Group ID with no registered device group
    +-- UnknownDeviceError: Device index not handled by a group
    +-- UnknownActionError: Action code outside a device's action set
    +-- HardwareError: Hardware primitive or external tool failures
    +-- ProvisioningError: MAC allocation, write or verification failures
    +-- ConfigError: Malformed configuration files
    +-- GroupLoadError: Device group factories that cannot be loaded
"""


class JigError(Exception):
    """Base exception for all jigtest errors.

    This is the root of the jigtest exception hierarchy. Catch this to handle
    any framework-specific error.
    """


class ProtocolError(JigError):
    """Raised when a wire frame cannot be decoded or encoded.

    Common causes include a wrong frame length, missing start or end markers,
    non-numeric ID fields, or an unknown status marker.
    """


class UnknownGroupError(JigError):
    """Raised when a request targets a group with no registered handler."""


class UnknownDeviceError(JigError):
    """Raised when a device index is outside a group's device set."""


class UnknownActionError(JigError):
    """Raised when an action code is not valid for the addressed device.

    Action codes are rejected here, at the boundary, instead of falling
    through to a default response deep inside a handler.
    """


class HardwareError(JigError):
    """Raised when a hardware access primitive fails.

    This covers provisioning memory reads and writes, missing device nodes,
    and external tools (ethtool, iperf3) that cannot be launched.
    """


class ProvisioningError(JigError):
    """Raised when the MAC provisioning workflow cannot complete.

    This may occur when the allocation service is unreachable or returns an
    invalid payload, or when the programmed memory fails verification.
    """


class ConfigError(JigError):
    """Raised for malformed configuration files."""


class GroupLoadError(JigError):
    """Raised when a device group's factory cannot be resolved or used."""
