"""jigtest-core: dispatch contract and wire protocol for the JIG test firmware.

Every hardware domain of the JIG follows the same pattern: the host sends a
(group, device, action) request, a dispatcher routes it to the group's
per-device handler, and the handler answers with a pass/fail status and a
fixed-width payload.

Key components:
    - Dispatcher: routes checks to registered device groups, never raises.
    - Request / Response: fixed-width wire frames with encode/decode pairs.
    - retry: bounded retry shared by every hardware-settling operation.
    - build_group: creates a device group from a "module:function" factory.
"""

from jigtest_core.dispatcher import CheckResult, DeviceGroup, Dispatcher, GroupId, parse_action
from jigtest_core.errors import (
    ConfigError,
    GroupLoadError,
    HardwareError,
    JigError,
    ProtocolError,
    ProvisioningError,
    UnknownActionError,
    UnknownDeviceError,
    UnknownGroupError,
)
from jigtest_core.loader import build_group, load_group_factory
from jigtest_core.protocol import (
    ZERO_VALUE,
    ActionClass,
    DeviceAddress,
    GpioAddress,
    Request,
    Response,
    Status,
    format_value,
)
from jigtest_core.retry import RetryResult, retry

__version__ = "0.1.0"

__all__ = [
    # Dispatch
    "CheckResult",
    "DeviceGroup",
    "Dispatcher",
    "GroupId",
    "parse_action",
    "build_group",
    "load_group_factory",
    # Protocol
    "ActionClass",
    "DeviceAddress",
    "GpioAddress",
    "Request",
    "Response",
    "Status",
    "ZERO_VALUE",
    "format_value",
    # Retry
    "RetryResult",
    "retry",
    # Errors
    "ConfigError",
    "GroupLoadError",
    "HardwareError",
    "JigError",
    "ProtocolError",
    "ProvisioningError",
    "UnknownActionError",
    "UnknownDeviceError",
    "UnknownGroupError",
]
