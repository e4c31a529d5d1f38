"""jigtest-server: serial front end and CLI for the JIG test firmware."""

from jigtest_server.bootstrap import DEFAULT_GROUPS, build_dispatcher
from jigtest_server.serial_link import JigServer, SerialLink

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_GROUPS",
    "JigServer",
    "SerialLink",
    "build_dispatcher",
]
