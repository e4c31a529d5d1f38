"""Serial request loop between the JIG host and the dispatcher.

The host sends fixed-width request frames (``@C000105003R000000#``) over a
UART and expects one 38-byte response frame per check. Bytes outside a
``@...#`` frame are line noise and are discarded.

Example:
    link = SerialLink("/dev/ttyS0")
    server = JigServer(dispatcher, link)
    server.announce()
    server.serve_forever()
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import serial

from jigtest_core.dispatcher import Dispatcher
from jigtest_core.errors import ProtocolError
from jigtest_core.protocol import (
    END_MARKER,
    REQUEST_SIZE,
    START_MARKER,
    ZERO_VALUE,
    Request,
    Response,
    Status,
)

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200
CHECK_COMMAND = "C"
READY_DATA = "READY"

_START = START_MARKER.encode("ascii")
_END = END_MARKER.encode("ascii")


class SerialLink:
    """Frame-level access to the host UART.

    Args:
        port: Serial device path.
        baudrate: Line speed (8N1).
        timeout: Read timeout in seconds; ``read_frame`` returns None on expiry.
        serial_port: Already-open port object (for testing).
    """

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = 1.0,
        serial_port: Any = None,
    ) -> None:
        self._port_name = port
        if serial_port is None:
            try:
                serial_port = serial.Serial(port, baudrate=baudrate, timeout=timeout)
            except serial.SerialException as exc:
                raise OSError(f"Cannot open serial port {port}: {exc}") from exc
        self._serial = serial_port
        self._buffer = bytearray()

    @property
    def port(self) -> str:
        """Return the serial device path."""
        return self._port_name

    def read_frame(self) -> str | None:
        """Read one ``@...#`` frame.

        Returns:
            The frame text, or None if the read timed out before a complete
            frame arrived. Partial frames are kept for the next call.
        """
        while True:
            start = self._buffer.find(_START)
            if start < 0:
                self._buffer.clear()
            else:
                end = self._buffer.find(_END, start)
                if end >= 0:
                    # A later start marker means the earlier frame was cut short
                    start = self._buffer.rfind(_START, start, end)
                    if start > 0:
                        logger.debug("Discarding %d bytes before frame", start)
                    raw = bytes(self._buffer[start : end + 1])
                    del self._buffer[: end + 1]
                    return raw.decode("ascii", errors="replace")
                del self._buffer[:start]
                if len(self._buffer) > REQUEST_SIZE:
                    del self._buffer[:1]
                    continue

            chunk = self._serial.read(self._serial.in_waiting or 1)
            if not chunk:
                return None
            self._buffer.extend(chunk)

    def write_frame(self, frame: str) -> None:
        """Write one frame."""
        self._serial.write(frame.encode("ascii"))
        self._serial.flush()

    def close(self) -> None:
        """Close the serial port."""
        self._serial.close()


class JigServer:
    """Answers host requests until stopped.

    Args:
        dispatcher: Dispatcher holding the registered device groups.
        link: Serial link to the host.
    """

    def __init__(self, dispatcher: Dispatcher, link: SerialLink) -> None:
        self._dispatcher = dispatcher
        self._link = link
        self._stop = threading.Event()

    def announce(self) -> None:
        """Tell the host the JIG is ready with an INIT status frame."""
        self._link.write_frame(Response(gid=0, did=0, status=Status.INIT, data=READY_DATA).encode())
        logger.info("JIG ready on %s", self._link.port)

    def handle_frame(self, frame: str) -> Response | None:
        """Answer one request frame.

        Returns:
            The response sent, or None if the frame could not be decoded.
        """
        try:
            request = Request.decode(frame)
        except ProtocolError as exc:
            logger.warning("Dropping malformed frame %r: %s", frame, exc)
            return None

        if request.command == CHECK_COMMAND:
            response = self._dispatcher.handle(request)
        else:
            logger.warning("Unsupported command %r", request.command)
            response = Response(
                gid=request.gid, did=request.did, status=Status.FAIL, data=ZERO_VALUE
            )

        self._link.write_frame(response.encode())
        logger.debug("%s -> %s", frame, response.encode().rstrip())
        return response

    def serve_forever(self) -> None:
        """Read and answer frames until ``stop()`` is called."""
        self._stop.clear()
        while not self._stop.is_set():
            frame = self._link.read_frame()
            if frame is not None:
                self.handle_frame(frame)

    def stop(self) -> None:
        """Stop ``serve_forever`` after the current read."""
        self._stop.set()
