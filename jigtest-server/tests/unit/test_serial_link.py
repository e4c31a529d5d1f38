"""Unit tests for the serial request loop."""

from __future__ import annotations

from unittest.mock import MagicMock

from jigtest_core.dispatcher import CheckResult, Dispatcher, GroupId
from jigtest_core.protocol import ZERO_VALUE, Response, Status
from jigtest_server.serial_link import JigServer, SerialLink


def _port(*chunks: bytes) -> MagicMock:
    port = MagicMock()
    port.in_waiting = 0
    port.read.side_effect = [*chunks, b""]
    return port


def _link(*chunks: bytes) -> tuple[SerialLink, MagicMock]:
    port = _port(*chunks)
    return SerialLink("/dev/ttyS0", serial_port=port), port


def _written(port: MagicMock) -> list[str]:
    return [call.args[0].decode("ascii") for call in port.write.call_args_list]


class TestSerialLink:
    def test_read_frame(self) -> None:
        link, _ = _link(b"@C000105003R000000#")
        assert link.read_frame() == "@C000105003R000000#"

    def test_frame_split_across_reads(self) -> None:
        link, _ = _link(b"@C00010", b"5003R00", b"0000#")
        assert link.read_frame() == "@C000105003R000000#"

    def test_noise_discarded(self) -> None:
        link, _ = _link(b"\r\nxx@C000105003R000000#")
        assert link.read_frame() == "@C000105003R000000#"

    def test_back_to_back_frames(self) -> None:
        link, _ = _link(b"@C000105003R000000#@C000105000I000000#")
        assert link.read_frame() == "@C000105003R000000#"
        assert link.read_frame() == "@C000105000I000000#"

    def test_timeout_returns_none(self) -> None:
        link, _ = _link()
        assert link.read_frame() is None

    def test_unterminated_frame_resyncs(self) -> None:
        link, _ = _link(b"@" + b"0" * 30 + b"@C000105003R000000#")
        assert link.read_frame() == "@C000105003R000000#"

    def test_write_frame(self) -> None:
        link, port = _link()
        link.write_frame("@,S,05,0003,P,              001000,#\r\n")
        port.write.assert_called_once_with(b"@,S,05,0003,P,              001000,#\r\n")
        port.flush.assert_called_once()

    def test_close(self) -> None:
        link, port = _link()
        link.close()
        port.close.assert_called_once()


class TestJigServer:
    def _server(self, *chunks: bytes) -> tuple[JigServer, MagicMock, MagicMock]:
        group = MagicMock()
        group.check.return_value = CheckResult.ok("001000")
        link, port = _link(*chunks)
        return JigServer(Dispatcher({GroupId.ETHERNET: group}), link), port, group

    def test_announce(self) -> None:
        server, port, _ = self._server()
        server.announce()
        frame = _written(port)[0]
        assert len(frame) == 38
        assert Response.decode(frame).status is Status.INIT

    def test_check_request(self) -> None:
        server, port, group = self._server()

        response = server.handle_frame("@C000105003R000000#")

        assert response == Response(gid=5, did=3, status=Status.PASS, data="001000")
        group.check.assert_called_once_with(3, "R")
        assert _written(port) == ["@,S,05,0003,P,              001000,#\r\n"]

    def test_unsupported_command(self) -> None:
        server, port, group = self._server()

        response = server.handle_frame("@X000105003R000000#")

        assert response is not None
        assert response.status is Status.FAIL
        assert response.data == ZERO_VALUE
        group.check.assert_not_called()
        assert len(_written(port)) == 1

    def test_malformed_frame_dropped(self) -> None:
        server, port, _ = self._server()
        assert server.handle_frame("@C00010#") is None
        port.write.assert_not_called()

    def test_serve_until_stopped(self) -> None:
        server, port, group = self._server()

        def read(size: int) -> bytes:
            if port.read.call_count == 1:
                return b"@C000105003R000000#"
            server.stop()
            return b""

        port.read.side_effect = read

        server.serve_forever()

        group.check.assert_called_once_with(3, "R")
        assert len(_written(port)) == 1
