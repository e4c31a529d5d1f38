"""Unit tests for the JIG wire protocol."""

from __future__ import annotations

import pytest

from jigtest_core.errors import ProtocolError
from jigtest_core.protocol import (
    REQUEST_SIZE,
    RESPONSE_SIZE,
    ZERO_VALUE,
    ActionClass,
    DeviceAddress,
    GpioAddress,
    Request,
    Response,
    Status,
    format_value,
)


class TestFormatValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0, "000000"), (7, "000007"), (1000, "001000"), (999999, "999999")],
    )
    def test_zero_padded(self, value: int, expected: str) -> None:
        assert format_value(value) == expected

    def test_custom_width(self) -> None:
        assert format_value(42, width=4) == "0042"

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            format_value(-1)

    def test_overflow_raises(self) -> None:
        with pytest.raises(ValueError, match="does not fit"):
            format_value(1_000_000)

    def test_zero_value_constant(self) -> None:
        assert ZERO_VALUE == format_value(0)


class TestDeviceAddress:
    def test_from_did(self) -> None:
        address = DeviceAddress.from_did(23)
        assert address.action_class is ActionClass.LINK
        assert address.device == 3

    def test_read_class(self) -> None:
        address = DeviceAddress.from_did(1)
        assert address.action_class is ActionClass.READ
        assert address.device == 1

    def test_did_property(self) -> None:
        assert DeviceAddress(ActionClass.WRITE, 2).did == 12

    def test_unknown_class_raises(self) -> None:
        with pytest.raises(ValueError):
            DeviceAddress.from_did(45)

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            DeviceAddress.from_did(-1)


class TestGpioAddress:
    def test_clear(self) -> None:
        address = GpioAddress.from_did(17)
        assert address.set is False
        assert address.pin == 17

    def test_set(self) -> None:
        address = GpioAddress.from_did(1999)
        assert address.set is True
        assert address.pin == 999
        assert address.did == 1999

    def test_invalid_action_raises(self) -> None:
        with pytest.raises(ValueError, match="invalid GPIO did"):
            GpioAddress.from_did(2000)

    def test_invalid_pin_raises(self) -> None:
        with pytest.raises(ValueError, match="pin must be 0-999"):
            GpioAddress(set=True, pin=1000)


class TestRequest:
    def test_decode(self) -> None:
        request = Request.decode("@C001205023S000000#")
        assert request.command == "C"
        assert request.ui_id == 12
        assert request.gid == 5
        assert request.did == 23
        assert request.action == "S"
        assert request.extra == "000000"

    def test_frame_is_19_characters(self) -> None:
        frame = "@C000105003R000000#"
        assert len(frame) == REQUEST_SIZE == 19
        request = Request.decode(frame)
        assert (request.gid, request.did, request.action) == (5, 3, "R")

    def test_decode_strips_line_ending(self) -> None:
        request = Request.decode("@C000105003R000000#\r\n")
        assert request.did == 3

    def test_encode(self) -> None:
        request = Request(command="C", ui_id=1, gid=5, did=1, action="W", extra="ABCDEF")
        assert request.encode() == "@C000105001WABCDEF#"

    @pytest.mark.parametrize(
        "request_",
        [
            Request(command="C", ui_id=0, gid=0, did=0, action="I"),
            Request(command="C", ui_id=9999, gid=12, did=999, action="C", extra="x y z "),
        ],
    )
    def test_round_trip(self, request_: Request) -> None:
        assert Request.decode(request_.encode()) == request_

    @pytest.mark.parametrize(
        "frame",
        [
            "",
            "@C000105003R000000",
            "#C000105003R000000@",
            "@C00010500R3000000#",
            "@C00X105003R000000#",
            "@C000105003R0000000#",
            "@C0001050003R000000#",
        ],
    )
    def test_malformed_raises(self, frame: str) -> None:
        with pytest.raises(ProtocolError):
            Request.decode(frame)

    def test_four_digit_did_rejected(self) -> None:
        with pytest.raises(ValueError, match="did must be 0-999"):
            Request(command="C", ui_id=0, gid=11, did=1017, action="S")

    def test_invalid_extra_raises(self) -> None:
        with pytest.raises(ValueError, match="extra"):
            Request(command="C", ui_id=0, gid=5, did=0, action="R", extra="123")


class TestResponse:
    def test_encode_layout(self) -> None:
        frame = Response(gid=5, did=3, status=Status.PASS, data="001000").encode()
        assert frame == "@,S,05,0003,P,              001000,#\r\n"
        assert len(frame) == RESPONSE_SIZE

    def test_encode_is_fixed_size(self) -> None:
        short = Response(gid=0, did=0, status=Status.FAIL, data="").encode()
        long = Response(gid=12, did=1999, status=Status.INIT, data="A" * 20).encode()
        assert len(short) == len(long) == RESPONSE_SIZE

    def test_decode(self) -> None:
        response = Response.decode("@,S,05,0001,P,              AABBCC,#\r\n")
        assert response.gid == 5
        assert response.did == 1
        assert response.status is Status.PASS
        assert response.data == "AABBCC"

    @pytest.mark.parametrize("status", list(Status))
    def test_round_trip_every_status(self, status: Status) -> None:
        response = Response(gid=5, did=12, status=status, data="000941")
        assert Response.decode(response.encode()) == response

    @pytest.mark.parametrize(
        "frame",
        [
            "@,S,05,0001,P,              AABBCC,#",
            "@,S,05,0001,X,              AABBCC,#\r\n",
            "@,R,05,0001,P,              AABBCC,#\r\n",
            "@,S,5X,0001,P,              AABBCC,#\r\n",
            "@,S,05,0001,P,             A,ABBCC,#\r\n",
        ],
    )
    def test_malformed_raises(self, frame: str) -> None:
        with pytest.raises(ProtocolError):
            Response.decode(frame)

    def test_data_too_long_raises(self) -> None:
        with pytest.raises(ValueError, match="<= 20"):
            Response(gid=5, did=0, status=Status.PASS, data="A" * 21)

    def test_data_with_comma_raises(self) -> None:
        with pytest.raises(ValueError, match="commas"):
            Response(gid=5, did=0, status=Status.PASS, data="1,2")
