import pytest

from dmm_reader.drivers.meter_es519xx.profiles import DeviceProfile, ES519XXVariant


def packet_14b(
    range_char="0",
    digits="00000",
    function=0x3b,
    status=0x30,
    opt1=0x30,
    opt2=0x30,
    opt3=0x30,
    reserved=0x30,
    terminator=b"\r\n",
) -> bytes:
    """UT61E style packet: range, 5 digits, function, status, 3 options, reserved, CR LF"""
    body = range_char.encode("ascii") + digits.encode("ascii")
    return body + bytes([function, status, opt1, opt2, opt3, reserved]) + terminator


def packet_11b(
    range_char="0",
    digits="0000",
    function=0x3b,
    status=0x30,
    opt1=0x30,
    opt2=0x30,
    terminator=b"\r\n",
) -> bytes:
    """Range, 4 digits, function, status, 2 options, CR LF"""
    body = range_char.encode("ascii") + digits.encode("ascii")
    return body + bytes([function, status, opt1, opt2]) + terminator


@pytest.fixture
def ut61e():
    return DeviceProfile.from_variant(ES519XXVariant.ES519XX_19200_14B)


@pytest.fixture
def make_14b():
    return packet_14b


@pytest.fixture
def make_11b():
    return packet_11b
