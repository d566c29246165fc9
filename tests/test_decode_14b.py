"""
Decoding of 14-byte (UT61E / ES51922) packets.
"""
import pytest

from dmm_reader.drivers.meter_es519xx.commands import ES519XXCommands, decode_packet
from dmm_reader.drivers.meter_es519xx.engineering import INT32_MAX, INT32_MIN
from dmm_reader.drivers.meter_es519xx.errors import (
    ES519XXPacketError,
    FramingError,
    InconsistentFlags,
    InvalidDigits,
    InvalidRangeIndex,
    UnknownFunctionCode,
)
from dmm_reader.drivers.meter_es519xx.flags import MeasurementMode


def test_voltage_reading(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="3", digits="00123"), ut61e)

    assert m.mantissa == 123
    assert m.exponent == -1
    assert m.text == "12.3"
    assert m.range_index == 3
    assert m.mode is MeasurementMode.VOLTAGE
    assert m.summary == "Volts "
    assert m.value == pytest.approx(12.3)


def test_negative_small_voltage(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="0", digits="00009", status=0x34), ut61e)

    assert m.mantissa == -9
    assert m.exponent == -4
    assert m.text == "-0.0009"
    assert m.flags.sign


def test_overrange_ignores_digit_bytes(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="1", digits="::?;:", status=0x31), ut61e)

    assert m.mantissa == INT32_MAX
    assert m.is_overload
    assert m.value is None
    assert m.text == "OL"


def test_underrange(ut61e, make_14b):
    m = decode_packet(make_14b(digits="xxxxx", opt2=0x38), ut61e)

    assert m.mantissa == INT32_MIN
    assert m.is_underload
    assert m.text == "-OL"


def test_ac_and_dc_rejected(ut61e, make_14b):
    with pytest.raises(InconsistentFlags):
        decode_packet(make_14b(digits="00123", opt3=0x3c), ut61e)


def test_range_index_out_of_bounds(ut61e, make_14b):
    with pytest.raises(InvalidRangeIndex) as exc:
        decode_packet(make_14b(range_char="9", digits="00123"), ut61e)
    assert exc.value.raw == ord("9")


@pytest.mark.parametrize("range_char", ["8", "/", "A"])
def test_other_invalid_range_bytes(ut61e, make_14b, range_char):
    with pytest.raises(InvalidRangeIndex):
        decode_packet(make_14b(range_char=range_char), ut61e)


@pytest.mark.parametrize("terminator", [b"\n\r", b"\r\r", b"00"])
def test_missing_terminator(ut61e, make_14b, terminator):
    with pytest.raises(FramingError):
        decode_packet(make_14b(digits="00123", terminator=terminator), ut61e)


def test_wrong_length(ut61e, make_14b):
    with pytest.raises(FramingError):
        decode_packet(make_14b()[1:], ut61e)


def test_framing_checked_before_anything_else(ut61e, make_14b):
    # garbage everywhere, the framing error wins
    with pytest.raises(FramingError):
        decode_packet(make_14b(range_char="9", function=0x00, opt3=0x3c, terminator=b"xx"), ut61e)


def test_unknown_function_code(ut61e, make_14b):
    with pytest.raises(UnknownFunctionCode) as exc:
        decode_packet(make_14b(function=0x37), ut61e)
    assert exc.value.code == 0x37


def test_invalid_digits(ut61e, make_14b):
    with pytest.raises(InvalidDigits):
        decode_packet(make_14b(digits="12a45"), ut61e)


def test_all_errors_share_base(ut61e, make_14b):
    with pytest.raises(ES519XXPacketError):
        decode_packet(make_14b(terminator=b"  "), ut61e)


@pytest.mark.parametrize(
    "function, opt3, range_char, mode, exponent",
    [
        (0x3b, 0x30, "4", MeasurementMode.VOLTAGE, -5),       # mV range
        (0x3d, 0x30, "1", MeasurementMode.CURRENT, -7),       # uA
        (0x3f, 0x30, "0", MeasurementMode.CURRENT, -6),       # mA
        (0x30, 0x30, "0", MeasurementMode.CURRENT, -3),       # A, auto
        (0x39, 0x32, "2", MeasurementMode.CURRENT, -2),       # manual A even with auto bit
        (0x33, 0x30, "3", MeasurementMode.RESISTANCE, 1),
        (0x35, 0x30, "0", MeasurementMode.CONTINUITY, -2),
        (0x32, 0x30, "7", MeasurementMode.FREQUENCY, 4),
        (0x36, 0x30, "0", MeasurementMode.CAPACITANCE, -12),
        (0x31, 0x30, "0", MeasurementMode.DIODE, -4),
    ],
)
def test_mode_and_exponent(ut61e, make_14b, function, opt3, range_char, mode, exponent):
    m = decode_packet(make_14b(range_char=range_char, digits="01234", function=function, opt3=opt3), ut61e)

    assert m.mode is mode
    assert m.exponent == exponent
    assert m.mantissa == 1234


def test_manual_amp_clears_auto(ut61e, make_14b):
    m = decode_packet(make_14b(function=0x39, opt3=0x32), ut61e)
    assert not m.flags.auto
    assert m.summary == "Amps "


def test_micro_amp_flags(ut61e, make_14b):
    m = decode_packet(make_14b(function=0x3d), ut61e)
    assert m.flags.current and m.flags.micro and m.flags.auto
    assert not m.flags.milli


def test_frequency_with_judge_is_duty_cycle(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="5", digits="00505", function=0x32, status=0x38), ut61e)

    assert m.mode is MeasurementMode.DUTY_CYCLE
    assert not m.flags.frequency
    assert m.exponent == -1
    assert m.text == "50.5"
    assert m.summary == "pct_duty "


def test_vahz_turns_voltage_into_frequency(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="2", digits="05000", function=0x3b, opt3=0x31), ut61e)

    assert m.mode is MeasurementMode.FREQUENCY
    assert not m.flags.voltage
    assert m.exponent == 0
    assert m.text == "5000"


def test_vahz_with_judge_turns_current_into_duty_cycle(ut61e, make_14b):
    m = decode_packet(make_14b(function=0x3f, status=0x38, opt3=0x31), ut61e)

    assert m.mode is MeasurementMode.DUTY_CYCLE
    assert not (m.flags.current or m.flags.milli or m.flags.micro)
    assert m.exponent == -1


@pytest.mark.parametrize("status, label, celsius", [(0x38, "deg_C ", True), (0x30, "deg_F ", False)])
def test_temperature(ut61e, make_14b, status, label, celsius):
    m = decode_packet(make_14b(digits="00250", function=0x34, status=status), ut61e)

    assert m.mode is MeasurementMode.TEMPERATURE
    assert m.flags.celsius is celsius
    assert m.flags.fahrenheit is not celsius
    assert m.exponent == 0
    assert m.summary == label


@pytest.mark.parametrize("function, mode", [
    (0x3e, MeasurementMode.ADP0),
    (0x3c, MeasurementMode.ADP1),
    (0x38, MeasurementMode.ADP2),
    (0x3a, MeasurementMode.ADP3),
])
def test_adp_channels(ut61e, make_14b, function, mode):
    m = decode_packet(make_14b(digits="00042", function=function), ut61e)
    assert m.mode is mode
    assert m.exponent == 0


def test_option_bytes(ut61e, make_14b):
    m = decode_packet(make_14b(opt1=0x3f, opt2=0x36, opt3=0x3a), ut61e)
    f = m.flags

    assert f.max and f.min and f.rel and f.rmr
    assert f.pmax and f.pmin and not f.ul
    assert f.dc and f.auto and not f.ac and not f.vahz
    assert m.summary == "Volts (DC)(Auto) MAX MIN REL"


def test_status_battery_and_judge(ut61e, make_14b):
    m = decode_packet(make_14b(status=0x3a), ut61e)
    assert m.flags.batt
    assert m.flags.judge
    assert not m.flags.sign


def test_exactly_one_mode_set(ut61e, make_14b):
    for function in (0x3b, 0x3d, 0x3f, 0x30, 0x39, 0x33, 0x35, 0x31, 0x32, 0x36, 0x34):
        for status in (0x30, 0x38):
            m = decode_packet(make_14b(function=function, status=status), ut61e)
            modes = [mode for mode in MeasurementMode if getattr(m.flags, mode.value)]
            assert len(modes) == 1, (hex(function), modes)


def test_diode_summary(ut61e, make_14b):
    m = decode_packet(make_14b(digits="00512", function=0x31, opt3=0x3a), ut61e)
    assert m.summary == "Diode_V (DC)(Auto)(Diode)"
    assert m.text == "0.0512"


def test_large_positive_exponent(ut61e, make_14b):
    m = decode_packet(make_14b(range_char="6", digits="01000", function=0x33), ut61e)
    assert m.exponent == 4
    assert m.text == "10000000"


def test_custom_converter_leading_dot(ut61e, make_14b):
    m = decode_packet(make_14b(digits="00123"), ut61e, converter=lambda mant, exp: ".5")
    assert m.text == "0.5"


def test_raw_packet_kept(ut61e, make_14b):
    raw = bytearray(make_14b(digits="00123"))
    m = decode_packet(raw, ut61e)
    assert m.raw_packet == bytes(raw)


def test_commands_reraise(ut61e, make_14b):
    cmds = ES519XXCommands(ut61e)
    with pytest.raises(InvalidDigits):
        cmds.cmd_parse_packet(make_14b(digits="0000 "))
    assert cmds.cmd_parse_packet(make_14b(range_char="3", digits="00123")).text == "12.3"
