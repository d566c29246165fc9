"""
=================
ES519XX Commands (packet decoding)
=================

Decodes one framed ES519XX packet into a Measurement.

The meter only talks, it is never sent commands; "commands" here are the
parse operations applied to what it sends.

14-byte packet structure (UT61E, ES51922):
[0]:     Range byte, ASCII '0'..'7'
[1-5]:   Digit bytes, ASCII '0'..'9', most significant first
[6]:     Function byte (measurement mode)
[7]:     Status byte (judge, sign, battery, overflow)
[8-10]:  Option bytes
[11]:    Reserved
[12-13]: \\r\\n terminator

11-byte packets carry 4 digits ([1-4]), function [5], status [6] and
option bytes [7-8] before the terminator.

Decode phases, each feeding the next:
  1. check_frame      - CR LF terminator and length
  2. extract_flags    - status/option/function bytes -> DecodedFlags
  3. validate_flags   - reject impossible flag combinations
  4. extract_mantissa - digits, sign, over/under-range sentinels
  5. resolve_range    - mode + range index -> exponent, decimal text
  6. describe         - unit label and qualifiers
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from .engineering import INT32_MAX, INT32_MIN, eng_to_decimal, zero_lead
from .errors import ES519XXPacketError, FramingError, InvalidDigits, InvalidRangeIndex
from .flags import DecodedFlags, MeasurementMode, extract_flags, validate_flags
from .profiles import TERMINATOR, DeviceProfile, PacketLayout
from .summary import MAX_TEXT_LEN, describe
from .tables import (
    EXPONENTS_19200_11B_5DIGITS,
    EXPONENTS_19200_14B,
    RANGE_INDEX_MAX,
    RangeMode,
    lookup_exponent,
)

Converter = Callable[[int, int], str]

DUTY_CYCLE_EXPONENT = -1


@dataclass(frozen=True)
class Measurement:
    """
    One decoded reading.

    mantissa: signed integer from the digit bytes (INT32_MAX / INT32_MIN for over/under-range)
    exponent: power of ten applied to the mantissa
    text: decimal rendering of mantissa * 10**exponent
    summary: unit label and qualifiers, e.g. "Volts (DC)(Auto)"
    flags: flags the value was interpreted with
    range_index: 0..7 from the range byte
    raw_packet: original packet for debugging
    """
    mantissa: int
    exponent: int
    text: str
    summary: str
    flags: DecodedFlags
    range_index: int = 0
    raw_packet: bytes = b''

    @property
    def is_overload(self) -> bool:
        return self.mantissa == INT32_MAX

    @property
    def is_underload(self) -> bool:
        return self.mantissa == INT32_MIN

    @property
    def mode(self) -> Optional[MeasurementMode]:
        return self.flags.mode

    @property
    def value(self) -> Optional[float]:
        """Reading as a float, None when over/under-range"""
        if self.is_overload or self.is_underload:
            return None
        return self.mantissa * 10.0 ** self.exponent


# -------- Decode phases --------
def check_frame(buf: bytes, profile: DeviceProfile) -> bytes:
    """
    Confirm buf is one complete packet.

    Raises:
        FramingError on a wrong length or a missing CR LF terminator
    """
    packet = bytes(buf)
    if len(packet) != profile.packet_size:
        raise FramingError(f"Invalid packet length: {len(packet)} (expected {profile.packet_size})")
    if packet[-2:] != TERMINATOR:
        raise FramingError(f"Invalid terminator: {packet[-2:].hex()}")
    return packet


def extract_mantissa(packet: bytes, flags: DecodedFlags, layout: PacketLayout) -> int:
    """
    Build the signed mantissa from the digit bytes.

    Over/under-range short-circuit to the sentinels before any digit is
    looked at.

    Raises:
        InvalidDigits if a digit byte is not ASCII '0'..'9'
    """
    if flags.ol:
        return INT32_MAX
    if flags.ul:
        return INT32_MIN

    digits = bytes(packet[i] for i in layout.digit_bytes)
    if not digits.isdigit():
        raise InvalidDigits(f"Value contained invalid digits: {digits.hex(' ')}")

    # digit4 adds a leading '1' the digit bytes have no room for
    value = 1 if flags.digit4 else 0
    for d in digits:
        value = 10 * value + (d - 0x30)

    return -value if flags.sign else value


def range_mode(flags: DecodedFlags) -> Optional[RangeMode]:
    """Exponent table row for the decoded mode, None if the mode has no row"""
    if flags.voltage:
        return RangeMode.VOLTAGE
    if flags.current and flags.micro:
        return RangeMode.MICRO_AMP
    if flags.current and flags.milli:
        return RangeMode.MILLI_AMP
    if flags.current and flags.auto:
        return RangeMode.AUTO_AMP
    if flags.current:
        return RangeMode.MANUAL_AMP
    if flags.resistance or flags.continuity:
        return RangeMode.RESISTANCE
    if flags.frequency:
        return RangeMode.FREQUENCY
    if flags.capacitance:
        return RangeMode.CAPACITANCE
    if flags.diode:
        return RangeMode.DIODE
    return None


def range_index(packet: bytes, layout: PacketLayout) -> int:
    """
    Raises:
        InvalidRangeIndex unless the range byte is ASCII '0'..'7'
    """
    raw = packet[layout.range_byte]
    idx = raw - 0x30
    if idx < 0 or idx > RANGE_INDEX_MAX:
        raise InvalidRangeIndex(raw)
    return idx


def resolve_exponent(flags: DecodedFlags, index: int, profile: DeviceProfile) -> int:
    if flags.duty_cycle:
        return DUTY_CYCLE_EXPONENT

    mode = range_mode(flags)
    if mode is None:
        return 0
    if profile.fivedigits:
        return lookup_exponent(EXPONENTS_19200_11B_5DIGITS, mode, index)
    if profile.is_14_byte:
        return lookup_exponent(EXPONENTS_19200_14B, mode, index)
    return 0


def render_value(mantissa: int, exponent: int, converter: Converter = eng_to_decimal) -> str:
    return zero_lead(converter(mantissa, exponent))[:MAX_TEXT_LEN]


def decode_packet(
    buf: bytes,
    profile: DeviceProfile,
    converter: Converter = eng_to_decimal,
    layout: Optional[PacketLayout] = None,
) -> Measurement:
    """
    Decode one complete packet.

    Args:
        buf: exactly profile.packet_size bytes ending in CR LF
        profile: wire configuration of the meter
        converter: (mantissa, exponent) -> decimal string
        layout: pre-resolved offsets (resolved from profile if omitted)

    Returns:
        Measurement

    Raises:
        ES519XXPacketError subclass naming why the packet was rejected
    """
    layout = layout or PacketLayout.for_profile(profile)

    packet = check_frame(buf, profile)
    flags = validate_flags(extract_flags(packet, profile, layout))
    mantissa = extract_mantissa(packet, flags, layout)

    index = range_index(packet, layout)
    exponent = resolve_exponent(flags, index, profile)

    return Measurement(
        mantissa=mantissa,
        exponent=exponent,
        text=render_value(mantissa, exponent, converter),
        summary=describe(flags),
        flags=flags,
        range_index=index,
        raw_packet=packet,
    )


class ES519XXCommands:
    """
    Packet decoding bound to one meter profile.

    The profile and its byte layout are resolved once here and reused for
    every packet.
    """

    def __init__(
        self,
        profile: Optional[DeviceProfile] = None,
        converter: Converter = eng_to_decimal,
        logger: Optional[logging.Logger] = None,
    ):
        self.profile = profile or DeviceProfile()
        self.layout = PacketLayout.for_profile(self.profile)
        self.converter = converter
        self.log = logger or logging.getLogger("dmm_reader.driver.es519xx.commands")

    def cmd_parse_packet(self, packet: bytes) -> Measurement:
        """
        Parse one packet into a Measurement.

        Raises:
            ES519XXPacketError subclass if the packet is rejected
        """
        try:
            return decode_packet(packet, self.profile, self.converter, self.layout)
        except ES519XXPacketError as e:
            self.log.debug(f"ES519XX: Rejected packet {bytes(packet).hex(' ')}: {e}")
            raise
