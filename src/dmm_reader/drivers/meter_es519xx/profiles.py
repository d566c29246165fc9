"""
=================
ES519XX Device Profiles
=================

Static wire configuration for the ES519XX chip family.

The packet layout is fixed per meter model and never derived from packet
content. A profile is picked once (normally from ES519XXVariant) and every
byte offset the decoder needs is resolved from it in one place, PacketLayout.

Supported variants:
- ES519XX_19200_14B:          UT61E and other ES51922 meters (5 digits, 3 option bytes)
- ES519XX_19200_11B:          4-digit 19200 baud meters
- ES519XX_19200_11B_5DIGITS:  11-byte packets carrying a 5th leading '1' digit flag
- ES519XX_19200_11B_CLAMP:    clamp meters with the VA select bit
- ES519XX_2400_11B:           low-rate meters (peak/APO bit assignment)
- ES519XX_2400_11B_ALTFN:     low-rate meters with the alternate function table
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Union

PACKET_SIZE_14B = 14
PACKET_SIZE_11B = 11
BAUD_19200 = 19200
BAUD_2400 = 2400

TERMINATOR = b"\r\n"


class ES519XXVariant(Enum):
    ES519XX_19200_14B = "es519xx-19200-14b"
    ES519XX_19200_11B = "es519xx-19200-11b"
    ES519XX_19200_11B_5DIGITS = "es519xx-19200-11b-5digits"
    ES519XX_19200_11B_CLAMP = "es519xx-19200-11b-clamp"
    ES519XX_2400_11B = "es519xx-2400-11b"
    ES519XX_2400_11B_ALTFN = "es519xx-2400-11b-altfn"


class OptionLayout(Enum):
    """Which bit assignment the option bytes use for a given profile"""
    FOURTEEN_BYTE = "14b"
    ALT_FUNCTIONS = "altfn"
    LOW_BAUD = "2400"
    FIVE_DIGITS = "5digits"
    CLAMP_METER = "clamp"
    DEFAULT = "default"


@dataclass(frozen=True)
class DeviceProfile:
    """
    Wire configuration for one meter model.

    packet_size: 14 (one extra digit, three option bytes) or 11
    baudrate: 19200 (standard) or 2400 (low-rate option-byte assignment)
    alt_functions: meter uses the alternate function code table
    fivedigits: 11-byte packets with the digit4 flag and the 5-digit exponent table
    clampmeter: option byte 1 carries underflow/VA-select/bar flags
    """
    packet_size: int = PACKET_SIZE_14B
    baudrate: int = BAUD_19200
    alt_functions: bool = False
    fivedigits: bool = False
    clampmeter: bool = False

    def __post_init__(self):
        if self.packet_size not in (PACKET_SIZE_11B, PACKET_SIZE_14B):
            raise ValueError(f"Unsupported packet size: {self.packet_size}")
        if self.baudrate not in (BAUD_2400, BAUD_19200):
            raise ValueError(f"Unsupported baud rate: {self.baudrate}")

    @classmethod
    def from_variant(cls, variant: Union[ES519XXVariant, str]) -> "DeviceProfile":
        if isinstance(variant, str):
            variant = ES519XXVariant(variant)
        return _VARIANT_PROFILES[variant]

    @property
    def is_14_byte(self) -> bool:
        return self.packet_size == PACKET_SIZE_14B

    @property
    def digit_count(self) -> int:
        return 5 if self.is_14_byte else 4

    @property
    def option_layout(self) -> OptionLayout:
        # Order matters: exactly one branch applies per profile
        if self.is_14_byte:
            return OptionLayout.FOURTEEN_BYTE
        if self.alt_functions:
            return OptionLayout.ALT_FUNCTIONS
        if self.baudrate == BAUD_2400:
            return OptionLayout.LOW_BAUD
        if self.fivedigits:
            return OptionLayout.FIVE_DIGITS
        if self.clampmeter:
            return OptionLayout.CLAMP_METER
        return OptionLayout.DEFAULT


_VARIANT_PROFILES = {
    ES519XXVariant.ES519XX_19200_14B: DeviceProfile(),
    ES519XXVariant.ES519XX_19200_11B: DeviceProfile(packet_size=PACKET_SIZE_11B),
    ES519XXVariant.ES519XX_19200_11B_5DIGITS: DeviceProfile(packet_size=PACKET_SIZE_11B, fivedigits=True),
    ES519XXVariant.ES519XX_19200_11B_CLAMP: DeviceProfile(packet_size=PACKET_SIZE_11B, clampmeter=True),
    ES519XXVariant.ES519XX_2400_11B: DeviceProfile(packet_size=PACKET_SIZE_11B, baudrate=BAUD_2400),
    ES519XXVariant.ES519XX_2400_11B_ALTFN: DeviceProfile(
        packet_size=PACKET_SIZE_11B, baudrate=BAUD_2400, alt_functions=True
    ),
}


@dataclass(frozen=True)
class PacketLayout:
    """
    Byte offsets for one profile.

    range_byte: always 0
    digit_bytes: 1..4 (or 1..5 on 14-byte packets)
    function_byte / status_byte: shift by +1 on 14-byte packets
    option_bytes: 7 and 8 on 11-byte packets, 8, 9 and 10 on 14-byte packets
    """
    range_byte: int
    digit_bytes: tuple
    function_byte: int
    status_byte: int
    option_bytes: tuple
    option_layout: OptionLayout

    @classmethod
    def for_profile(cls, profile: DeviceProfile) -> "PacketLayout":
        shift = 1 if profile.is_14_byte else 0
        function = 5 + shift
        status = function + 1
        if profile.is_14_byte:
            options = (8, 9, 10)
        else:
            options = (7, 8)
        return cls(
            range_byte=0,
            digit_bytes=tuple(range(1, 1 + profile.digit_count)),
            function_byte=function,
            status_byte=status,
            option_bytes=options,
            option_layout=profile.option_layout,
        )
