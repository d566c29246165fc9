"""
ES519XX Multimeter Driver
=========================

Decoder and driver for multimeters built on the Cyrustek ES519XX chip
family (UT61E and similar), which stream fixed-length packets over RS-232
or a HID cable.

This driver implements the standard layered architecture:
- Transport: Serial/HID I/O and packet framing
- Commands: Packet decoding into a Measurement
- Procedures: Retries, averaging, stability detection
- Driver: Public API façade
"""
from .commands import Measurement, decode_packet
from .driver import ES519XXDriver
from .engineering import eng_to_decimal
from .errors import (
    ES519XXConnectionError,
    ES519XXError,
    ES519XXPacketError,
    ES519XXTimeoutError,
    FramingError,
    InconsistentFlags,
    InvalidDigits,
    InvalidRangeIndex,
    UnknownFunctionCode,
)
from .flags import DecodedFlags, MeasurementMode
from .profiles import DeviceProfile, ES519XXVariant

__all__ = [
    'ES519XXDriver',
    'DeviceProfile',
    'ES519XXVariant',
    'DecodedFlags',
    'Measurement',
    'MeasurementMode',
    'decode_packet',
    'eng_to_decimal',
    'ES519XXConnectionError',
    'ES519XXError',
    'ES519XXPacketError',
    'ES519XXTimeoutError',
    'FramingError',
    'InconsistentFlags',
    'InvalidDigits',
    'InvalidRangeIndex',
    'UnknownFunctionCode',
]
