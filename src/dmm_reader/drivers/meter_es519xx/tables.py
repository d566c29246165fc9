"""
ES519XX exponent tables.

Rows are indexed by RangeMode, columns by the range index (0..7) carried in
the first packet byte. Values are powers of ten applied to the mantissa.
"""
from __future__ import annotations
from enum import IntEnum


class RangeMode(IntEnum):
    VOLTAGE = 0
    MICRO_AMP = 1
    MILLI_AMP = 2
    AUTO_AMP = 3
    MANUAL_AMP = 4
    RESISTANCE = 5      # also continuity
    FREQUENCY = 6
    CAPACITANCE = 7
    DIODE = 8


RANGE_INDEX_MAX = 7

# 19200 baud, 14-byte packets (UT61E and similar)
EXPONENTS_19200_14B = (
    (-4, -3, -2, -1, -5, 0, 0, 0),           # V
    (-8, -7, 0, 0, 0, 0, 0, 0),              # uA
    (-6, -5, 0, 0, 0, 0, 0, 0),              # mA
    (-3, 0, 0, 0, 0, 0, 0, 0),               # A
    (-4, -3, -2, -1, 0, 0, 0, 0),            # Manual A
    (-2, -1, 0, 1, 2, 3, 4, 0),              # Resistance
    (-2, -1, 0, 0, 1, 2, 3, 4),              # Frequency
    (-12, -11, -10, -9, -8, -7, -6, -5),     # Capacitance
    (-4, 0, 0, 0, 0, 0, 0, 0),               # Diode
)

# 19200 baud, 11-byte packets with the digit4 flag
EXPONENTS_19200_11B_5DIGITS = (
    (-4, -3, -2, -1, -5, 0, 0, 0),           # V
    (-8, -7, 0, 0, 0, 0, 0, 0),              # uA
    (-6, -5, 0, 0, 0, 0, 0, 0),              # mA
    (0, -3, 0, 0, 0, 0, 0, 0),               # A
    (-4, -3, -2, -1, 0, 0, 0, 0),            # Manual A
    (-2, -1, 0, 1, 2, 3, 4, 0),              # Resistance
    (-1, 0, 0, 1, 2, 3, 4, 0),               # Frequency
    (-12, -11, -10, -9, -8, -7, -6, -5),     # Capacitance
    (-4, 0, 0, 0, 0, 0, 0, 0),               # Diode
)


def lookup_exponent(table: tuple, mode: RangeMode, index: int) -> int:
    return table[int(mode)][index]
