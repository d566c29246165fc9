"""
Engineering notation to plain decimal.

Default renderer for (mantissa, exponent) pairs produced by the decoder.
Any callable with the same signature can be handed to the decoder instead.
"""
from __future__ import annotations
import decimal

INT32_MAX = 2 ** 31 - 1
INT32_MIN = -(2 ** 31)

OVERLOAD_TEXT = "OL"
UNDERLOAD_TEXT = "-OL"


def eng_to_decimal(mantissa: int, exponent: int) -> str:
    """
    Render mantissa * 10**exponent without scientific notation.

    Over/under-range sentinels render as "OL" / "-OL".

    Examples:
        eng_to_decimal(123, -1)  -> "12.3"
        eng_to_decimal(-9, -4)   -> "-0.0009"
        eng_to_decimal(12, 3)    -> "12000"
    """
    if mantissa == INT32_MAX:
        return OVERLOAD_TEXT
    if mantissa == INT32_MIN:
        return UNDERLOAD_TEXT

    value = decimal.Decimal(mantissa).scaleb(exponent)
    return format(value, "f")


def zero_lead(text: str) -> str:
    """".123" -> "0.123"; anything else unchanged"""
    if text.startswith("."):
        return "0" + text
    return text
