"""
Human-readable description of a decoded packet.

One unit label (picked by priority) followed by every qualifier that is set,
e.g. "Volts (DC)(Auto)" or "Diode_V (Diode) MAX".
"""
from __future__ import annotations
from enum import Enum
from typing import Iterable, List, Optional

from .flags import DecodedFlags

MAX_TEXT_LEN = 31


class UnitLabel(Enum):
    DUTY_CYCLE = "pct_duty"
    RPM = "Freq_rpm"
    DIODE = "Diode_V"
    CONTINUITY = "Continuity"
    FAHRENHEIT = "deg_F"
    CELSIUS = "deg_C"
    CAPACITANCE = "Farads"
    FREQUENCY = "Hz"
    RESISTANCE = "Ohms"
    CURRENT = "Amps"
    VOLTAGE = "Volts"
    ADP3 = "ADP3"
    ADP2 = "ADP2"
    ADP1 = "ADP1"
    ADP0 = "ADP0"


class Qualifier(Enum):
    AC = "(AC)"
    DC = "(DC)"
    AUTO = "(Auto)"
    DIODE = "(Diode)"
    MAX = " MAX"
    MIN = " MIN"
    REL = " REL"


def unit_label(flags: DecodedFlags) -> Optional[UnitLabel]:
    # Highest priority first
    checks = (
        (flags.duty_cycle, UnitLabel.DUTY_CYCLE),
        (flags.rpm, UnitLabel.RPM),
        (flags.diode, UnitLabel.DIODE),
        (flags.continuity, UnitLabel.CONTINUITY),
        (flags.temperature and flags.fahrenheit, UnitLabel.FAHRENHEIT),
        (flags.temperature and flags.celsius, UnitLabel.CELSIUS),
        (flags.capacitance, UnitLabel.CAPACITANCE),
        (flags.frequency, UnitLabel.FREQUENCY),
        (flags.resistance, UnitLabel.RESISTANCE),
        (flags.current, UnitLabel.CURRENT),
        (flags.voltage, UnitLabel.VOLTAGE),
        (flags.adp3, UnitLabel.ADP3),
        (flags.adp2, UnitLabel.ADP2),
        (flags.adp1, UnitLabel.ADP1),
        (flags.adp0, UnitLabel.ADP0),
    )
    for is_set, label in checks:
        if is_set:
            return label
    return None


def qualifiers(flags: DecodedFlags) -> List[Qualifier]:
    checks = (
        (flags.ac, Qualifier.AC),
        (flags.dc, Qualifier.DC),
        (flags.auto, Qualifier.AUTO),
        (flags.diode, Qualifier.DIODE),
        (flags.max, Qualifier.MAX),
        (flags.min, Qualifier.MIN),
        (flags.rel, Qualifier.REL),
    )
    return [q for is_set, q in checks if is_set]


def render_summary(label: Optional[UnitLabel], tags: Iterable[Qualifier]) -> str:
    text = f"{label.value} " if label is not None else ""
    text += "".join(q.value for q in tags)
    return text[:MAX_TEXT_LEN]


def describe(flags: DecodedFlags) -> str:
    return render_summary(unit_label(flags), qualifiers(flags))
