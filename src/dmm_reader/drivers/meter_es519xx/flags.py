"""
=================
ES519XX Flag Extraction
=================

Turns the function, status and option bytes of a framed packet into a
DecodedFlags set, then checks the set for impossible combinations.

Status byte (bit 3 .. bit 0):
- standard:      judge, sign, battery low, overflow
- alt_functions: sign, battery low, overflow, overflow

14-byte option bytes:
- [8]  max, min, rel, rmr
- [9]  underflow, peak max, peak min, -
- [10] DC, AC, auto, VA/Hz

11-byte option byte 1 ([7]) depends on the profile, option byte 2 ([8]) is
DC, AC, auto, VA/Hz (APO at 2400 baud). Alternate-function meters only send
option byte 2 as DC, auto, -, APO.

LEGO pieces:
  - extract_flags: packet + profile -> DecodedFlags
  - validate_flags: raise InconsistentFlags on an impossible set
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional

from .errors import InconsistentFlags, UnknownFunctionCode
from .profiles import BAUD_2400, DeviceProfile, OptionLayout, PacketLayout


class MeasurementMode(Enum):
    VOLTAGE = "voltage"
    CURRENT = "current"
    RESISTANCE = "resistance"
    FREQUENCY = "frequency"
    CAPACITANCE = "capacitance"
    TEMPERATURE = "temperature"
    CONTINUITY = "continuity"
    DIODE = "diode"
    RPM = "rpm"
    DUTY_CYCLE = "duty_cycle"
    ADP0 = "adp0"
    ADP1 = "adp1"
    ADP2 = "adp2"
    ADP3 = "adp3"


# Modes that may never appear together; duty cycle is derived from
# frequency packets and is not part of the set
EXCLUSIVE_MODES = (
    "voltage", "current", "resistance", "frequency", "capacitance",
    "temperature", "continuity", "diode", "rpm",
)


@dataclass(frozen=True)
class DecodedFlags:
    """Every flag the ES519XX family can report in one packet"""
    # measurement modes
    voltage: bool = False
    current: bool = False
    resistance: bool = False
    frequency: bool = False
    capacitance: bool = False
    temperature: bool = False
    continuity: bool = False
    diode: bool = False
    rpm: bool = False
    duty_cycle: bool = False
    # auxiliary input channels
    adp0: bool = False
    adp1: bool = False
    adp2: bool = False
    adp3: bool = False
    # multipliers and units
    micro: bool = False
    milli: bool = False
    celsius: bool = False
    fahrenheit: bool = False
    # measurement qualifiers
    ac: bool = False
    dc: bool = False
    auto: bool = False
    hold: bool = False
    max: bool = False
    min: bool = False
    rel: bool = False
    rmr: bool = False
    pmax: bool = False
    pmin: bool = False
    # status
    sign: bool = False
    batt: bool = False
    ol: bool = False
    ul: bool = False
    apo: bool = False
    judge: bool = False
    # device specific
    vahz: bool = False
    digit4: bool = False
    vasel: bool = False
    vbar: bool = False
    lpf0: bool = False
    lpf1: bool = False

    @property
    def mode(self) -> Optional[MeasurementMode]:
        """Top-level measurement mode, None if the packet carries none"""
        for m in MeasurementMode:
            if getattr(self, m.value):
                return m
        return None

    def active(self) -> list:
        """Names of all flags that are set, in declaration order"""
        return [f.name for f in fields(self) if getattr(self, f.name)]


# Function byte tables. Values are the flags a code sets (or clears).
# _FREQ_JUDGE and _TEMP_JUDGE entries depend on the judge bit.
_FREQ_JUDGE = "freq_judge"
_TEMP_JUDGE = "temp_judge"

STANDARD_FUNCTIONS = {
    0x3b: {"voltage": True},
    0x3d: {"current": True, "micro": True, "auto": True},
    0x3f: {"current": True, "milli": True, "auto": True},
    0x30: {"current": True, "auto": True},
    0x39: {"current": True, "auto": False},     # manual A
    0x33: {"resistance": True},
    0x35: {"continuity": True},
    0x31: {"diode": True},
    0x32: _FREQ_JUDGE,                          # frequency / RPM / duty cycle
    0x36: {"capacitance": True},
    0x34: _TEMP_JUDGE,                          # digits are always Celsius
    0x3e: {"adp0": True},
    0x3c: {"adp1": True},
    0x38: {"adp2": True},
    0x3a: {"adp3": True},
}

ALT_FUNCTIONS = {
    0x3f: {"current": True, "auto": True},
    0x3e: {"current": True, "micro": True, "auto": True},
    0x3d: {"current": True, "milli": True, "auto": True},
    0x3c: {"voltage": True},
    0x37: {"resistance": True},
    0x36: {"continuity": True},
    0x3b: {"diode": True},
    0x3a: {"frequency": True},
    0x34: {"adp0": True},
    0x35: {"adp0": True},
    0x38: {"adp1": True},
    0x39: {"adp1": True},
    0x32: {"adp2": True},
    0x33: {"adp2": True},
    0x30: {"adp3": True},
    0x31: {"adp3": True},
}


def _bit(value: int, n: int) -> bool:
    return (value & (1 << n)) != 0


def _frequency_flag(profile: DeviceProfile, judge: bool) -> str:
    """Frequency-class mode selected by packet length and judge bit"""
    if not judge:
        return "frequency"
    return "duty_cycle" if profile.is_14_byte else "rpm"


def _parse_status(f: dict, status: int, profile: DeviceProfile) -> None:
    if profile.alt_functions:
        f["sign"] = _bit(status, 3)
        f["batt"] = _bit(status, 2)
        f["ol"] = _bit(status, 1) or _bit(status, 0)
    else:
        f["judge"] = _bit(status, 3)
        f["sign"] = _bit(status, 2)
        f["batt"] = _bit(status, 1)
        f["ol"] = _bit(status, 0)


def _parse_options(f: dict, packet: bytes, layout: PacketLayout, profile: DeviceProfile) -> None:
    opts = [packet[i] for i in layout.option_bytes]

    if layout.option_layout is OptionLayout.FOURTEEN_BYTE:
        opt1, opt2, opt3 = opts
        f["max"] = _bit(opt1, 3)
        f["min"] = _bit(opt1, 2)
        f["rel"] = _bit(opt1, 1)
        f["rmr"] = _bit(opt1, 0)

        f["ul"] = _bit(opt2, 3)
        f["pmax"] = _bit(opt2, 2)
        f["pmin"] = _bit(opt2, 1)

        f["dc"] = _bit(opt3, 3)
        f["ac"] = _bit(opt3, 2)
        f["auto"] = _bit(opt3, 1)
        f["vahz"] = _bit(opt3, 0)
        return

    opt1, opt2 = opts
    if layout.option_layout is OptionLayout.ALT_FUNCTIONS:
        f["dc"] = _bit(opt2, 3)
        f["auto"] = _bit(opt2, 2)
        f["apo"] = _bit(opt2, 0)
        f["ac"] = not f["dc"]
        return

    if layout.option_layout is OptionLayout.LOW_BAUD:
        f["pmax"] = _bit(opt1, 3)
        f["pmin"] = _bit(opt1, 2)
        f["vahz"] = _bit(opt1, 0)
    elif layout.option_layout is OptionLayout.FIVE_DIGITS:
        f["ul"] = _bit(opt1, 3)
        f["pmax"] = _bit(opt1, 2)
        f["pmin"] = _bit(opt1, 1)
        f["digit4"] = _bit(opt1, 0)
    elif layout.option_layout is OptionLayout.CLAMP_METER:
        f["ul"] = _bit(opt1, 3)
        f["vasel"] = _bit(opt1, 2)
        f["vbar"] = _bit(opt1, 1)
    else:
        f["hold"] = _bit(opt1, 3)
        f["max"] = _bit(opt1, 2)
        f["min"] = _bit(opt1, 1)

    f["dc"] = _bit(opt2, 3)
    f["ac"] = _bit(opt2, 2)
    f["auto"] = _bit(opt2, 1)
    if profile.baudrate == BAUD_2400:
        f["apo"] = _bit(opt2, 0)
    else:
        f["vahz"] = _bit(opt2, 0)


def _parse_function(f: dict, code: int, profile: DeviceProfile) -> None:
    table = ALT_FUNCTIONS if profile.alt_functions else STANDARD_FUNCTIONS
    entry = table.get(code)
    if entry is None:
        raise UnknownFunctionCode(code, profile.alt_functions)

    if entry == _FREQ_JUDGE:
        f[_frequency_flag(profile, f["judge"])] = True
    elif entry == _TEMP_JUDGE:
        f["temperature"] = True
        if f["judge"]:
            f["celsius"] = True
        else:
            f["fahrenheit"] = True
    else:
        f.update(entry)


def _apply_overrides(f: dict, profile: DeviceProfile) -> None:
    # The VA/Hz pin turns a voltage or current reading into a frequency one
    if f["vahz"] and (f["voltage"] or f["current"]):
        f["voltage"] = f["current"] = False
        f["milli"] = f["micro"] = False
        f[_frequency_flag(profile, f["judge"])] = True

    # Clamp meters report voltage on the uA/mA function codes when VA select is on
    if f["current"] and (f["micro"] or f["milli"]) and f["vasel"]:
        f["current"] = f["auto"] = False
        f["voltage"] = True


def extract_flags(packet: bytes, profile: DeviceProfile, layout: Optional[PacketLayout] = None) -> DecodedFlags:
    """
    Decode status, option and function bytes of a framed packet.

    Args:
        packet: complete packet, already checked for the CR LF terminator
        profile: device profile the packet was produced by
        layout: pre-resolved offsets (resolved from profile if omitted)

    Returns:
        DecodedFlags for the packet (not yet validated)

    Raises:
        UnknownFunctionCode if the function byte is not in the profile's table
    """
    layout = layout or PacketLayout.for_profile(profile)
    f = {fld.name: False for fld in fields(DecodedFlags)}

    # Status and option bytes first, the function byte depends on judge and auto
    _parse_status(f, packet[layout.status_byte], profile)
    _parse_options(f, packet, layout, profile)
    _parse_function(f, packet[layout.function_byte], profile)
    _apply_overrides(f, profile)

    return DecodedFlags(**f)


def validate_flags(flags: DecodedFlags) -> DecodedFlags:
    """
    Reject flag sets the meter cannot produce.

    Raises:
        InconsistentFlags on more than one multiplier, more than one
        measurement type, or AC and DC together
    """
    if flags.micro and flags.milli:
        raise InconsistentFlags("More than one multiplier in packet")

    modes = [name for name in EXCLUSIVE_MODES if getattr(flags, name)]
    if len(modes) > 1:
        raise InconsistentFlags(f"More than one measurement type in packet: {', '.join(modes)}")

    if flags.ac and flags.dc:
        raise InconsistentFlags("Both AC and DC flags set")

    return flags
