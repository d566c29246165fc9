"""
ES519XX Driver Errors
=====================

Exception classes for the ES519XX packet decoder and the meter driver.

Decode failures all derive from ES519XXPacketError; each subclass names
exactly one reason a packet was rejected. They are terminal for the
packet in hand only, the caller is expected to drop it and read the next.
"""


class ES519XXError(Exception):
    """Base exception for all ES519XX driver errors"""
    pass


class ES519XXTimeoutError(ES519XXError):
    """Raised when no complete packet arrives in time"""
    pass


class ES519XXConnectionError(ES519XXError):
    """Raised when the serial port or HID device cannot be opened"""
    pass


class ES519XXPacketError(ES519XXError):
    """Raised when packet decoding fails"""
    pass


class FramingError(ES519XXPacketError):
    """Packet has the wrong length or is not terminated by CR LF"""
    pass


class UnknownFunctionCode(ES519XXPacketError):
    """Function byte is not in the profile's function code table"""

    def __init__(self, code: int, alt_functions: bool = False):
        table = "alternate" if alt_functions else "standard"
        super().__init__(f"Unknown function byte 0x{code:02x} ({table} table)")
        self.code = code


class InconsistentFlags(ES519XXPacketError):
    """Decoded flags describe a physically impossible meter state"""
    pass


class InvalidDigits(ES519XXPacketError):
    """A digit byte is not an ASCII decimal digit"""
    pass


class InvalidRangeIndex(ES519XXPacketError):
    """Range byte is not an ASCII digit in '0'..'7'"""

    def __init__(self, raw: int):
        super().__init__(f"Invalid range byte 0x{raw:02x}")
        self.raw = raw
