"""
=================
ES519XX Transport (I/O)
=================

Thin I/O layer for ES519XX meters (UT61E and friends).

The meter streams packets continuously (~2 Hz), we only listen. Two cables
are supported:

Serial (RS-232 / USB-serial, pyserial):
- 19200 baud for ES51922/14-byte meters, 2400 baud for the low-rate variants
- 7 data bits, odd parity, 1 stop bit
- DTR high and RTS low power the cable's opto-isolator

HID (UT-D04 style cable with a WCH CH9325 / HE2325U bridge, hidapi):
- Vendor ID 0x1a86, Product ID 0xe008
- Each report: byte 0 low nibble = number of payload bytes,
  payload bytes follow with bit 7 set (stripped here)

Either way the byte stream is cut at CR LF into packet_size buffers.
Framing is all this layer does; decoding lives in commands.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging
import time

# Optional deps; gracefully fail if missing (simulate mode still works)
try:
    import serial  # pyserial
    SERIAL_AVAILABLE = True
except Exception:
    serial = None
    SERIAL_AVAILABLE = False

try:
    import hid  # hidapi
    HID_AVAILABLE = True
except Exception:
    hid = None
    HID_AVAILABLE = False

from .errors import ES519XXConnectionError, ES519XXTimeoutError
from .profiles import TERMINATOR, DeviceProfile

BACKEND_SERIAL = "serial"
BACKEND_HID = "hid"

CH9325_VID = 0x1a86
CH9325_PID = 0xe008


@dataclass
class ES519XXOpenParams:
    """
    Connection settings for an ES519XX meter.

    backend: "serial" or "hid"
    port: serial port name (serial backend)
    vendor_id / product_id: USB ids of the HID bridge (hid backend)
    serial_number: optional serial number to pick one of several HID cables
    timeout_ms: time allowed for one complete packet
    simulate: if True, generate packets without hardware
    """
    backend: str = BACKEND_SERIAL
    port: str = "/dev/ttyUSB0"
    vendor_id: int = CH9325_VID
    product_id: int = CH9325_PID
    serial_number: Optional[str] = None
    timeout_ms: int = 3000
    simulate: bool = False


class ES519XXTransport:
    """
    Thin I/O layer for ES519XX packet streams.

    Responsibilities:
      - Open/close the serial port or HID device
      - Accumulate bytes and cut complete packets at CR LF
      - Support simulate mode when hardware unavailable
    """

    def __init__(
        self,
        p: ES519XXOpenParams,
        profile: Optional[DeviceProfile] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.p = p
        self.profile = profile or DeviceProfile()
        self.log = logger or logging.getLogger("dmm_reader.driver.es519xx.transport")
        self._serial = None
        self._device = None
        self._buffer = bytearray()
        self._sim_counter: int = 0

    # -------- Lifecycle ----------
    def open(self) -> None:
        if self.p.simulate:
            self.log.info(f"SIM: ES519XXTransport.open(backend={self.p.backend})")
            return

        if self.p.backend == BACKEND_SERIAL:
            self._open_serial()
        elif self.p.backend == BACKEND_HID:
            self._open_hid()
        else:
            raise ValueError(f"Unknown backend: {self.p.backend}")

    def _open_serial(self) -> None:
        if not SERIAL_AVAILABLE:
            raise ES519XXConnectionError(
                "pyserial not installed (required for the serial backend)\n"
                "Install with: pip install pyserial"
            )
        try:
            self._serial = serial.Serial(
                port=self.p.port,
                baudrate=self.profile.baudrate,
                bytesize=serial.SEVENBITS,
                parity=serial.PARITY_ODD,
                stopbits=serial.STOPBITS_ONE,
                timeout=0.1,
            )
            self._serial.dtr = True
            self._serial.rts = False
            self._serial.reset_input_buffer()
            self.log.info(f"ES519XX: Opened {self.p.port} at {self.profile.baudrate} baud (7O1)")
        except serial.SerialException as e:
            raise ES519XXConnectionError(f"Failed to open serial port {self.p.port}: {e}") from e

    def _open_hid(self) -> None:
        if not HID_AVAILABLE:
            raise ES519XXConnectionError(
                "hidapi not installed (required for the HID backend)\n"
                "Install with: pip install hidapi"
            )
        try:
            self._device = hid.device()
            if self.p.serial_number:
                self._device.open(self.p.vendor_id, self.p.product_id, self.p.serial_number)
            else:
                self._device.open(self.p.vendor_id, self.p.product_id)

            # Bridge UART setup: report id 0, baud rate LSB/MSB twice, then 0x03
            baud = self.profile.baudrate
            lsb, msb = baud & 0xff, (baud >> 8) & 0xff
            self._device.send_feature_report([0x00, lsb, msb, lsb, msb, 0x03])

            self.log.info(
                f"ES519XX: Opened HID device VID=0x{self.p.vendor_id:04x} PID=0x{self.p.product_id:04x} "
                f"({self._device.get_product_string()})"
            )
        except (OSError, IOError) as e:
            self._device = None
            raise ES519XXConnectionError(f"Failed to open HID device: {e}") from e

    def close(self) -> None:
        if self.p.simulate:
            self.log.info("SIM: ES519XXTransport.close()")
            return

        if self._serial is not None:
            self._serial.close()
            self._serial = None
            self.log.info("ES519XX: Serial port closed")
        if self._device is not None:
            self._device.close()
            self._device = None
            self.log.info("ES519XX: HID device closed")
        self._buffer.clear()

    def is_open(self) -> bool:
        if self.p.simulate:
            return True
        return self._serial is not None or self._device is not None

    # -------- I/O ----------
    def read_packet(self) -> bytes:
        """
        Read one framed packet.

        Returns:
            exactly profile.packet_size bytes ending in CR LF

        Raises:
            ES519XXTimeoutError if no complete packet arrives within timeout_ms
        """
        if self.p.simulate:
            self._sim_counter += 1
            return self._generate_sim_packet(100 + (self._sim_counter % 50))

        if not self.is_open():
            raise ES519XXConnectionError("Transport not open")

        deadline = time.monotonic() + self.p.timeout_ms / 1000.0
        while time.monotonic() < deadline:
            packet = self._take_packet()
            if packet is not None:
                return packet
            self._buffer.extend(self._read_chunk())

        raise ES519XXTimeoutError(f"No complete packet within {self.p.timeout_ms} ms")

    def _read_chunk(self) -> bytes:
        if self._serial is not None:
            return self._serial.read(self.profile.packet_size)
        report = self._device.read(8, 100)
        return hid_payload(report)

    def _take_packet(self) -> Optional[bytes]:
        """Cut the first complete packet from the buffer, dropping partial frames"""
        size = self.profile.packet_size
        while True:
            end = self._buffer.find(TERMINATOR)
            if end < 0:
                # Keep at most one packet worth of trailing bytes
                if len(self._buffer) > size:
                    del self._buffer[:-size]
                return None
            end += len(TERMINATOR)
            frame = bytes(self._buffer[:end])
            del self._buffer[:end]
            if len(frame) >= size:
                return frame[-size:]
            self.log.debug(f"ES519XX: Dropped short frame {frame.hex(' ')}")

    def flush_input(self) -> None:
        self._buffer.clear()
        if self._serial is not None:
            self._serial.reset_input_buffer()

    def _generate_sim_packet(self, resistance_ohms: int) -> bytes:
        """
        Generate a resistance packet for the profile on range '0'
        (100.00 Ohm style on 14-byte meters, 100.0 on 11-byte ones).
        """
        size = self.profile.packet_size
        digits = self.profile.digit_count
        scale = 100 if self.profile.is_14_byte else 10
        value = f"{resistance_ohms * scale:0{digits}d}"

        packet = bytearray(size)
        packet[0] = ord('0')
        packet[1:1 + digits] = value.encode('ascii')
        function = 1 + digits
        packet[function] = 0x37 if self.profile.alt_functions else 0x33
        packet[function + 1] = 0x30                 # status: no flags
        for i in range(function + 2, size - 2):
            packet[i] = 0x30                        # option bytes: no flags
        packet[-2:] = TERMINATOR
        return bytes(packet)


def hid_payload(report) -> bytes:
    """Strip the CH9325 report header and the bit 7 marker from each byte"""
    if not report:
        return b''
    count = report[0] & 0x0f
    return bytes(b & 0x7f for b in report[1:1 + count])
