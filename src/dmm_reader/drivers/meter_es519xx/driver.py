"""
=================
ES519XX Driver (public façade)
=================

Public API for ES519XX-based multimeters (UT61E and similar).
Single entry point with error handling and clean interface.
"""
from __future__ import annotations
from typing import Optional, Union
import logging

from .commands import Measurement
from .errors import ES519XXError
from .procedures import AveragedReading, ES519XXProcedures
from .profiles import DeviceProfile, ES519XXVariant
from .transport import BACKEND_SERIAL, CH9325_PID, CH9325_VID, ES519XXOpenParams


class ES519XXDriver:
    """
    Public driver for ES519XX multimeters.

    Usage:
        meter = ES519XXDriver(variant="es519xx-19200-14b", port="/dev/ttyUSB0")
        meter.initialize()

        reading = meter.read_value()
        print(f"{reading.text} {reading.summary}")

        meter.shutdown()
    """

    def __init__(
        self,
        variant: Union[ES519XXVariant, str] = ES519XXVariant.ES519XX_19200_14B,
        backend: str = BACKEND_SERIAL,
        port: str = "/dev/ttyUSB0",
        vendor_id: int = CH9325_VID,
        product_id: int = CH9325_PID,
        timeout_ms: int = 3000,
        simulate: bool = False,
        profile: Optional[DeviceProfile] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Args:
            variant: chip/meter variant, ignored when profile is given
            backend: "serial" or "hid"
            port: serial port name
            vendor_id / product_id: USB ids of the HID cable
            timeout_ms: time allowed for one complete packet
            simulate: if True, simulate readings without hardware
            profile: explicit wire profile for meters outside the named variants
            logger: optional logger instance
        """
        self.log = logger or logging.getLogger("dmm_reader.driver.es519xx")
        self.profile = profile or DeviceProfile.from_variant(variant)
        params = ES519XXOpenParams(
            backend=backend,
            port=port,
            vendor_id=vendor_id,
            product_id=product_id,
            timeout_ms=timeout_ms,
            simulate=simulate,
        )
        self.proc = ES519XXProcedures(params, self.profile, logger=self.log)

    # ---- Lifecycle ----
    def initialize(self) -> None:
        """Open connection to meter"""
        try:
            self.proc.init()
        except ES519XXError:
            raise
        except Exception as e:
            raise ES519XXError(f"Failed to initialize ES519XX meter: {e}") from e

    def shutdown(self) -> None:
        """Close connection to meter"""
        try:
            self.proc.close()
        except Exception as e:
            self.log.error(f"Error during ES519XX shutdown: {e}")

    # ---- Reading methods ----
    def read_value(self, max_retries: int = 3) -> Measurement:
        """
        Read the currently displayed value, whatever mode the meter is in.

        Raises:
            ES519XXTimeoutError if the meter stops sending
            ES519XXPacketError if only bad packets arrived
            ES519XXConnectionError if the meter was never initialized
        """
        try:
            return self.proc.read_once(max_retries=max_retries)
        except ES519XXError:
            raise
        except Exception as e:
            raise ES519XXError(f"Failed to read from ES519XX meter: {e}") from e

    def read_averaged(self, sample_count: int = 5, delay_s: float = 0.5) -> AveragedReading:
        try:
            return self.proc.read_averaged(sample_count=sample_count, delay_s=delay_s)
        except ES519XXError:
            raise
        except Exception as e:
            raise ES519XXError(f"Failed to read averaged value: {e}") from e

    def wait_for_stable(
        self,
        timeout_s: float = 10.0,
        stability_threshold: float = 0.05,
    ) -> Measurement:
        try:
            return self.proc.wait_for_stable(
                timeout_s=timeout_s,
                stability_threshold=stability_threshold,
            )
        except ES519XXError:
            raise
        except Exception as e:
            raise ES519XXError(f"Failed waiting for stable reading: {e}") from e

    # ---- Utility methods ----
    @staticmethod
    def list_hid_devices() -> list:
        """
        List HID cables with the WCH/CH9325 vendor id.

        Returns:
            List of dict with vendor_id, product_id, manufacturer, product
        """
        try:
            import hid
        except ImportError:
            return []
        return [
            {
                'vendor_id': f"0x{d['vendor_id']:04x}",
                'product_id': f"0x{d['product_id']:04x}",
                'manufacturer': d.get('manufacturer_string', ''),
                'product': d.get('product_string', ''),
            }
            for d in hid.enumerate()
            if d['vendor_id'] == CH9325_VID
        ]

    def get_device_info(self) -> dict:
        p = self.proc.transport.p
        return {
            'backend': p.backend,
            'port': p.port,
            'packet_size': self.profile.packet_size,
            'baudrate': self.profile.baudrate,
            'is_open': self.proc.transport.is_open(),
            'simulate': p.simulate,
        }
