"""
=================
ES519XX Procedures (High-level operations)
=================

Practical, repeatable measurement sequences for ES519XX meters.
Combines transport and commands into useful operations.

Key Procedures:
  - init: Open the connection
  - close: Close the connection
  - read_once: Read a single measurement, dropping bad packets
  - read_averaged: Read multiple samples and average
  - wait_for_stable: Wait for reading to stabilize
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import logging
import statistics
import time

from .commands import ES519XXCommands, Measurement
from .errors import ES519XXError, ES519XXPacketError, ES519XXTimeoutError
from .profiles import DeviceProfile
from .transport import ES519XXOpenParams, ES519XXTransport


@dataclass
class AveragedReading:
    """
    Mean of several readings taken in the same mode.

    value: mean of the sample values
    std_dev: sample standard deviation (0.0 for a single sample)
    summary: most common summary among the samples
    samples: the readings the mean was computed from
    """
    value: float
    std_dev: float
    summary: str
    samples: List[Measurement]

    @property
    def sample_count(self) -> int:
        return len(self.samples)


class ES519XXProcedures:
    """
    High-level procedures for ES519XX meters.

    Responsibilities:
      - Session management (open/close)
      - Dropping corrupted packets and retrying
      - Multi-sample reading and averaging
      - Stability detection
    """

    def __init__(
        self,
        params: Optional[ES519XXOpenParams] = None,
        profile: Optional[DeviceProfile] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.log = logger or logging.getLogger("dmm_reader.driver.es519xx")
        self.profile = profile or DeviceProfile()

        self.transport = ES519XXTransport(params or ES519XXOpenParams(), self.profile, logger=self.log)
        self.commands = ES519XXCommands(self.profile, logger=self.log)

    # -------- Lifecycle --------
    def init(self) -> None:
        """
        Open the connection and discard whatever partial packet is in flight.
        """
        self.log.info(f"ES519XX: Initializing ({self.transport.p.backend}, {self.profile.packet_size}-byte packets)")
        self.transport.open()
        self.transport.flush_input()
        self.log.info("ES519XX: Connection established")

    def close(self) -> None:
        self.log.info("ES519XX: Closing connection")
        self.transport.close()

    # -------- Reading Procedures --------
    def read_once(self, max_retries: int = 3) -> Measurement:
        """
        Read a single measurement from the meter.

        Rejected packets are dropped and the next one is read, up to
        max_retries packets in total.

        Raises:
            ES519XXTimeoutError if the meter stops sending
            ES519XXPacketError if every attempt produced a bad packet
        """
        last_error: Optional[ES519XXPacketError] = None

        for attempt in range(max_retries):
            packet = self.transport.read_packet()
            try:
                reading = self.commands.cmd_parse_packet(packet)
            except ES519XXPacketError as e:
                last_error = e
                self.log.warning(f"ES519XX: Bad packet on attempt {attempt + 1}/{max_retries}: {e}")
                continue

            self.log.debug(
                f"ES519XX: Read {reading.text} ({reading.summary.strip()}, "
                f"mantissa={reading.mantissa}, exp={reading.exponent})"
            )
            return reading

        raise ES519XXPacketError(f"Failed to decode after {max_retries} attempts: {last_error}") from last_error

    def read_averaged(self, sample_count: int = 5, delay_s: float = 0.5) -> AveragedReading:
        """
        Read multiple samples and return the averaged result.

        Over/under-range samples, bad packets and timeouts are skipped
        per sample.

        Raises:
            ES519XXError if no valid samples obtained
        """
        self.log.debug(f"ES519XX: Reading {sample_count} samples for averaging")
        samples: List[Measurement] = []

        for i in range(sample_count):
            try:
                reading = self.read_once()
            except (ES519XXPacketError, ES519XXTimeoutError) as e:
                self.log.warning(f"ES519XX: Failed to read sample {i + 1}: {e}")
                continue

            if reading.value is None:
                self.log.warning(f"ES519XX: Sample {i + 1} is {reading.text}, skipping")
                continue
            samples.append(reading)

            if i < sample_count - 1:
                time.sleep(delay_s)

        if not samples:
            raise ES519XXError("No valid samples obtained for averaging")

        values = [s.value for s in samples]
        avg_value = statistics.mean(values)
        std_dev = statistics.stdev(values) if len(values) > 1 else 0.0

        summaries = [s.summary for s in samples]
        most_common_summary = max(set(summaries), key=summaries.count)

        self.log.info(
            f"ES519XX: Averaged {len(samples)} samples: "
            f"{avg_value:.6g} {most_common_summary.strip()} (σ={std_dev:.3g})"
        )
        return AveragedReading(value=avg_value, std_dev=std_dev, summary=most_common_summary, samples=samples)

    def wait_for_stable(
        self,
        timeout_s: float = 10.0,
        stability_threshold: float = 0.05,
        window_size: int = 3,
        poll_s: float = 0.5,
    ) -> Measurement:
        """
        Wait for the reading to stabilize within a relative threshold.

        Args:
            timeout_s: Maximum time to wait
            stability_threshold: Maximum relative variation (0.05 = 5%)
            window_size: Number of consecutive stable readings required
            poll_s: Delay between readings

        Returns:
            The last Measurement of the stable window

        Raises:
            ES519XXTimeoutError if stability not achieved within timeout
        """
        self.log.debug(f"ES519XX: Waiting for stable reading (threshold={stability_threshold * 100}%)")

        start_time = time.monotonic()
        recent_values: List[float] = []

        while (time.monotonic() - start_time) < timeout_s:
            try:
                reading = self.read_once()
            except ES519XXPacketError as e:
                self.log.warning(f"ES519XX: Error during stability check: {e}")
                recent_values.clear()
                time.sleep(poll_s)
                continue

            if reading.value is None:
                self.log.warning("ES519XX: Over/under-range during stability wait")
                recent_values.clear()
                time.sleep(poll_s)
                continue

            recent_values.append(reading.value)
            if len(recent_values) > window_size:
                recent_values.pop(0)

            if len(recent_values) >= window_size:
                mean_val = statistics.mean(recent_values)
                if mean_val == 0:
                    max_variation = max(abs(v) for v in recent_values)
                else:
                    max_variation = max(abs(v - mean_val) / abs(mean_val) for v in recent_values)

                if max_variation <= stability_threshold:
                    self.log.info(
                        f"ES519XX: Reading stable at {mean_val:.6g} "
                        f"(variation={max_variation * 100:.1f}%)"
                    )
                    return reading

            time.sleep(poll_s)

        raise ES519XXTimeoutError(
            f"Reading did not stabilize within {timeout_s}s "
            f"(threshold={stability_threshold * 100}%)"
        )
