"""
Heart-Rate Window.

Buffers heart-rate samples pushed by the sensor transport. The session clock
only ever reads the latest sample and the mean of the recent window; samples
arriving between ticks just slide through the window.
"""

import logging
import statistics
from collections import deque
from typing import Deque, List, Union

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 20

# Bit 0 of the Heart Rate Measurement flags: value is uint16 instead of uint8
HR_VALUE_FORMAT_UINT16 = 0x01


class HeartRateWindow:
    """Latest heart-rate sample plus a rolling window of recent readings."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        self.window_size = window_size
        self.latest: int = 0
        self._readings: Deque[int] = deque(maxlen=window_size)

    def add_sample(self, bpm: int) -> None:
        """
        Record a sample.

        A value of 0 means "no reading": it clears the latest value so the
        energy model falls back to the workload estimate, but it is not added
        to the rolling window.
        """
        bpm = max(int(bpm), 0)
        self.latest = bpm
        if bpm > 0:
            self._readings.append(bpm)

    @property
    def readings(self) -> List[int]:
        return list(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def average(self) -> float:
        """Mean of the window, or 0.0 when empty."""
        if not self._readings:
            return 0.0
        return statistics.mean(self._readings)

    def clear_window(self) -> None:
        self._readings.clear()

    def clear(self) -> None:
        self.latest = 0
        self._readings.clear()


def parse_heart_rate_measurement(data: Union[bytes, bytearray, str]) -> int:
    """
    Decode a BLE Heart Rate Measurement characteristic value.

    Args:
        data: Raw characteristic bytes, or their hex string representation

    Returns:
        Heart rate in beats per minute (0 if the payload is too short)
    """
    if isinstance(data, str):
        data = bytes.fromhex(data.replace(" ", ""))

    if len(data) < 2:
        logger.debug(f"[HR] Measurement too short: {bytes(data).hex()}")
        return 0

    flags = data[0]
    if flags & HR_VALUE_FORMAT_UINT16:
        if len(data) < 3:
            logger.debug(f"[HR] Truncated uint16 measurement: {bytes(data).hex()}")
            return 0
        return int.from_bytes(data[1:3], byteorder="little")

    return data[1]
