"""Physical-liveness analysis from accelerometer magnitudes."""

from __future__ import annotations

import logging
import statistics
import threading
from collections import deque
from dataclasses import dataclass

from spoof_guard.models import AccelerometerSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MotionParams:
    """Sliding-window and liveness thresholds.

    Variances are in (m/s^2)^2 over gravity-removed magnitudes. Calibration notes, from
    hand-held devices rather than any hardware guarantee:
      - a human hand holding a phone jitters at roughly 0.02 to 0.1, even when "still";
      - a phone on a table, tripod or emulator sits below about 0.005.
    Expect false positives from users resting the device and false negatives in vehicles,
    where engine vibration masks a still handset. Tune against real device data.
    """

    # ~3 s of data at a 60 ms sampling interval
    window_capacity: int = 50
    min_samples: int = 10
    walking_speed_mps: float = 0.4
    walking_variance: float = 0.02
    # Lowest tremor expected from a hand-held device.
    min_human_variance: float = 0.001


class MotionVarianceTracker:
    """Bounded FIFO window of acceleration magnitudes with a cached population variance.

    Sensor callbacks may ingest from their own thread while the guard reads, so the
    window and the cached variance sit behind a single lock.
    """

    def __init__(self, params: MotionParams | None = None) -> None:
        self._params = params or MotionParams()
        self._window: deque[float] = deque(maxlen=self._params.window_capacity)
        self._variance = 0.0
        self._lock = threading.Lock()

    @property
    def params(self) -> MotionParams:
        return self._params

    @property
    def sample_count(self) -> int:
        with self._lock:
            return len(self._window)

    def ingest(self, magnitude: float) -> None:
        """Append one magnitude sample, evicting the oldest once the window is full."""

        with self._lock:
            self._window.append(float(magnitude))
            if len(self._window) >= self._params.min_samples:
                # pvariance is exact for identical samples, a naive mean is not.
                self._variance = statistics.pvariance(self._window)

    def ingest_sample(self, sample: AccelerometerSample) -> None:
        self.ingest(sample.magnitude)

    def current_variance(self) -> float:
        """Population variance of the window, or 0.0 until ``min_samples`` have arrived."""

        with self._lock:
            return self._ready_variance()

    def is_joystick_walk(self, gps_speed_mps: float) -> bool:
        """True when GPS reports walking speed but the device is mechanically still.

        Args:
            gps_speed_mps: Speed reported by the current fix.

        Returns:
            False until enough samples were collected.
        """

        with self._lock:
            if len(self._window) < self._params.min_samples:
                return False
            return (
                gps_speed_mps > self._params.walking_speed_mps
                and self._variance < self._params.walking_variance
            )

    def is_static_device(self, gps_speed_mps: float) -> bool:
        """True when the user is supposedly standing still but shows no hand tremor at all.

        Points at a device lying on a table or mounted on a tripod, or at an emulator.
        """

        with self._lock:
            if len(self._window) < self._params.min_samples:
                return False
            return (
                gps_speed_mps <= self._params.walking_speed_mps
                and self._variance < self._params.min_human_variance
            )

    def reset(self) -> None:
        with self._lock:
            self._window.clear()
            self._variance = 0.0

    def stop(self) -> None:
        """Session teardown; same as ``reset``."""

        self.reset()
        logger.debug("motion tracker stopped")

    def _ready_variance(self) -> float:
        if len(self._window) < self._params.min_samples:
            return 0.0
        return self._variance
