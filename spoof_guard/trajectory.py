"""Heuristic analysis of successive position fixes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from spoof_guard.geo import haversine_m
from spoof_guard.models import AnomalyVerdict, PositionFix
from spoof_guard.timeutils import elapsed_whole_seconds

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TrajectoryParams:
    """Thresholds for the trajectory heuristics."""

    # 200 m/s is 720 km/h: faster than anything a phone user plausibly travels in.
    max_speed_mps: float = 200.0
    # Limits count consecutive fixes sharing a value, the reference fix included, so a
    # limit of 5 fires on the 5th identical fix (4 repeats after the first).
    # Real receivers jitter in the last decimals even when parked; spoofers often don't.
    identical_coordinate_limit: int = 5
    # Accuracy also drifts on real hardware (5.1 -> 5.3 -> 4.9); mock tools pin it.
    identical_accuracy_limit: int = 8
    # The static-coordinate streak keeps counting after it fires, so every further
    # identical fix is flagged again. Set True to restart the streak like the accuracy one.
    reset_static_streak_on_alert: bool = False


class TrajectoryAnomalyAnalyzer:
    """Stateful detector of implausible fix sequences.

    Feed fixes in arrival order; each call returns exactly one verdict. Checks run in a
    fixed order and the first hit wins: zero altitude, frozen accuracy, teleportation,
    frozen coordinates. Fixes that trigger an anomaly never become the reference fix.
    """

    def __init__(self, params: TrajectoryParams | None = None) -> None:
        self._params = params or TrajectoryParams()
        self._last_fix: PositionFix | None = None
        self._identical_coordinate_streak = 0
        self._identical_accuracy_streak = 0

    @property
    def params(self) -> TrajectoryParams:
        return self._params

    @property
    def last_fix(self) -> PositionFix | None:
        return self._last_fix

    @property
    def identical_coordinate_streak(self) -> int:
        return self._identical_coordinate_streak

    @property
    def identical_accuracy_streak(self) -> int:
        return self._identical_accuracy_streak

    def analyze(self, fix: PositionFix) -> AnomalyVerdict:
        """Analyze a new fix against the session history.

        Args:
            fix: The incoming fix.

        Returns:
            AnomalyVerdict.NONE if no heuristic fired, otherwise the first anomaly found.
        """

        # Emulators and simple fake-GPS apps rarely bother to simulate altitude.
        if fix.altitude_m == 0.0:
            return self._flag(AnomalyVerdict.ALTITUDE_ZERO, fix)

        last = self._last_fix
        if last is None:
            self._last_fix = fix
            return AnomalyVerdict.NONE

        if fix.horizontal_accuracy_m == last.horizontal_accuracy_m:
            self._identical_accuracy_streak += 1
            if self._identical_accuracy_streak + 1 >= self._params.identical_accuracy_limit:
                self._identical_accuracy_streak = 0
                return self._flag(AnomalyVerdict.STATIC_ACCURACY, fix)
        else:
            self._identical_accuracy_streak = 0

        elapsed_s = elapsed_whole_seconds(last.timestamp_ms, fix.timestamp_ms)
        if elapsed_s > 0:
            distance_m = haversine_m(last.latitude, last.longitude, fix.latitude, fix.longitude)
            speed = distance_m / elapsed_s
            if speed > self._params.max_speed_mps:
                logger.debug("implied speed %.1f m/s over %.1f m in %ss", speed, distance_m, elapsed_s)
                return self._flag(AnomalyVerdict.TELEPORTATION, fix)

        if fix.latitude == last.latitude and fix.longitude == last.longitude:
            self._identical_coordinate_streak += 1
            if self._identical_coordinate_streak + 1 >= self._params.identical_coordinate_limit:
                if self._params.reset_static_streak_on_alert:
                    self._identical_coordinate_streak = 0
                return self._flag(AnomalyVerdict.ARTIFICIAL_STATIC_POSITION, fix)
        else:
            self._identical_coordinate_streak = 0

        self._last_fix = fix
        return AnomalyVerdict.NONE

    def reset(self) -> None:
        """Forget all history. Safe to call repeatedly."""

        self._last_fix = None
        self._identical_coordinate_streak = 0
        self._identical_accuracy_streak = 0

    @staticmethod
    def _flag(verdict: AnomalyVerdict, fix: PositionFix) -> AnomalyVerdict:
        logger.debug("trajectory anomaly %s at t=%s (%s, %s)", verdict.value, fix.timestamp_ms, fix.latitude, fix.longitude)
        return verdict
