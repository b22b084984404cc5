"""Data models for position fixes, accelerometer samples and guard events."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class PositionFix:
    """A single location report.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        altitude_m: Altitude in meters. Naive simulators often report exactly 0.0.
        horizontal_accuracy_m: Horizontal accuracy radius in meters.
        speed_mps: Speed reported by the fix source, meters/second.
        timestamp_ms: Unix epoch milliseconds.
        is_mocked: Spoof flag reported by the platform on the fix itself.
    """

    latitude: float
    longitude: float
    altitude_m: float
    horizontal_accuracy_m: float
    speed_mps: float
    timestamp_ms: int
    is_mocked: bool = False

    @property
    def timestamp_s(self) -> float:
        """Unix epoch seconds as float."""

        return self.timestamp_ms / 1000.0


@dataclass(frozen=True, slots=True)
class AccelerometerSample:
    """A gravity-removed 3-axis acceleration sample (m/s^2)."""

    x: float
    y: float
    z: float
    timestamp_ms: int = 0

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


class AnomalyVerdict(Enum):
    """Outcome of one trajectory analysis call. NONE is not a clean bill of health."""

    NONE = "none"
    ALTITUDE_ZERO = "altitude_zero"
    TELEPORTATION = "teleportation"
    ARTIFICIAL_STATIC_POSITION = "artificial_static_position"
    STATIC_ACCURACY = "static_accuracy"


class GuardState(Enum):
    IDLE = "idle"
    MONITORING = "monitoring"


class PermissionState(Enum):
    GRANTED = "granted"
    DENIED = "denied"


class FixOutcome(Enum):
    """What the guard did with one incoming fix."""

    ACCEPTED = "accepted"
    FRAUD = "fraud"
    # outside the boundary: dropped without a signal
    GATED = "gated"
    IGNORED = "ignored"


@dataclass(frozen=True, slots=True)
class FraudEvent:
    """A fraud signal as delivered to a sink.

    Attributes:
        reason: Human-readable reason string.
        timestamp_ms: Unix epoch milliseconds at which the sink received it.
        source: Which layer raised it ("native", "physics", "heuristic", "system", "territory").
    """

    reason: str
    timestamp_ms: int
    source: str = ""


@dataclass(frozen=True, slots=True)
class AcceptedUpdate:
    """A fix that passed every check, with the liveness snapshot taken at the time."""

    fix: PositionFix
    variance: float
    speed_mps: float

