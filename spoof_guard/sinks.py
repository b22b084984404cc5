"""Reference sink implementations."""

from __future__ import annotations

import logging
from collections import Counter

from spoof_guard.models import AcceptedUpdate, FraudEvent, PositionFix
from spoof_guard.timeutils import now_ms

logger = logging.getLogger(__name__)


def reason_source(reason: str) -> str:
    """Layer prefix of a reason string, e.g. "heuristic" for "HEURISTIC: teleportation"."""

    head, sep, _ = reason.partition(":")
    return head.strip().lower() if sep else ""


class RecordingSink:
    """Keeps every fraud signal and accepted update in arrival order.

    Implements both FraudSink and UpdateSink, so one instance can be passed for both.
    """

    def __init__(self) -> None:
        self.frauds: list[FraudEvent] = []
        self.updates: list[AcceptedUpdate] = []

    def report_fraud(self, reason: str) -> None:
        self.frauds.append(FraudEvent(reason=reason, timestamp_ms=now_ms(), source=reason_source(reason)))

    def accept_update(self, fix: PositionFix, variance: float, speed_mps: float) -> None:
        self.updates.append(AcceptedUpdate(fix=fix, variance=variance, speed_mps=speed_mps))

    @property
    def total(self) -> int:
        return len(self.frauds) + len(self.updates)

    def reasons(self) -> Counter[str]:
        """Histogram of fraud reasons."""

        return Counter(e.reason for e in self.frauds)

    def clear(self) -> None:
        self.frauds.clear()
        self.updates.clear()


class LoggingSink:
    """Writes both kinds of events to a logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report_fraud(self, reason: str) -> None:
        self._log.warning("FRAUD %s", reason)

    def accept_update(self, fix: PositionFix, variance: float, speed_mps: float) -> None:
        self._log.info(
            "accepted (%.6f, %.6f) acc=%.1fm speed=%.2fm/s variance=%.5f",
            fix.latitude,
            fix.longitude,
            fix.horizontal_accuracy_m,
            speed_mps,
            variance,
        )
