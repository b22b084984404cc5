"""FusionGuard: fuses every detection layer into one verdict per incoming fix."""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from spoof_guard.collaborators import AccelerometerSource, FraudSink, MockLocationOracle, PositionSource, UpdateSink
from spoof_guard.config import GuardConfig
from spoof_guard.models import (
    AccelerometerSample,
    AnomalyVerdict,
    FixOutcome,
    GuardState,
    PermissionState,
    PositionFix,
)
from spoof_guard.motion import MotionVarianceTracker
from spoof_guard.trajectory import TrajectoryAnomalyAnalyzer

logger = logging.getLogger(__name__)

REASON_OS_MOCK: Final[str] = "NATIVE: OS-reported mock flag on the fix."
REASON_JOYSTICK_WALK: Final[str] = "PHYSICS: GPS motion without physical correlation."
REASON_STATIC_DEVICE: Final[str] = "PHYSICS: no hand tremor, device is mechanically static."
REASON_MOCK_SETTING: Final[str] = "SYSTEM: mock location setting enabled."
REASON_OUTSIDE_TERRITORY: Final[str] = "TERRITORY: outside the allowed boundary."

VERDICT_REASONS: Final[dict[AnomalyVerdict, str]] = {
    AnomalyVerdict.ALTITUDE_ZERO: "HEURISTIC: altitude exactly 0.0.",
    AnomalyVerdict.TELEPORTATION: "HEURISTIC: teleportation.",
    AnomalyVerdict.ARTIFICIAL_STATIC_POSITION: "HEURISTIC: frozen GPS coordinates.",
    AnomalyVerdict.STATIC_ACCURACY: "HEURISTIC: frozen accuracy.",
}


class FusionGuard:
    """Runs one monitoring session over a position stream and an accelerometer stream.

    Per fix, checks run in this order and stop at the first fraud signal:

      1. OS mock flag carried by the fix (fix discarded, analyzers untouched);
      2. territory gate (fix silently dropped while the device is outside the boundary);
      3. physical liveness (GPS says walking, accelerometer says still);
      4. trajectory heuristics.

    A fix that passes everything is forwarded to the update sink together with the
    current accelerometer variance. Two timers run beside the fix stream: the OS mock
    oracle poll and the territory poll.

    Every handler runs on the event loop that called ``start()``, so the analyzer is
    never touched concurrently. Sinks are never invoked once ``stop()`` has returned.
    """

    def __init__(
        self,
        position_source: PositionSource,
        accelerometer_source: AccelerometerSource,
        mock_oracle: MockLocationOracle,
        fraud_sink: FraudSink,
        update_sink: UpdateSink,
        config: GuardConfig | None = None,
    ) -> None:
        self._config = config or GuardConfig()
        self._positions = position_source
        self._accelerometer = accelerometer_source
        self._oracle = mock_oracle
        self._fraud_sink = fraud_sink
        self._update_sink = update_sink

        self._analyzer = TrajectoryAnomalyAnalyzer(self._config.trajectory)
        self._tracker = MotionVarianceTracker(self._config.motion)

        self._state = GuardState.IDLE
        self._outside_territory = False
        self._tasks: list[asyncio.Task[None]] = []
        self._lifecycle = asyncio.Lock()

    @property
    def config(self) -> GuardConfig:
        return self._config

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_monitoring(self) -> bool:
        return self._state is GuardState.MONITORING

    @property
    def is_outside_territory(self) -> bool:
        return self._outside_territory

    @property
    def analyzer(self) -> TrajectoryAnomalyAnalyzer:
        return self._analyzer

    @property
    def tracker(self) -> MotionVarianceTracker:
        """Live accelerometer statistics, e.g. for drawing a tremor chart."""

        return self._tracker

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Begin monitoring.

        Asks for location permission once if it is not granted yet.

        Returns:
            True if the guard is monitoring afterwards, False if permission was declined
            (the guard then stays idle and nothing else happens).
        """

        async with self._lifecycle:
            if self._state is GuardState.MONITORING:
                return True

            permission = await self._positions.check_permission()
            if permission is PermissionState.DENIED:
                permission = await self._positions.request_permission()
                if permission is PermissionState.DENIED:
                    logger.info("location permission denied, guard stays idle")
                    return False

            self._analyzer.reset()
            self._tracker.reset()
            self._outside_territory = False
            self._state = GuardState.MONITORING
            self._tasks = [
                asyncio.create_task(self._consume_fixes(), name="spoof-guard-fixes"),
                asyncio.create_task(self._consume_acceleration(), name="spoof-guard-accelerometer"),
                asyncio.create_task(
                    self._every(self._config.mock_poll_interval_s, self.check_mock_oracle),
                    name="spoof-guard-mock-poll",
                ),
                asyncio.create_task(
                    self._every(self._config.territory_poll_interval_s, self.check_territory),
                    name="spoof-guard-territory-poll",
                ),
            ]
            logger.info(
                "guard monitoring (mock poll %ss, territory poll %ss, boundary=%s)",
                self._config.mock_poll_interval_s,
                self._config.territory_poll_interval_s,
                self._config.boundary.name or "custom",
            )
            return True

    async def stop(self) -> None:
        """Cancel every subscription and timer and wipe the session state.

        Safe to call while idle. A handler already running is allowed to finish; it
        cannot reach a sink because the state flips to IDLE first.
        """

        async with self._lifecycle:
            was_monitoring = self._state is GuardState.MONITORING
            self._state = GuardState.IDLE

            current = asyncio.current_task()
            tasks = [t for t in self._tasks if t is not current]
            self._tasks = []
            for task in tasks:
                task.cancel()
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)

            self._analyzer.reset()
            self._tracker.stop()
            self._outside_territory = False
            if was_monitoring:
                logger.info("guard stopped")

    # ------------------------------------------------------------------
    # per-event handlers
    # ------------------------------------------------------------------

    def handle_fix(self, fix: PositionFix) -> FixOutcome:
        """Run the full check chain on one fix.

        Args:
            fix: Incoming fix, in arrival order.

        Returns:
            What happened to the fix. IGNORED when the guard is not monitoring.
        """

        if self._state is not GuardState.MONITORING:
            return FixOutcome.IGNORED

        if fix.is_mocked:
            self._emit_fraud(REASON_OS_MOCK)
            return FixOutcome.FRAUD

        if self._outside_territory:
            return FixOutcome.GATED

        if self._tracker.is_joystick_walk(fix.speed_mps):
            self._emit_fraud(REASON_JOYSTICK_WALK)
            return FixOutcome.FRAUD

        if self._config.check_static_device and self._tracker.is_static_device(fix.speed_mps):
            self._emit_fraud(REASON_STATIC_DEVICE)
            return FixOutcome.FRAUD

        verdict = self._analyzer.analyze(fix)
        if verdict is not AnomalyVerdict.NONE:
            self._emit_fraud(VERDICT_REASONS[verdict])
            return FixOutcome.FRAUD

        self._update_sink.accept_update(fix, self._tracker.current_variance(), fix.speed_mps)
        return FixOutcome.ACCEPTED

    def handle_acceleration(self, sample: AccelerometerSample) -> None:
        if self._state is GuardState.MONITORING:
            self._tracker.ingest_sample(sample)

    async def check_mock_oracle(self) -> bool:
        """One mock-oracle poll cycle. Oracle failures skip the cycle.

        Returns:
            True if the oracle reported spoofing this cycle.
        """

        try:
            enabled = await self._oracle.is_mock_location_enabled()
        except Exception:
            logger.warning("mock location oracle failed, skipping this cycle", exc_info=True)
            return False
        if enabled:
            self._emit_fraud(REASON_MOCK_SETTING)
        return bool(enabled)

    async def check_territory(self) -> bool | None:
        """One territory poll cycle against the last known position.

        Returns:
            True/False for inside/outside, None if the cycle was skipped.
        """

        try:
            fix = await self._positions.last_known_position()
        except Exception:
            logger.warning("last known position unavailable, skipping territory check", exc_info=True)
            return None
        if fix is None:
            return None
        return self.apply_territory(fix)

    def apply_territory(self, fix: PositionFix) -> bool:
        """Test a position against the boundary and update the territory gate."""

        inside = self._config.boundary.contains(fix.latitude, fix.longitude)
        if inside:
            if self._outside_territory:
                logger.info("device back inside boundary at (%s, %s)", fix.latitude, fix.longitude)
            self._outside_territory = False
        else:
            self._outside_territory = True
            self._emit_fraud(REASON_OUTSIDE_TERRITORY)
        return inside

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _emit_fraud(self, reason: str) -> None:
        if self._state is not GuardState.MONITORING:
            return
        logger.info("fraud signal: %s", reason)
        self._fraud_sink.report_fraud(reason)

    async def _consume_fixes(self) -> None:
        try:
            async for fix in self._positions.positions():
                try:
                    self.handle_fix(fix)
                except Exception:
                    logger.exception("fix handler failed, fix dropped")
        except Exception:
            logger.warning("position stream failed", exc_info=True)
            return
        logger.debug("position stream ended")

    async def _consume_acceleration(self) -> None:
        try:
            async for sample in self._accelerometer.samples():
                self.handle_acceleration(sample)
        except Exception:
            logger.warning("accelerometer stream failed", exc_info=True)
            return
        logger.debug("accelerometer stream ended")

    @staticmethod
    async def _every(interval_s: float, check) -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                await check()
            except Exception:
                logger.warning("periodic %s cycle failed, skipping", getattr(check, "__name__", check), exc_info=True)
