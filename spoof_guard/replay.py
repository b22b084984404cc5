"""Offline replay of a recorded session through a real FusionGuard."""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from spoof_guard.config import GuardConfig
from spoof_guard.guard import FusionGuard
from spoof_guard.models import AccelerometerSample, FixOutcome, PositionFix
from spoof_guard.sinks import RecordingSink
from spoof_guard.sources import ReplayAccelerometerSource, ReplayPositionSource, StaticMockOracle

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReplayReport:
    """Per-fix outcomes of a replay plus everything the sinks received."""

    outcomes: list[tuple[PositionFix, FixOutcome]] = field(default_factory=list)
    sink: RecordingSink = field(default_factory=RecordingSink)
    territory_checks: int = 0
    oracle_checks: int = 0

    def counts(self) -> Counter[str]:
        return Counter(outcome.value for _, outcome in self.outcomes)

    def fraud_reasons(self) -> Counter[str]:
        return self.sink.reasons()


async def replay_track(
    fixes: Sequence[PositionFix],
    samples: Sequence[AccelerometerSample] = (),
    config: GuardConfig | None = None,
    *,
    mock_setting_enabled: bool = False,
) -> ReplayReport:
    """Feed a recorded track and accelerometer log through one guard session.

    Fixes and samples are merged by timestamp (samples first on ties) so the liveness
    check sees the same window it would have seen live. The periodic checks run on the
    recording's clock: the territory check uses the current fix as last-known position
    and the mock oracle answers ``mock_setting_enabled``.

    Args:
        fixes: Recorded fixes.
        samples: Recorded accelerometer samples.
        config: Guard configuration; defaults if None.
        mock_setting_enabled: Answer of the simulated OS mock oracle.

    Returns:
        ReplayReport.

    Raises:
        RuntimeError: If the guard refuses to start (cannot happen with replay sources).
    """

    cfg = config or GuardConfig()
    report = ReplayReport()
    oracle = StaticMockOracle(mock_setting_enabled)
    guard = FusionGuard(
        ReplayPositionSource(()),
        ReplayAccelerometerSource(()),
        oracle,
        report.sink,
        report.sink,
        cfg,
    )
    if not await guard.start():
        raise RuntimeError("guard did not start")

    territory_every_ms = int(cfg.territory_poll_interval_s * 1000)
    oracle_every_ms = int(cfg.mock_poll_interval_s * 1000)
    next_territory_ms: int | None = None
    next_oracle_ms: int | None = None

    ordered_fixes = sorted(fixes, key=lambda f: f.timestamp_ms)
    ordered_samples = sorted(samples, key=lambda s: s.timestamp_ms)
    try:
        for item in heapq.merge(ordered_samples, ordered_fixes, key=lambda x: x.timestamp_ms):
            if isinstance(item, AccelerometerSample):
                guard.handle_acceleration(item)
                continue

            t = item.timestamp_ms
            if next_oracle_ms is None:
                next_oracle_ms = t + oracle_every_ms
                next_territory_ms = t + territory_every_ms
            if t >= next_oracle_ms:
                await guard.check_mock_oracle()
                report.oracle_checks += 1
                next_oracle_ms = t + oracle_every_ms
            if t >= next_territory_ms:
                guard.apply_territory(item)
                report.territory_checks += 1
                next_territory_ms = t + territory_every_ms

            report.outcomes.append((item, guard.handle_fix(item)))
    finally:
        await guard.stop()

    logger.info(
        "replayed %s fixes / %s samples: %s",
        len(ordered_fixes),
        len(ordered_samples),
        dict(report.counts()),
    )
    return report
