from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

import pytest

from helpers import LISBON, SAO_PAULO, fix_at, shaking_samples, still_samples, walk
from spoof_guard.config import GuardConfig
from spoof_guard.guard import (
    REASON_JOYSTICK_WALK,
    REASON_MOCK_SETTING,
    REASON_OS_MOCK,
    REASON_OUTSIDE_TERRITORY,
    REASON_STATIC_DEVICE,
    VERDICT_REASONS,
    FusionGuard,
)
from spoof_guard.models import AnomalyVerdict, FixOutcome, GuardState, PermissionState
from spoof_guard.sinks import RecordingSink
from spoof_guard.sources import (
    QueueAccelerometerSource,
    QueuePositionSource,
    ReplayAccelerometerSource,
    ReplayPositionSource,
    StaticMockOracle,
)

FAST = GuardConfig(mock_poll_interval_s=0.01, territory_poll_interval_s=0.01)


class FailingOracle:
    def __init__(self) -> None:
        self.calls = 0

    async def is_mock_location_enabled(self) -> bool:
        self.calls += 1
        raise RuntimeError("platform channel unavailable")


class BrokenLastKnownSource(ReplayPositionSource):
    async def last_known_position(self):
        raise OSError("location service unavailable")


def _guard(position_source=None, accelerometer_source=None, oracle=None, config=None):
    sink = RecordingSink()
    guard = FusionGuard(
        position_source or ReplayPositionSource(()),
        accelerometer_source or ReplayAccelerometerSource(()),
        oracle or StaticMockOracle(False),
        sink,
        sink,
        config,
    )
    return guard, sink


def _reasons(sink):
    return [e.reason for e in sink.frauds]


def test_permission_denied_keeps_guard_idle():
    async def scenario():
        source = ReplayPositionSource((), permission=PermissionState.DENIED)
        guard, sink = _guard(source)
        assert await guard.start() is False
        assert guard.state is GuardState.IDLE
        assert source.permission_requests == 1
        assert guard.handle_fix(fix_at(0)) is FixOutcome.IGNORED
        assert sink.total == 0

    asyncio.run(scenario())


def test_permission_granted_on_request_starts_monitoring():
    async def scenario():
        source = ReplayPositionSource((), permission=PermissionState.DENIED, grant_on_request=True)
        guard, _ = _guard(source)
        assert await guard.start() is True
        assert guard.is_monitoring
        assert await guard.start() is True
        await guard.stop()
        assert guard.state is GuardState.IDLE

    asyncio.run(scenario())


def test_stop_is_safe_when_idle():
    async def scenario():
        guard, _ = _guard()
        await guard.stop()
        await guard.stop()
        assert guard.state is GuardState.IDLE

    asyncio.run(scenario())


def test_os_mock_flag_wins_and_skips_analyzers():
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        assert guard.handle_fix(fix_at(0, mocked=True, alt=0.0)) is FixOutcome.FRAUD
        assert _reasons(sink) == [REASON_OS_MOCK]
        assert guard.analyzer.last_fix is None
        await guard.stop()

    asyncio.run(scenario())


def test_outside_territory_gates_fixes_silently():
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        assert guard.apply_territory(fix_at(0, *LISBON)) is False
        assert guard.is_outside_territory
        assert _reasons(sink) == [REASON_OUTSIDE_TERRITORY]

        assert guard.handle_fix(fix_at(1)) is FixOutcome.GATED
        assert sink.total == 1
        assert guard.analyzer.last_fix is None

        assert guard.apply_territory(fix_at(2)) is True
        assert not guard.is_outside_territory
        assert guard.handle_fix(fix_at(3)) is FixOutcome.ACCEPTED
        await guard.stop()

    asyncio.run(scenario())


def test_mocked_fix_is_reported_even_outside_territory():
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        guard.apply_territory(fix_at(0, *LISBON))
        assert guard.handle_fix(fix_at(1, mocked=True)) is FixOutcome.FRAUD
        assert _reasons(sink)[-1] == REASON_OS_MOCK
        await guard.stop()

    asyncio.run(scenario())


def test_joystick_walk_is_fraud_before_heuristics():
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        for s in still_samples(12):
            guard.handle_acceleration(s)
        assert guard.handle_fix(fix_at(1, speed=1.4, alt=0.0)) is FixOutcome.FRAUD
        assert _reasons(sink) == [REASON_JOYSTICK_WALK]
        assert guard.analyzer.last_fix is None
        await guard.stop()

    asyncio.run(scenario())


def test_walking_with_hand_tremor_is_accepted():
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        for s in shaking_samples(20):
            guard.handle_acceleration(s)
        fixes = walk(5)
        outcomes = [guard.handle_fix(f) for f in fixes]
        assert outcomes == [FixOutcome.ACCEPTED] * 5
        assert [u.fix for u in sink.updates] == fixes
        assert sink.updates[0].variance == pytest.approx(guard.tracker.current_variance())
        assert sink.updates[0].variance > 0.02
        assert sink.updates[0].speed_mps == fixes[0].speed_mps
        await guard.stop()

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "verdict, fixes",
    [
        (AnomalyVerdict.ALTITUDE_ZERO, [fix_at(0, alt=0.0)]),
        (AnomalyVerdict.TELEPORTATION, [fix_at(0, acc=5.0), fix_at(1, SAO_PAULO[0] + 0.5, acc=6.0)]),
        (AnomalyVerdict.ARTIFICIAL_STATIC_POSITION, [fix_at(i, acc=5.0 + i) for i in range(5)]),
        (AnomalyVerdict.STATIC_ACCURACY, [replace(f, horizontal_accuracy_m=5.0) for f in walk(8)]),
    ],
)
def test_heuristic_verdicts_map_to_reasons(verdict, fixes):
    async def scenario():
        guard, sink = _guard()
        await guard.start()
        outcomes = [guard.handle_fix(f) for f in fixes]
        assert outcomes[-1] is FixOutcome.FRAUD
        assert _reasons(sink) == [VERDICT_REASONS[verdict]]
        await guard.stop()

    asyncio.run(scenario())


def test_static_device_check_is_opt_in():
    async def scenario():
        for enabled, expected in ((False, FixOutcome.ACCEPTED), (True, FixOutcome.FRAUD)):
            guard, sink = _guard(config=GuardConfig(check_static_device=enabled))
            await guard.start()
            for s in still_samples(12):
                guard.handle_acceleration(s)
            assert guard.handle_fix(fix_at(0, speed=0.0)) is expected
            if enabled:
                assert _reasons(sink) == [REASON_STATIC_DEVICE]
            await guard.stop()

    asyncio.run(scenario())


def test_mock_oracle_cycle():
    async def scenario():
        guard, sink = _guard(oracle=StaticMockOracle(True))
        await guard.start()
        assert await guard.check_mock_oracle() is True
        assert _reasons(sink) == [REASON_MOCK_SETTING]
        await guard.stop()

    asyncio.run(scenario())


def test_oracle_failure_is_logged_and_skipped(caplog):
    async def scenario():
        oracle = FailingOracle()
        guard, sink = _guard(oracle=oracle)
        await guard.start()
        assert await guard.check_mock_oracle() is False
        assert oracle.calls == 1
        assert sink.total == 0
        assert guard.is_monitoring
        await guard.stop()

    with caplog.at_level(logging.WARNING, logger="spoof_guard.guard"):
        asyncio.run(scenario())
    assert "oracle failed" in caplog.text


def test_territory_cycle_skips_missing_or_failing_last_known():
    async def scenario():
        guard, sink = _guard(ReplayPositionSource(()))
        await guard.start()
        assert await guard.check_territory() is None
        await guard.stop()

        guard, sink = _guard(BrokenLastKnownSource(()))
        await guard.start()
        assert await guard.check_territory() is None
        assert sink.total == 0
        await guard.stop()

        guard, sink = _guard(ReplayPositionSource((), last_known=fix_at(0, *LISBON)))
        await guard.start()
        assert await guard.check_territory() is False
        assert guard.is_outside_territory
        await guard.stop()

    asyncio.run(scenario())


def test_fix_and_accelerometer_streams_drive_the_guard():
    async def scenario():
        positions = QueuePositionSource()
        accelerometer = QueueAccelerometerSource()
        guard, sink = _guard(positions, accelerometer)
        await guard.start()

        for s in shaking_samples(20):
            accelerometer.push(s)
        for f in walk(3):
            positions.push(f)
        for _ in range(50):
            await asyncio.sleep(0)

        assert guard.tracker.sample_count == 20
        assert len(sink.updates) == 3
        assert await positions.last_known_position() == walk(3)[-1]
        await guard.stop()

    asyncio.run(scenario())


def test_background_loops_fire_periodically():
    async def scenario():
        oracle = StaticMockOracle(True)
        source = ReplayPositionSource((), last_known=fix_at(0, *LISBON))
        guard, sink = _guard(source, oracle=oracle, config=FAST)
        await guard.start()
        await asyncio.sleep(0.1)
        reasons = _reasons(sink)
        assert REASON_MOCK_SETTING in reasons
        assert REASON_OUTSIDE_TERRITORY in reasons
        assert guard.is_outside_territory
        await guard.stop()

    asyncio.run(scenario())


class FlakySink(RecordingSink):
    def __init__(self) -> None:
        super().__init__()
        self.failures = 0

    def report_fraud(self, reason: str) -> None:
        if self.failures == 0:
            self.failures += 1
            raise RuntimeError("sink offline")
        super().report_fraud(reason)


def test_periodic_checks_survive_a_failing_sink(caplog):
    async def scenario():
        oracle = StaticMockOracle(True)
        sink = FlakySink()
        guard = FusionGuard(ReplayPositionSource(()), ReplayAccelerometerSource(()), oracle, sink, sink, FAST)
        await guard.start()
        await asyncio.sleep(0.2)
        await guard.stop()
        return oracle, sink

    with caplog.at_level(logging.WARNING, logger="spoof_guard.guard"):
        oracle, sink = asyncio.run(scenario())
    assert sink.failures == 1
    assert oracle.calls > 5
    assert REASON_MOCK_SETTING in _reasons(sink)
    assert "cycle failed" in caplog.text


def test_no_activity_after_stop():
    async def scenario():
        oracle = StaticMockOracle(True)
        positions = QueuePositionSource(last_known=fix_at(0, *LISBON))
        guard, sink = _guard(positions, oracle=oracle, config=FAST)
        await guard.start()
        await guard.stop()

        positions.push(fix_at(1))
        await asyncio.sleep(0.1)
        assert sink.total == 0
        assert oracle.calls == 0
        assert asyncio.all_tasks() == {asyncio.current_task()}

    asyncio.run(scenario())


def test_stop_after_activity_silences_sinks_and_resets_state():
    async def scenario():
        oracle = StaticMockOracle(True)
        guard, sink = _guard(oracle=oracle, config=FAST)
        await guard.start()
        for s in shaking_samples(20):
            guard.handle_acceleration(s)
        guard.handle_fix(fix_at(0))
        await asyncio.sleep(0.05)
        await guard.stop()

        seen = sink.total
        calls = oracle.calls
        await asyncio.sleep(0.1)
        assert sink.total == seen
        assert oracle.calls == calls
        assert guard.analyzer.last_fix is None
        assert guard.tracker.sample_count == 0
        assert guard.tracker.current_variance() == 0.0

    asyncio.run(scenario())


def test_sensor_thread_can_push_samples():
    async def scenario():
        accelerometer = QueueAccelerometerSource()
        guard, _ = _guard(accelerometer_source=accelerometer)
        await guard.start()
        loop = asyncio.get_running_loop()

        def sensor_callback():
            for s in shaking_samples(15):
                accelerometer.push_threadsafe(loop, s)

        await asyncio.to_thread(sensor_callback)
        for _ in range(20):
            await asyncio.sleep(0)
        assert guard.tracker.sample_count == 15
        await guard.stop()

    asyncio.run(scenario())
