"""In-process collaborator implementations: recorded replays and push queues.

Platform adapters (GPS service, sensor service, mock-detection library) are expected to
look like these: a replay source for recorded tracks, a queue source for callback-based
platform APIs that push fixes as they arrive.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable

from spoof_guard.models import AccelerometerSample, PermissionState, PositionFix


class ReplayPositionSource:
    """Yields a recorded list of fixes, optionally paced by ``interval_s``.

    The most recently yielded fix doubles as the last known position.
    """

    def __init__(
        self,
        fixes: Iterable[PositionFix],
        *,
        interval_s: float = 0.0,
        permission: PermissionState = PermissionState.GRANTED,
        grant_on_request: bool = False,
        last_known: PositionFix | None = None,
    ) -> None:
        self._fixes = list(fixes)
        self._interval_s = interval_s
        self._permission = permission
        self._grant_on_request = grant_on_request
        self._last_known = last_known
        self.permission_requests = 0

    def positions(self) -> AsyncIterator[PositionFix]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[PositionFix]:
        for fix in self._fixes:
            if self._interval_s > 0:
                await asyncio.sleep(self._interval_s)
            self._last_known = fix
            yield fix

    async def last_known_position(self) -> PositionFix | None:
        return self._last_known

    async def check_permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        self.permission_requests += 1
        if self._grant_on_request:
            self._permission = PermissionState.GRANTED
        return self._permission


class QueuePositionSource(ReplayPositionSource):
    """Push-driven source: call ``push()`` from the platform's location callback."""

    def __init__(self, **kwargs) -> None:
        super().__init__((), **kwargs)
        self._queue: asyncio.Queue[PositionFix] = asyncio.Queue()

    def push(self, fix: PositionFix) -> None:
        self._queue.put_nowait(fix)

    async def _iterate(self) -> AsyncIterator[PositionFix]:
        while True:
            fix = await self._queue.get()
            self._last_known = fix
            yield fix


class ReplayAccelerometerSource:
    """Yields recorded accelerometer samples, optionally paced by ``interval_s``."""

    def __init__(self, samples: Iterable[AccelerometerSample], *, interval_s: float = 0.0) -> None:
        self._samples = list(samples)
        self._interval_s = interval_s

    async def _iterate(self) -> AsyncIterator[AccelerometerSample]:
        for sample in self._samples:
            if self._interval_s > 0:
                await asyncio.sleep(self._interval_s)
            yield sample

    def samples(self) -> AsyncIterator[AccelerometerSample]:
        return self._iterate()


class QueueAccelerometerSource:
    """Push-driven accelerometer source.

    Sensor callbacks running on another thread must use ``push_threadsafe``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[AccelerometerSample] = asyncio.Queue()

    def push(self, sample: AccelerometerSample) -> None:
        self._queue.put_nowait(sample)

    def push_threadsafe(self, loop: asyncio.AbstractEventLoop, sample: AccelerometerSample) -> None:
        loop.call_soon_threadsafe(self._queue.put_nowait, sample)

    async def _iterate(self) -> AsyncIterator[AccelerometerSample]:
        while True:
            yield await self._queue.get()

    def samples(self) -> AsyncIterator[AccelerometerSample]:
        return self._iterate()


class StaticMockOracle:
    """Mock-location oracle with a fixed answer; counts how often it was asked."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self.calls = 0

    async def is_mock_location_enabled(self) -> bool:
        self.calls += 1
        return self.enabled
