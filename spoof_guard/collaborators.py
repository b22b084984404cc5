"""Interfaces of the external collaborators a FusionGuard talks to.

Acquisition of fixes and sensor samples, the OS permission flow, the platform mock
oracle and the presentation layer all live outside this package; the guard only sees
these protocols.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from spoof_guard.models import AccelerometerSample, PermissionState, PositionFix


@runtime_checkable
class PositionSource(Protocol):
    def positions(self) -> AsyncIterator[PositionFix]:
        """Push-based stream of fixes, in arrival order."""
        ...

    async def last_known_position(self) -> PositionFix | None:
        """Best-effort cached position; must not trigger a fresh, costly fix."""
        ...

    async def check_permission(self) -> PermissionState: ...

    async def request_permission(self) -> PermissionState: ...


@runtime_checkable
class AccelerometerSource(Protocol):
    def samples(self) -> AsyncIterator[AccelerometerSample]:
        """Gravity-removed 3-axis samples at a bounded sampling interval."""
        ...


@runtime_checkable
class MockLocationOracle(Protocol):
    async def is_mock_location_enabled(self) -> bool:
        """Whether OS-level location spoofing is configured. May raise."""
        ...


@runtime_checkable
class FraudSink(Protocol):
    def report_fraud(self, reason: str) -> None: ...


@runtime_checkable
class UpdateSink(Protocol):
    def accept_update(self, fix: PositionFix, variance: float, speed_mps: float) -> None: ...
