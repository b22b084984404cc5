from __future__ import annotations

import math

from spoof_guard.models import AccelerometerSample, PositionFix

T0_MS = 1_735_725_600_000  # 2025-01-01 10:00:00 UTC
SAO_PAULO = (-23.5503, -46.6339)
LISBON = (38.7223, -9.1393)
METERS_PER_DEG_LAT = 6_371_000.0 * math.pi / 180.0


def fix_at(
    t_s: float,
    lat: float = SAO_PAULO[0],
    lon: float = SAO_PAULO[1],
    *,
    alt: float = 760.0,
    acc: float = 5.0,
    speed: float = 0.0,
    mocked: bool = False,
) -> PositionFix:
    return PositionFix(
        latitude=lat,
        longitude=lon,
        altitude_m=alt,
        horizontal_accuracy_m=acc,
        speed_mps=speed,
        timestamp_ms=T0_MS + int(round(t_s * 1000)),
        is_mocked=mocked,
    )


def walk(n: int, start: tuple[float, float] = SAO_PAULO, step_m: float = 1.3) -> list[PositionFix]:
    """n fixes one second apart, moving north with varying accuracy and altitude."""

    out = []
    for i in range(n):
        out.append(
            fix_at(
                i,
                start[0] + i * step_m / METERS_PER_DEG_LAT,
                start[1],
                alt=760.0 + (i % 3),
                acc=4.0 + (i % 5) * 0.7,
                speed=step_m,
            )
        )
    return out


def shaking_samples(n: int, t0_s: float = 0.0, amplitude: float = 0.5) -> list[AccelerometerSample]:
    """Hand-held style samples whose magnitude alternates, giving a clearly positive variance."""

    return [
        AccelerometerSample(x=amplitude if i % 2 else 0.0, y=0.0, z=0.0, timestamp_ms=T0_MS + int((t0_s + i * 0.06) * 1000))
        for i in range(n)
    ]


def still_samples(n: int, t0_s: float = 0.0) -> list[AccelerometerSample]:
    return [AccelerometerSample(x=0.0, y=0.0, z=0.0, timestamp_ms=T0_MS + int((t0_s + i * 0.06) * 1000)) for i in range(n)]
