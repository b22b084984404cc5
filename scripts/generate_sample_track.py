from __future__ import annotations

import argparse
import csv
import math
import random
from datetime import datetime
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "America/Sao_Paulo"
# Praca da Se, Sao Paulo
START_LAT: Final[float] = -23.5503
START_LON: Final[float] = -46.6339
SCENARIOS: Final[tuple[str, ...]] = ("genuine", "joystick", "teleport", "frozen")


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def generate_track(
    *,
    scenario: str,
    fixes: int,
    seed: int,
    start_ms: int,
) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    """Generate (track rows, accelerometer rows) for one scenario.

    genuine:  walking at ~1.3 m/s with receiver jitter and a hand-held accelerometer.
    joystick: same walk, but the accelerometer is lying on a table.
    teleport: genuine walk that jumps ~50 km halfway through.
    frozen:   a fake-GPS app pinning coordinates and accuracy.
    """

    rng = random.Random(seed)
    heading = rng.uniform(0, 2 * math.pi)
    lat, lon = START_LAT, START_LON
    track: list[dict[str, str]] = []
    accel: list[dict[str, str]] = []

    hand_sigma = 0.004 if scenario == "joystick" else 0.35
    for i in range(fixes):
        t_ms = start_ms + i * 1000

        # ~16 accelerometer samples per second (60 ms interval)
        for k in range(16):
            accel.append(
                {
                    "timeMs": str(t_ms - 1000 + k * 60),
                    "x": f"{rng.gauss(0.0, hand_sigma):.5f}",
                    "y": f"{rng.gauss(0.0, hand_sigma):.5f}",
                    "z": f"{rng.gauss(0.0, hand_sigma):.5f}",
                }
            )

        if scenario == "frozen":
            row_lat, row_lon, hacc, alt, speed = START_LAT, START_LON, 5.0, 760.0, 0.0
        else:
            step_m = rng.uniform(1.1, 1.5)
            heading += rng.uniform(-0.2, 0.2)
            lat += step_m * math.cos(heading) / 111_320.0
            lon += step_m * math.sin(heading) / (111_320.0 * math.cos(math.radians(lat)))
            if scenario == "teleport" and i == fixes // 2:
                lat += 0.45  # ~50 km north
            row_lat = lat + rng.uniform(-0.00002, 0.00002)
            row_lon = lon + rng.uniform(-0.00002, 0.00002)
            hacc = rng.uniform(3.0, 12.0)
            alt = rng.uniform(755.0, 765.0)
            speed = step_m

        track.append(
            {
                "geoTime": str(t_ms),
                "latitude": f"{row_lat:.7f}",
                "longitude": f"{row_lon:.7f}",
                "altitude": f"{alt:.1f}",
                "horizontalAccuracy": f"{hacc:.1f}",
                "speed": f"{speed:.2f}",
                "isMock": "0",
            }
        )

    return track, accel


def _write_csv(path: Path, rows: list[dict[str, str]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a synthetic track + accelerometer log for replay demos.")
    p.add_argument("--scenario", type=str, default="genuine", choices=SCENARIOS, help="what the track simulates")
    p.add_argument("--out-dir", type=str, default="sample_data", help="output directory")
    p.add_argument("--fixes", type=int, default=120, help="number of fixes (one per second)")
    p.add_argument("--seed", type=int, default=42, help="random seed (reproducible)")
    p.add_argument(
        "--start",
        type=str,
        default="2025-01-01 08:00:00",
        help="start local time in America/Sao_Paulo, e.g. '2025-01-01 08:00:00'",
    )
    args = p.parse_args()

    start_ms = _epoch_ms(datetime.fromisoformat(args.start).replace(tzinfo=ZoneInfo(TZ)))
    track, accel = generate_track(scenario=args.scenario, fixes=args.fixes, seed=args.seed, start_ms=start_ms)

    out_dir = Path(args.out_dir)
    track_path = out_dir / f"{args.scenario}_track.csv"
    accel_path = out_dir / f"{args.scenario}_accel.csv"
    _write_csv(track_path, track)
    _write_csv(accel_path, accel)

    print(f"Generated: {track_path} ({len(track)} fixes), {accel_path} ({len(accel)} samples), seed={args.seed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
