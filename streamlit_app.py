from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path

import streamlit as st

from spoof_guard.config import GuardConfig, load_config
from spoof_guard.csv_io import load_accelerometer_samples, load_position_fixes
from spoof_guard.models import AccelerometerSample, PositionFix
from spoof_guard.replay import ReplayReport, replay_track
from spoof_guard.timeutils import dt_from_epoch_ms

DEFAULT_TZ = "America/Sao_Paulo"


@st.cache_data(show_spinner=False)
def _load_fixes(path_csv: str, mtime: float) -> list[PositionFix]:
    _ = mtime  # part of cache key so updated files reload automatically
    fixes, _ = load_position_fixes(path_csv)
    return fixes


@st.cache_data(show_spinner=False)
def _load_samples(accel_csv: str, mtime: float) -> list[AccelerometerSample]:
    _ = mtime
    samples, _ = load_accelerometer_samples(accel_csv)
    return samples


def _outcome_rows(report: ReplayReport, tz_name: str) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for fix, outcome in report.outcomes:
        rows.append(
            {
                "time": dt_from_epoch_ms(fix.timestamp_ms, tz_name).isoformat(sep=" "),
                "latitude": fix.latitude,
                "longitude": fix.longitude,
                "altitude_m": fix.altitude_m,
                "accuracy_m": fix.horizontal_accuracy_m,
                "speed_mps": fix.speed_mps,
                "mocked": fix.is_mocked,
                "outcome": outcome.value,
            }
        )
    return rows


def main() -> None:
    st.set_page_config(page_title="Mock location replay", layout="wide")
    st.title("Mock location replay: run a recorded session through the fraud guard")

    with st.sidebar:
        st.subheader("Data")
        tz_name = st.text_input("Timezone (IANA)", value=DEFAULT_TZ)
        path_csv = st.text_input("Track CSV", value="sample_data/genuine_track.csv")
        accel_csv = st.text_input("Accelerometer CSV (optional)", value="sample_data/genuine_accel.csv")
        config_json = st.text_input("Config JSON (optional)", value="")

        st.subheader("Thresholds")
        base = load_config(config_json) if config_json and Path(config_json).exists() else GuardConfig()
        max_speed = st.number_input("Max plausible speed (m/s)", value=base.trajectory.max_speed_mps, step=10.0)
        coord_limit = st.number_input(
            "Identical coordinate limit", value=base.trajectory.identical_coordinate_limit, min_value=1, step=1
        )
        acc_limit = st.number_input(
            "Identical accuracy limit", value=base.trajectory.identical_accuracy_limit, min_value=1, step=1
        )
        walking_variance = st.number_input(
            "Walking variance threshold", value=base.motion.walking_variance, format="%.4f", step=0.005
        )
        mock_setting = st.checkbox("Simulate OS mock setting enabled", value=False)

    p = Path(path_csv)
    if not p.exists():
        st.error(f"File not found: {path_csv!r}. Generate one with scripts/generate_sample_track.py.")
        return

    fixes = _load_fixes(path_csv, p.stat().st_mtime)
    samples: list[AccelerometerSample] = []
    a = Path(accel_csv) if accel_csv else None
    if a is not None and a.exists():
        samples = _load_samples(accel_csv, a.stat().st_mtime)

    cfg = replace(
        base,
        trajectory=replace(
            base.trajectory,
            max_speed_mps=float(max_speed),
            identical_coordinate_limit=int(coord_limit),
            identical_accuracy_limit=int(acc_limit),
        ),
        motion=replace(base.motion, walking_variance=float(walking_variance)),
    )

    try:
        report = asyncio.run(replay_track(fixes, samples, cfg, mock_setting_enabled=mock_setting))
    except Exception as exc:
        st.exception(exc)
        return

    counts = report.counts()
    st.subheader("Summary")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Fixes", str(len(report.outcomes)))
    c2.metric("Accepted", str(counts.get("accepted", 0)))
    c3.metric("Fraud", str(counts.get("fraud", 0)))
    c4.metric("Gated (outside boundary)", str(counts.get("gated", 0)))

    if report.sink.updates:
        last = report.sink.updates[-1]
        st.metric("Accelerometer variance at last accepted fix", f"{last.variance:.5f}")

    st.subheader("Fraud reasons")
    reason_rows = [{"reason": r, "count": n} for r, n in report.fraud_reasons().most_common()]
    st.dataframe(reason_rows, use_container_width=True)

    st.subheader("Per-fix outcomes")
    st.dataframe(_outcome_rows(report, tz_name), use_container_width=True, height=520)

    accepted = [{"latitude": u.fix.latitude, "longitude": u.fix.longitude} for u in report.sink.updates]
    if accepted:
        st.subheader("Accepted fixes")
        st.map(accepted)

    st.caption(
        "Fixes and accelerometer samples are merged by timestamp; territory and mock-oracle checks run on the "
        "recording's clock at the configured intervals."
    )


if __name__ == "__main__":
    main()
