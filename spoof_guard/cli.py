"""Command-line interface for spoof_guard.

Run:
    python -m spoof_guard replay --csv Path.csv --accel accel.csv
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from spoof_guard.config import config_to_mapping, load_config
from spoof_guard.csv_io import load_accelerometer_samples, load_position_fixes
from spoof_guard.replay import replay_track
from spoof_guard.timeutils import dt_from_epoch_ms

DEFAULT_TZ = "America/Sao_Paulo"


def _cmd_replay(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    fixes, summary = load_position_fixes(args.csv)
    samples = []
    if args.accel:
        samples, _ = load_accelerometer_samples(args.accel)

    report = asyncio.run(replay_track(fixes, samples, cfg, mock_setting_enabled=args.mock_setting_enabled))
    counts = report.counts()

    print("### Input")
    print(f"fixes={summary.rows_parsed} (skipped={summary.rows_skipped}), accelerometer_samples={len(samples)}")
    if fixes:
        start = dt_from_epoch_ms(min(f.timestamp_ms for f in fixes), args.tz)
        end = dt_from_epoch_ms(max(f.timestamp_ms for f in fixes), args.tz)
        print(f"start={start.isoformat(sep=' ')}, end={end.isoformat(sep=' ')}")
    print()

    print("### Outcomes")
    print(
        f"accepted={counts.get('accepted', 0)}, fraud={counts.get('fraud', 0)}, gated={counts.get('gated', 0)}, "
        f"territory_checks={report.territory_checks}, oracle_checks={report.oracle_checks}"
    )
    print()

    print("### Fraud reasons")
    reasons = report.fraud_reasons()
    if not reasons:
        print("(none)")
    for reason, n in reasons.most_common():
        print(f"{n:6d}  {reason}")

    if args.json:
        payload = {
            "counts": dict(counts),
            "fraud_reasons": dict(reasons),
            "frauds": [asdict(e) for e in report.sink.frauds],
            "territory_checks": report.territory_checks,
            "oracle_checks": report.oracle_checks,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))

    return 1 if args.fail_on_fraud and reasons else 0


def _cmd_check_point(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    inside = cfg.boundary.contains(args.lat, args.lon)
    label = cfg.boundary.name or "boundary"
    print(f"({args.lat}, {args.lon}) is {'inside' if inside else 'outside'} {label}")
    return 0 if inside else 1


def _cmd_show_config(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    print(json.dumps(config_to_mapping(cfg), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="spoof_guard")
    p.add_argument("--log-level", type=str, default="WARNING", help="logging level (DEBUG/INFO/WARNING/ERROR)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_rep = sub.add_parser("replay", help="replay a recorded track through the fraud guard")
    p_rep.add_argument("--csv", type=str, default="Path.csv", help="track CSV (geoTime, latitude, longitude, ...)")
    p_rep.add_argument("--accel", type=str, default=None, help="accelerometer CSV (timeMs, x, y, z)")
    p_rep.add_argument("--config", type=str, default=None, help="JSON configuration file")
    p_rep.add_argument("--tz", type=str, default=DEFAULT_TZ, help="timezone (IANA) used for printed times")
    p_rep.add_argument(
        "--mock-setting-enabled",
        action="store_true",
        help="simulate an OS mock-location setting that is switched on",
    )
    p_rep.add_argument("--fail-on-fraud", action="store_true", help="exit with status 1 if any fraud was signalled")
    p_rep.add_argument("--json", action="store_true", help="also print a JSON report")
    p_rep.set_defaults(func=_cmd_replay)

    p_pt = sub.add_parser("check-point", help="test a coordinate against the territorial boundary")
    p_pt.add_argument("--lat", type=float, required=True, help="latitude in degrees")
    p_pt.add_argument("--lon", type=float, required=True, help="longitude in degrees")
    p_pt.add_argument("--config", type=str, default=None, help="JSON configuration file")
    p_pt.set_defaults(func=_cmd_check_point)

    p_cfg = sub.add_parser("show-config", help="print the effective configuration as JSON")
    p_cfg.add_argument("--config", type=str, default=None, help="JSON configuration file")
    p_cfg.set_defaults(func=_cmd_show_config)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (ValueError, KeyError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
