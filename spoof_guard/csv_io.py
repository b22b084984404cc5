"""CSV input utilities for recorded tracks and accelerometer logs."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from spoof_guard.models import AccelerometerSample, PositionFix

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "y", "t"}


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _parse_int(value: str) -> int:
    return int(value.strip())


def _parse_float(value: str) -> float:
    return float(value.strip())


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def _fix_from_row(row: dict[str, str]) -> PositionFix:
    # Missing altitude is read as 0.0 on purpose: that is what naive spoofers send too.
    return PositionFix(
        latitude=_parse_float(row["latitude"]),
        longitude=_parse_float(row["longitude"]),
        altitude_m=_parse_float(row.get("altitude", "0") or "0"),
        horizontal_accuracy_m=_parse_float(row.get("horizontalAccuracy", "-1") or "-1"),
        speed_mps=_parse_float(row.get("speed", "0") or "0"),
        timestamp_ms=_parse_int(row["geoTime"]),
        is_mocked=_parse_bool(row.get("isMock")),
    )


def _sample_from_row(row: dict[str, str]) -> AccelerometerSample:
    return AccelerometerSample(
        x=_parse_float(row["x"]),
        y=_parse_float(row["y"]),
        z=_parse_float(row["z"]),
        timestamp_ms=_parse_int(row["timeMs"]),
    )


def _load_rows(csv_path: str | Path, parse, required: Sequence[str]) -> tuple[list, CsvSummary]:
    p = Path(csv_path)
    rows_total = 0
    parsed: list = []

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames: Sequence[str] = reader.fieldnames or ()
        missing = [c for c in required if c not in fieldnames]
        if missing:
            raise KeyError(f"CSV {str(p)!r} is missing required columns {missing}. Columns present: {list(fieldnames)}")
        for row in reader:
            rows_total += 1
            try:
                parsed.append(parse(row))
            except (ValueError, TypeError, AttributeError):
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("%s: skipped %s unparseable rows", p.name, summary.rows_skipped)
    return parsed, summary


def load_position_fixes(csv_path: str | Path) -> tuple[list[PositionFix], CsvSummary]:
    """Load a whole track export into memory, in file order.

    Raises:
        KeyError: If geoTime/latitude/longitude columns are missing.
    """

    return _load_rows(csv_path, _fix_from_row, ("geoTime", "latitude", "longitude"))


def load_accelerometer_samples(csv_path: str | Path) -> tuple[list[AccelerometerSample], CsvSummary]:
    """Load an accelerometer log with columns timeMs,x,y,z."""

    return _load_rows(csv_path, _sample_from_row, ("timeMs", "x", "y", "z"))
