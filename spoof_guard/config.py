"""Guard configuration: defaults, JSON loading and validation."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from spoof_guard.borders import BRAZIL
from spoof_guard.geo import BoundaryPolygon
from spoof_guard.motion import MotionParams
from spoof_guard.trajectory import TrajectoryParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GuardConfig:
    """Everything a FusionGuard session can be tuned with.

    The numeric defaults are calibration inputs, not physical constants.
    """

    trajectory: TrajectoryParams = field(default_factory=TrajectoryParams)
    motion: MotionParams = field(default_factory=MotionParams)
    mock_poll_interval_s: float = 5.0
    # Polygon checks are cheap but the last-known position is not worth polling often.
    territory_poll_interval_s: float = 30.0
    boundary: BoundaryPolygon = BRAZIL
    # Off by default: flags devices with no hand tremor while the fix reports no motion.
    check_static_device: bool = False


_TOP_LEVEL_KEYS = {"trajectory", "motion", "mock_poll_interval_s", "territory_poll_interval_s", "boundary", "check_static_device"}


def _build_params(cls: type, section: str, raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise ValueError(f"config section {section!r} must be an object, got {type(raw).__name__}")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"unknown keys in {section!r}: {unknown}. Allowed: {sorted(known)}")

    values: dict[str, Any] = {}
    defaults = cls()
    for name, value in raw.items():
        default = getattr(defaults, name)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"{section}.{name} must be true/false, got {value!r}")
        elif isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{section}.{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{section}.{name} must be > 0, got {value}")
        else:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{section}.{name} must be a number, got {value!r}")
            value = float(value)
            if value < 0:
                raise ValueError(f"{section}.{name} must be >= 0, got {value}")
        values[name] = value
    return replace(defaults, **values)


def _check_motion(motion: MotionParams) -> None:
    if motion.min_samples > motion.window_capacity:
        raise ValueError(
            f"motion.min_samples ({motion.min_samples}) cannot exceed motion.window_capacity ({motion.window_capacity})"
        )


def config_from_mapping(raw: Mapping[str, Any]) -> GuardConfig:
    """Build a validated GuardConfig from a plain mapping (e.g. parsed JSON).

    Missing keys keep their defaults.

    Args:
        raw: Mapping with optional keys "trajectory", "motion", "mock_poll_interval_s",
            "territory_poll_interval_s", "boundary" and "check_static_device".

    Returns:
        GuardConfig.

    Raises:
        ValueError: On unknown keys, wrong types or out-of-range values.
    """

    unknown = sorted(set(raw) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {unknown}. Allowed: {sorted(_TOP_LEVEL_KEYS)}")

    cfg = GuardConfig()
    changes: dict[str, Any] = {}
    if "trajectory" in raw:
        changes["trajectory"] = _build_params(TrajectoryParams, "trajectory", raw["trajectory"])
    if "motion" in raw:
        changes["motion"] = _build_params(MotionParams, "motion", raw["motion"])
        _check_motion(changes["motion"])
    for key in ("mock_poll_interval_s", "territory_poll_interval_s"):
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ValueError(f"{key} must be a positive number, got {value!r}")
            changes[key] = float(value)
    if "check_static_device" in raw:
        if not isinstance(raw["check_static_device"], bool):
            raise ValueError(f"check_static_device must be true/false, got {raw['check_static_device']!r}")
        changes["check_static_device"] = raw["check_static_device"]
    if "boundary" in raw:
        changes["boundary"] = _boundary_from_raw(raw["boundary"])

    return replace(cfg, **changes)


def _boundary_from_raw(raw: Any) -> BoundaryPolygon:
    # Either a bare vertex list or {"name": ..., "vertices": [...]}.
    if isinstance(raw, Mapping):
        vertices = raw.get("vertices")
        name = str(raw.get("name", ""))
    else:
        vertices = raw
        name = ""
    if not isinstance(vertices, list):
        raise ValueError("boundary must be a list of [lat, lon] pairs or an object with 'vertices'")
    try:
        return BoundaryPolygon.from_vertices(vertices, name=name)
    except TypeError as exc:
        raise ValueError(f"malformed boundary vertices: {exc}") from exc


def load_config(path: str | Path | None) -> GuardConfig:
    """Load configuration from a JSON file; None means all defaults."""

    if path is None:
        return GuardConfig()
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"config file {str(p)!r} is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ValueError(f"config file {str(p)!r} must contain a JSON object")
    cfg = config_from_mapping(raw)
    logger.info("loaded config from %s (boundary=%s, %s vertices)", p, cfg.boundary.name or "custom", len(cfg.boundary.vertices))
    return cfg


def config_to_mapping(cfg: GuardConfig) -> dict[str, Any]:
    """Serialize a GuardConfig to JSON-compatible data (inverse of ``config_from_mapping``)."""

    return {
        "trajectory": asdict(cfg.trajectory),
        "motion": asdict(cfg.motion),
        "mock_poll_interval_s": cfg.mock_poll_interval_s,
        "territory_poll_interval_s": cfg.territory_poll_interval_s,
        "check_static_device": cfg.check_static_device,
        "boundary": {"name": cfg.boundary.name, "vertices": [list(v) for v in cfg.boundary.vertices]},
    }
