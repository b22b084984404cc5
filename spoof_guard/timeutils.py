"""Time conversion utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final

from zoneinfo import ZoneInfo

MS_PER_SECOND: Final[int] = 1000


def tzinfo_from_name(tz_name: str) -> timezone:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "America/Sao_Paulo".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"invalid timezone: {tz_name!r}, e.g. America/Sao_Paulo") from exc


def dt_from_epoch_ms(epoch_ms: int, tz_name: str) -> datetime:
    """Convert epoch milliseconds to a timezone-aware datetime."""

    tz = tzinfo_from_name(tz_name)
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz)


def now_ms() -> int:
    """Current wall-clock time as Unix epoch milliseconds."""

    return int(datetime.now(tz=timezone.utc).timestamp() * MS_PER_SECOND)


def elapsed_whole_seconds(start_ms: int, end_ms: int) -> int:
    """Elapsed time between two epoch-ms instants in whole seconds.

    Truncates toward zero, so 1999 ms is 1 second and -1500 ms is -1 second.
    """

    delta = end_ms - start_ms
    if delta >= 0:
        return delta // MS_PER_SECOND
    return -((-delta) // MS_PER_SECOND)
