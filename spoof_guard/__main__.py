"""Module entry point: python -m spoof_guard ..."""

from __future__ import annotations

from spoof_guard.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
