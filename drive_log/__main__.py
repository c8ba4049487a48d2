"""Module entry point: python -m drive_log ..."""

from __future__ import annotations

from drive_log.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
