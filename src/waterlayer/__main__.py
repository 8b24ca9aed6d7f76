"""Module entrypoint for `python -m waterlayer`."""

from __future__ import annotations

from waterlayer.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
