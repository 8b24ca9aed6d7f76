"""Logging setup for waterlayer.

Tile-scoped messages carry the grid cell they concern as
``extra={"cell": GridCellId(...)}``; both formatters render it.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from waterlayer.tiles.models import GridCellId

CELL_FIELD = "cell"

_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


@dataclass(frozen=True)
class LogOptions:
    """Console level, optional JSON-lines file, and console format."""

    level: int = logging.INFO
    log_file: Path | None = None
    json_console: bool = False


def level_from_flags(*, debug: bool = False, quiet: bool = False) -> int:
    """Map the CLI --debug/--quiet switches to a logging level."""
    if quiet:
        return logging.WARNING
    if debug:
        return logging.DEBUG
    return logging.INFO


def _utc_now() -> str:
    """Return the current UTC time with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_value(value: Any) -> Any:
    """Convert values passed through extra= into JSON-ready objects."""
    if isinstance(value, GridCellId):
        return {"name": value.name, "lat": value.lat, "lon": value.lon}
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _json_value(item) for key, item in value.items()}
    return repr(value)


def _describe_cell(cell: GridCellId) -> str:
    """Render a cell as its tile name and south-west corner, e.g. N45W010 45,-10."""
    return f"{cell.name} {cell}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; a grid cell is promoted to a top-level field."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialise a record, its cell, extras, and exception text."""
        payload: dict[str, Any] = {
            "timestamp": _utc_now(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        cell = getattr(record, CELL_FIELD, None)
        if isinstance(cell, GridCellId):
            payload[CELL_FIELD] = _json_value(cell)
        extra = {
            key: _json_value(value)
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and key != CELL_FIELD
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class CellFormatter(logging.Formatter):
    """Human readable lines prefixed with the grid cell, when the record has one."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a record and prefix it with ``[N45W010 45,-10]`` style cell context."""
        message = super().format(record)
        cell = getattr(record, CELL_FIELD, None)
        if isinstance(cell, GridCellId):
            return f"[{_describe_cell(cell)}] {message}"
        return message


def configure_logging(options: LogOptions) -> logging.Logger:
    """Install console and optional file handlers on the root logger and return it."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(options.level)
    if options.json_console:
        console.setFormatter(JsonFormatter())
    else:
        console.setFormatter(CellFormatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    if options.log_file:
        options.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(options.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    return root
