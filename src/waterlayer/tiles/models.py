"""Data models shared by the tile index, cache, and classifier."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Tuple

import numpy as np

Bounds = Tuple[float, float, float, float]


class WaterLayerError(Exception):
    """Base class for waterlayer errors."""


class TileDecodeError(WaterLayerError):
    """Raised when a tile file cannot be opened or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to decode tile {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigError(WaterLayerError):
    """Raised when service configuration is invalid."""


@dataclass(frozen=True, order=True)
class GridCellId:
    """South-west corner of a grid cell, in whole grid steps of degrees."""

    lat: float
    lon: float

    @property
    def name(self) -> str:
        """Return the cardinal tile name for this cell (e.g. N45W010)."""
        lat_dir = "S" if self.lat < 0 else "N"
        lon_dir = "W" if self.lon < 0 else "E"
        return f"{lat_dir}{abs(int(self.lat)):02d}{lon_dir}{abs(int(self.lon)):03d}"

    def __str__(self) -> str:
        """Return the "lat,lon" key form used in logs and CLI output."""
        return f"{self.lat:g},{self.lon:g}"


@dataclass(frozen=True)
class TileCatalogEntry:
    """A tile discovered on disk; nothing is decoded."""

    file_path: Path
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @property
    def bounds(self) -> Bounds:
        """Return (min_lon, min_lat, max_lon, max_lat)."""
        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)

    @property
    def cell_id(self) -> GridCellId:
        """Return the grid cell named by this tile's south-west corner."""
        return GridCellId(self.min_lat, self.min_lon)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready description of the entry."""
        return {
            "key": str(self.cell_id),
            "path": str(self.file_path),
            "bounds": list(self.bounds),
        }


@dataclass
class DecodedTile:
    """Single-band raster held in memory.

    ``raster`` is flat and row-major; row 0 is the northern edge of ``bbox``.
    ``bbox`` comes from the file's own georeferencing and is authoritative
    over the catalog entry it was loaded from.
    """

    raster: np.ndarray
    width: int
    height: int
    bbox: Bounds
    source: Path | None = None
    last_accessed: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        if self.raster.ndim != 1:
            self.raster = self.raster.ravel()
        if self.raster.size != self.width * self.height:
            raise ValueError("raster size does not match width/height")

    def value_at(self, pixel_x: int, pixel_y: int) -> Any:
        """Return the raw raster value at a pixel."""
        return self.raster[pixel_y * self.width + pixel_x]

    def touch(self, now: float) -> None:
        """Record an access at the given clock reading."""
        self.last_accessed = now
