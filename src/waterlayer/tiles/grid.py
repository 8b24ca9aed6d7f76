"""Grid cell arithmetic and tile naming helpers."""

from __future__ import annotations

import math
import re
from typing import Iterator

from waterlayer.tiles.models import Bounds, GridCellId

DEFAULT_TILE_SIZE = 5

TILE_NAME_PATTERN = re.compile(r"([NS])(\d+)([EW])(\d+)", re.IGNORECASE)


def grid_cell_id(lon: float, lat: float, tile_size: float = DEFAULT_TILE_SIZE) -> GridCellId:
    """Return the id of the grid cell containing a coordinate."""
    return GridCellId(
        math.floor(lat / tile_size) * tile_size,
        math.floor(lon / tile_size) * tile_size,
    )


def tile_name(lat: int, lon: int) -> str:
    """Format a cardinal tile name from a south-west corner."""
    return GridCellId(lat, lon).name


def match_tile_name(name: str) -> tuple[int, int] | None:
    """Return the (lat, lon) south-west corner embedded in a name, if any."""
    match = TILE_NAME_PATTERN.search(name)
    if not match:
        return None
    lat = int(match.group(2), 10)
    lon = int(match.group(4), 10)
    if match.group(1).upper() == "S":
        lat = -lat
    if match.group(3).upper() == "W":
        lon = -lon
    return lat, lon


def tile_bounds(name: str, tile_size: float = DEFAULT_TILE_SIZE) -> Bounds:
    """Return bounding coordinates for a name containing e.g. N45W010."""
    corner = match_tile_name(name)
    if corner is None:
        raise ValueError(f"Invalid tile name: {name}")
    min_lat, min_lon = corner
    return (min_lon, min_lat, min_lon + tile_size, min_lat + tile_size)


def cells_for_bounds(
    bounds: Bounds,
    tile_size: float = DEFAULT_TILE_SIZE,
) -> Iterator[GridCellId]:
    """Yield every grid cell intersecting the bounds, south to north, west to east.

    Both upper edges are inclusive, so a box ending exactly on a grid line
    also yields the cells beyond that line.
    """
    min_lon, min_lat, max_lon, max_lat = bounds
    for row in range(math.floor(min_lat / tile_size), math.floor(max_lat / tile_size) + 1):
        for col in range(math.floor(min_lon / tile_size), math.floor(max_lon / tile_size) + 1):
            yield GridCellId(row * tile_size, col * tile_size)
