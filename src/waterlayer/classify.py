"""Point classification against decoded water layer tiles.

Raw band values follow the OSM Water Layer convention:

    0 = land, 1 = ocean, 2 = large lake or river, 3 = major river,
    4 = canal, 5 = small stream

Anything else, including nodata and NaN, is treated as land.
"""

from __future__ import annotations

import math
from enum import Enum

from waterlayer.tiles.models import DecodedTile


class WaterCategory(str, Enum):
    """Semantic class of a point. LAND doubles as the no-data answer."""

    LAND = "land"
    OCEAN = "ocean"
    LAKE = "lake"
    RIVER = "river"
    CANAL = "canal"
    STREAM = "stream"

    @property
    def is_water(self) -> bool:
        """Return True for every category except LAND."""
        return self is not WaterCategory.LAND


RAW_VALUE_CATEGORIES = {
    0: WaterCategory.LAND,
    1: WaterCategory.OCEAN,
    2: WaterCategory.LAKE,
    3: WaterCategory.RIVER,
    4: WaterCategory.CANAL,
    5: WaterCategory.STREAM,
}


def classify(raw_value: object) -> WaterCategory:
    """Map a raw raster value to a category; unknown values are land."""
    try:
        value = float(raw_value)
    except (TypeError, ValueError):
        return WaterCategory.LAND
    if math.isnan(value) or not value.is_integer():
        return WaterCategory.LAND
    return RAW_VALUE_CATEGORIES.get(int(value), WaterCategory.LAND)


def pixel_for(tile: DecodedTile, lon: float, lat: float) -> tuple[int, int] | None:
    """Return the (x, y) pixel holding a coordinate, or None when outside the raster."""
    min_lon, min_lat, max_lon, max_lat = tile.bbox
    x_ratio = (lon - min_lon) / (max_lon - min_lon)
    # row 0 is the northern edge
    y_ratio = (max_lat - lat) / (max_lat - min_lat)
    if not (math.isfinite(x_ratio) and math.isfinite(y_ratio)):
        return None
    pixel_x = math.floor(x_ratio * tile.width)
    pixel_y = math.floor(y_ratio * tile.height)
    if not (0 <= pixel_x < tile.width and 0 <= pixel_y < tile.height):
        return None
    return pixel_x, pixel_y


def sample(tile: DecodedTile, lon: float, lat: float) -> WaterCategory:
    """Classify the pixel of a tile holding a coordinate."""
    pixel = pixel_for(tile, lon, lat)
    if pixel is None:
        return WaterCategory.LAND
    return classify(tile.value_at(*pixel))
