"""Tile catalog, decoding, and caching helpers."""

from waterlayer.tiles.cache import TileCache
from waterlayer.tiles.grid import cells_for_bounds, grid_cell_id, tile_bounds, tile_name
from waterlayer.tiles.index import TileIndex, parse_tile_filename
from waterlayer.tiles.loader import TileLoader
from waterlayer.tiles.models import (
    Bounds,
    ConfigError,
    DecodedTile,
    GridCellId,
    TileCatalogEntry,
    TileDecodeError,
    WaterLayerError,
)

__all__ = [
    "Bounds",
    "ConfigError",
    "DecodedTile",
    "GridCellId",
    "TileCache",
    "TileCatalogEntry",
    "TileDecodeError",
    "TileIndex",
    "TileLoader",
    "WaterLayerError",
    "cells_for_bounds",
    "grid_cell_id",
    "parse_tile_filename",
    "tile_bounds",
    "tile_name",
]
