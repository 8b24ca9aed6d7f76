"""Synchronous GeoTIFF decoding for water layer tiles."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import rasterio
from rasterio.errors import RasterioError

from waterlayer.tiles.models import DecodedTile, TileDecodeError

LOGGER = logging.getLogger("waterlayer.tiles.loader")

# GDAL may otherwise decode blocks on its own worker threads.
SINGLE_THREAD_ENV = {"GDAL_NUM_THREADS": "1"}


class TileLoader:
    """Decode a tile file into a DecodedTile on the calling thread."""

    def __init__(self, band: int = 1) -> None:
        if band < 1:
            raise ValueError("band index is 1-based")
        self.band = band

    def decode(self, path: Path) -> DecodedTile:
        """Read one band and the bounding box of a tile.

        Raises TileDecodeError for missing, unreadable or malformed files.
        """
        path = Path(path)
        try:
            with rasterio.Env(**SINGLE_THREAD_ENV):
                with rasterio.open(path) as dataset:
                    if self.band > dataset.count:
                        raise TileDecodeError(
                            path, f"band {self.band} requested, file has {dataset.count}"
                        )
                    data = dataset.read(self.band)
                    bounds = dataset.bounds
        except TileDecodeError:
            raise
        except (RasterioError, OSError, ValueError) as exc:
            raise TileDecodeError(path, str(exc)) from exc

        height, width = data.shape
        LOGGER.debug("Decoded %s (%dx%d)", path.name, width, height)
        return DecodedTile(
            raster=np.ascontiguousarray(data).ravel(),
            width=width,
            height=height,
            bbox=(bounds.left, bounds.bottom, bounds.right, bounds.top),
            source=path,
        )
