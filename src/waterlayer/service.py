"""Water detection facade over the tile index, tile cache, and classifier."""

from __future__ import annotations

import logging
import math
import time
from enum import Enum
from typing import Callable

from waterlayer.classify import WaterCategory, sample
from waterlayer.config import ServiceConfig
from waterlayer.tiles.cache import TileCache
from waterlayer.tiles.grid import cells_for_bounds, grid_cell_id
from waterlayer.tiles.index import TileIndex
from waterlayer.tiles.loader import TileLoader
from waterlayer.tiles.models import GridCellId, TileCatalogEntry

LOGGER = logging.getLogger("waterlayer.service")


class ServiceState(str, Enum):
    """Lifecycle of a WaterDetectionService."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class WaterDetectionService:
    """Answer "land or which kind of water?" for a coordinate.

    Each instance owns its index and cache; create one per thread rather
    than sharing. Queries never raise: missing tiles, failed decodes and
    out-of-range pixels all answer ``WaterCategory.LAND``.
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        *,
        loader: TileLoader | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or ServiceConfig()
        self._index = TileIndex(tile_size=self.config.tile_size)
        self._cache = TileCache(self.config.max_cached_tiles, clock=clock or time.monotonic)
        self._loader = loader or TileLoader(band=self.config.band)
        self._state = ServiceState.UNINITIALIZED
        self._warned_uninitialized = False

    # -------- lifecycle --------

    @property
    def state(self) -> ServiceState:
        """Return the current lifecycle state."""
        return self._state

    def initialize(self) -> None:
        """Scan the data directory once; later calls are no-ops."""
        if self._state is not ServiceState.UNINITIALIZED:
            return
        self._state = ServiceState.INITIALIZING
        try:
            self._index.scan(self.config.data_dir)
        finally:
            self._state = ServiceState.READY

    def reload(self) -> None:
        """Drop the catalog and cached tiles, then rescan the data directory."""
        LOGGER.info("Reloading water layer tiles from %s", self.config.data_dir)
        self._index.clear()
        self._cache.clear()
        self._state = ServiceState.UNINITIALIZED
        self.initialize()

    def is_initialized(self) -> bool:
        """Return True once the catalog scan has completed."""
        return self._state is ServiceState.READY

    def has_data(self) -> bool:
        """Return True when at least one tile is indexed."""
        return self._index.count() > 0

    def get_stats(self) -> dict[str, int]:
        """Return indexed and cached tile counts."""
        return {
            "tileCount": self._index.count(),
            "cachedTiles": self._cache.size(),
        }

    def catalog(self) -> list[TileCatalogEntry]:
        """Return the indexed tiles in scan order."""
        return self._index.entries()

    @property
    def tile_size(self) -> float:
        """Return the grid step in degrees."""
        return self.config.tile_size

    @property
    def cache_capacity(self) -> int:
        """Return the maximum number of decoded tiles held at once."""
        return self._cache.max_size

    # -------- queries --------

    def cell_for(self, lon: float, lat: float) -> GridCellId:
        """Return the grid cell containing a coordinate."""
        return grid_cell_id(lon, lat, self.config.tile_size)

    async def get_water_type(self, lon: float, lat: float) -> WaterCategory:
        """Classify a coordinate, loading its tile if it is not cached."""
        if not self._check_ready():
            return WaterCategory.LAND
        try:
            cell = self.cell_for(lon, lat)
        except (ValueError, OverflowError):
            return WaterCategory.LAND
        tile = await self._cache.aget_or_load(
            cell,
            self._index,
            self._loader,
            in_executor=self.config.decode_in_executor,
        )
        if tile is None:
            return WaterCategory.LAND
        return sample(tile, lon, lat)

    def get_water_type_sync(self, lon: float, lat: float) -> WaterCategory:
        """Classify a coordinate from cached tiles only; a miss answers land."""
        if not self._check_ready():
            return WaterCategory.LAND
        try:
            cell = self.cell_for(lon, lat)
        except (ValueError, OverflowError):
            return WaterCategory.LAND
        tile = self._cache.get_cached_only(cell)
        if tile is None:
            return WaterCategory.LAND
        return sample(tile, lon, lat)

    async def is_water(self, lon: float, lat: float) -> bool:
        """Return True when the coordinate is any kind of water, loading its tile if needed."""
        return (await self.get_water_type(lon, lat)).is_water

    def is_water_sync(self, lon: float, lat: float) -> bool:
        """Return True when cached data shows water at the coordinate."""
        return self.get_water_type_sync(lon, lat).is_water

    async def preload_tiles(
        self,
        min_lon: float,
        min_lat: float,
        max_lon: float,
        max_lat: float,
    ) -> int:
        """Load every indexed, uncached tile intersecting a box.

        Returns the number of tiles newly loaded. A box covering more cells
        than the cache holds evicts tiles loaded earlier in the same pass.
        """
        if not self._check_ready():
            return 0
        bounds = (min_lon, min_lat, max_lon, max_lat)
        if not all(math.isfinite(value) for value in bounds):
            LOGGER.warning("Ignoring preload for non-finite bounds %s", bounds)
            return 0
        loaded = 0
        for cell in cells_for_bounds(bounds, self.config.tile_size):
            if cell in self._cache or cell not in self._index:
                continue
            tile = await self._cache.aget_or_load(
                cell,
                self._index,
                self._loader,
                in_executor=self.config.decode_in_executor,
            )
            if tile is not None:
                LOGGER.info("Loaded tile for key %s", cell, extra={"cell": cell})
                loaded += 1
        return loaded

    def _check_ready(self) -> bool:
        """Return True when ready; otherwise warn once per instance."""
        if self._state is ServiceState.READY:
            return True
        if not self._warned_uninitialized:
            LOGGER.warning("Water layer queried before initialize(); answering land")
            self._warned_uninitialized = True
        return False
