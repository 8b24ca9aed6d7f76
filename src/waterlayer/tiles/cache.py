"""Bounded in-memory cache of decoded tiles with LRU eviction."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from waterlayer.tiles.index import TileIndex
from waterlayer.tiles.loader import TileLoader
from waterlayer.tiles.models import DecodedTile, GridCellId, TileCatalogEntry

LOGGER = logging.getLogger("waterlayer.tiles.cache")

DEFAULT_MAX_CACHED_TILES = 10


class TileCache:
    """Decoded tiles keyed by grid cell, never holding more than max_size.

    Not thread-safe; each thread of execution owns its own cache.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_CACHED_TILES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._clock = clock
        self._tiles: dict[GridCellId, DecodedTile] = {}

    def get_cached_only(self, cell_id: GridCellId) -> DecodedTile | None:
        """Return a cached tile and refresh its access time; never loads."""
        tile = self._tiles.get(cell_id)
        if tile is not None:
            tile.touch(self._clock())
        return tile

    def get_or_load(
        self,
        cell_id: GridCellId,
        index: TileIndex,
        loader: TileLoader,
    ) -> DecodedTile | None:
        """Return the tile for a cell, decoding and caching it on a miss.

        Returns None when no tile covers the cell or decoding fails; neither
        outcome is cached, so a later call retries.
        """
        cached, entry = self._begin_load(cell_id, index)
        if entry is None:
            return cached
        try:
            tile = loader.decode(entry.file_path)
        except Exception:
            _log_decode_failure(cell_id, entry)
            return None
        self.insert(cell_id, tile)
        return tile

    async def aget_or_load(
        self,
        cell_id: GridCellId,
        index: TileIndex,
        loader: TileLoader,
        *,
        in_executor: bool = False,
    ) -> DecodedTile | None:
        """Coroutine form of get_or_load.

        With in_executor the blocking decode runs via asyncio.to_thread;
        cache lookups and insertion always happen on the caller's thread.
        Concurrent misses on the same cell each decode, and the last
        insertion wins.
        """
        cached, entry = self._begin_load(cell_id, index)
        if entry is None:
            return cached
        try:
            if in_executor:
                tile = await asyncio.to_thread(loader.decode, entry.file_path)
            else:
                tile = loader.decode(entry.file_path)
        except Exception:
            _log_decode_failure(cell_id, entry)
            return None
        self.insert(cell_id, tile)
        return tile

    def _begin_load(
        self,
        cell_id: GridCellId,
        index: TileIndex,
    ) -> tuple[DecodedTile | None, TileCatalogEntry | None]:
        """Split a lookup into a cache hit, a catalog entry to decode, or nothing.

        Returns (tile, None) on a hit, (None, entry) when the cell needs
        decoding and (None, None) when no indexed tile covers it.
        """
        tile = self.get_cached_only(cell_id)
        if tile is not None:
            return tile, None
        return None, index.lookup(cell_id)

    def insert(self, cell_id: GridCellId, tile: DecodedTile) -> None:
        """Store a tile, evicting the least recently used one when full."""
        if cell_id not in self._tiles and len(self._tiles) >= self.max_size:
            self._evict_oldest()
        tile.touch(self._clock())
        self._tiles[cell_id] = tile

    def _evict_oldest(self) -> None:
        """Drop the entry with the oldest access time (linear scan)."""
        oldest_key: GridCellId | None = None
        oldest_time = float("inf")
        for key, tile in self._tiles.items():
            if tile.last_accessed < oldest_time:
                oldest_time = tile.last_accessed
                oldest_key = key
        if oldest_key is not None:
            del self._tiles[oldest_key]
            LOGGER.debug("Evicted tile %s", oldest_key, extra={"cell": oldest_key})

    def __contains__(self, cell_id: object) -> bool:
        """Return True when the cell is cached; does not refresh its access time."""
        return cell_id in self._tiles

    def keys(self) -> list[GridCellId]:
        """Return cached cell ids in insertion order."""
        return list(self._tiles)

    def clear(self) -> None:
        """Drop every cached tile."""
        self._tiles.clear()

    def size(self) -> int:
        """Return the number of cached tiles."""
        return len(self._tiles)


def _log_decode_failure(cell_id: GridCellId, entry: TileCatalogEntry) -> None:
    """Log a failed decode with its traceback; must be called from an except block."""
    LOGGER.exception(
        "Failed to load water layer tile: %s",
        entry.file_path,
        extra={"cell": cell_id},
    )
