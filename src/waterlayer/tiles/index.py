"""On-disk tile catalog keyed by grid cell."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from waterlayer.tiles.grid import DEFAULT_TILE_SIZE, tile_bounds
from waterlayer.tiles.models import GridCellId, TileCatalogEntry

LOGGER = logging.getLogger("waterlayer.tiles.index")

TILE_SUFFIXES = (".tif", ".tiff")
SAMPLE_KEY_COUNT = 5


def parse_tile_filename(
    path: Path,
    tile_size: float = DEFAULT_TILE_SIZE,
) -> TileCatalogEntry | None:
    """Build a catalog entry from a filename like OSM_WaterLayer_N45W010.tif."""
    try:
        min_lon, min_lat, max_lon, max_lat = tile_bounds(path.name, tile_size)
    except ValueError:
        return None
    return TileCatalogEntry(
        file_path=path,
        min_lon=min_lon,
        max_lon=max_lon,
        min_lat=min_lat,
        max_lat=max_lat,
    )


class TileIndex:
    """Catalog of tile files found beneath a root directory.

    Scanning only reads directory listings; tiles are never opened here.
    An entry whose filename corner is not aligned to the grid is kept but
    can never be looked up.
    """

    def __init__(self, tile_size: float = DEFAULT_TILE_SIZE) -> None:
        self.tile_size = tile_size
        self._entries: dict[GridCellId, TileCatalogEntry] = {}

    def scan(self, root_dir: Path) -> int:
        """Index every matching tile beneath root_dir and return the number added."""
        root = Path(root_dir)
        if not root.is_dir():
            LOGGER.info("Water layer directory not found: %s", root)
            return 0

        def _on_error(error: OSError) -> None:
            LOGGER.warning("Skipping unreadable path %s: %s", error.filename, error.strerror)

        added = 0
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames.sort()
            for filename in sorted(filenames):
                if not filename.lower().endswith(TILE_SUFFIXES):
                    continue
                path = Path(dirpath) / filename
                entry = parse_tile_filename(path.resolve(), self.tile_size)
                if entry is None:
                    LOGGER.debug("Skipping %s: no tile coordinates in name", path)
                    continue
                key = entry.cell_id
                previous = self._entries.get(key)
                if previous is not None:
                    LOGGER.warning(
                        "Tile %s replaces %s for the same cell",
                        entry.file_path,
                        previous.file_path,
                        extra={"cell": key},
                    )
                else:
                    added += 1
                self._entries[key] = entry

        if self._entries:
            sample = ", ".join(str(key) for key in list(self._entries)[:SAMPLE_KEY_COUNT])
            LOGGER.info("Water layer: %d tiles indexed", len(self._entries))
            LOGGER.info("Sample tile keys: %s", sample)
        return added

    def lookup(self, cell_id: GridCellId) -> TileCatalogEntry | None:
        """Return the catalog entry covering a cell, if one was indexed."""
        return self._entries.get(cell_id)

    def __contains__(self, cell_id: object) -> bool:
        """Return True when a tile is indexed for the cell."""
        return cell_id in self._entries

    def entries(self) -> list[TileCatalogEntry]:
        """Return all catalog entries in scan order."""
        return list(self._entries.values())

    def clear(self) -> None:
        """Forget every indexed tile."""
        self._entries.clear()

    def count(self) -> int:
        """Return the number of indexed tiles."""
        return len(self._entries)
