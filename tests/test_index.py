from __future__ import annotations

import logging
from pathlib import Path

import pytest

from waterlayer.tiles.grid import tile_bounds
from waterlayer.tiles.index import TileIndex, parse_tile_filename
from waterlayer.tiles.models import GridCellId


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_parse_tile_filename_north_west() -> None:
    entry = parse_tile_filename(Path("OSM_WaterLayer_N45W010.tif"))
    assert entry is not None
    assert (entry.min_lat, entry.max_lat) == (45, 50)
    assert (entry.min_lon, entry.max_lon) == (-10, -5)
    assert entry.cell_id == GridCellId(45, -10)


def test_parse_tile_filename_south_east() -> None:
    entry = parse_tile_filename(Path("OSM_WaterLayer_S30E150.tif"))
    assert entry is not None
    assert (entry.min_lat, entry.max_lat) == (-30, -25)
    assert (entry.min_lon, entry.max_lon) == (150, 155)


def test_parse_tile_filename_without_coordinates() -> None:
    assert parse_tile_filename(Path("readme.tif")) is None


@pytest.mark.parametrize(
    ("name", "size"),
    [("OSM_WaterLayer_N45W010.tif", 5), ("s01e002.tiff", 1), ("N10E020.tif", 2.5)],
)
def test_parse_tile_filename_agrees_with_tile_bounds(name: str, size: float) -> None:
    entry = parse_tile_filename(Path(name), tile_size=size)
    assert entry is not None
    assert entry.bounds == tile_bounds(name, size)


def test_scan_recurses_and_skips_non_matching(tmp_path: Path) -> None:
    _touch(tmp_path / "europe" / "OSM_WaterLayer_N45W010.tif")
    _touch(tmp_path / "oceania" / "deep" / "OSM_WaterLayer_S30E150.TIFF")
    _touch(tmp_path / "OSM_WaterLayer_N45W005.png")
    _touch(tmp_path / "legend.tif")

    index = TileIndex()
    added = index.scan(tmp_path)

    assert added == 2
    assert index.count() == 2
    entry = index.lookup(GridCellId(45, -10))
    assert entry is not None
    assert entry.file_path.name == "OSM_WaterLayer_N45W010.tif"
    assert entry.file_path.is_absolute()
    assert index.lookup(GridCellId(-30, 150)) is not None
    assert index.lookup(GridCellId(45, -5)) is None


def test_scan_missing_directory_is_empty(tmp_path: Path, caplog) -> None:
    caplog.set_level(logging.INFO, logger="waterlayer.tiles.index")
    index = TileIndex()

    assert index.scan(tmp_path / "missing") == 0
    assert index.count() == 0
    assert "directory not found" in caplog.text


def test_scan_logs_count_and_sample_keys(tmp_path: Path, caplog) -> None:
    caplog.set_level(logging.INFO, logger="waterlayer.tiles.index")
    for lat in range(0, 35, 5):
        _touch(tmp_path / f"OSM_WaterLayer_N{lat:02d}E000.tif")

    TileIndex().scan(tmp_path)

    assert "7 tiles indexed" in caplog.text
    sample_line = next(r.getMessage() for r in caplog.records if "Sample" in r.getMessage())
    assert sample_line.count(",") == 2 * 5 - 1


def test_misaligned_tile_is_unreachable(tmp_path: Path) -> None:
    _touch(tmp_path / "OSM_WaterLayer_N47W008.tif")
    index = TileIndex()
    index.scan(tmp_path)

    assert index.count() == 1
    assert index.lookup(GridCellId(45, -10)) is None


def test_clear_drops_entries(tmp_path: Path) -> None:
    _touch(tmp_path / "OSM_WaterLayer_N45W010.tif")
    index = TileIndex()
    index.scan(tmp_path)
    index.clear()

    assert index.count() == 0
    assert GridCellId(45, -10) not in index
