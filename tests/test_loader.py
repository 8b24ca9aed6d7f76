from __future__ import annotations

import threading
from pathlib import Path

import numpy as np
import pytest
import rasterio
import rasterio.env

from tests.utils import write_raster, write_water_tile
from waterlayer.tiles.loader import TileLoader
from waterlayer.tiles.models import TileDecodeError


def test_decode_reads_flat_band_and_bounds(tmp_path: Path) -> None:
    data = np.arange(12, dtype=np.uint8).reshape(3, 4)
    path = write_water_tile(tmp_path, 45, -10, data)

    tile = TileLoader().decode(path)

    assert (tile.width, tile.height) == (4, 3)
    assert tile.raster.ndim == 1
    assert tile.raster.tolist() == list(range(12))
    assert tile.bbox == pytest.approx((-10.0, 45.0, -5.0, 50.0))
    assert tile.source == path
    assert tile.value_at(1, 2) == 9


def test_decode_missing_file(tmp_path: Path) -> None:
    with pytest.raises(TileDecodeError) as excinfo:
        TileLoader().decode(tmp_path / "OSM_WaterLayer_N45W010.tif")
    assert excinfo.value.path.name == "OSM_WaterLayer_N45W010.tif"


def test_decode_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "OSM_WaterLayer_N45W010.tif"
    path.write_bytes(b"not a tiff at all")

    with pytest.raises(TileDecodeError, match="Failed to decode tile"):
        TileLoader().decode(path)


def test_decode_rejects_missing_band(tmp_path: Path) -> None:
    path = tmp_path / "single.tif"
    write_raster(path, np.zeros((2, 2), dtype=np.uint8), bounds=(0.0, 0.0, 5.0, 5.0))

    with pytest.raises(TileDecodeError, match="band 2"):
        TileLoader(band=2).decode(path)


def test_band_index_is_one_based() -> None:
    with pytest.raises(ValueError):
        TileLoader(band=0)


def test_decode_stays_on_calling_thread(tmp_path: Path, monkeypatch) -> None:
    data = np.ones((64, 64), dtype=np.uint8)
    path = write_water_tile(tmp_path, 45, -10, data, compress="deflate")
    real_open = rasterio.open
    seen: list[tuple[int, str | None]] = []

    def recording_open(*args, **kwargs):
        seen.append((threading.get_ident(), rasterio.env.getenv().get("GDAL_NUM_THREADS")))
        return real_open(*args, **kwargs)

    monkeypatch.setattr(rasterio, "open", recording_open)
    threads_before = threading.active_count()

    TileLoader().decode(path)

    assert seen == [(threading.get_ident(), "1")]
    assert threading.active_count() == threads_before
