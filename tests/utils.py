from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

import numpy as np
import rasterio
from rasterio.transform import from_bounds

from waterlayer.tiles.grid import tile_name


def write_raster(
    path: Path,
    data: np.ndarray,
    *,
    bounds: Tuple[float, float, float, float],
    crs: str = "EPSG:4326",
    nodata: float | None = None,
    compress: str | None = None,
) -> None:
    height, width = data.shape
    options = {"compress": compress} if compress else {}
    transform = from_bounds(*bounds, width=width, height=height)
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data.dtype,
        crs=crs,
        transform=transform,
        nodata=nodata,
        **options,
    ) as dataset:
        dataset.write(data, 1)


def write_water_tile(
    root: Path,
    lat: int,
    lon: int,
    data: np.ndarray,
    *,
    tile_size: int = 5,
    prefix: str = "OSM_WaterLayer_",
    compress: str | None = None,
) -> Path:
    """Write a water layer tile named after its south-west corner."""
    path = root / f"{prefix}{tile_name(lat, lon)}.tif"
    write_raster(
        path,
        data,
        bounds=(lon, lat, lon + tile_size, lat + tile_size),
        compress=compress,
    )
    return path


def bordered_tile(size: int, fill: int, border: int = 0) -> np.ndarray:
    """Return a square uint8 raster of `fill` with a 1-pixel `border`."""
    data = np.full((size, size), fill, dtype=np.uint8)
    data[0, :] = border
    data[-1, :] = border
    data[:, 0] = border
    data[:, -1] = border
    return data


def with_src_env(base_env: dict[str, str] | None = None) -> dict[str, str]:
    """Return an environment with repo src/ on PYTHONPATH."""
    env = dict(base_env or os.environ)
    repo_root = Path(__file__).resolve().parents[1]
    src_path = repo_root / "src"
    if src_path.exists():
        existing = env.get("PYTHONPATH", "")
        entries = [entry for entry in existing.split(os.pathsep) if entry]
        src_str = str(src_path)
        if src_str not in entries:
            entries.insert(0, src_str)
        env["PYTHONPATH"] = os.pathsep.join(entries)
    return env
