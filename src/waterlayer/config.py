"""Service configuration loading.

Values resolve in order: explicit overrides, JSON config file, environment
variables, then defaults.
"""

from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import jsonschema

from waterlayer.contracts import validate_service_config
from waterlayer.tiles.cache import DEFAULT_MAX_CACHED_TILES
from waterlayer.tiles.grid import DEFAULT_TILE_SIZE
from waterlayer.tiles.models import ConfigError

ENV_CONFIG = "WATERLAYER_CONFIG"
ENV_DATA_DIR = "WATERLAYER_DATA_DIR"
ENV_TILE_SIZE = "WATERLAYER_TILE_SIZE"
ENV_MAX_CACHED_TILES = "WATERLAYER_MAX_CACHED_TILES"

DEFAULT_DATA_DIR = Path("data") / "navigation-data"


@dataclass(frozen=True)
class ServiceConfig:
    """Settings for a WaterDetectionService instance."""

    data_dir: Path = DEFAULT_DATA_DIR
    tile_size: float = DEFAULT_TILE_SIZE
    max_cached_tiles: int = DEFAULT_MAX_CACHED_TILES
    band: int = 1
    decode_in_executor: bool = False

    def __post_init__(self) -> None:
        if not math.isfinite(self.tile_size) or self.tile_size <= 0:
            raise ConfigError(f"tile_size must be a finite number > 0, got {self.tile_size!r}")
        if self.max_cached_tiles < 1:
            raise ConfigError("max_cached_tiles must be >= 1")
        if self.band < 1:
            raise ConfigError("band must be >= 1")

    def as_dict(self) -> dict[str, Any]:
        """Return the settings as a JSON-ready mapping."""
        return {
            "data_dir": str(self.data_dir),
            "tile_size": self.tile_size,
            "max_cached_tiles": self.max_cached_tiles,
            "band": self.band,
            "decode_in_executor": self.decode_in_executor,
        }


def _env_number(env: Mapping[str, str], name: str, kind: type) -> Any:
    """Parse a numeric environment variable, or return None when unset."""
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a {kind.__name__}: {raw!r}") from exc


def _from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect settings from WATERLAYER_* environment variables."""
    values: dict[str, Any] = {}
    data_dir = env.get(ENV_DATA_DIR)
    if data_dir:
        values["data_dir"] = data_dir
    tile_size = _env_number(env, ENV_TILE_SIZE, float)
    if tile_size is not None:
        values["tile_size"] = int(tile_size) if tile_size.is_integer() else tile_size
    max_cached = _env_number(env, ENV_MAX_CACHED_TILES, int)
    if max_cached is not None:
        values["max_cached_tiles"] = max_cached
    return values


def load_config_file(path: Path) -> dict[str, Any]:
    """Load and validate a JSON config file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    try:
        validate_service_config(payload)
    except jsonschema.ValidationError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc.message}") from exc
    return payload


def load_config(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ServiceConfig:
    """Resolve a ServiceConfig from overrides, config file, and environment."""
    env = os.environ if env is None else env
    known = {item.name for item in fields(ServiceConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ConfigError(f"Unknown config options: {', '.join(sorted(unknown))}")

    values = _from_env(env)
    file_path = config_path or (Path(env[ENV_CONFIG]) if env.get(ENV_CONFIG) else None)
    if file_path is not None:
        values.update(load_config_file(file_path))
    values.update({key: value for key, value in overrides.items() if value is not None})

    if "data_dir" in values:
        values["data_dir"] = Path(values["data_dir"]).expanduser()
    return replace(ServiceConfig(), **values)
