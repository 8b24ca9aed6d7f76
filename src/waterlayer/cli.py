"""Command-line interface for waterlayer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from waterlayer import __version__
from waterlayer.config import ServiceConfig, load_config
from waterlayer.logging_utils import LogOptions, configure_logging, level_from_flags
from waterlayer.service import WaterDetectionService
from waterlayer.tiles.models import ConfigError

LOGGER = logging.getLogger("waterlayer.cli")


def _add_index_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the index subcommand."""
    subparsers.add_parser("index", help="Scan the data directory and list indexed tiles.")


def _add_query_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the query subcommand."""
    query = subparsers.add_parser("query", help="Classify one or more LON LAT points.")
    query.add_argument(
        "coords",
        nargs="+",
        type=float,
        metavar="LON LAT",
        help="Longitude/latitude pairs in degrees.",
    )


def _add_preload_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the preload subcommand."""
    preload = subparsers.add_parser("preload", help="Decode every tile intersecting a box.")
    for name in ("min_lon", "min_lat", "max_lon", "max_lat"):
        preload.add_argument(name, type=float)


def _add_stats_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the stats subcommand."""
    subparsers.add_parser("stats", help="Print catalog and cache statistics.")


def _add_version_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the version subcommand."""
    subparsers.add_parser("version", help="Print the current version.")


def _config_from_args(args: argparse.Namespace) -> ServiceConfig:
    """Resolve service settings from global CLI flags."""
    return load_config(
        Path(args.config) if args.config else None,
        data_dir=args.data_dir,
        tile_size=args.tile_size,
        max_cached_tiles=args.cache_size,
    )


def _print_json(payload: object) -> None:
    """Write one JSON document per line to stdout."""
    print(json.dumps(payload))


def _run_query(service: WaterDetectionService, coords: list[float]) -> None:
    """Classify LON LAT pairs in order and print one result per line."""
    async def _classify_all() -> None:
        for lon, lat in zip(coords[0::2], coords[1::2]):
            category = await service.get_water_type(lon, lat)
            _print_json(
                {"lon": lon, "lat": lat, "category": category.value, "water": category.is_water}
            )

    asyncio.run(_classify_all())


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entrypoint and return an exit code."""
    parser = argparse.ArgumentParser(
        prog="waterlayer",
        description="Water layer point classification",
    )
    parser.add_argument("--version", action="version", version=__version__)
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--debug",
        action="store_true",
        help="Log tile loads, evictions and skipped files.",
    )
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON on stderr.",
    )
    parser.add_argument(
        "--log-file",
        help="Optional path for JSON log output.",
    )
    parser.add_argument("--config", help="Path to a JSON service config file.")
    parser.add_argument("--data-dir", help="Directory scanned for water layer tiles.")
    parser.add_argument("--tile-size", type=float, help="Tile size in degrees.")
    parser.add_argument("--cache-size", type=int, help="Maximum number of decoded tiles.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_index_parser(subparsers)
    _add_query_parser(subparsers)
    _add_preload_parser(subparsers)
    _add_stats_parser(subparsers)
    _add_version_parser(subparsers)

    args = parser.parse_args(argv)
    log_file_value = getattr(args, "log_file", None)
    configure_logging(
        LogOptions(
            level=level_from_flags(debug=args.debug, quiet=args.quiet),
            log_file=Path(log_file_value) if log_file_value else None,
            json_console=bool(args.log_json),
        )
    )

    if args.command == "version":
        print(__version__)
        return 0
    if args.command == "query" and len(args.coords) % 2:
        parser.error("query expects LON LAT pairs")

    try:
        config = _config_from_args(args)
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 1

    service = WaterDetectionService(config)
    service.initialize()

    if args.command == "index":
        entries = service.catalog()
        _print_json(
            {"tileCount": len(entries), "tiles": [entry.to_dict() for entry in entries]}
        )
        return 0
    if args.command == "query":
        _run_query(service, args.coords)
        return 0
    if args.command == "preload":
        loaded = asyncio.run(
            service.preload_tiles(args.min_lon, args.min_lat, args.max_lon, args.max_lat)
        )
        _print_json({"loaded": loaded, **service.get_stats()})
        return 0
    if args.command == "stats":
        _print_json(
            {
                **service.get_stats(),
                "hasData": service.has_data(),
                "initialized": service.is_initialized(),
            }
        )
        return 0
    parser.error(f"Unknown command: {args.command}")
    return 2
