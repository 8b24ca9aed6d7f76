"""Schema validation helpers for configuration files."""

from __future__ import annotations

import json
from importlib import resources
from typing import Any, Mapping

import jsonschema


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema bundled in the package."""
    with resources.files("waterlayer.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_service_config(payload: Mapping[str, Any]) -> None:
    """Validate a service config payload against the schema."""
    schema = _load_schema("service_config.schema.json")
    jsonschema.validate(dict(payload), schema)
