"""Point classification against OSM Water Layer GeoTIFF tiles."""

from waterlayer.classify import WaterCategory, classify, pixel_for, sample
from waterlayer.config import ServiceConfig, load_config
from waterlayer.service import ServiceState, WaterDetectionService

__version__ = "0.1.0"

__all__ = [
    "ServiceConfig",
    "ServiceState",
    "WaterCategory",
    "WaterDetectionService",
    "__version__",
    "classify",
    "load_config",
    "pixel_for",
    "sample",
]
