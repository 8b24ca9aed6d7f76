from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

import pytest  # noqa: E402

from waterlayer import config as service_config  # noqa: E402


def pytest_collection_modifyitems(config, items) -> None:
    """Skip integration tests unless explicitly selected via -m integration."""
    markexpr = config.option.markexpr or ""
    if "integration" in markexpr:
        return
    skip_integration = pytest.mark.skip(reason="integration tests run only with -m integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def _isolate_service_env(monkeypatch) -> None:
    """Prevent local waterlayer settings from bleeding into tests."""
    for name in (
        service_config.ENV_CONFIG,
        service_config.ENV_DATA_DIR,
        service_config.ENV_TILE_SIZE,
        service_config.ENV_MAX_CACHED_TILES,
    ):
        monkeypatch.delenv(name, raising=False)


class TickClock:
    """Deterministic clock advancing by one on every read."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture()
def tick_clock() -> TickClock:
    return TickClock()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Undo handlers installed by configure_logging during a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
