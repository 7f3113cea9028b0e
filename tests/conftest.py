"""Shared pytest fixtures for the map site image pipeline test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from kml_mapsite.core.config import IngestConfig
from tests.stubs import PUBLIC_PREFIX, StubTransport, make_image_bytes

# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def images_dir(tmp_path: Path) -> Path:
    """Empty image cache directory."""
    return tmp_path / "images"


@pytest.fixture()
def config(images_dir: Path) -> IngestConfig:
    """Sequential configuration writing under ``images_dir``."""
    return IngestConfig(images_dir=str(images_dir), public_url_prefix=PUBLIC_PREFIX)


@pytest.fixture()
def stub_transport() -> StubTransport:
    """Call-counting transport; unregistered URLs answer HTTP 404."""
    return StubTransport()


# ---------------------------------------------------------------------------
# Image fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def png_bytes() -> bytes:
    """A 100x80 PNG, within bounds."""
    return make_image_bytes(100, 80, fmt="PNG")


@pytest.fixture()
def large_png_bytes() -> bytes:
    """A 2000x1500 PNG, beyond the 1200x800 bounds."""
    return make_image_bytes(2000, 1500, fmt="PNG")
