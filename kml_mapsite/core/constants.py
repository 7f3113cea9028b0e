"""Shared pipeline constants: single source of truth.

Centralises image bounds, recognised file extensions, HTTP headers and
the feature property names used by the map site.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Storage layout
# ---------------------------------------------------------------------------

DEFAULT_IMAGES_DIR: str = "assets/data/images"
"""Directory holding every cached image. Flat, no manifest."""

DEFAULT_GEOJSON_PATH: str = "assets/data/features.geojson"
"""Where the site expects the final feature collection."""

DEFAULT_HASH_LENGTH: int = 9
"""Number of hex characters of the URL digest used as the filename stem."""

# ---------------------------------------------------------------------------
# Image normalisation
# ---------------------------------------------------------------------------

MAX_IMAGE_WIDTH: int = 1200
"""Maximum stored width in pixels."""

MAX_IMAGE_HEIGHT: int = 800
"""Maximum stored height in pixels."""

JPEG_QUALITY: int = 85
"""Pillow JPEG quality for every re-encoded image."""

JPEG_EXTENSION: str = ".jpg"
"""Extension of every successfully transcoded image."""

DEFAULT_EXTENSION: str = JPEG_EXTENSION
"""Guessed extension when the URL path carries no recognised suffix."""

RECOGNISED_EXTENSIONS: tuple[str, ...] = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".bmp",
    ".svg",
)

JPEG_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg"})
"""Guessed extensions that already name the normalised format."""

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

DEFAULT_USER_AGENT: str = "Mozilla/5.0 (compatible; Jekyll Map Downloader)"
ACCEPT_HEADER: str = "image/*,*/*"
DEFAULT_REQUEST_TIMEOUT_S: float = 30.0
DEFAULT_MAX_REDIRECTS: int = 5

# ---------------------------------------------------------------------------
# GeoJSON features
# ---------------------------------------------------------------------------

DEFAULT_IMAGE_PROPERTY: str = "imagens"
"""Feature property carrying the image list, as written by the extractors."""

DEFAULT_COLLECTION_NAME: str = "Features Layer"

CRS84_URN: str = "urn:ogc:def:crs:OGC:1.3:CRS84"
