"""Image pipeline configuration loaded from environment variables.

All configuration values have defaults matching what the map site
expects (``assets/data/images``, 1200x800 JPEG at quality 85).

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range. CLI overrides go through ``with_overrides()``,
    which validates again.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass

from kml_mapsite.core.constants import (
    DEFAULT_HASH_LENGTH,
    DEFAULT_IMAGES_DIR,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    JPEG_QUALITY,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
)
from kml_mapsite.core.exceptions import PipelineError


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class IngestConfig:
    """Immutable image ingestion configuration.

    Attributes:
        images_dir: Directory holding the cached images.
        public_url_prefix: Prefix of the references written into the
            GeoJSON. Empty means ``"/" + images_dir``.
        max_image_width: Maximum stored width in pixels.
        max_image_height: Maximum stored height in pixels.
        jpeg_quality: JPEG encoder quality (1-95).
        request_timeout_s: Per-request network timeout in seconds.
        max_redirects: Maximum redirect hops per request.
        user_agent: ``User-Agent`` header sent with every request.
        max_workers: Concurrent fetches per batch (1 = sequential).
        hash_length: Hex characters of the URL digest used in filenames.
    """

    images_dir: str = DEFAULT_IMAGES_DIR
    public_url_prefix: str = ""
    max_image_width: int = MAX_IMAGE_WIDTH
    max_image_height: int = MAX_IMAGE_HEIGHT
    jpeg_quality: int = JPEG_QUALITY
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    user_agent: str = DEFAULT_USER_AGENT
    max_workers: int = 1
    hash_length: int = DEFAULT_HASH_LENGTH

    @classmethod
    def from_env(cls) -> IngestConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``MAPSITE_JPEG_QUALITY=high``).
        """
        config = cls(
            images_dir=os.getenv("MAPSITE_IMAGES_DIR", DEFAULT_IMAGES_DIR),
            public_url_prefix=os.getenv("MAPSITE_PUBLIC_URL_PREFIX", ""),
            max_image_width=int(os.getenv("MAPSITE_MAX_IMAGE_WIDTH", str(MAX_IMAGE_WIDTH))),
            max_image_height=int(os.getenv("MAPSITE_MAX_IMAGE_HEIGHT", str(MAX_IMAGE_HEIGHT))),
            jpeg_quality=int(os.getenv("MAPSITE_JPEG_QUALITY", str(JPEG_QUALITY))),
            request_timeout_s=float(
                os.getenv("MAPSITE_REQUEST_TIMEOUT_S", str(DEFAULT_REQUEST_TIMEOUT_S))
            ),
            max_redirects=int(os.getenv("MAPSITE_MAX_REDIRECTS", str(DEFAULT_MAX_REDIRECTS))),
            user_agent=os.getenv("MAPSITE_USER_AGENT", DEFAULT_USER_AGENT),
            max_workers=int(os.getenv("MAPSITE_MAX_WORKERS", "1")),
            hash_length=int(os.getenv("MAPSITE_HASH_LENGTH", str(DEFAULT_HASH_LENGTH))),
        )
        _validate(config)
        return config

    def with_overrides(self, **changes: object) -> IngestConfig:
        """Return a validated copy with *changes* applied.

        ``None`` values are ignored so unset CLI flags keep the
        environment/default value.
        """
        applied = {key: value for key, value in changes.items() if value is not None}
        config = dataclasses.replace(self, **applied)  # type: ignore[arg-type]
        _validate(config)
        return config

    @property
    def resolved_public_prefix(self) -> str:
        """Public reference prefix without a trailing slash."""
        if self.public_url_prefix:
            return self.public_url_prefix.rstrip("/")
        return "/" + self.images_dir.replace(os.sep, "/").strip("/").removeprefix("./")


def _validate(config: IngestConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.images_dir:
        raise ConfigValidationError("MAPSITE_IMAGES_DIR", config.images_dir, "must not be empty")

    if config.max_image_width <= 0:
        raise ConfigValidationError(
            "MAPSITE_MAX_IMAGE_WIDTH",
            config.max_image_width,
            "must be > 0 (pixels)",
        )

    if config.max_image_height <= 0:
        raise ConfigValidationError(
            "MAPSITE_MAX_IMAGE_HEIGHT",
            config.max_image_height,
            "must be > 0 (pixels)",
        )

    if not 1 <= config.jpeg_quality <= 95:
        raise ConfigValidationError(
            "MAPSITE_JPEG_QUALITY",
            config.jpeg_quality,
            "must be between 1 and 95",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "MAPSITE_REQUEST_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )

    if not 0 <= config.max_redirects <= 20:
        raise ConfigValidationError(
            "MAPSITE_MAX_REDIRECTS",
            config.max_redirects,
            "must be between 0 and 20 (hops)",
        )

    if not config.user_agent:
        raise ConfigValidationError("MAPSITE_USER_AGENT", config.user_agent, "must not be empty")

    if not 1 <= config.max_workers <= 64:
        raise ConfigValidationError(
            "MAPSITE_MAX_WORKERS",
            config.max_workers,
            "must be between 1 and 64",
        )

    if not 6 <= config.hash_length <= 32:
        raise ConfigValidationError(
            "MAPSITE_HASH_LENGTH",
            config.hash_length,
            "must be between 6 and 32 (hex characters of an MD5 digest)",
        )
