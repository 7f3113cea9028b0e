"""Typed models for the image ingestion layer.

Defines the data structures exchanged between the ingestor, its
transport and the transcoder:

- ``ImageIdentity``: URL-derived cache key (digest prefix + extension)
- ``FetchedImage``: Raw HTTP response body and headers for one URL
- ``TranscodedImage``: Normalised JPEG bytes and dimensions
- ``ResolutionSource``: Which branch of ``resolve`` produced a result

Design notes:
- All models are frozen dataclasses for immutability.
- Identity is derived from the URL string, never the bytes: two URLs
  serving identical bytes are stored twice.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from kml_mapsite.core.constants import JPEG_EXTENSION, JPEG_EXTENSIONS, RECOGNISED_EXTENSIONS
from kml_mapsite.core.exceptions import PipelineError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, PipelineError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        PipelineError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ResolutionSource(enum.Enum):
    """How a URL was resolved.

    Values:
        MEMORY:      Answered from the per-run mapping.
        DISK:        A file from a previous run already existed.
        TRANSCODED:  Fetched and stored as a normalised JPEG.
        RAW:         Fetched, undecodable, stored byte-for-byte.
        ABSENT:      Invalid URL or fetch failure; nothing stored.
    """

    MEMORY = "memory"
    DISK = "disk"
    TRANSCODED = "transcoded"
    RAW = "raw"
    ABSENT = "absent"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImageIdentity:
    """Deterministic cache key for one image URL.

    Attributes:
        digest: Lowercase hex prefix of the URL's MD5 digest.
        extension: Provisional extension guessed from the URL path
            (``".jpg"`` when nothing recognisable was found).
    """

    digest: str
    extension: str

    def __post_init__(self) -> None:
        if not self.digest or any(c not in "0123456789abcdef" for c in self.digest):
            raise ModelValidationError(
                "ImageIdentity", "digest", self.digest, "must be non-empty lowercase hex"
            )
        if self.extension not in RECOGNISED_EXTENSIONS:
            raise ModelValidationError(
                "ImageIdentity",
                "extension",
                self.extension,
                f"must be one of {', '.join(RECOGNISED_EXTENSIONS)}",
            )

    @property
    def filename(self) -> str:
        """Filename under the guessed extension (initial fetch target)."""
        return f"{self.digest}{self.extension}"

    @property
    def jpeg_filename(self) -> str:
        """Filename with the extension rewritten to ``.jpg``."""
        return f"{self.digest}{JPEG_EXTENSION}"

    @property
    def transcoded_filename(self) -> str:
        """Definitive filename of a transcoded (JPEG) image.

        A guessed ``.jpg``/``.jpeg`` already names the output format and
        is kept; anything else is rewritten to ``.jpg``.
        """
        if self.extension in JPEG_EXTENSIONS:
            return self.filename
        return self.jpeg_filename


# ---------------------------------------------------------------------------
# Transport / transcoding payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FetchedImage:
    """Body of a successful (2xx) image response.

    Attributes:
        url: The requested URL.
        content: Raw response body.
        content_type: Declared ``Content-Type`` header (may be empty).
        status_code: HTTP status code.
    """

    url: str
    content: bytes
    content_type: str = ""
    status_code: int = 200

    def __post_init__(self) -> None:
        if not 200 <= self.status_code < 300:
            raise ModelValidationError(
                "FetchedImage", "status_code", self.status_code, "must be 2xx"
            )

    @property
    def looks_like_image(self) -> bool:
        """Whether the declared content type is ``image/*``."""
        return self.content_type.lower().startswith("image/")

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class TranscodedImage:
    """A normalised JPEG produced by ``transcode_image``.

    Attributes:
        content: Encoded JPEG bytes.
        source_format: Pillow format name of the input (``"PNG"``, ...).
        original_size: ``(width, height)`` of the decoded input.
        size: ``(width, height)`` of the output.
    """

    content: bytes
    source_format: str
    original_size: tuple[int, int]
    size: tuple[int, int]

    @property
    def resized(self) -> bool:
        return self.size != self.original_size
