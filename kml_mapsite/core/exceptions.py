"""Unified pipeline exception taxonomy.

Provides a shared base exception hierarchy for the ingestor, its
transport and the feature pipeline. Every domain exception inherits
from ``PipelineError`` and carries structured context fields that
enable consistent skip/abort decisions and operator diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``  : input/contract violations, never retryable.
- ``TransientError``   : temporary failures (network, throttle), retryable.
- ``PermanentError``   : unrecoverable failures, not retryable.
- ``ContractError``    : payload/schema drift between stages, never retryable.

Per-URL failures (``InvalidUrlError``, ``FetchError``, ``DecodeError``)
are absorbed by the ingestor. ``WriteError`` is the one failure that
aborts a whole batch: it reports a broken environment (disk full,
permissions), not bad data.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"fetch_image"``, ``"transcode_image"``).
        code: Machine-readable error code (e.g. ``"IMAGE_FETCH_FAILED"``).
        retryable: Whether a later run may succeed where this one failed.
        correlation_id: Request/batch correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """Payload or schema drift between pipeline stages. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Image ingestion errors
# ---------------------------------------------------------------------------


class InvalidUrlError(ValidationError):
    """The image reference is not an absolute HTTP(S) URL."""

    default_stage = "resolve_image"
    default_code = "INVALID_IMAGE_URL"


class FetchError(TransientError):
    """The image could not be fetched (network, timeout, non-2xx).

    Attributes:
        url: The URL that failed.
        status_code: HTTP status when a response was received, else ``None``.
    """

    default_stage = "fetch_image"
    default_code = "IMAGE_FETCH_FAILED"

    def __init__(self, url: str, message: str, *, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class DecodeError(PermanentError):
    """Fetched bytes could not be decoded or re-encoded as an image."""

    default_stage = "transcode_image"
    default_code = "IMAGE_DECODE_FAILED"


class WriteError(PermanentError):
    """The image cache directory could not be written.

    Attributes:
        path: Filesystem path the write targeted.
    """

    default_stage = "store_image"
    default_code = "IMAGE_WRITE_FAILED"

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)
