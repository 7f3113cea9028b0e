"""ImageTransport abstract base class.

Defines the contract between the ingestor and the network. The ingestor
never talks to an HTTP library directly; it asks a transport for the
bytes behind a URL and receives either a ``FetchedImage`` or a
``FetchError``.

Concrete transports:
    ``HttpxTransport``: production transport built on ``httpx.Client``.

Tests substitute a small in-memory transport to count network calls.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from kml_mapsite.models.image import FetchedImage


class ImageTransport(abc.ABC):
    """Abstract base class for image transports.

    Implementations must be safe to call from several threads at once
    when the ingestor runs with ``max_workers > 1``.

    Example usage::

        with HttpxTransport.from_config(config) as transport:
            image = transport.get("https://example.org/photo.png")
    """

    @property
    def name(self) -> str:
        """Short transport name for log lines."""
        return type(self).__name__

    @abc.abstractmethod
    def get(self, url: str) -> FetchedImage:
        """Fetch *url* and return the response body.

        Args:
            url: Absolute HTTP(S) URL.

        Returns:
            A ``FetchedImage`` for a 2xx response.

        Raises:
            FetchError: On timeout, connection failure, too many
                redirects, or a non-2xx status.
        """

    def close(self) -> None:  # noqa: B027
        """Release pooled connections. Default: nothing to release."""

    def __enter__(self) -> ImageTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
