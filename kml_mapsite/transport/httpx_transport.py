"""httpx-backed image transport.

Issues a single GET per call with:

- a bounded timeout (default 30 s),
- redirect following capped at ``max_redirects`` hops (default 5),
- an explicit ``User-Agent`` and ``Accept: image/*,*/*``.

Every failure mode (timeout, DNS/connection error, redirect loop,
non-2xx status, malformed URL) surfaces as ``FetchError`` so the
ingestor can treat it as a per-URL skip.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from kml_mapsite.core.constants import (
    ACCEPT_HEADER,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_USER_AGENT,
)
from kml_mapsite.core.exceptions import FetchError
from kml_mapsite.models.image import FetchedImage
from kml_mapsite.transport.base import ImageTransport

if TYPE_CHECKING:
    from kml_mapsite.core.config import IngestConfig

logger = logging.getLogger(__name__)


class HttpxTransport(ImageTransport):
    """Fetch images with a shared ``httpx.Client``.

    The client keeps a connection pool across calls; ``httpx.Client``
    may be shared between threads, so one transport serves a whole
    concurrent batch.

    Args:
        timeout_s: Per-request timeout in seconds.
        max_redirects: Maximum redirect hops.
        user_agent: ``User-Agent`` header value.
        transport: Optional ``httpx.BaseTransport`` (e.g.
            ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            max_redirects=max_redirects,
            headers={"User-Agent": user_agent, "Accept": ACCEPT_HEADER},
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: IngestConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> HttpxTransport:
        """Build a transport from the pipeline configuration."""
        return cls(
            timeout_s=config.request_timeout_s,
            max_redirects=config.max_redirects,
            user_agent=config.user_agent,
            transport=transport,
        )

    def get(self, url: str) -> FetchedImage:
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as exc:
            msg = f"Timed out fetching {url}: {exc}"
            raise FetchError(url, msg) from exc
        except httpx.TooManyRedirects as exc:
            msg = f"Too many redirects fetching {url}: {exc}"
            raise FetchError(url, msg) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            msg = f"Request failed for {url}: {exc}"
            raise FetchError(url, msg) from exc

        if not response.is_success:
            msg = f"HTTP {response.status_code} fetching {url}"
            raise FetchError(url, msg, status_code=response.status_code)

        logger.debug(
            "Fetched | url=%s | status=%d | bytes=%d | redirects=%d",
            url,
            response.status_code,
            len(response.content),
            len(response.history),
        )

        return FetchedImage(
            url=url,
            content=response.content,
            content_type=response.headers.get("Content-Type", ""),
            status_code=response.status_code,
        )

    def close(self) -> None:
        self._client.close()
