"""Image ingestion activity: resolve remote image URLs to local copies.

``ImageIngestor.resolve(url)`` turns an external image URL into a stable
public reference to a file under the images directory, or ``None``.

Resolution order for one URL:
1. **Validate**: only ``http://`` / ``https://`` URLs are considered.
2. **Memory**: a URL already resolved in this run is answered from the
   in-process mapping without touching disk or network.
3. **Disk**: a file at ``{digest}{guessed ext}`` or ``{digest}.jpg`` from
   a previous run is reused. The directory listing is the cache index.
4. **Fetch** through the ``ImageTransport``.
5. **Transcode** to a bounded JPEG; on ``DecodeError`` the original
   bytes are stored verbatim under the guessed extension.

Failure semantics:
    Invalid URLs and fetch failures yield ``None`` for that URL only.
    Decode failures still store the bytes. ``WriteError`` (the images
    directory is unwritable) propagates and aborts the batch.

Concurrency:
    With ``max_workers > 1`` the batch fans out over a thread pool. A
    single-flight table (URL -> ``Future``) under a lock guarantees one
    fetch per URL per run; concurrent callers for the same URL wait for
    the first caller's result. Distinct URLs write disjoint paths.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from kml_mapsite.activities.transcode_image import transcode_image
from kml_mapsite.core.exceptions import DecodeError, FetchError, InvalidUrlError
from kml_mapsite.models.image import ResolutionSource
from kml_mapsite.utils.helpers import format_file_size, write_bytes_atomically
from kml_mapsite.utils.image_paths import build_public_path, derive_identity, is_http_url

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kml_mapsite.core.config import IngestConfig
    from kml_mapsite.models.image import FetchedImage, ImageIdentity
    from kml_mapsite.transport.base import ImageTransport

logger = logging.getLogger("kml_mapsite.activities.ingest_images")


class ImageIngestor:
    """Two-tier (memory + disk) image cache in front of an ``ImageTransport``.

    One instance corresponds to one pipeline run: the memory tier lives
    as long as the instance, the disk tier persists across runs.

    Args:
        config: Pipeline configuration (directory, bounds, workers).
        transport: Network transport used on cache misses.
    """

    def __init__(self, config: IngestConfig, transport: ImageTransport) -> None:
        self._config = config
        self._transport = transport
        self._images_dir = Path(config.images_dir)
        self._public_prefix = config.resolved_public_prefix

        # url -> Future[str | None]; completed and in-flight resolutions.
        self._results: dict[str, Future[str | None]] = {}
        self._lock = threading.Lock()

        self._stats_lock = threading.Lock()
        self._stats: dict[ResolutionSource, int] = dict.fromkeys(ResolutionSource, 0)

        self._images_dir.mkdir(parents=True, exist_ok=True)

    @property
    def images_dir(self) -> Path:
        return self._images_dir

    @property
    def stats(self) -> dict[str, int]:
        """Count of resolutions per ``ResolutionSource`` value."""
        with self._stats_lock:
            return {source.value: count for source, count in self._stats.items()}

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def resolve(self, url: str) -> str | None:
        """Resolve *url* to a public reference path, or ``None``.

        A ``None`` from a failed fetch is remembered for the rest of this
        ingestor's run; the URL is retried only by a new ingestor.

        Raises:
            WriteError: If the resolved image cannot be written to disk.
        """
        try:
            self._validate_url(url)
        except InvalidUrlError as exc:
            logger.debug("Skipping image reference | reason=%s", exc.message)
            self._count(ResolutionSource.ABSENT)
            return None

        with self._lock:
            future = self._results.get(url)
            owner = future is None
            if owner:
                future = Future()
                self._results[url] = future

        if not owner:
            result = future.result()
            self._count(ResolutionSource.MEMORY)
            logger.debug("Image resolved from memory | url=%s | path=%s", url, result)
            return result

        try:
            result = self._resolve_uncached(url)
        except BaseException as exc:
            with self._lock:
                self._results.pop(url, None)
            future.set_exception(exc)
            raise

        future.set_result(result)
        return result

    def resolve_batch(self, urls: Sequence[str]) -> list[str | None]:
        """Resolve every URL, preserving order and multiplicity.

        The result always has ``len(urls)`` entries. Per-URL failures
        appear as ``None``.

        Raises:
            WriteError: If the images directory becomes unwritable.
        """
        if not urls:
            return []

        start_time = time.monotonic()
        workers = min(self._config.max_workers, len(urls))
        logger.info("Processing image URLs | count=%d | workers=%d", len(urls), workers)

        if workers <= 1:
            results = [self.resolve(url) for url in urls]
        else:
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="image-ingest"
            ) as pool:
                results = list(pool.map(self.resolve, urls))

        resolved = sum(1 for result in results if result is not None)
        logger.info(
            "Image batch completed | resolved=%d/%d | images_dir=%s | duration=%.2fs",
            resolved,
            len(urls),
            self._images_dir,
            time.monotonic() - start_time,
        )
        return results

    def local_path(self, filename: str) -> Path:
        """Filesystem path of a cache filename."""
        return self._images_dir / filename

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_url(url: object) -> None:
        if not is_http_url(url):
            msg = f"Not an absolute http(s) URL: {url!r}"
            raise InvalidUrlError(msg)

    def _resolve_uncached(self, url: str) -> str | None:
        identity = derive_identity(url, hash_length=self._config.hash_length)

        existing = self._find_existing(identity)
        if existing is not None:
            self._count(ResolutionSource.DISK)
            logger.debug("Image already exists | url=%s | file=%s", url, existing)
            return build_public_path(existing, self._public_prefix)

        logger.info(
            "Downloading image | url=%s | file=%s | transport=%s",
            url,
            identity.filename,
            self._transport.name,
        )
        try:
            fetched = self._transport.get(url)
        except FetchError as exc:
            self._count(ResolutionSource.ABSENT)
            logger.warning(
                "Image download failed | url=%s | status=%s | error=%s",
                url,
                exc.status_code,
                exc.message,
            )
            return None

        if not fetched.looks_like_image:
            logger.warning(
                "Response does not look like an image | url=%s | content_type=%s",
                url,
                fetched.content_type or "<missing>",
            )

        return build_public_path(self._store(identity, fetched), self._public_prefix)

    def _find_existing(self, identity: ImageIdentity) -> str | None:
        """Return the filename of a previous run's file for *identity*."""
        for filename in (identity.filename, identity.jpeg_filename):
            if self.local_path(filename).is_file():
                return filename
        return None

    def _store(self, identity: ImageIdentity, fetched: FetchedImage) -> str:
        """Transcode and write *fetched*; fall back to raw bytes on decode failure.

        Returns:
            The filename written under the images directory.
        """
        try:
            transcoded = transcode_image(
                fetched.content,
                max_width=self._config.max_image_width,
                max_height=self._config.max_image_height,
                quality=self._config.jpeg_quality,
            )
        except DecodeError as exc:
            filename = identity.filename
            write_bytes_atomically(self.local_path(filename), fetched.content)
            self._count(ResolutionSource.RAW)
            logger.warning(
                "Failed to process image, saved original | url=%s | file=%s | size=%s | error=%s",
                fetched.url,
                filename,
                format_file_size(fetched.size_bytes),
                exc.message,
            )
            return filename

        filename = identity.transcoded_filename
        write_bytes_atomically(self.local_path(filename), transcoded.content)
        self._count(ResolutionSource.TRANSCODED)
        logger.info(
            "Image processed | url=%s | file=%s | format=%s | size=%dx%d | bytes=%s",
            fetched.url,
            filename,
            transcoded.source_format or "?",
            transcoded.size[0],
            transcoded.size[1],
            format_file_size(len(transcoded.content)),
        )
        return filename

    def _count(self, source: ResolutionSource) -> None:
        with self._stats_lock:
            self._stats[source] += 1
