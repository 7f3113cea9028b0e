"""Deterministic image identity and path generation.

Every cached image lives directly under the configured images directory:

    {images_dir}/{md5(url)[:hash_length]}{extension}

and is published as:

    {public_url_prefix}/{filename}

Engineering notes:
- Idempotent: the same URL string always yields the same identity.
- Case-sensitive: ``.../A.png`` and ``.../a.png`` are different images.
- The digest prefix is short and not collision-resistant at scale; it
  is sized for a curated map with hundreds of points, not millions.
"""

from __future__ import annotations

import hashlib
import re
from urllib.parse import urlsplit

from kml_mapsite.core.constants import DEFAULT_EXTENSION, DEFAULT_HASH_LENGTH
from kml_mapsite.models.image import ImageIdentity

_HTTP_URL_RE = re.compile(r"^https?://")
_EXTENSION_RE = re.compile(r"\.(jpe?g|png|gif|webp|bmp|svg)$", re.IGNORECASE)


def is_http_url(value: object) -> bool:
    """Return ``True`` for UTF-8 encodable strings starting with ``http://`` or ``https://``."""
    if not isinstance(value, str) or not _HTTP_URL_RE.match(value):
        return False
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates survive json.loads but cannot be hashed or sent.
        return False
    return True


def guess_extension(url: str) -> str:
    """Guess a file extension from the URL path suffix.

    Query strings and fragments are ignored. Falls back to ``".jpg"``
    when the path has no recognised image suffix or cannot be parsed.

    Args:
        url: Absolute image URL.

    Returns:
        Lowercase extension including the leading dot.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return DEFAULT_EXTENSION

    match = _EXTENSION_RE.search(path)
    if match is None:
        return DEFAULT_EXTENSION
    return "." + match.group(1).lower()


def url_digest(url: str, length: int = DEFAULT_HASH_LENGTH) -> str:
    """Return the first *length* hex characters of the URL's MD5 digest."""
    return hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest()[:length]


def derive_identity(url: str, *, hash_length: int = DEFAULT_HASH_LENGTH) -> ImageIdentity:
    """Build the ``ImageIdentity`` for *url*."""
    return ImageIdentity(digest=url_digest(url, hash_length), extension=guess_extension(url))


def build_public_path(filename: str, prefix: str) -> str:
    """Join a public prefix and a cache filename with exactly one slash."""
    return f"{prefix.rstrip('/')}/{filename}"
