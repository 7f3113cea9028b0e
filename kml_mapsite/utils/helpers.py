"""Shared helper functions used by the ingestor and the CLI."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

from kml_mapsite.core.exceptions import WriteError

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_file_size(size_bytes: int) -> str:
    """Render a byte count for log lines, e.g. ``"12.3 KB"``."""
    if size_bytes == 0:
        return "0 B"

    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        size /= 1024.0
        unit_index += 1
    return f"{size:.1f} {_SIZE_UNITS[unit_index]}"


def write_bytes_atomically(path: Path, content: bytes) -> None:
    """Write *content* to *path* through a sibling ``.tmp`` file.

    The final name only appears once the bytes are complete, so a
    crashed run never leaves a truncated file where the cache would
    treat it as a hit.

    Raises:
        WriteError: On any filesystem failure (disk full, permissions).
    """
    temp_path = path.with_name(path.name + ".tmp")
    try:
        temp_path.write_bytes(content)
        os.replace(temp_path, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write {path}: {exc}"
        raise WriteError(str(path), msg) from exc
