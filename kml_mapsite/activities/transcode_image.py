"""Transcode image activity: normalise downloaded bytes into a web JPEG.

Operations (in order):
1. **Decode** with Pillow (first frame of animated formats).
2. **Orient** according to the EXIF orientation tag.
3. **Downscale** to fit within ``max_width`` x ``max_height``,
   preserving aspect ratio. Images already within bounds are never
   upscaled.
4. **Flatten** transparency onto a white background.
5. **Encode** as JPEG at a fixed quality. JPEG input is re-encoded too,
   so every stored image has the same format and bounds.

Anything Pillow cannot decode (corrupt bytes, SVG, truncated files,
decompression bombs) raises ``DecodeError``; the ingestor then keeps
the original bytes instead.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from kml_mapsite.core.constants import JPEG_QUALITY, MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from kml_mapsite.core.exceptions import DecodeError
from kml_mapsite.models.image import TranscodedImage

logger = logging.getLogger("kml_mapsite.activities.transcode_image")

_BACKGROUND_COLOUR = (255, 255, 255)


def transcode_image(
    content: bytes,
    *,
    max_width: int = MAX_IMAGE_WIDTH,
    max_height: int = MAX_IMAGE_HEIGHT,
    quality: int = JPEG_QUALITY,
) -> TranscodedImage:
    """Decode *content*, bound its dimensions and re-encode it as JPEG.

    Args:
        content: Raw image bytes as downloaded.
        max_width: Maximum output width in pixels.
        max_height: Maximum output height in pixels.
        quality: JPEG encoder quality.

    Returns:
        A ``TranscodedImage`` with the JPEG bytes and both sizes.

    Raises:
        DecodeError: If the bytes are not a decodable raster image or
            cannot be re-encoded.
    """
    if not content:
        raise DecodeError("Cannot transcode an empty response body")

    try:
        with Image.open(io.BytesIO(content)) as source:
            source.load()
            source_format = source.format or ""
            original_size = source.size

            image = ImageOps.exif_transpose(source)
            if image.width > max_width or image.height > max_height:
                image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

            rgb = _flatten_to_rgb(image)
            buffer = io.BytesIO()
            rgb.save(buffer, format="JPEG", quality=quality, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        msg = f"Not a decodable image: {exc}"
        raise DecodeError(msg) from exc
    except (OSError, ValueError, SyntaxError) as exc:
        # Truncated data and codec failures surface as OSError.
        msg = f"Image transcoding failed: {exc}"
        raise DecodeError(msg) from exc

    result = TranscodedImage(
        content=buffer.getvalue(),
        source_format=source_format,
        original_size=original_size,
        size=rgb.size,
    )
    if result.resized:
        logger.info(
            "Resized image | from=%dx%d | to=%dx%d",
            original_size[0],
            original_size[1],
            rgb.width,
            rgb.height,
        )
    return result


def _flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Return an RGB copy of *image*, compositing any alpha onto white."""
    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")

    if image.mode in ("RGBA", "LA", "PA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, _BACKGROUND_COLOUR)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    if image.mode != "RGB":
        return image.convert("RGB")
    return image
