#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/utils/images.py
"""Image sniffing and measurement utilities.

Format detection relies on magic bytes rather than file extensions or the
server's content type; dimensions are read with Pillow.

"""

from __future__ import annotations

import io
import logging
import posixpath
from typing import NamedTuple, Optional
from urllib.parse import unquote, urlsplit

from mimetree.constants import DEPS_IMAGE
from mimetree.utils.decorators import requires_dependencies

logger = logging.getLogger(__name__)

# EXIF tag holding the orientation flag
_EXIF_ORIENTATION = 0x0112


class ImageType(NamedTuple):
    """Detected image type."""

    ext: str
    mime: str


class ImageSize(NamedTuple):
    """Pixel dimensions and EXIF orientation of an image."""

    width: Optional[int]
    height: Optional[int]
    orientation: Optional[int] = None


_MIME_BY_EXT = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "ico": "image/x-icon",
    "svg": "image/svg+xml",
}


def detect_image_format_from_bytes(data: bytes, max_bytes: int = 256) -> str | None:
    r"""Detect image format from file content using magic bytes.

    Parameters
    ----------
    data : bytes
        Image file content
    max_bytes : int, default 256
        Number of bytes to examine when looking for an ``<svg`` root

    Returns
    -------
    str or None
        Image format (lowercase extension without dot) or None if unrecognized

    Notes
    -----
    Supported formats and their magic byte signatures:

    - **PNG**: Starts with `\x89PNG\r\n\x1a\n`
    - **JPEG**: Starts with `\xff\xd8\xff`
    - **GIF**: Starts with `GIF87a` or `GIF89a`
    - **WebP**: Contains `WEBP` at offset 8
    - **BMP**: Starts with `BM`
    - **TIFF**: Starts with `II*\x00` (little-endian) or `MM\x00*` (big-endian)
    - **ICO**: Starts with `\x00\x00\x01\x00`
    - **SVG**: Starts with `<svg`, or `<?xml` followed by an `<svg` element

    """
    if not data or len(data) < 4:
        return None

    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"

    if data.startswith(b"\xff\xd8\xff"):
        return "jpg"

    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "gif"

    if len(data) >= 12 and data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"

    if data.startswith(b"BM"):
        return "bmp"

    if data.startswith(b"II*\x00") or data.startswith(b"MM\x00*"):
        return "tiff"

    if data.startswith(b"\x00\x00\x01\x00"):
        return "ico"

    head = data[:max_bytes].lstrip()
    if head.startswith(b"<svg"):
        return "svg"
    if head.startswith(b"<?xml") and b"<svg" in head:
        return "svg"

    return None


def detect_image_type(data: bytes) -> Optional[ImageType]:
    """Return the extension and MIME type of image bytes, or None for non-images."""
    ext = detect_image_format_from_bytes(data)
    if ext is None:
        return None
    return ImageType(ext=ext, mime=_MIME_BY_EXT[ext])


@requires_dependencies("image", DEPS_IMAGE)
def read_image_size(data: bytes) -> ImageSize:
    """Read width, height and EXIF orientation with Pillow.

    Only the header is needed for the dimensions; formats Pillow cannot
    identify (SVG, garbage) yield an all-None size. Orientation is None when
    the EXIF block cannot be read.
    """
    from PIL import Image, UnidentifiedImageError

    try:
        img = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not read image dimensions: {e}")
        return ImageSize(width=None, height=None)

    with img:
        width, height = img.size
        try:
            orientation = img.getexif().get(_EXIF_ORIENTATION)
        except (EOFError, OSError, SyntaxError, ValueError) as e:
            logger.debug(f"Could not read EXIF orientation: {e}")
            orientation = None
    return ImageSize(width=width, height=height, orientation=orientation)


def filename_from_url(url: str, ext: Optional[str] = None) -> str:
    """Derive a filename from a URL path, forcing the detected extension.

    Examples
    --------
        >>> filename_from_url("https://example.com/img/photo.jpeg?size=2", "jpg")
        'photo.jpg'
        >>> filename_from_url("https://example.com/img/logo.png", "png")
        'logo.png'

    """
    name = posixpath.basename(unquote(urlsplit(url).path)) or urlsplit(url).netloc or url

    if ext and not name.lower().endswith(f".{ext}"):
        stem, dot, _ = name.rpartition(".")
        if dot and stem:
            name = stem
        name = f"{name}.{ext}"

    return name
