"""
Image utilities for the Dodge & Burn Studio.

Provides functions for:
- Validating uploaded images before any remote call
- Converting between bytes and data URIs
- Swatch contrast helpers for extracted colors
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from studio.core.config import settings
from studio.core.errors import ParseFailure, ValidationError
from studio.core.messages import message

logger = logging.getLogger(__name__)

FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "JPG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


def sniff_mime_type(data: bytes) -> Optional[str]:
    """
    Identify the image format from its header bytes.

    Returns:
        The MIME type, or None when Pillow cannot identify the data

    Raises:
        ValidationError: if the header declares more pixels than Pillow
            will open
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img_format = img.format or ""
    except Image.DecompressionBombError as e:
        logger.warning(f"Rejected oversized image: {e}")
        raise ValidationError(message("too_many_pixels")) from e
    except (UnidentifiedImageError, OSError):
        return None
    return FORMAT_TO_MIME.get(img_format.upper())


def validate_upload(data: bytes, content_type: Optional[str]) -> str:
    """
    Check an uploaded image against the type and size constraints.

    Type is checked before size, size before content, so the user sees the
    most specific problem first.

    Args:
        data: Raw bytes of the uploaded file
        content_type: MIME type declared by the client

    Returns:
        The MIME type to send to the model

    Raises:
        ValidationError: with a localized, user-facing message
    """
    if content_type not in settings.ALLOWED_MIME_TYPES:
        raise ValidationError(message("invalid_type"))

    if len(data) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(message("too_large", limit_mb=limit_mb))

    if len(data) == 0:
        raise ValidationError(message("empty_file"))

    sniffed = sniff_mime_type(data)
    if sniffed is None:
        raise ValidationError(message("unreadable"))
    if sniffed != content_type:
        logger.warning(f"Declared type {content_type} but content is {sniffed}")
    if sniffed not in settings.ALLOWED_MIME_TYPES:
        raise ValidationError(message("invalid_type"))

    return sniffed


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode image bytes as a `data:<mime>;base64,<payload>` URI."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def parse_data_uri(uri: str) -> Tuple[bytes, str]:
    """
    Split a base64 data URI into raw bytes and MIME type.

    Raises:
        ParseFailure: if the URI is not a base64 data URI
    """
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ParseFailure(message("bad_enhanced"))

    mime_type = header[len("data:"):-len(";base64")]
    if not mime_type or not payload:
        raise ParseFailure(message("bad_enhanced"))

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ParseFailure(message("bad_enhanced"))

    return data, mime_type


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert '#RRGGBB' to an (r, g, b) tuple."""
    value = hex_color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def is_light_color(hex_color: str) -> bool:
    """
    Whether dark text reads better than light text on this color.

    Uses the perceived luminance formula; malformed hex counts as dark.
    """
    try:
        r, g, b = hex_to_rgb(hex_color)
    except ValueError:
        return False
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return luminance > 0.6
