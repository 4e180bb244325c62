from __future__ import annotations
from typing import Any, Optional, Tuple, Union
import base64
import binascii
import re

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URL = re.compile(r"^data:(?P<mime>[^;,]+)?(?:;[^,]*)?,", re.IGNORECASE)
_URLSAFE = str.maketrans("-_", "+/")


def normalize_mime_type(mime_type: Any) -> str:
    """Keep an ``image/*`` mime type, anything else becomes the default."""
    if isinstance(mime_type, str) and mime_type.startswith("image/"):
        return mime_type
    return DEFAULT_MIME_TYPE


def split_data_url(payload: str) -> Tuple[Optional[str], str]:
    """
    Split a ``data:<mime>;base64,<data>`` URL into its mime type and data.

    Plain base64 text is returned unchanged with no mime type.
    """
    match = _DATA_URL.match(payload)
    if not match:
        return None, payload
    return match.group("mime"), payload[match.end():]


def decode_base64_image(payload: str) -> bytes:
    """
    Decode base64 image text, with or without a data URL prefix.

    Whitespace, missing padding and the URL-safe alphabet are tolerated;
    anything else raises ValueError.
    """
    _, data = split_data_url(payload.strip())
    data = "".join(data.split()).translate(_URLSAFE)
    data += "=" * (-len(data) % 4)
    if not data:
        raise ValueError("Image payload is empty")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image payload is not valid base64: {e}") from e


def to_base64(image_data: Union[bytes, Any]) -> str:
    if isinstance(image_data, bytes):
        return base64.b64encode(image_data).decode('utf-8')

    # ImagePart and anything else exposing raw bytes
    data = getattr(image_data, "data", None)
    if isinstance(data, bytes):
        return base64.b64encode(data).decode('utf-8')

    raise ValueError(f"Unsupported image data type: {type(image_data)}")


def to_data_url(image_data: bytes, mime_type: str) -> str:
    return f"data:{normalize_mime_type(mime_type)};base64,{to_base64(image_data)}"
