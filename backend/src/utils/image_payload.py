"""
Decoding of inline image payloads.

Clients send photos as base64 text, optionally wrapped in a data URI
("data:image/png;base64,...") as produced by FileReader.readAsDataURL.
"""

import base64
import binascii
import re
from typing import Optional, Tuple

from core.config import MAX_UPLOAD_SIZE_MB
from core.exceptions import ValidationError

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[\w-]+=[^;,]*)*;base64,", re.IGNORECASE)


def decode_image_data(data: str, field: str = "image") -> Tuple[bytes, Optional[str]]:
    """
    Decode a base64 image payload.

    Returns:
        (raw bytes, mime type from the data URI prefix if there was one)

    Raises:
        ValidationError: Empty, undecodable, or larger than MAX_UPLOAD_SIZE_MB
    """
    if not data or not data.strip():
        raise ValidationError("No file provided", field=field)

    mime_type: Optional[str] = None
    match = _DATA_URI_RE.match(data)
    if match:
        mime_type = match.group("mime")
        data = data[match.end():]

    try:
        raw = base64.b64decode("".join(data.split()), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data is not valid base64", field=field)

    if not raw:
        raise ValidationError("No file provided", field=field)
    if len(raw) > MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationError(f"Image exceeds {MAX_UPLOAD_SIZE_MB} MB", field=field)
    return raw, mime_type
