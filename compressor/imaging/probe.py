import base64
import binascii
from io import BytesIO
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener
from ..core.errors import DecodeError
from ..core.models import ProbedMetadata

"""Header-only inspection of uploaded image buffers.
"""

# Lets Image.open read HEIC/HEIF straight from iPhone uploads
register_heif_opener()

DATA_URI_MARKER = ";base64,"
URL_SAFE_TO_STANDARD = str.maketrans("-_", "+/")


def decode_base64(raw: str) -> bytes:
    """Strip an optional data-URI prefix and decode the base64 payload.

    Browsers and mobile clients send both the standard and the URL-safe
    alphabet, with or without `=` padding; all of them are accepted.
    """
    payload = raw.split(DATA_URI_MARKER)[-1] if DATA_URI_MARKER in raw else raw
    payload = "".join(payload.split()).translate(URL_SAFE_TO_STANDARD)
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid_base64: {e}") from e
    if not data:
        raise DecodeError("empty_image_payload")
    return data


def probe(buffer: bytes) -> ProbedMetadata:
    """Report format and dimensions without decoding pixel data.

    `Image.open` is lazy: it parses the container header and stops there,
    so this stays cheap even for large photos.
    """
    if not buffer:
        raise DecodeError("empty_image_payload")
    try:
        with Image.open(BytesIO(buffer)) as img:
            width, height = img.size
            fmt = (img.format or "").lower()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"unrecognized_image: {e}") from e
    if not fmt:
        raise DecodeError("unrecognized_image")
    return ProbedMetadata(format=fmt, width=width, height=height)
