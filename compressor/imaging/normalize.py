import logging
from io import BytesIO
from PIL import Image
from ..core.errors import EncodeError

logger = logging.getLogger(__name__)

# Acquisition formats that the encoders below cannot take as input directly
CAMERA_NATIVE_FORMATS = {"heic", "heif", "avif"}


def needs_normalization(probed_format: str) -> bool:
    return probed_format.lower() in CAMERA_NATIVE_FORMATS


def normalize(buffer: bytes, probed_format: str, quality: int) -> bytes:
    """Re-encode camera-native buffers (HEIC/HEIF) to baseline JPEG.

    Any other format is returned untouched, as the same object.
    """
    if not needs_normalization(probed_format):
        return buffer

    logger.info("Converting %s to JPEG", probed_format.upper())
    try:
        with Image.open(BytesIO(buffer)) as img:
            rgb = img.convert("RGB")
        out = BytesIO()
        rgb.save(out, format="JPEG", quality=quality)
    except (Image.DecompressionBombError, OSError, ValueError) as e:
        raise EncodeError(f"normalize_failed: {e}") from e
    return out.getvalue()
