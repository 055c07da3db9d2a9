from typing import Optional
from io import BytesIO
from PIL import Image
from ..core.errors import EncodeError, UnsupportedFormatError
from ..core.models import ResizeConfig

FORMAT_ALIASES = {
    "jpeg": "jpeg",
    "jpg": "jpeg",
    "png": "png",
}

CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
}

# Modes the PNG writer accepts as-is; everything else goes through RGB(A)
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


def canonical_format(fmt: Optional[str]) -> str:
    """Map a requested output format to `jpeg` or `png`."""
    canonical = FORMAT_ALIASES.get((fmt or "").strip().lower())
    if canonical is None:
        raise UnsupportedFormatError(f"unsupported_output_format: {fmt!r}")
    return canonical


def content_type_for(fmt: str) -> str:
    return CONTENT_TYPES[canonical_format(fmt)]


def _save_jpeg(img: Image.Image, out: BytesIO, quality: int) -> None:
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    # optimize + progressive is the closest Pillow gets to mozjpeg's defaults
    img.save(out, format="JPEG", quality=quality, optimize=True, progressive=True)


def _save_png(img: Image.Image, out: BytesIO) -> None:
    if img.mode not in PNG_MODES:
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
    img.save(out, format="PNG", optimize=True, compress_level=9)


def encode(
    buffer: bytes,
    resize_target: Optional[ResizeConfig],
    output_format: str,
    quality: int,
) -> bytes:
    """Resize (fit-inside) when planned, then compress to `output_format`.

    PNG output is lossless at maximum compression effort and ignores
    `quality`. Unknown formats raise `UnsupportedFormatError` before the
    buffer is even opened.
    """
    fmt = canonical_format(output_format)
    try:
        with Image.open(BytesIO(buffer)) as img:
            img.load()
            if resize_target is not None:
                # thumbnail keeps the aspect ratio and never upscales
                img.thumbnail((resize_target.width, resize_target.height), Image.Resampling.LANCZOS)
            out = BytesIO()
            if fmt == "jpeg":
                _save_jpeg(img, out, quality)
            else:
                _save_png(img, out)
    except (Image.DecompressionBombError, OSError, ValueError) as e:
        raise EncodeError(f"encode_failed: {e}") from e
    return out.getvalue()
