from typing import Optional
from ..core.models import ProbedMetadata, ResizeConfig


def plan(probed: ProbedMetadata, resize: Optional[ResizeConfig]) -> Optional[ResizeConfig]:
    """Return the bounding box to shrink into, or None when the image already fits.

    Exceeding either dimension is enough to trigger a resize; images are
    never upscaled.
    """
    if resize is None:
        return None
    if probed.width > resize.width or probed.height > resize.height:
        return resize
    return None
