import numpy as np
from mapcapture.domain.models import RecolorMode
from mapcapture.domain.types import ImageBuffer, RGBA, ALPHA
from mapcapture.kernel.image.validation import ensure_image


def apply_recolor(img: ImageBuffer, mode: RecolorMode, flat_color: RGBA) -> ImageBuffer:
    """
    Flat-fills or passes through the painted pixels of a capture.

    Pixels with alpha == 0 always come out as (0, 0, 0, 0), whatever the
    renderer left in their color channels. In flat mode the source alpha is
    kept so anti-aliased edges stay soft.
    """
    img = ensure_image(img)
    painted = img[:, :, ALPHA] > 0

    res = np.zeros_like(img)
    if mode == RecolorMode.USE_FLAT_COLOR:
        res[painted, :ALPHA] = np.asarray(flat_color, dtype=np.float32)[:ALPHA]
        res[painted, ALPHA] = img[painted, ALPHA]
    else:
        res[painted] = img[painted]
    return res
