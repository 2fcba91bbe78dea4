from typing import Sequence
import numpy as np
from mapcapture.domain.errors import SizeMismatch
from mapcapture.domain.types import ImageBuffer, Dimensions, CHANNELS, ALPHA
from mapcapture.kernel.image.validation import ensure_image
from mapcapture.kernel.system.performance import time_function


def check_sizes(layers: Sequence[ImageBuffer], output_size: Dimensions) -> None:
    w, h = output_size
    for i, layer in enumerate(layers):
        lh, lw = layer.shape[:2]
        if (lw, lh) != (w, h):
            raise SizeMismatch(
                f"Layer {i} is {lw}x{lh}, output is {w}x{h}"
            )


@time_function
def blend_additive(layers: Sequence[ImageBuffer], output_size: Dimensions) -> ImageBuffer:
    """
    Per-pixel sum of every layer, RGBA included. Not clamped: overlapping
    opaque layers can exceed 1.0 and are returned as such.
    """
    check_sizes(layers, output_size)
    w, h = output_size
    out = np.zeros((h, w, CHANNELS), dtype=np.float32)
    for layer in layers:
        out += ensure_image(layer)
    return out


@time_function
def composite_first_hit(layers: Sequence[ImageBuffer], output_size: Dimensions) -> ImageBuffer:
    """
    Each pixel takes the color of the first layer (in sequence order) whose
    alpha there is > 0. Pixels no layer paints stay transparent.
    """
    check_sizes(layers, output_size)
    w, h = output_size
    out = np.zeros((h, w, CHANNELS), dtype=np.float32)
    filled = np.zeros((h, w), dtype=bool)
    for layer in layers:
        layer = ensure_image(layer)
        take = (layer[:, :, ALPHA] > 0) & ~filled
        out[take] = layer[take]
        filled |= take
    return out
