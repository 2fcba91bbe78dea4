from typing import Sequence, Union
from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.errors import SizeMismatch
from mapcapture.domain.models import BlendPolicy
from mapcapture.domain.types import Dimensions, ImageBuffer
from mapcapture.features.composite.logic import blend_additive, composite_first_hit


class Compositor:
    """
    Merges per-element buffers into the final map.
    """

    def __init__(self, policy: BlendPolicy = BlendPolicy.OVERLAP_ORDERED):
        self.policy = BlendPolicy(policy)

    def process(
        self,
        buffers: Sequence[Union[PixelBuffer, ImageBuffer]],
        output_size: Dimensions,
    ) -> PixelBuffer:
        w, h = output_size
        if w <= 0 or h <= 0:
            raise SizeMismatch(f"Output size must be positive, got {w}x{h}")

        layers = [b.data if isinstance(b, PixelBuffer) else b for b in buffers]

        if self.policy == BlendPolicy.BLEND:
            return PixelBuffer(blend_additive(layers, (w, h)))
        return PixelBuffer(composite_first_hit(layers, (w, h)))
