from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.models import ElementResult
from mapcapture.features.recolor.logic import apply_recolor


class Recolorer:
    """
    Applies the element's texturing mode to its raw capture.
    """

    def process(self, result: ElementResult) -> ElementResult:
        spec = result.spec
        recolored = apply_recolor(result.raw.data, spec.recolor_mode, spec.flat_color)
        return result.with_recolored(PixelBuffer(recolored))
