from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.models import ElementResult
from mapcapture.features.outline.logic import apply_outline


class OutlineGenerator:
    """
    Draws the element's outline ring around its recolored capture.
    """

    def process(self, result: ElementResult) -> ElementResult:
        spec = result.spec
        source = result.buffer
        if spec.outline_width == 0:
            return result.with_outlined(source)
        outlined = apply_outline(source.data, spec.outline_color, spec.outline_width)
        return result.with_outlined(PixelBuffer(outlined))
