from typing import Optional
from mapcapture.domain.models import CameraPose, FrameConfig
from mapcapture.features.framing.logic import (
    validate_frame,
    compute_half_extent,
    compute_centroid,
)
from mapcapture.kernel.system.config import APP_CONFIG


class FramingCalculator:
    """
    Places an orthographic camera straight above the capture area.
    """

    def __init__(self, margin: Optional[float] = None, near_clip: Optional[float] = None):
        self.margin = APP_CONFIG.frame_margin if margin is None else float(margin)
        self.near_clip = APP_CONFIG.near_clip if near_clip is None else float(near_clip)

    def compute(self, frame: FrameConfig) -> CameraPose:
        pts = validate_frame(frame)

        cx, cy, cz = compute_centroid(pts)
        height = float(frame.render_height)

        return CameraPose(
            position=(cx, cy + height, cz),
            target=(cx, cy, cz),
            half_extent=compute_half_extent(pts, self.margin),
            near_clip=self.near_clip,
            far_clip=height * 2.0,
        )
