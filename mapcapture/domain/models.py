import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.errors import InvalidFrame
from mapcapture.domain.types import Dimensions, RGBA, Vec3
from mapcapture.kernel.image.logic import parse_color, color_to_hex
from mapcapture.kernel.image.validation import validate_float, validate_int
from mapcapture.kernel.system.config import APP_CONFIG


class RecolorMode(str, Enum):
    USE_SOURCE_TEXTURE = "UseSourceTexture"
    USE_FLAT_COLOR = "UseFlatColor"


class BlendPolicy(str, Enum):
    BLEND = "Blend"
    OVERLAP_ORDERED = "OverlapOrdered"


@dataclass(frozen=True)
class ElementSpec:
    """
    One capturable object and how it is drawn on the map.
    """

    renderable: Any
    outline_width: int = 0
    outline_color: RGBA = (0.0, 0.0, 0.0, 1.0)
    recolor_mode: RecolorMode = RecolorMode.USE_SOURCE_TEXTURE
    flat_color: RGBA = (1.0, 1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        if isinstance(self.outline_width, bool) or not isinstance(self.outline_width, int):
            raise ValueError(f"outline_width must be an int, got {self.outline_width!r}")
        if self.outline_width < 0:
            raise ValueError(f"outline_width must be >= 0, got {self.outline_width}")

    @property
    def name(self) -> str:
        return str(getattr(self.renderable, "name", self.renderable))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "renderable": self.renderable,
            "outline_width": self.outline_width,
            "outline_color": color_to_hex(self.outline_color),
            "recolor_mode": self.recolor_mode.value,
            "flat_color": color_to_hex(self.flat_color),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementSpec":
        return cls(
            renderable=data.get("renderable"),
            outline_width=validate_int(data.get("outline_width"), 0),
            outline_color=parse_color(data.get("outline_color", "#000000")),
            recolor_mode=RecolorMode(data.get("recolor_mode", RecolorMode.USE_SOURCE_TEXTURE)),
            flat_color=parse_color(data.get("flat_color", "#FFFFFF")),
        )


@dataclass(frozen=True)
class ElementResult:
    """
    Per-run artifact for one element. Every stage returns a new instance, so
    the output of earlier stages stays available for inspection.
    """

    spec: ElementSpec
    raw: PixelBuffer
    recolored: Optional[PixelBuffer] = None
    outlined: Optional[PixelBuffer] = None

    @property
    def buffer(self) -> PixelBuffer:
        if self.outlined is not None:
            return self.outlined
        if self.recolored is not None:
            return self.recolored
        return self.raw

    def with_recolored(self, buffer: PixelBuffer) -> "ElementResult":
        return replace(self, recolored=buffer)

    def with_outlined(self, buffer: PixelBuffer) -> "ElementResult":
        return replace(self, outlined=buffer)


@dataclass(frozen=True)
class FrameConfig:
    """
    The four ground corners of the capture area and the camera height above them.
    """

    right_top: Optional[Vec3] = None
    left_top: Optional[Vec3] = None
    right_bottom: Optional[Vec3] = None
    left_bottom: Optional[Vec3] = None
    render_height: float = 10.0

    @property
    def corners(self) -> Tuple[Optional[Vec3], ...]:
        # Perimeter order, used when drawing the capture area
        return (self.right_top, self.left_top, self.left_bottom, self.right_bottom)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "right_top": _vec_or_none(self.right_top),
            "left_top": _vec_or_none(self.left_top),
            "right_bottom": _vec_or_none(self.right_bottom),
            "left_bottom": _vec_or_none(self.left_bottom),
            "render_height": self.render_height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrameConfig":
        try:
            return cls(
                right_top=_parse_vec(data.get("right_top")),
                left_top=_parse_vec(data.get("left_top")),
                right_bottom=_parse_vec(data.get("right_bottom")),
                left_bottom=_parse_vec(data.get("left_bottom")),
                render_height=validate_float(data.get("render_height"), 10.0),
            )
        except (TypeError, ValueError) as e:
            raise InvalidFrame(f"Unreadable capture corners: {e}") from e


@dataclass(frozen=True)
class CameraPose:
    """
    Orthographic top-down camera. ``half_extent`` is half the visible height
    in world units; the horizontal extent follows the output aspect ratio.
    """

    position: Vec3
    target: Vec3
    half_extent: float
    near_clip: float
    far_clip: float


@dataclass(frozen=True)
class CompositeConfig:
    output_size: Dimensions = (APP_CONFIG.default_output_size, APP_CONFIG.default_output_size)
    blend_policy: BlendPolicy = BlendPolicy.OVERLAP_ORDERED


@dataclass(frozen=True)
class ExportConfig:
    """
    Configuration for persisting the final map.
    """

    name: str = ""
    export_dir: str = APP_CONFIG.default_export_dir
    filename_pattern: str = "{{ name }}"


@dataclass(frozen=True)
class CaptureConfig:
    """
    Everything a capture run needs. Element order is significant for
    ``BlendPolicy.OVERLAP_ORDERED`` and is kept as given.
    """

    elements: Tuple[ElementSpec, ...] = ()
    corners: FrameConfig = field(default_factory=FrameConfig)
    composite: CompositeConfig = field(default_factory=CompositeConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "elements", tuple(self.elements))

    def to_dict(self) -> Dict[str, Any]:
        w, h = self.composite.output_size
        return {
            "elements": [e.to_dict() for e in self.elements],
            "corners": self.corners.to_dict(),
            "output_size": [w, h],
            "blend_policy": self.composite.blend_policy.value,
            "name": self.export.name,
            "export_dir": self.export.export_dir,
            "filename_pattern": self.export.filename_pattern,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptureConfig":
        """
        Reconstructs the config from the dictionary produced by ``to_dict``
        (or hand-written JSON with the same keys).
        """
        size = data.get("output_size", CompositeConfig().output_size)
        if isinstance(size, (int, float)):
            size = (size, size)
        w, h = size
        defaults = ExportConfig()
        return cls(
            elements=tuple(ElementSpec.from_dict(e) for e in data.get("elements", [])),
            corners=FrameConfig.from_dict(data.get("corners", {})),
            composite=CompositeConfig(
                output_size=(validate_int(w), validate_int(h)),
                blend_policy=BlendPolicy(data.get("blend_policy", BlendPolicy.OVERLAP_ORDERED)),
            ),
            export=ExportConfig(
                name=str(data.get("name", defaults.name)),
                export_dir=str(data.get("export_dir", defaults.export_dir)),
                filename_pattern=str(data.get("filename_pattern", defaults.filename_pattern)),
            ),
        )


def load_capture_config(path: str) -> CaptureConfig:
    with open(path, "r") as f:
        return CaptureConfig.from_dict(json.load(f))


def _parse_vec(value: Any) -> Optional[Vec3]:
    if value is None:
        return None
    x, y, z = (float(v) for v in value)
    return (x, y, z)


def _vec_or_none(value: Optional[Vec3]) -> Optional[List[float]]:
    return None if value is None else [float(v) for v in value]
