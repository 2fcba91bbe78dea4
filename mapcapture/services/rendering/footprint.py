"""Software orthographic renderer for scenes made of flat ground footprints."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import cv2
import numpy as np

from mapcapture.domain.models import CameraPose
from mapcapture.domain.types import CHANNELS, CLEAR, Dimensions, ImageBuffer, RGBA, Vec2
from mapcapture.kernel.image.logic import parse_color
from mapcapture.kernel.system.logging import get_logger

logger = get_logger(__name__)

# Fixed-point bits for sub-pixel polygon vertices
_SHIFT = 4


@dataclass
class SceneObject:
    """
    A named polygon lying at ``elevation`` above the ground plane.
    ``footprint`` lists (x, z) world vertices.
    """

    name: str
    footprint: List[Vec2]
    color: RGBA = (1.0, 1.0, 1.0, 1.0)
    elevation: float = 0.0
    visible: bool = True


@dataclass(frozen=True)
class OrthoCamera:
    pose: CameraPose
    output_size: Dimensions

    @property
    def pixels_per_unit(self) -> float:
        _, h = self.output_size
        return (h / 2.0) / self.pose.half_extent

    def world_to_pixel(self, points: np.ndarray) -> np.ndarray:
        """
        Maps (N, 2) ground points (x, z) to (N, 2) pixel coordinates (col, row).
        World +x is image right, world +z is image up.
        """
        w, h = self.output_size
        cx, _, cz = self.pose.position
        scale = self.pixels_per_unit
        col = w / 2.0 + (points[:, 0] - cx) * scale
        row = h / 2.0 - (points[:, 1] - cz) * scale
        return np.stack([col, row], axis=1)

    def in_clip_range(self, elevation: float) -> bool:
        depth = self.pose.position[1] - elevation
        return self.pose.near_clip <= depth <= self.pose.far_clip


class FootprintRenderBackend:
    """
    In-process render backend. Handles are object names.

    Renders every visible object into a transparent RGBA buffer, lower
    elevations first so higher objects cover them. Objects that are not part
    of the element list keep their own visibility and therefore appear in
    every capture.
    """

    def __init__(
        self,
        objects: Iterable[SceneObject] = (),
        clear_color: RGBA = CLEAR,
    ):
        self.objects: Dict[str, SceneObject] = {}
        self.clear_color = clear_color
        self.active_cameras: List[OrthoCamera] = []
        for obj in objects:
            self.add(obj)

    def add(self, obj: SceneObject) -> None:
        self.objects[obj.name] = obj

    def visibility(self) -> Dict[str, bool]:
        return {name: obj.visible for name, obj in self.objects.items()}

    def is_renderable(self, handle: Any) -> bool:
        return isinstance(handle, str) and handle in self.objects

    def snapshot_visibility(self, handles: Sequence[Any]) -> Dict[str, bool]:
        return self.visibility()

    def restore_visibility(self, snapshot: Dict[str, bool]) -> None:
        for name, visible in snapshot.items():
            if name in self.objects:
                self.objects[name].visible = visible

    def acquire_camera(self, pose: CameraPose, output_size: Dimensions) -> OrthoCamera:
        camera = OrthoCamera(pose=pose, output_size=tuple(output_size))
        self.active_cameras.append(camera)
        logger.debug(f"Camera created at {pose.position} (half extent {pose.half_extent:.3f})")
        return camera

    def release_camera(self, camera: OrthoCamera) -> None:
        self.active_cameras.remove(camera)

    def render(self, camera: OrthoCamera, handles: Sequence[Any], visible_index: int) -> ImageBuffer:
        for handle in handles:
            self.objects[handle].visible = False

        shown = self.objects[handles[visible_index]]
        shown.visible = True
        try:
            return self.render_visible(camera)
        finally:
            shown.visible = False

    def render_visible(self, camera: OrthoCamera) -> ImageBuffer:
        w, h = camera.output_size
        img = np.empty((h, w, CHANNELS), dtype=np.float32)
        img[...] = np.asarray(self.clear_color, dtype=np.float32)

        drawable = [
            o for o in self.objects.values()
            if o.visible and len(o.footprint) >= 3 and camera.in_clip_range(o.elevation)
        ]
        for obj in sorted(drawable, key=lambda o: o.elevation):
            mask = self._rasterize(camera, obj.footprint)
            img[mask] = np.asarray(obj.color, dtype=np.float32)

        return img

    @staticmethod
    def _rasterize(camera: OrthoCamera, footprint: Sequence[Vec2]) -> np.ndarray:
        w, h = camera.output_size
        pts = camera.world_to_pixel(np.asarray(footprint, dtype=np.float64))
        fixed = np.round(pts * (1 << _SHIFT)).astype(np.int32).reshape(-1, 1, 2)

        mask = np.zeros((h, w), dtype=np.uint8)
        cv2.fillPoly(mask, [fixed], 255, lineType=cv2.LINE_8, shift=_SHIFT)
        return mask > 0


def rectangle(center: Vec2, size: Tuple[float, float]) -> List[Vec2]:
    """Axis-aligned rectangular footprint."""
    cx, cz = center
    hw, hd = size[0] / 2.0, size[1] / 2.0
    return [(cx - hw, cz - hd), (cx + hw, cz - hd), (cx + hw, cz + hd), (cx - hw, cz + hd)]


def scene_from_dicts(items: Iterable[Dict[str, Any]]) -> FootprintRenderBackend:
    """
    Builds a backend from plain dictionaries with keys name, footprint, color,
    elevation and visible.
    """
    objects = [
        SceneObject(
            name=str(d["name"]),
            footprint=[(float(x), float(z)) for x, z in d["footprint"]],
            color=parse_color(d.get("color", "#FFFFFF")),
            elevation=float(d.get("elevation", 0.0)),
            visible=bool(d.get("visible", True)),
        )
        for d in items
    ]
    return FootprintRenderBackend(objects)
