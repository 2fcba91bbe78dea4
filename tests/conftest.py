import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pytest

from mapcapture.domain.models import CameraPose


def rgba_image(w: int, h: int, fill: Optional[Sequence[float]] = None) -> np.ndarray:
    img = np.zeros((h, w, 4), dtype=np.float32)
    if fill is not None:
        img[...] = np.asarray(fill, dtype=np.float32)
    return img


class StubBackend:
    """
    Render backend returning canned frames per handle. Tracks visibility
    flags and camera lifetime so tests can check isolation and cleanup.
    """

    def __init__(self, frames: Dict[str, np.ndarray], hidden: Sequence[str] = ()):
        self.frames = frames
        self.visible: Dict[str, bool] = {name: name not in hidden for name in frames}
        self.render_log: List[Dict[str, bool]] = []
        self.cameras_open = 0
        self.cameras_created = 0
        self.fail_at: Optional[int] = None
        self.on_render: Optional[Any] = None

    def is_renderable(self, handle: Any) -> bool:
        return handle in self.frames

    def snapshot_visibility(self, handles: Sequence[Any]) -> Dict[str, bool]:
        return dict(self.visible)

    def restore_visibility(self, snapshot: Dict[str, bool]) -> None:
        self.visible.update(snapshot)

    def acquire_camera(self, pose: CameraPose, output_size: Any) -> str:
        self.cameras_open += 1
        self.cameras_created += 1
        return f"camera-{self.cameras_created}"

    def release_camera(self, camera: Any) -> None:
        self.cameras_open -= 1

    def render(self, camera: Any, handles: Sequence[Any], visible_index: int) -> np.ndarray:
        for h in handles:
            self.visible[h] = False
        shown = handles[visible_index]
        self.visible[shown] = True
        self.render_log.append(dict(self.visible))

        if self.on_render is not None:
            self.on_render(visible_index)
        if self.fail_at == visible_index:
            raise RuntimeError(f"render failed for {shown}")

        frame = self.frames[shown].copy()
        self.visible[shown] = False
        return frame


class RecordingSink:
    def __init__(self) -> None:
        self.saved: List[Any] = []

    def save(self, buffer: Any, name: str) -> str:
        self.saved.append((buffer, name))
        return f"memory://{name}.png"


@pytest.fixture
def square_frame():
    from mapcapture.domain.models import FrameConfig

    return FrameConfig(
        right_top=(10.0, 0.0, 10.0),
        left_top=(0.0, 0.0, 10.0),
        right_bottom=(10.0, 0.0, 0.0),
        left_bottom=(0.0, 0.0, 0.0),
        render_height=5.0,
    )
