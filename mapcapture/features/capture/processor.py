import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import numpy as np

from mapcapture.core.interfaces import IRenderBackend
from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.errors import CaptureAborted, MissingRenderable, SizeMismatch
from mapcapture.domain.models import CameraPose, ElementSpec
from mapcapture.domain.types import Dimensions
from mapcapture.kernel.system.logging import get_logger

logger = get_logger(__name__)


def _next_frame() -> Awaitable[None]:
    return asyncio.sleep(0)


class ElementRenderer:
    """
    Renders every element on its own, in order, one backend frame apart.

    The backend is asked to render with exactly one element index visible.
    Whatever happens during the loop, scene visibility is restored to the
    snapshot taken before the first render and the camera is released.
    """

    def __init__(
        self,
        backend: IRenderBackend,
        frame_boundary: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.backend = backend
        self.frame_boundary = frame_boundary or _next_frame

    def check_renderables(self, elements: Sequence[ElementSpec]) -> None:
        for i, element in enumerate(elements):
            handle = element.renderable
            if handle is None or not self.backend.is_renderable(handle):
                raise MissingRenderable(i, handle)

    async def capture_all(
        self,
        elements: Sequence[ElementSpec],
        pose: CameraPose,
        output_size: Dimensions,
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> List[PixelBuffer]:
        self.check_renderables(elements)

        handles = [e.renderable for e in elements]
        snapshot = self.backend.snapshot_visibility(handles)
        camera: Any = None
        captures: List[PixelBuffer] = []

        try:
            camera = self.backend.acquire_camera(pose, output_size)

            for i, element in enumerate(elements):
                if should_abort is not None and should_abort():
                    raise CaptureAborted(f"Aborted before element {i} ({element.name})")

                logger.info(f"Capturing {element.name}...")
                frame = self.backend.render(camera, handles, i)
                captures.append(self._as_buffer(frame, output_size, i))

                await self.frame_boundary()

            if should_abort is not None and should_abort():
                raise CaptureAborted("Aborted after capture")
        finally:
            if camera is not None:
                self.backend.release_camera(camera)
            self.backend.restore_visibility(snapshot)

        return captures

    @staticmethod
    def _as_buffer(frame: Any, output_size: Dimensions, index: int) -> PixelBuffer:
        buf = frame if isinstance(frame, PixelBuffer) else PixelBuffer(np.asarray(frame))
        if buf.size != tuple(output_size):
            w, h = output_size
            raise SizeMismatch(
                f"Render of element {index} is {buf.width}x{buf.height}, expected {w}x{h}"
            )
        return buf
