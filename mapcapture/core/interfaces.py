from typing import Any, Protocol, Sequence, Union, runtime_checkable

from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.models import CameraPose
from mapcapture.domain.types import Dimensions, ImageBuffer


@runtime_checkable
class IRenderBackend(Protocol):
    """
    The rendering collaborator. It owns the scene and its visibility flags;
    the capture loop only asks it to render with one element index visible.
    """

    def is_renderable(self, handle: Any) -> bool: ...

    def snapshot_visibility(self, handles: Sequence[Any]) -> Any:
        """Records the current visibility of the scene so it can be restored."""
        ...

    def restore_visibility(self, snapshot: Any) -> None: ...

    def acquire_camera(self, pose: CameraPose, output_size: Dimensions) -> Any:
        """Creates the transient offscreen camera for a run."""
        ...

    def release_camera(self, camera: Any) -> None: ...

    def render(
        self, camera: Any, handles: Sequence[Any], visible_index: int
    ) -> Union[ImageBuffer, PixelBuffer]:
        """
        Renders with ``handles[visible_index]`` shown and every other handle
        hidden. The shown element is hidden again before returning.
        """
        ...


@runtime_checkable
class IImageSink(Protocol):
    """
    Interface for persisting the final map.
    """

    def save(self, buffer: PixelBuffer, name: str) -> str: ...
