import asyncio
import concurrent.futures
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from mapcapture.core.interfaces import IImageSink, IRenderBackend
from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.errors import (
    AlreadyCapturing,
    CaptureAborted,
    EmptyElementSet,
    InvalidExportSettings,
)
from mapcapture.domain.models import CameraPose, CaptureConfig, ElementResult
from mapcapture.features.capture.processor import ElementRenderer
from mapcapture.features.composite.processor import Compositor
from mapcapture.features.framing.processor import FramingCalculator
from mapcapture.features.outline.processor import OutlineGenerator
from mapcapture.features.recolor.processor import Recolorer
from mapcapture.kernel.system.config import APP_CONFIG
from mapcapture.kernel.system.logging import get_logger

logger = get_logger(__name__)


class CaptureState(str, Enum):
    IDLE = "Idle"
    FRAMING = "Framing"
    CAPTURING = "Capturing"
    RECOLORING = "Recoloring"
    OUTLINING = "Outlining"
    COMPOSITING = "Compositing"
    DONE = "Done"
    FAILED = "Failed"


_RESTING_STATES = (CaptureState.IDLE, CaptureState.DONE, CaptureState.FAILED)

# One run per process: engines may share a backend, and its camera and
# visibility flags are mutated in place during a run.
_RUN_LOCK = threading.Lock()


@dataclass(frozen=True)
class CaptureResult:
    pose: CameraPose
    image: PixelBuffer
    elements: Tuple[ElementResult, ...]
    saved_path: Optional[str] = None


class MapCaptureEngine:
    """
    The orchestrator that frames the scene, captures every element in
    isolation, recolors and outlines each capture and composites the map.

    Only one run may be active per process, across all engines; the
    backend's camera and scene visibility are shared state that a second
    run would corrupt.
    """

    def __init__(
        self,
        backend: IRenderBackend,
        sink: Optional[IImageSink] = None,
        framing: Optional[FramingCalculator] = None,
        frame_boundary: Optional[Callable[[], Awaitable[None]]] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.backend = backend
        self.sink = sink
        self.framing = framing or FramingCalculator()
        self.renderer = ElementRenderer(backend, frame_boundary=frame_boundary)
        self.max_workers = max_workers or APP_CONFIG.max_workers

        self._state = CaptureState.IDLE
        self._abort_requested = False
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_capturing(self) -> bool:
        return self._state not in _RESTING_STATES

    def _set_state(self, state: CaptureState) -> None:
        logger.debug(f"State {self._state.value} -> {state.value}")
        self._state = state

    def abort(self) -> None:
        """
        Requests cancellation. The capture loop stops at the next element
        boundary, restores scene visibility and releases its camera; later
        stages check the request between stages, so nothing is saved.
        """
        if self.is_capturing:
            logger.warning("Abort requested")
            self._abort_requested = True

    def validate(self, config: CaptureConfig) -> CameraPose:
        """
        Checks everything that can be checked before rendering and returns the
        camera pose. Raises on the first problem found.
        """
        if not config.elements:
            raise EmptyElementSet("Please add at least one element")

        w, h = config.composite.output_size
        if w <= 0 or h <= 0:
            raise InvalidExportSettings(f"Output size must be positive, got {w}x{h}")

        if self.sink is not None and not config.export.name.strip():
            raise InvalidExportSettings("Please enter a name for the map file")

        pose = self.framing.compute(config.corners)
        self.renderer.check_renderables(config.elements)
        return pose

    def capture(self, config: CaptureConfig) -> CaptureResult:
        """Blocking wrapper around ``capture_async``."""
        if self.is_capturing or _RUN_LOCK.locked():
            raise AlreadyCapturing("A capture is already in progress")
        return asyncio.run(self.capture_async(config))

    async def capture_async(self, config: CaptureConfig) -> CaptureResult:
        # Check and claim in one step so two engines cannot both get through
        if self.is_capturing or not _RUN_LOCK.acquire(blocking=False):
            raise AlreadyCapturing("A capture is already in progress")
        try:
            return await self._run(config)
        finally:
            _RUN_LOCK.release()

    def _check_abort(self, stage: str) -> None:
        if self._abort_requested:
            raise CaptureAborted(f"Aborted before {stage}")

    async def _run(self, config: CaptureConfig) -> CaptureResult:
        self._abort_requested = False
        self.last_error = None
        self._set_state(CaptureState.FRAMING)

        try:
            pose = self.validate(config)

            logger.info("Start Capturing...")
            self._set_state(CaptureState.CAPTURING)
            raws = await self.renderer.capture_all(
                config.elements,
                pose,
                config.composite.output_size,
                should_abort=lambda: self._abort_requested,
            )
            results = [ElementResult(spec, raw) for spec, raw in zip(config.elements, raws)]

            logger.info("Apply Colors...")
            self._set_state(CaptureState.RECOLORING)
            results = self._map_parallel(Recolorer().process, results)
            self._check_abort("outlining")

            logger.info("Apply Outlines...")
            self._set_state(CaptureState.OUTLINING)
            # The outline kernel is already parallel over rows
            outliner = OutlineGenerator()
            results = [outliner.process(r) for r in results]
            self._check_abort("compositing")

            self._set_state(CaptureState.COMPOSITING)
            policy = config.composite.blend_policy
            logger.info(f"Combining {len(results)} layers ({policy.value})...")
            image = Compositor(policy).process(
                [r.buffer for r in results], config.composite.output_size
            )
            self._check_abort("saving")

            saved_path = None
            if self.sink is not None:
                saved_path = self.sink.save(image, config.export.name)

            self._set_state(CaptureState.DONE)
            return CaptureResult(
                pose=pose,
                image=image,
                elements=tuple(results),
                saved_path=saved_path,
            )
        except CaptureAborted as e:
            logger.warning(f"Capture aborted: {e}")
            self.last_error = e
            self._set_state(CaptureState.IDLE)
            raise
        except Exception as e:
            logger.error(f"Capture failed: {e}")
            self.last_error = e
            self._set_state(CaptureState.FAILED)
            raise
        finally:
            self._abort_requested = False

    def _map_parallel(
        self, fn: Callable[[ElementResult], ElementResult], results: List[ElementResult]
    ) -> List[ElementResult]:
        if self.max_workers <= 1 or len(results) <= 1:
            return [fn(r) for r in results]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map keeps input order
            return list(pool.map(fn, results))
