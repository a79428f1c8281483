from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from faceoverlay.errors import FrameNotReadyError
from faceoverlay.inference.model import ModelHandle
from faceoverlay.postprocess.base import DetPostprocessor
from faceoverlay.preprocess.base import DetPreprocessor
from faceoverlay.render.renderer import OverlayRenderer
from faceoverlay.render.surface import OverlaySurface
from faceoverlay.source.base import FrameSource
from faceoverlay.utils.instance import Frame, TickResult, TickStatus
from faceoverlay.utils.logging import AnnotationLog
from faceoverlay.utils.resources import ResourceTracker
from faceoverlay.utils.tensor import TensorBackend


logger = logging.getLogger(__name__)

# frame is None when the tick was skipped before capturing
TickCallback = Callable[[Optional[Frame], OverlaySurface, TickResult], None]


class OverlayPipeline:
    """
    One capture -> preprocess -> infer -> postprocess -> render pass per tick.

    Every collaborator is injected once. Ticks may run concurrently; each
    owns its frame and tensors and only shares the surface.
    """

    def __init__(
            self,
            source: FrameSource,
            preprocessor: DetPreprocessor,
            model: ModelHandle,
            postprocessor: DetPostprocessor,
            renderer: OverlayRenderer,
            surface: OverlaySurface,
            backend: TensorBackend,
            annotation_log: Optional[AnnotationLog] = None,
    ):
        self.source = source
        self.preprocessor = preprocessor
        self.model = model
        self.postprocessor = postprocessor
        self.renderer = renderer
        self.surface = surface
        self.backend = backend
        self.annotation_log = annotation_log
        self._tick_callbacks: List[TickCallback] = []
        self._capture_lock = threading.Lock()
        self._tick_ids = itertools.count(1)

    def add_tick_callback(self, callback: TickCallback) -> None:
        self._tick_callbacks.append(callback)

    def _capture(self) -> Optional[Frame]:
        # grab, decode and colour conversion block, so they run off the event loop
        with self._capture_lock:
            if not self.source.is_ready():
                return None
            return self.source.current_frame()

    async def tick(self) -> TickResult:
        tick_id = next(self._tick_ids)
        frame, result = await self._run(tick_id)
        for callback in self._tick_callbacks:
            callback(frame, self.surface, result)
        return result

    async def _run(self, tick_id: int) -> Tuple[Optional[Frame], TickResult]:
        if not self.model.ready:
            logger.debug(f"[Pipeline] tick {tick_id} skipped: model {self.model.state.value}")
            return None, TickResult.skipped(tick_id, "model not loaded")

        loop = asyncio.get_running_loop()
        try:
            frame = await loop.run_in_executor(None, self._capture)
        except FrameNotReadyError as e:
            logger.warning(f"[Pipeline] tick {tick_id} skipped: {e}")
            return None, TickResult.skipped(tick_id, str(e))
        if frame is None:
            logger.debug(f"[Pipeline] tick {tick_id} skipped: frame source not ready")
            return None, TickResult.skipped(tick_id, "frame source not ready")

        # bboxes are scaled to the frame of this tick, not whatever is current when inference returns
        frame_width, frame_height = frame.width, frame.height
        started = time.perf_counter()

        with ResourceTracker() as tracker:
            input_tensor = tracker.track(self.preprocessor.build(frame))
            try:
                outputs = tracker.track_all(await self.model.engine.infer(input_tensor))
                detections = self.postprocessor(outputs, frame_height, frame_width)
                self.surface.resize(frame_width, frame_height)
                self.renderer.draw(self.surface, detections)
            except Exception as e:
                latency_ms = (time.perf_counter() - started) * 1000.0
                logger.warning(f"[Pipeline] tick {tick_id} failed after {latency_ms:.1f} ms: {e}", exc_info=True)
                return frame, TickResult(
                    tick_id, TickStatus.FAILED, error=e,
                    frame_size=(frame_width, frame_height), latency_ms=latency_ms,
                )

        latency_ms = (time.perf_counter() - started) * 1000.0
        logger.debug(
            f"[Pipeline] tick {tick_id}: {len(detections)} detections in {latency_ms:.1f} ms, "
            f"live tensors {self.backend.num_tensors}"
        )

        if self.annotation_log is not None:
            image_id = self.annotation_log.log_frame(frame, tick_id)
            self.annotation_log.log_annotation(image_id, detections, frame.frame_ts)
            self.annotation_log.flush(image_id)
        return frame, TickResult(
            tick_id, TickStatus.RENDERED, detections=detections,
            frame_size=(frame_width, frame_height), latency_ms=latency_ms,
        )
