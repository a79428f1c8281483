import logging
import time
from typing import Optional

import cv2
from typing_extensions import override

from .base import FrameSource
from faceoverlay.errors import FrameNotReadyError
from faceoverlay.utils.instance import Frame
from faceoverlay.utils.registry import register


logger = logging.getLogger(__name__)


class CaptureSource(FrameSource):
    """
    Frame source over ``cv2.VideoCapture``.

    ``is_ready`` grabs the next frame without decoding it, ``current_frame``
    decodes the last grabbed frame. A frame is only handed out once.
    """

    def __init__(self, cap: cv2.VideoCapture, name: str):
        self.cap = cap
        self.name = name
        self._grabbed = False
        self._frame_num = 0

    def _grab(self) -> bool:
        return bool(self.cap.grab())

    @override
    def is_ready(self) -> bool:
        if self._grabbed:
            return True
        if self.cap is None or not self.cap.isOpened():
            return False
        self._grabbed = self._grab()
        return self._grabbed

    @override
    def current_frame(self) -> Frame:
        if not self._grabbed:
            raise FrameNotReadyError(f"[{self.__class__.__name__}] No frame buffered from {self.name}")
        self._grabbed = False

        ret, frame = self.cap.retrieve()
        if not ret or frame is None:
            raise FrameNotReadyError(f"[{self.__class__.__name__}] Failed to decode frame from {self.name}")

        self._frame_num += 1
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        return Frame(rgb, frame_num=self._frame_num, frame_ts=time.time())

    @override
    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()

    @override
    def get_fps(self) -> float:
        return self.cap.get(cv2.CAP_PROP_FPS)

    @override
    def get_src_name(self) -> str:
        return self.name


@register("source")
class CameraSource(CaptureSource):
    def __init__(self, index: int = 0, width: Optional[int] = None, height: Optional[int] = None):
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open camera index {index}")
        if width:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        super().__init__(cap, name=f"camera:{index}")
        logger.info(
            f"[CameraSource] Opened {self.get_src_name()} at "
            f"{int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}, {self.get_fps():.1f} fps"
        )


@register("source")
class VideoFileSource(CaptureSource):
    """Plays a video file as if it were a live stream, rewinding at the end when ``loop`` is set."""

    def __init__(self, path: str, loop: bool = True):
        cap = cv2.VideoCapture(path)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open video {path}")
        super().__init__(cap, name=path)
        self.loop = loop
        logger.info(f"[VideoFileSource] Opened {self.get_src_name()} at {self.get_fps():.1f} fps, loop={loop}")

    @override
    def _grab(self) -> bool:
        if self.cap.grab():
            return True
        if not self.loop:
            return False
        self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
        return bool(self.cap.grab())
