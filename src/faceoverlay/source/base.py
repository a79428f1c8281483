from abc import ABC, abstractmethod

from faceoverlay.utils.instance import Frame


class FrameSource(ABC):
    @abstractmethod
    def is_ready(self) -> bool:
        """True only when a full frame is buffered and can be decoded."""

    @abstractmethod
    def current_frame(self) -> Frame:
        pass

    def release(self) -> None:
        pass

    def get_fps(self) -> float:
        return 0.0

    def get_src_name(self) -> str:
        pass
