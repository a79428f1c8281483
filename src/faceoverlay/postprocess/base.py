from abc import ABC, abstractmethod
from typing import Sequence

from faceoverlay.utils.instance import DetectionSet
from faceoverlay.utils.tensor import Tensor


class DetPostprocessor(ABC):

    @abstractmethod
    def __call__(self, outputs: Sequence[Tensor], frame_height: int, frame_width: int) -> DetectionSet:
        raise NotImplementedError
