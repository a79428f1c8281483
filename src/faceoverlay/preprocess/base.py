from abc import ABC, abstractmethod

from faceoverlay.utils.instance import Frame
from faceoverlay.utils.tensor import Tensor


class DetPreprocessor(ABC):

    @abstractmethod
    def build(self, frame: Frame) -> Tensor:
        raise NotImplementedError

    def __call__(self, frame: Frame) -> Tensor:
        return self.build(frame)
