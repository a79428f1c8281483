import numpy as np

from .base import DetPreprocessor
from faceoverlay.utils.instance import Frame
from faceoverlay.utils.registry import register
from faceoverlay.utils.tensor import Tensor, TensorBackend


@register("preprocess")
class BatchPreprocessor(DetPreprocessor):
    """
    Builds the ``[1, H, W, 3]`` model input from a frame.

    The model takes the frame at its native size and value range, so the only
    transform is the batch dimension. Channel order is left as delivered.
    """

    def __init__(self, backend: TensorBackend, dtype: str = "uint8"):
        self.backend = backend
        self.dtype = np.dtype(dtype)

    def build(self, frame: Frame) -> Tensor:
        with self.backend.tidy() as scope:
            pixels = self.backend.from_pixels(frame.pixels)
            if pixels.dtype != self.dtype:
                pixels = self.backend.tensor(pixels.data.astype(self.dtype), name="pixels")
            batch = scope.keep(pixels.expand_dims(0))
        batch.name = "input"
        return batch
