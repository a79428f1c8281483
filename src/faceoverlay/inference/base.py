from abc import ABC, abstractmethod
from typing import List

from faceoverlay.utils.tensor import Tensor


# Fixed output layout of the face detection model.
OUTPUT_NAMES = (
    "num_detections",
    "raw_detection_boxes",
    "detection_anchor_indices",
    "raw_detection_scores",
    "detection_boxes",
    "detection_classes",
    "detection_scores",
    "detection_multiclass_scores",
)


class DetInference(ABC):

    @abstractmethod
    async def infer(self, input_tensor: Tensor) -> List[Tensor]:
        """Run the model; the caller owns the returned tensors."""
        raise NotImplementedError
