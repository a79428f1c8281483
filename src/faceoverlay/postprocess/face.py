from typing import Sequence

import numpy as np

from .base import DetPostprocessor
from faceoverlay.errors import ModelContractError
from faceoverlay.utils.instance import Detection, DetectionSet
from faceoverlay.utils.registry import register
from faceoverlay.utils.tensor import Tensor


FACE_LABEL = "face"

DETECTION_BOXES = 4
DETECTION_CLASSES = 5
DETECTION_SCORES = 6


def build_detections(
        scores: Sequence[float],
        threshold: float,
        boxes: Sequence[Sequence[float]],
        classes: Sequence[float],
        frame_height: int,
        frame_width: int,
        label: str = FACE_LABEL,
) -> DetectionSet:
    """
    Turn normalized model candidates into pixel-space detections.

    Args:
        scores: Confidence per candidate, in model output order.
        threshold: Candidates need a score strictly above it.
        boxes: Normalized (min_y, min_x, max_y, max_x) per candidate.
        classes: Class id per candidate.
        frame_height (int): Height of the frame the tick captured.
        frame_width (int): Width of the frame the tick captured.
        label (str): Label given to every detection.

    Returns:
        (DetectionSet): Kept candidates with bbox as (x, y, width, height).

    Notes:
        No NMS happens here; overlapping candidates are all kept.
    """
    detections = []
    for i, score in enumerate(scores):
        score = float(score)
        if not score > threshold:
            continue
        min_y = float(boxes[i][0]) * frame_height
        min_x = float(boxes[i][1]) * frame_width
        max_y = float(boxes[i][2]) * frame_height
        max_x = float(boxes[i][3]) * frame_width
        detections.append(Detection(
            class_id=int(classes[i]),
            label=label,
            score=f"{score:.4f}",
            bbox=(min_x, min_y, max_x - min_x, max_y - min_y),
        ))
    return DetectionSet(detections)


@register("postprocess")
class FacePostprocessor(DetPostprocessor):
    def __init__(self, threshold: float = 0.5, label: str = FACE_LABEL):
        self.threshold = float(threshold)
        self.label = label

    def __call__(self, outputs: Sequence[Tensor], frame_height: int, frame_width: int) -> DetectionSet:
        if len(outputs) <= DETECTION_SCORES:
            raise ModelContractError(f"Expected at least {DETECTION_SCORES + 1} output tensors, got {len(outputs)}")

        # boxes [1, N, 4], classes [1, N], scores flattened
        boxes = outputs[DETECTION_BOXES].array_sync()[0]
        classes = outputs[DETECTION_CLASSES].array_sync()[0]
        scores = np.asarray(outputs[DETECTION_SCORES].data).reshape(-1)

        return build_detections(scores, self.threshold, boxes, classes, frame_height, frame_width, label=self.label)
