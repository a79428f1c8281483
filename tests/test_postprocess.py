import numpy as np
import pytest

from faceoverlay.errors import ModelContractError
from faceoverlay.postprocess.face import FacePostprocessor, build_detections
from faceoverlay.utils.instance import Detection


BOXES = [[0.1, 0.2, 0.5, 0.6], [0.0, 0.0, 1.0, 1.0], [0.3, 0.3, 0.4, 0.4]]
CLASSES = [1.0, 1.0, 1.0]


def test_threshold_is_exclusive():
    dets = build_detections([0.9, 0.5, 0.4], 0.5, BOXES, CLASSES, 100, 200)
    assert len(dets) == 1
    assert dets[0].score == "0.9000"


def test_denormalize_to_pixel_bbox():
    dets = build_detections([0.9], 0.5, BOXES[:1], CLASSES[:1], frame_height=100, frame_width=200)
    assert dets[0].bbox == pytest.approx((40.0, 10.0, 80.0, 40.0))
    assert dets[0].label == "face"
    assert dets[0].class_id == 1


def test_keeps_model_order_and_overlaps():
    dets = build_detections([0.6, 0.95, 0.7], 0.5, BOXES, CLASSES, 10, 10)
    assert dets.scores == [0.6, 0.95, 0.7]
    assert dets[1].bbox == pytest.approx((0.0, 0.0, 10.0, 10.0))


def test_same_inputs_same_detections():
    first = build_detections([0.9, 0.7], 0.5, BOXES[:2], CLASSES[:2], 480, 640)
    second = build_detections([0.9, 0.7], 0.5, BOXES[:2], CLASSES[:2], 480, 640)
    assert first == second
    assert list(first) == list(second)


def test_score_formatted_to_four_decimals():
    dets = build_detections([0.123456], 0.1, BOXES[:1], CLASSES[:1], 1, 1)
    assert dets[0] == Detection(class_id=1, label="face", score="0.1235", bbox=dets[0].bbox)


def test_postprocessor_reads_boxes_classes_scores(backend):
    outputs = [backend.tensor(np.zeros(1)) for _ in range(8)]
    outputs[4] = backend.tensor(np.array([BOXES], dtype=np.float32))
    outputs[5] = backend.tensor(np.array([CLASSES], dtype=np.float32))
    outputs[6] = backend.tensor(np.array([[0.9, 0.2, 0.51]], dtype=np.float32))

    dets = FacePostprocessor(threshold=0.5)(outputs, 100, 200)

    assert len(dets) == 2
    assert dets[0].bbox == pytest.approx((40.0, 10.0, 80.0, 40.0))
    assert dets[1].score == "0.5100"


def test_postprocessor_rejects_short_output(backend):
    outputs = [backend.tensor(np.zeros(1)) for _ in range(3)]
    with pytest.raises(ModelContractError):
        FacePostprocessor()(outputs, 10, 10)
