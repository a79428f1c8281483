import json
import logging
import os
from threading import Lock
from typing import Any, Dict, List, Optional, Union

from faceoverlay.utils.instance import DetectionSet, Frame


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Union[str, int] = "INFO") -> None:
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


class AnnotationLog:
    """
    Per-tick record of frames and detections, optionally flushed to JSON.

    Each tick produces one file ``<annons_dir>/000000001.json`` with an
    ``images`` entry for the frame and one ``annotations`` entry per detection.
    """

    def __init__(self, annons_dir: Optional[str] = None):
        self.annons_dir = annons_dir
        self._lock = Lock()
        self.data_log: Dict[str, List] = {
            "images": [],
            "annotations": []
        }
        if annons_dir:
            os.makedirs(annons_dir, exist_ok=True)

    def log_frame(self, frame: Frame, tick_id: int) -> int:
        with self._lock:
            self.data_log["images"].append({
                "id": tick_id,
                "width": frame.width,
                "height": frame.height,
                "frame_num": frame.frame_num,
                "frame_ts": frame.frame_ts,
            })
        return tick_id

    def log_annotation(self, image_id: int, detections: DetectionSet, image_ts: float) -> None:
        with self._lock:
            # annotation ids restart per image
            for annotation_id, det in enumerate(detections, start=1):
                self.data_log["annotations"].append({
                    "id": annotation_id,
                    "image_id": image_id,
                    "frame_ts": image_ts,
                    "bbox": [float(c) for c in det.bbox],
                    "score": float(det.score),
                    "label": det.label,
                    "class_id": int(det.class_id),
                })

    def get_log(self) -> Dict[str, List]:
        return self.data_log

    def flush(self, image_id: int) -> Optional[str]:
        """Write the records of ``image_id`` to disk and drop them from memory."""
        with self._lock:
            images = [img for img in self.data_log["images"] if img["id"] == image_id]
            annotations = [ann for ann in self.data_log["annotations"] if ann["image_id"] == image_id]
            self.data_log["images"] = [img for img in self.data_log["images"] if img["id"] != image_id]
            self.data_log["annotations"] = [
                ann for ann in self.data_log["annotations"] if ann["image_id"] != image_id
            ]
        if not self.annons_dir:
            return None
        return save_log({"images": images, "annotations": annotations}, image_id, self.annons_dir)


def save_log(data: Dict[str, List], frame_num: int, annons_dir: str) -> str:
    filename = f"{frame_num:09d}.json"
    ann_path = os.path.join(annons_dir, filename)

    with open(ann_path, "w") as f:
        json.dump(data, f, indent=2)
    return ann_path


def load_log(path: str, log_num: int) -> Dict[str, Any]:
    """
    Loads one per-tick annotation file.

    :param path: Path to the folder containing log files
    :param log_num: Log file number (e.g., 3 → 000000003.json)
    :return: Dict with "images" and "annotations" lists
    """
    json_path = os.path.join(path, f"{log_num:09d}.json")

    with open(json_path, "r") as f:
        return json.load(f)
