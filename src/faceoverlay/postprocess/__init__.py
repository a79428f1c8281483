from .base import DetPostprocessor
from .face import FacePostprocessor, build_detections

__all__ = ['DetPostprocessor', 'FacePostprocessor', 'build_detections']
