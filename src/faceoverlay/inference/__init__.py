from .base import DetInference, OUTPUT_NAMES
from .model import ModelHandle, ModelState
from .onnx_inference import OnnxInference

__all__ = ['DetInference', 'OUTPUT_NAMES', 'ModelHandle', 'ModelState', 'OnnxInference']
