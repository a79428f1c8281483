import asyncio
import logging
from typing import List, Optional, Sequence

import numpy as np
import onnxruntime as ort

from .base import DetInference, OUTPUT_NAMES
from faceoverlay.errors import ModelContractError
from faceoverlay.utils.registry import register
from faceoverlay.utils.tensor import Tensor, TensorBackend


logger = logging.getLogger(__name__)


@register("inference")
class OnnxInference(DetInference):
    session: ort.InferenceSession
    model_input: str

    def __init__(
            self,
            backend: TensorBackend,
            model_weights: str,
            device: str = "cpu",
            output_names: Optional[Sequence[str]] = OUTPUT_NAMES,
    ):
        self.backend = backend
        self.model_weights = model_weights
        self.device = device
        self.load_model(model_weights, device)
        self.get_model_io(output_names)

    def load_model(self, path: str, device: str = "cpu"):
        providers = ["CPUExecutionProvider"] if device == "cpu" else ["CUDAExecutionProvider", "CPUExecutionProvider"]
        self.session = ort.InferenceSession(path, providers=providers)

    def get_model_io(self, output_names: Optional[Sequence[str]]):
        self.model_input = self.session.get_inputs()[0].name
        declared = [o.name for o in self.session.get_outputs()]
        self.output_names = list(output_names) if output_names else declared
        if len(self.output_names) != len(OUTPUT_NAMES):
            raise ModelContractError(
                f"Model {self.model_weights!r} exposes {len(self.output_names)} outputs, expected {len(OUTPUT_NAMES)}"
            )
        missing = [n for n in self.output_names if n not in declared]
        if missing:
            raise ModelContractError(f"Model {self.model_weights!r} has no outputs named {missing}. Available: {declared}")

    def _run(self, batch: np.ndarray) -> List[np.ndarray]:
        return self.session.run(self.output_names, {self.model_input: batch})

    async def infer(self, input_tensor: Tensor) -> List[Tensor]:
        loop = asyncio.get_running_loop()
        outputs = await loop.run_in_executor(None, self._run, input_tensor.data)

        if len(outputs) != len(OUTPUT_NAMES):
            raise ModelContractError(f"Expected {len(OUTPUT_NAMES)} output tensors, got {len(outputs)}")
        return [self.backend.tensor(o, name=n) for n, o in zip(OUTPUT_NAMES, outputs)]
