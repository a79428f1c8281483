import asyncio

import numpy as np
import pytest

from faceoverlay.inference.base import DetInference, OUTPUT_NAMES
from faceoverlay.inference.model import ModelHandle
from faceoverlay.pipeline import OverlayPipeline
from faceoverlay.postprocess.face import FacePostprocessor
from faceoverlay.preprocess.batch import BatchPreprocessor
from faceoverlay.render.renderer import OverlayRenderer
from faceoverlay.render.surface import OverlaySurface
from faceoverlay.source.base import FrameSource
from faceoverlay.utils.instance import Frame
from faceoverlay.utils.tensor import TensorBackend


class DummySource(FrameSource):
    def __init__(self, height=48, width=64, ready=True):
        self.height = height
        self.width = width
        self.ready = ready
        self.frames_served = 0

    def is_ready(self):
        return self.ready

    def current_frame(self):
        self.frames_served += 1
        pixels = np.full((self.height, self.width, 3), 7, dtype=np.uint8)
        return Frame(pixels, frame_num=self.frames_served, frame_ts=float(self.frames_served))


class FakeEngine(DetInference):
    """Returns one face box per call; fails on the calls listed in ``fail_on``."""

    def __init__(self, backend, fail_on=(), delay=0.0, score=0.9, box=(0.1, 0.2, 0.5, 0.6)):
        self.backend = backend
        self.fail_on = set(fail_on)
        self.delay = delay
        self.score = score
        self.box = box
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.input_shapes = []

    async def infer(self, input_tensor):
        self.calls += 1
        call = self.calls
        self.input_shapes.append(input_tensor.shape)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if call in self.fail_on:
                raise RuntimeError(f"inference {call} rejected")
        finally:
            self.active -= 1

        arrays = [
            np.array([1.0], dtype=np.float32),
            np.zeros((1, 4, 4), dtype=np.float32),
            np.zeros((1, 1), dtype=np.float32),
            np.zeros((1, 4, 2), dtype=np.float32),
            np.array([[self.box]], dtype=np.float32),
            np.array([[1.0]], dtype=np.float32),
            np.array([[self.score]], dtype=np.float32),
            np.zeros((1, 1, 2), dtype=np.float32),
        ]
        return [self.backend.tensor(a, name=n) for n, a in zip(OUTPUT_NAMES, arrays)]


class CountingPreprocessor(BatchPreprocessor):
    def __init__(self, backend):
        super().__init__(backend)
        self.calls = 0

    def build(self, frame):
        self.calls += 1
        return super().build(frame)


class CountingRenderer(OverlayRenderer):
    def __init__(self):
        super().__init__(antialias=False)
        self.calls = 0
        self.drawn = []

    def draw(self, surface, detections, styling=None):
        self.calls += 1
        self.drawn.append(detections)
        super().draw(surface, detections, styling)


@pytest.fixture
def backend():
    return TensorBackend()


@pytest.fixture
def source():
    return DummySource()


@pytest.fixture
def engine(backend):
    return FakeEngine(backend)


@pytest.fixture
def make_pipeline(backend, source):
    def factory(engine=None, model=None, source=source, annotation_log=None):
        if model is None:
            model = ModelHandle.ready_with(engine or FakeEngine(backend))
        return OverlayPipeline(
            source=source,
            preprocessor=CountingPreprocessor(backend),
            model=model,
            postprocessor=FacePostprocessor(threshold=0.5),
            renderer=CountingRenderer(),
            surface=OverlaySurface(),
            backend=backend,
            annotation_log=annotation_log,
        )
    return factory
