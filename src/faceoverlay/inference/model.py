import asyncio
import enum
import logging
from typing import Callable, Optional

from .base import DetInference
from faceoverlay.errors import ModelNotReadyError


logger = logging.getLogger(__name__)


class ModelState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ModelHandle:
    """
    Load-once holder of the inference engine.

    The engine is built by ``loader`` off the event loop on the first
    ``load()``. Once ready it is never replaced, so every tick can share it.
    """

    def __init__(self, loader: Callable[[], DetInference]):
        self._loader = loader
        self._engine: Optional[DetInference] = None
        self._lock = asyncio.Lock()
        self.state = ModelState.UNINITIALIZED
        self.error: Optional[BaseException] = None

    @classmethod
    def ready_with(cls, engine: DetInference) -> "ModelHandle":
        handle = cls(lambda: engine)
        handle._engine = engine
        handle.state = ModelState.READY
        return handle

    @property
    def ready(self) -> bool:
        return self.state is ModelState.READY

    @property
    def engine(self) -> DetInference:
        if self._engine is None:
            raise ModelNotReadyError(f"Model is {self.state.value}")
        return self._engine

    async def load(self) -> "ModelHandle":
        async with self._lock:
            if self.state is ModelState.READY:
                return self
            self.state = ModelState.LOADING
            loop = asyncio.get_running_loop()
            try:
                engine = await loop.run_in_executor(None, self._loader)
            except Exception as e:
                self.state = ModelState.FAILED
                self.error = e
                logger.error(f"[ModelHandle] Model failed to load: {e}")
                raise
            self._engine = engine
            self.state = ModelState.READY
            logger.info("[ModelHandle] Model loaded.")
        return self
