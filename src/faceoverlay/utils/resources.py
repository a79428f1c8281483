from __future__ import annotations

import logging
from typing import Iterable, List

from faceoverlay.utils.tensor import Tensor


logger = logging.getLogger(__name__)


class ResourceTracker:
    """
    Scoped owner of the tensors obtained during one tick.

    Used as a context manager: whatever happens inside the block, every
    tracked tensor is disposed exactly once when the block exits.

    Examples:
        >>> with ResourceTracker() as tracker:
        ...     batch = tracker.track(preprocessor.build(frame))
        ...     outputs = tracker.track_all(await engine.infer(batch))
    """

    def __init__(self) -> None:
        self._tracked: List[Tensor] = []
        self._ids: set = set()

    def __enter__(self) -> "ResourceTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release_all()
        return False

    def __len__(self) -> int:
        return len(self._tracked)

    def track(self, tensor: Tensor) -> Tensor:
        if id(tensor) not in self._ids:
            self._ids.add(id(tensor))
            self._tracked.append(tensor)
        return tensor

    def track_all(self, tensors: Iterable[Tensor]) -> List[Tensor]:
        return [self.track(t) for t in tensors]

    def release_all(self) -> int:
        """Dispose all tracked tensors and forget them. Returns how many were disposed."""
        released = 0
        tracked, self._tracked, self._ids = self._tracked, [], set()
        for tensor in tracked:
            if tensor.is_disposed:
                logger.warning(f"[ResourceTracker] {tensor!r} was released outside the tracker")
                continue
            tensor.dispose()
            released += 1
        return released
