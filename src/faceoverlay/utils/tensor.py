from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from faceoverlay.errors import TensorDisposedError


logger = logging.getLogger(__name__)

__all__ = ("Tensor", "TensorBackend", "TidyScope")


class Tensor:
    """
    A numeric buffer with an explicit owner and an explicit end of life.

    Tensors are only created through a ``TensorBackend`` so that every
    allocation and every disposal is accounted for. Once disposed the buffer
    is dropped and any further access raises ``TensorDisposedError``.

    Attributes:
        name (str | None): Optional name, e.g. the model output it came from.
        shape (tuple): Shape of the buffer, kept after disposal for diagnostics.
        dtype (np.dtype): Element type of the buffer.
    """

    def __init__(self, array: np.ndarray, backend: "TensorBackend", name: Optional[str] = None) -> None:
        self._array: Optional[np.ndarray] = array
        self._backend = backend
        self.name = name
        self.shape: Tuple[int, ...] = tuple(array.shape)
        self.dtype = array.dtype
        self.nbytes = int(array.nbytes)

    def __repr__(self) -> str:
        state = "disposed" if self.is_disposed else "live"
        return f"Tensor(name={self.name!r}, shape={self.shape}, dtype={self.dtype}, {state})"

    @property
    def is_disposed(self) -> bool:
        return self._array is None

    @property
    def data(self) -> np.ndarray:
        """Borrowed view of the buffer, valid until the tensor is disposed."""
        if self._array is None:
            raise TensorDisposedError(f"Tensor {self.name or id(self)} is already disposed")
        return self._array

    def array_sync(self) -> np.ndarray:
        """Return an owned copy of the buffer that outlives the tensor."""
        return np.array(self.data, copy=True)

    def expand_dims(self, axis: int = 0) -> "Tensor":
        return self._backend.tensor(np.expand_dims(self.data, axis), name=self.name)

    def dispose(self) -> None:
        if self._array is None:
            raise TensorDisposedError(f"Tensor {self.name or id(self)} is disposed twice")
        self._array = None
        self._backend._on_dispose(self)


class TidyScope:
    """Collects the tensors allocated inside ``TensorBackend.tidy``."""

    def __init__(self) -> None:
        self.allocated: List[Tensor] = []
        self._kept: set = set()

    def keep(self, tensor: Tensor) -> Tensor:
        self._kept.add(id(tensor))
        return tensor

    def is_kept(self, tensor: Tensor) -> bool:
        return id(tensor) in self._kept


class TensorBackend:
    """
    Allocator and bookkeeper for ``Tensor`` objects.

    Counts every allocation and disposal so leaks and double frees are
    observable through ``memory()``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._live: Dict[int, Tensor] = {}
        self._scopes: List[TidyScope] = []
        self.allocated = 0
        self.disposed = 0

    def tensor(self, array: np.ndarray, name: Optional[str] = None) -> Tensor:
        t = Tensor(np.asarray(array), self, name=name)
        with self._lock:
            self._live[id(t)] = t
            self.allocated += 1
            if self._scopes:
                self._scopes[-1].allocated.append(t)
        return t

    def from_pixels(self, pixels: np.ndarray) -> Tensor:
        """Copy an ``H x W x 3`` image into a new uint8 tensor."""
        assert pixels.ndim == 3 and pixels.shape[2] == 3, f"Expected HxWx3 pixels, got shape {pixels.shape}"
        return self.tensor(np.array(pixels, dtype=np.uint8, copy=True), name="pixels")

    def _on_dispose(self, tensor: Tensor) -> None:
        with self._lock:
            self._live.pop(id(tensor), None)
            self.disposed += 1

    @property
    def num_tensors(self) -> int:
        with self._lock:
            return len(self._live)

    def memory(self) -> Dict[str, int]:
        with self._lock:
            return {
                "num_tensors": len(self._live),
                "num_bytes": sum(t.nbytes for t in self._live.values()),
                "allocated": self.allocated,
                "disposed": self.disposed,
            }

    @contextmanager
    def tidy(self) -> Iterator[TidyScope]:
        """
        Dispose every tensor allocated inside the block unless it was kept.

        The scope is synchronous bookkeeping on the backend, so the block must
        not ``await``: allocations made by other ticks would land in it.

        Examples:
            >>> with backend.tidy() as scope:
            ...     batch = scope.keep(backend.from_pixels(frame).expand_dims(0))
        """
        scope = TidyScope()
        with self._lock:
            self._scopes.append(scope)
        try:
            yield scope
        finally:
            with self._lock:
                self._scopes.remove(scope)
            for t in scope.allocated:
                if not scope.is_kept(t) and not t.is_disposed:
                    t.dispose()
