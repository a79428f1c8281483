from __future__ import annotations

import enum
from collections import namedtuple
from typing import Iterable, Iterator, Optional, Tuple, Union

import numpy as np


__all__ = ("Frame", "Detection", "DetectionSet", "TickStatus", "TickResult")


Detection = namedtuple("Detection", ["class_id", "label", "score", "bbox"])
Detection.__doc__ = """One pixel-space box: class id, label, score string ("0.9123") and (x, y, width, height)."""


class Frame:
    """RGB pixels borrowed from a frame source for the duration of one tick."""

    def __init__(self, pixels: np.ndarray, frame_num: int = 0, frame_ts: float = 0.0):
        assert pixels.ndim == 3 and pixels.shape[2] == 3, f"Invalid frame shape: {pixels.shape}, expected HxWx3"
        self.pixels = pixels
        self.frame_num = frame_num
        self.frame_ts = frame_ts

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.pixels.shape


class DetectionSet:
    """Ordered detections of one tick, in model output order."""

    def __init__(self, detections: Iterable[Detection] = ()):
        self._detections: Tuple[Detection, ...] = tuple(detections)

    def __len__(self) -> int:
        return len(self._detections)

    def __iter__(self) -> Iterator[Detection]:
        return iter(self._detections)

    def __getitem__(self, index) -> Union[Detection, "DetectionSet"]:
        if isinstance(index, slice):
            return DetectionSet(self._detections[index])
        return self._detections[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, DetectionSet):
            return NotImplemented
        return self._detections == other._detections

    def __hash__(self) -> int:
        return hash(self._detections)

    def __repr__(self) -> str:
        return f"DetectionSet({list(self._detections)!r})"

    @property
    def scores(self) -> list:
        return [float(d.score) for d in self._detections]


class TickStatus(enum.Enum):
    SKIPPED = "skipped"
    RENDERED = "rendered"
    FAILED = "failed"


class TickResult:
    """Outcome of one scheduler tick."""

    def __init__(
            self,
            tick_id: int,
            status: TickStatus,
            detections: Optional[DetectionSet] = None,
            error: Optional[BaseException] = None,
            frame_size: Optional[Tuple[int, int]] = None,
            latency_ms: float = 0.0,
            reason: str = "",
    ):
        self.tick_id = tick_id
        self.status = status
        self.detections = detections
        self.error = error
        self.frame_size = frame_size
        self.latency_ms = latency_ms
        self.reason = reason

    @classmethod
    def skipped(cls, tick_id: int, reason: str) -> "TickResult":
        return cls(tick_id, TickStatus.SKIPPED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is TickStatus.RENDERED

    def __repr__(self) -> str:
        extra = f", error={self.error!r}" if self.error is not None else ""
        count = len(self.detections) if self.detections is not None else 0
        return f"TickResult(tick_id={self.tick_id}, status={self.status.value}, detections={count}{extra})"
