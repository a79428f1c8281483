from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np
from numpy.typing import NDArray

from faceoverlay.utils.paint import Styling


class OverlaySurface:
    """
    Transparent BGRA canvas the renderer draws on.

    Created once and handed to the pipeline; each tick resizes it to the
    frame it captured. ``compose`` blends the overlay over a frame for display.
    """

    def __init__(self, width: int = 960, height: int = 640):
        self.canvas: NDArray[np.uint8] = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.canvas.shape[1])

    @property
    def height(self) -> int:
        return int(self.canvas.shape[0])

    def resize(self, width: int, height: int) -> None:
        if (width, height) != (self.width, self.height):
            self.canvas = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self) -> None:
        self.canvas[:] = 0

    def stroke_rect(self, x: float, y: float, w: float, h: float, color: Tuple[int, ...], line_width: int) -> None:
        p1, p2 = _corners(x, y, w, h)
        cv2.rectangle(self.canvas, p1, p2, color, line_width)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Tuple[int, ...]) -> None:
        p1, p2 = _corners(x, y, w, h)
        cv2.rectangle(self.canvas, p1, p2, color, cv2.FILLED)

    def measure_text(self, text: str, styling: Styling) -> Tuple[int, int]:
        """Width and full height (ascent + descent) of ``text`` in pixels."""
        (w, h), baseline = cv2.getTextSize(text, styling.font_face, styling.font_scale, styling.text_thickness)
        return w, h + baseline

    def fill_text(self, text: str, x: float, y: float, styling: Styling) -> None:
        # (x, y) is the top-left corner of the text, cv2 wants the baseline origin
        (_, h), _ = cv2.getTextSize(text, styling.font_face, styling.font_scale, styling.text_thickness)
        org = (int(round(x)), int(round(y)) + h)

        # putText on a 4-channel image does not keep alpha opaque on every OpenCV release,
        # so draw coverage into a mask and write colour and alpha ourselves
        mask = np.zeros(self.canvas.shape[:2], dtype=np.uint8)
        cv2.putText(
            mask, text, org, styling.font_face, styling.font_scale,
            255, styling.text_thickness, styling.line_type,
        )
        covered = mask > 0
        if not covered.any():
            return

        color = np.array(styling.text_color, dtype=np.float32)
        if styling.line_type == cv2.LINE_AA:
            weight = (mask[covered].astype(np.float32) / 255.0)[:, None]
        else:
            weight = np.ones((int(covered.sum()), 1), dtype=np.float32)

        pixels = self.canvas[covered].astype(np.float32)
        blended = pixels[:, :3] * (1.0 - weight) + color[:3] * weight
        alpha = np.maximum(pixels[:, 3:4], color[3:4] * weight)
        self.canvas[covered] = np.concatenate([blended, alpha], axis=1).round().astype(np.uint8)

    def compose(self, frame_bgr: NDArray[np.uint8]) -> NDArray[np.uint8]:
        """Alpha-blend the overlay over a BGR frame of the same size."""
        if frame_bgr.shape[:2] != self.canvas.shape[:2]:
            frame_bgr = cv2.resize(frame_bgr, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        alpha = self.canvas[..., 3:4].astype(np.float32) / 255.0
        blended = self.canvas[..., :3].astype(np.float32) * alpha + frame_bgr.astype(np.float32) * (1.0 - alpha)
        return blended.astype(np.uint8)


def _corners(x: float, y: float, w: float, h: float) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    x1, y1 = int(round(x)), int(round(y))
    x2, y2 = int(round(x + w)), int(round(y + h))
    return (x1, y1), (x2, y2)
