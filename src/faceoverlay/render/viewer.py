from typing import Optional

import cv2

from .surface import OverlaySurface
from faceoverlay.utils.instance import Frame, TickResult


class OverlayViewer:
    """OpenCV window showing the latest frame with the overlay on top."""

    def __init__(self, window_name: str = "faceoverlay", quit_key: str = "q"):
        self.window_name = window_name
        self.quit_key = quit_key
        self.quit_requested = False

    def show(self, frame: Optional[Frame], surface: OverlaySurface, result: TickResult) -> bool:
        """
        Display the outcome of one tick; returns False once the quit key was pressed.

        Rendered ticks show the composite, failed ticks the raw frame. Without a
        frame the window is left as is but keys are still polled.
        """
        if frame is not None:
            bgr = cv2.cvtColor(frame.pixels, cv2.COLOR_RGB2BGR)
            cv2.imshow(self.window_name, surface.compose(bgr) if result.ok else bgr)
        if cv2.waitKey(1) & 0xFF == ord(self.quit_key):
            self.quit_requested = True
        return not self.quit_requested

    def close(self) -> None:
        cv2.destroyWindow(self.window_name)
