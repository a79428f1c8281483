from typing import Optional

from .surface import OverlaySurface
from faceoverlay.utils.instance import Detection, DetectionSet
from faceoverlay.utils.paint import Styling
from faceoverlay.utils.registry import register


def label_text(det: Detection) -> str:
    return f"{det.label} {100 * float(det.score):.2f}%"


@register("renderer")
class OverlayRenderer:
    """
    Draws a detection set as boxes with labelled backgrounds.

    Boxes and label backgrounds of every detection are drawn before any label
    text, so overlapping detections never hide each other's text.
    """

    def __init__(self, **styling):
        self.styling = Styling(**styling)

    def draw(self, surface: OverlaySurface, detections: DetectionSet, styling: Optional[Styling] = None) -> None:
        styling = styling or self.styling
        surface.clear()

        for det in detections:
            x, y, w, h = det.bbox
            surface.stroke_rect(x, y, w, h, styling.stroke_color, styling.line_width)

            text_w, text_h = surface.measure_text(label_text(det), styling)
            surface.fill_rect(x, y, text_w + styling.padding, text_h + styling.padding, styling.fill_color)

        for det in detections:
            x, y = det.bbox[0], det.bbox[1]
            surface.fill_text(label_text(det), x, y, styling)
