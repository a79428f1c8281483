from typing import Tuple

import cv2


def hex2rgb(hex_str: str) -> Tuple[int, int, int]:
    """Convert hex string (#RRGGBB) to RGB tuple."""
    hex_str = hex_str.lstrip("#")
    return tuple(int(hex_str[i:i+2], 16) for i in (0, 2, 4))


def hex2bgra(hex_str: str, alpha: int = 255) -> Tuple[int, int, int, int]:
    r, g, b = hex2rgb(hex_str)
    return b, g, r, alpha


class Styling:
    """Colours and font used by the overlay renderer."""

    def __init__(
            self,
            stroke_color: str = "#00FFFF",
            line_width: int = 4,
            fill_color: str = "#00FFFF",
            text_color: str = "#000000",
            font_face: int = cv2.FONT_HERSHEY_SIMPLEX,
            font_scale: float = 0.5,
            text_thickness: int = 1,
            padding: int = 4,
            antialias: bool = True,
    ):
        self.stroke_color = hex2bgra(stroke_color)
        self.line_width = int(line_width)
        self.fill_color = hex2bgra(fill_color)
        self.text_color = hex2bgra(text_color)
        self.font_face = font_face
        self.font_scale = float(font_scale)
        self.text_thickness = int(text_thickness)
        self.padding = int(padding)
        self.line_type = cv2.LINE_AA if antialias else cv2.LINE_8
