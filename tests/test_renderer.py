import numpy as np

from faceoverlay.render.renderer import OverlayRenderer, label_text
from faceoverlay.render.surface import OverlaySurface
from faceoverlay.utils.instance import Detection, DetectionSet
from faceoverlay.utils.paint import Styling, hex2bgra


class RecordingSurface(OverlaySurface):
    def __init__(self):
        super().__init__(width=200, height=200)
        self.ops = []

    def clear(self):
        self.ops.append(("clear",))
        super().clear()

    def stroke_rect(self, x, y, w, h, color, line_width):
        self.ops.append(("stroke", x, y))
        super().stroke_rect(x, y, w, h, color, line_width)

    def fill_rect(self, x, y, w, h, color):
        self.ops.append(("fill", x, y))
        super().fill_rect(x, y, w, h, color)

    def fill_text(self, text, x, y, styling):
        self.ops.append(("text", x, y))
        super().fill_text(text, x, y, styling)


def _overlapping():
    return DetectionSet([
        Detection(class_id=1, label="face", score="0.9000", bbox=(10.0, 10.0, 100.0, 60.0)),
        Detection(class_id=1, label="face", score="0.8000", bbox=(14.0, 14.0, 100.0, 60.0)),
    ])


def test_label_text():
    det = Detection(class_id=1, label="face", score="0.9123", bbox=(0, 0, 1, 1))
    assert label_text(det) == "face 91.23%"


def test_all_boxes_before_any_text():
    surface = RecordingSurface()
    OverlayRenderer().draw(surface, _overlapping())

    kinds = [op[0] for op in surface.ops]
    assert kinds == ["clear", "stroke", "fill", "stroke", "fill", "text", "text"]


def test_box_fill_never_covers_label_text():
    styling = Styling(antialias=False)
    renderer = OverlayRenderer(antialias=False)
    first, second = _overlapping()

    alone = OverlaySurface(width=200, height=200)
    alone.fill_text(label_text(first), first.bbox[0], first.bbox[1], styling)
    text_mask = alone.canvas[..., 3] > 0

    text_w, text_h = alone.measure_text(label_text(second), styling)
    x, y = int(second.bbox[0]), int(second.bbox[1])
    fill_mask = np.zeros_like(text_mask)
    fill_mask[y:y + text_h + styling.padding, x:x + text_w + styling.padding] = True

    contested = text_mask & fill_mask
    assert contested.any()

    for order in ([first, second], [second, first]):
        surface = OverlaySurface(width=200, height=200)
        renderer.draw(surface, DetectionSet(order))
        drawn = surface.canvas[contested]
        assert (drawn == np.array(hex2bgra("#000000"))).all()


def test_draw_clears_previous_tick():
    surface = OverlaySurface(width=50, height=50)
    renderer = OverlayRenderer()
    renderer.draw(surface, DetectionSet([
        Detection(class_id=1, label="face", score="0.9000", bbox=(5.0, 5.0, 20.0, 20.0)),
    ]))
    assert surface.canvas[..., 3].any()

    renderer.draw(surface, DetectionSet())
    assert not surface.canvas.any()


def test_surface_resize_and_compose():
    surface = OverlaySurface(width=4, height=4)
    surface.resize(8, 6)
    assert (surface.width, surface.height) == (8, 6)

    surface.fill_rect(0, 0, 2, 2, hex2bgra("#FF0000"))
    frame = np.full((6, 8, 3), 10, dtype=np.uint8)
    out = surface.compose(frame)

    assert out.shape == (6, 8, 3)
    assert out[0, 0].tolist() == [0, 0, 255]
    assert out[5, 7].tolist() == [10, 10, 10]


def test_label_text_keeps_background_opaque():
    for antialias in (False, True):
        styling = Styling(antialias=antialias)
        surface = OverlaySurface(width=120, height=40)
        text = "face 91.23%"
        text_w, text_h = surface.measure_text(text, styling)
        surface.fill_rect(0, 0, text_w + styling.padding, text_h + styling.padding, styling.fill_color)

        surface.fill_text(text, 0, 0, styling)

        background = surface.canvas[:text_h + styling.padding, :text_w + styling.padding]
        assert (background[..., 3] == 255).all()
        assert (background[..., :3].astype(int).sum(axis=-1) < 255).any()


def test_text_on_empty_canvas_is_opaque_where_drawn():
    styling = Styling(antialias=False)
    surface = OverlaySurface(width=120, height=40)

    surface.fill_text("face", 2, 2, styling)

    drawn = surface.canvas[..., 3] > 0
    assert drawn.any()
    assert (surface.canvas[drawn] == np.array(hex2bgra("#000000"))).all()
