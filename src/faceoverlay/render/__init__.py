from .renderer import OverlayRenderer, label_text
from .surface import OverlaySurface
from .viewer import OverlayViewer

__all__ = ['OverlayRenderer', 'OverlaySurface', 'OverlayViewer', 'label_text']
