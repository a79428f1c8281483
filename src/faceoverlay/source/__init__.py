from .base import FrameSource
from .video_source import CameraSource, VideoFileSource

__all__ = ['FrameSource', 'CameraSource', 'VideoFileSource']
