from .base import DetPreprocessor
from .batch import BatchPreprocessor

__all__ = ['DetPreprocessor', 'BatchPreprocessor']
