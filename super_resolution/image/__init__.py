"""
Image container module.

Provides the channel-major pixel buffer passed between degradation operators
and solvers.
"""

from .image_data import ImageData

__all__ = [
    "ImageData",
]
