"""
Forward image model module.

Degradation operators for motion, PSF blur, downsampling and additive noise,
and the ImageModel that chains them.
"""

from .degradation_operator import DegradationOperator
from .motion_module import MotionModule
from .psf_blur_module import PsfBlurModule, gaussian_kernel
from .downsampling_module import DownsamplingModule
from .additive_noise_module import AdditiveNoiseModule
from .image_model import ImageModel

__all__ = [
    "DegradationOperator",
    "MotionModule",
    "PsfBlurModule",
    "gaussian_kernel",
    "DownsamplingModule",
    "AdditiveNoiseModule",
    "ImageModel",
]
