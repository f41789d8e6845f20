"""
Multi-Frame Super Resolution

Recovers a high-resolution image from a sequence of shifted, blurred,
downsampled and noisy low-resolution frames:

- Image model: motion, PSF blur, downsampling and noise operators with
  forward, adjoint and explicit matrix forms
- Solvers: total variation / Tikhonov regularizers and a MAP estimator
"""

from .image.image_data import ImageData
from .motion.motion_shift import MotionShift, MotionShiftSequence
from .image_model import (
    DegradationOperator,
    MotionModule,
    PsfBlurModule,
    DownsamplingModule,
    AdditiveNoiseModule,
    ImageModel,
)
from .solvers import (
    Regularizer,
    TotalVariationRegularizer,
    TikhonovRegularizer,
    MapSolver,
    MapSolverOptions,
    SolverResult,
    SolverStatus,
)

__all__ = [
    "ImageData",
    "MotionShift",
    "MotionShiftSequence",
    "DegradationOperator",
    "MotionModule",
    "PsfBlurModule",
    "DownsamplingModule",
    "AdditiveNoiseModule",
    "ImageModel",
    "Regularizer",
    "TotalVariationRegularizer",
    "TikhonovRegularizer",
    "MapSolver",
    "MapSolverOptions",
    "SolverResult",
    "SolverStatus",
]
__version__ = "0.1.0"
