"""
Inverse solvers module.

Regularizers (total variation, Tikhonov) and the MAP solver that recovers a
high-resolution estimate from low-resolution observations.
"""

from .regularizer import Regularizer
from .tv_regularizer import TotalVariationRegularizer
from .tikhonov_regularizer import TikhonovRegularizer
from .map_solver import MapSolver, MapSolverOptions, SolverResult, SolverStatus

__all__ = [
    "Regularizer",
    "TotalVariationRegularizer",
    "TikhonovRegularizer",
    "MapSolver",
    "MapSolverOptions",
    "SolverResult",
    "SolverStatus",
]
