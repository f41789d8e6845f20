"""
Additive sensor noise degradation.

Adds independent zero-mean Gaussian noise to every pixel. Noise has no
useful linear adjoint; the transpose is the identity.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import sparse

from ..image.image_data import ImageData
from .degradation_operator import DegradationOperator

log = logging.getLogger(__name__)


class AdditiveNoiseModule(DegradationOperator):
    """
    Zero-mean Gaussian noise with a fixed standard deviation.

    Args:
        noise_sigma: Standard deviation in pixel intensity units (>= 0)
        seed: Random seed for reproducibility (None for non-deterministic)
    """

    is_stochastic = True

    def __init__(self, noise_sigma: float, seed: Optional[int] = None):
        if noise_sigma < 0:
            raise ValueError(f"noise_sigma must be non-negative, got {noise_sigma}")
        self.noise_sigma = float(noise_sigma)
        self._rng = np.random.default_rng(seed)

    def apply_to_image(self, image_data: ImageData, index: int) -> None:
        if self.noise_sigma == 0:
            return
        log.debug("Frame %d: adding noise (sigma=%.3f)", index, self.noise_sigma)
        noise = self._rng.normal(0, self.noise_sigma, size=image_data.shape)
        image_data.pixels[...] += noise

    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        pass

    def get_operator_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        rows, cols = image_size
        return sparse.identity(num_channels * rows * cols, format='csr')

    def get_pixel_patch_radius(self) -> int:
        return 0

    def __repr__(self) -> str:
        return f"AdditiveNoiseModule(noise_sigma={self.noise_sigma})"
