"""
Total variation regularization.

Total variation is the magnitude of the image gradient at each pixel. It
imposes smoothness on the estimate (small changes between neighboring pixels
in x and y) while still allowing sharp edges, which makes it a good denoiser
for super-resolution.
"""

from typing import Tuple

import numpy as np

from .regularizer import Regularizer, forward_differences, forward_differences_transpose


class TotalVariationRegularizer(Regularizer):
    """
    Isotropic total variation with a smooth surrogate near zero.

    The residual at each pixel is sqrt(gx^2 + gy^2 + epsilon^2), where gx and
    gy are forward differences. epsilon keeps the gradient finite in flat
    regions.

    Args:
        image_size: (rows, cols) of the estimate
        num_channels: Number of channels
        epsilon: Smoothing constant (positive)
    """

    def __init__(
        self,
        image_size: Tuple[int, int],
        num_channels: int = 1,
        epsilon: float = 1e-3,
    ):
        super().__init__(image_size, num_channels)
        if epsilon <= 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        self.epsilon = float(epsilon)

    def _gradient_magnitude(self, image_values: np.ndarray):
        pixels = self._as_channel_major(image_values)
        grad_x, grad_y = forward_differences(pixels)
        magnitude = np.sqrt(grad_x**2 + grad_y**2 + self.epsilon**2)
        return grad_x, grad_y, magnitude

    def compute_residuals(self, image_values: np.ndarray) -> np.ndarray:
        _, _, magnitude = self._gradient_magnitude(image_values)
        return magnitude.ravel()

    def compute_gradient(self, image_values: np.ndarray) -> np.ndarray:
        grad_x, grad_y, magnitude = self._gradient_magnitude(image_values)
        gradient = forward_differences_transpose(grad_x / magnitude, grad_y / magnitude)
        return gradient.ravel()
