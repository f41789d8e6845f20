"""
Regularization terms for the MAP estimator.

A regularizer maps a flattened high-resolution estimate to a residual per
pixel value. The solver adds the weighted sum of these residuals to the
data-fidelity cost and uses the gradient of that sum in its update.
"""

from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np


class Regularizer(ABC):
    """
    Abstract base class for regularizers.

    Args:
        image_size: (rows, cols) of the high-resolution estimate
        num_channels: Number of channels in the estimate
    """

    def __init__(self, image_size: Tuple[int, int], num_channels: int = 1):
        rows, cols = image_size
        if rows < 1 or cols < 1 or num_channels < 1:
            raise ValueError(
                f"Invalid regularizer dimensions: {num_channels} x {rows} x {cols}"
            )
        self.image_size = (int(rows), int(cols))
        self.num_channels = int(num_channels)

    @property
    def num_values(self) -> int:
        rows, cols = self.image_size
        return self.num_channels * rows * cols

    def _as_channel_major(self, image_values: np.ndarray) -> np.ndarray:
        """Reshape a flat channel-major vector to (C, H, W)."""
        image_values = np.asarray(image_values, dtype=np.float64)
        if image_values.size != self.num_values:
            raise ValueError(
                f"Expected {self.num_values} image values, got {image_values.size}"
            )
        return image_values.reshape(self.num_channels, *self.image_size)

    @abstractmethod
    def compute_residuals(self, image_values: np.ndarray) -> np.ndarray:
        """
        Regularization residual for every pixel value.

        Args:
            image_values: Flat channel-major estimate

        Returns:
            Flat residual vector, one entry per pixel value
        """
        pass

    @abstractmethod
    def compute_gradient(self, image_values: np.ndarray) -> np.ndarray:
        """Gradient of compute_cost with respect to the flat estimate."""
        pass

    def compute_cost(self, image_values: np.ndarray) -> float:
        """Total regularization cost (sum of the residuals)."""
        return float(np.sum(self.compute_residuals(image_values)))


def forward_differences(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Horizontal and vertical forward differences of a (C, H, W) array.

    The difference is zero in the last column (horizontal) and the last row
    (vertical), as if the edge pixel were replicated.
    """
    grad_x = np.zeros_like(pixels)
    grad_y = np.zeros_like(pixels)
    grad_x[:, :, :-1] = pixels[:, :, 1:] - pixels[:, :, :-1]
    grad_y[:, :-1, :] = pixels[:, 1:, :] - pixels[:, :-1, :]
    return grad_x, grad_y


def forward_differences_transpose(grad_x: np.ndarray, grad_y: np.ndarray) -> np.ndarray:
    """
    Transpose of forward_differences applied to (grad_x, grad_y).

    Equal to the negative divergence with backward differences.
    """
    result = np.zeros_like(grad_x)

    result[:, :, :-1] -= grad_x[:, :, :-1]
    result[:, :, 1:] += grad_x[:, :, :-1]

    result[:, :-1, :] -= grad_y[:, :-1, :]
    result[:, 1:, :] += grad_y[:, :-1, :]

    return result
