"""
Point spread function blur degradation.

Convolves each channel with a fixed, normalized Gaussian PSF kernel. The
image is zero-padded at the borders, so the adjoint is a convolution with
the kernel rotated by 180 degrees.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import sparse
from scipy.signal import fftconvolve

from ..image.image_data import ImageData
from ..util.util import shift_matrix, channel_block_matrix
from .degradation_operator import DegradationOperator

log = logging.getLogger(__name__)


def gaussian_kernel(blur_radius: int, blur_sigma: float) -> np.ndarray:
    """
    Generate a Gaussian PSF kernel.

    Args:
        blur_radius: Kernel radius in pixels (kernel size is 2 * radius + 1)
        blur_sigma: Standard deviation of the Gaussian in pixels

    Returns:
        2D kernel normalized to sum to 1
    """
    size_px = 2 * blur_radius + 1
    center = size_px // 2
    y, x = np.ogrid[:size_px, :size_px]
    r2 = (x - center)**2 + (y - center)**2

    kernel = np.exp(-r2 / (2 * blur_sigma**2))
    kernel = kernel / kernel.sum()

    return kernel.astype(np.float64)


def _convolve_channels(pixels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    result = np.zeros_like(pixels)
    for c in range(pixels.shape[0]):
        result[c] = fftconvolve(pixels[c], kernel, mode='same')
    return result


class PsfBlurModule(DegradationOperator):
    """
    Blur with a fixed Gaussian point spread function.

    Args:
        blur_radius: Kernel radius in pixels (positive integer)
        blur_sigma: Gaussian standard deviation in pixels (positive)
        kernel: Optional explicit odd-sized kernel; overrides the Gaussian
    """

    def __init__(
        self,
        blur_radius: int,
        blur_sigma: float,
        kernel: Optional[np.ndarray] = None,
    ):
        if int(blur_radius) != blur_radius or blur_radius <= 0:
            raise ValueError(f"blur_radius must be a positive integer, got {blur_radius}")
        if blur_sigma <= 0:
            raise ValueError(f"blur_sigma must be positive, got {blur_sigma}")

        self.blur_radius = int(blur_radius)
        self.blur_sigma = float(blur_sigma)

        if kernel is None:
            kernel = gaussian_kernel(self.blur_radius, self.blur_sigma)
        else:
            kernel = np.asarray(kernel, dtype=np.float64)
            size_px = 2 * self.blur_radius + 1
            if kernel.shape != (size_px, size_px):
                raise ValueError(
                    f"Kernel shape {kernel.shape} does not match radius "
                    f"{self.blur_radius} (expected {(size_px, size_px)})"
                )
        self._kernel = kernel

    @property
    def kernel(self) -> np.ndarray:
        return self._kernel.copy()

    def apply_to_image(self, image_data: ImageData, index: int) -> None:
        image_data.set_pixels(_convolve_channels(image_data.pixels, self._kernel))

    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        flipped = self._kernel[::-1, ::-1]
        image_data.set_pixels(_convolve_channels(image_data.pixels, flipped))

    def get_operator_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        rows, cols = image_size
        radius = self.blur_radius
        n = rows * cols

        # out[r, c] = sum k[a, b] * in[r + radius - a, c + radius - b],
        # i.e. a weighted sum of zero-filled shifts by (a - radius, b - radius)
        single_channel = sparse.csr_matrix((n, n))
        for a in range(self._kernel.shape[0]):
            for b in range(self._kernel.shape[1]):
                weight = self._kernel[a, b]
                if weight == 0:
                    continue
                single_channel = single_channel + weight * sparse.kron(
                    shift_matrix(rows, a - radius),
                    shift_matrix(cols, b - radius),
                    format='csr',
                )
        log.debug("Built %dx%d blur matrix (nnz=%d)", n, n, single_channel.nnz)
        return channel_block_matrix(single_channel, num_channels)

    def get_pixel_patch_radius(self) -> int:
        return self.blur_radius

    def __repr__(self) -> str:
        return f"PsfBlurModule(blur_radius={self.blur_radius}, blur_sigma={self.blur_sigma})"
