"""
Spatial downsampling degradation.

Models sensor pixel integration: each low-resolution pixel is the mean of a
non-overlapping scale x scale block of high-resolution pixels. The adjoint
replicates each low-resolution value over its block, scaled by 1 / scale^2.
"""

import logging
from typing import Tuple

import numpy as np
from scipy import sparse

from ..image.image_data import ImageData
from ..util.util import channel_block_matrix
from .degradation_operator import DegradationOperator

log = logging.getLogger(__name__)


class DownsamplingModule(DegradationOperator):
    """
    Block-averaging decimation by an integer scale factor.

    Image sides must be exact multiples of the scale.

    Args:
        scale: Downsampling factor (positive integer)
    """

    def __init__(self, scale: int):
        if isinstance(scale, bool) or int(scale) != scale or scale < 1:
            raise ValueError(f"scale must be a positive integer, got {scale}")
        self.scale = int(scale)

    def _check_size(self, image_size: Tuple[int, int]) -> None:
        rows, cols = image_size
        if rows % self.scale or cols % self.scale:
            raise ValueError(
                f"Image size {rows}x{cols} is not divisible by scale {self.scale}"
            )

    def get_output_size(self, image_size: Tuple[int, int]) -> Tuple[int, int]:
        self._check_size(image_size)
        rows, cols = image_size
        return (rows // self.scale, cols // self.scale)

    def apply_to_image(self, image_data: ImageData, index: int) -> None:
        self._check_size(image_data.image_size)
        s = self.scale
        c, h, w = image_data.shape
        log.debug("Frame %d: downsampling %dx%d by %d", index, h, w, s)
        reshaped = image_data.pixels.reshape(c, h // s, s, w // s, s)
        image_data.set_pixels(reshaped.mean(axis=(2, 4)))

    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        s = self.scale
        upsampled = np.repeat(np.repeat(image_data.pixels, s, axis=1), s, axis=2)
        image_data.set_pixels(upsampled / (s * s))

    def _decimation_matrix(self, n: int) -> sparse.csr_matrix:
        """(n / scale, n) averaging matrix along one axis."""
        s = self.scale
        n_out = n // s
        row_idx = np.repeat(np.arange(n_out), s)
        col_idx = np.arange(n_out * s)
        values = np.full(n_out * s, 1.0 / s)
        return sparse.csr_matrix((values, (row_idx, col_idx)), shape=(n_out, n))

    def get_operator_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        self._check_size(image_size)
        rows, cols = image_size
        single_channel = sparse.kron(
            self._decimation_matrix(rows),
            self._decimation_matrix(cols),
            format='csr',
        )
        return channel_block_matrix(single_channel, num_channels)

    def get_pixel_patch_radius(self) -> int:
        return self.scale

    def __repr__(self) -> str:
        return f"DownsamplingModule(scale={self.scale})"
