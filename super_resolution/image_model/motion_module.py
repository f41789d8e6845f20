"""
Translational motion degradation.

Shifts each frame by its (dx, dy) offset from a MotionShiftSequence using
separable bilinear interpolation. Samples falling outside the image read
zero, so the warp is a plain linear map with an exact transpose.

The interpolation is written out here instead of going through
scipy.ndimage.map_coordinates so that the forward action, its transpose and
the sparse operator matrix are all built from the same (offset, fraction)
weights and agree exactly.
"""

import logging
import math
from typing import Tuple

import numpy as np
from scipy import sparse

from ..image.image_data import ImageData
from ..motion.motion_shift import MotionShiftSequence
from ..util.util import shift_array, shift_matrix, channel_block_matrix
from .degradation_operator import DegradationOperator

log = logging.getLogger(__name__)

# Axes of a (C, H, W) buffer
_ROW_AXIS = 1
_COL_AXIS = 2


def _interpolation_weights(shift: float) -> Tuple[int, float]:
    """Split a shift into its integer part and bilinear fraction."""
    offset = int(math.floor(shift))
    return offset, shift - offset


def _interpolate_axis(pixels: np.ndarray, shift: float, axis: int) -> np.ndarray:
    """
    Sub-pixel shift along one axis: out[j] = in[j - shift].

    For shift = k + f the sample sits between in[j - k] and in[j - k - 1],
    weighted (1 - f) and f.
    """
    offset, fraction = _interpolation_weights(shift)
    result = (1.0 - fraction) * shift_array(pixels, offset, axis)
    if fraction > 0:
        result += fraction * shift_array(pixels, offset + 1, axis)
    return result


def _interpolate_axis_transpose(pixels: np.ndarray, shift: float, axis: int) -> np.ndarray:
    """
    Transpose of _interpolate_axis.

    Scatters each output sample back onto the two source pixels it was
    interpolated from, with the same weights.
    """
    offset, fraction = _interpolation_weights(shift)
    result = (1.0 - fraction) * shift_array(pixels, -offset, axis)
    if fraction > 0:
        result += fraction * shift_array(pixels, -(offset + 1), axis)
    return result


def _interpolation_matrix(n: int, shift: float) -> sparse.csr_matrix:
    """(n, n) matrix of _interpolate_axis along one axis."""
    offset, fraction = _interpolation_weights(shift)
    matrix = (1.0 - fraction) * shift_matrix(n, offset)
    if fraction > 0:
        matrix = matrix + fraction * shift_matrix(n, offset + 1)
    return sparse.csr_matrix(matrix)


class MotionModule(DegradationOperator):
    """
    Per-frame translational warp.

    The MotionShiftSequence is shared, not copied, and must provide a shift
    for every frame index the module is applied to.

    Args:
        motion_shift_sequence: One MotionShift per frame
    """

    def __init__(self, motion_shift_sequence: MotionShiftSequence):
        if not isinstance(motion_shift_sequence, MotionShiftSequence):
            raise TypeError(
                "MotionModule requires a MotionShiftSequence, got "
                f"{type(motion_shift_sequence).__name__}"
            )
        self._motion_shift_sequence = motion_shift_sequence

    @property
    def motion_shift_sequence(self) -> MotionShiftSequence:
        return self._motion_shift_sequence

    def apply_to_image(self, image_data: ImageData, index: int) -> None:
        shift = self._motion_shift_sequence[index]
        log.debug("Frame %d: motion shift (%.3f, %.3f)", index, shift.dx, shift.dy)

        pixels = _interpolate_axis(image_data.pixels, shift.dx, _COL_AXIS)
        pixels = _interpolate_axis(pixels, shift.dy, _ROW_AXIS)
        image_data.set_pixels(pixels)

    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        shift = self._motion_shift_sequence[index]

        # (Y X)^T = X^T Y^T
        pixels = _interpolate_axis_transpose(image_data.pixels, shift.dy, _ROW_AXIS)
        pixels = _interpolate_axis_transpose(pixels, shift.dx, _COL_AXIS)
        image_data.set_pixels(pixels)

    def get_operator_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        shift = self._motion_shift_sequence[index]
        rows, cols = image_size
        row_matrix = _interpolation_matrix(rows, shift.dy)
        col_matrix = _interpolation_matrix(cols, shift.dx)
        single_channel = sparse.kron(row_matrix, col_matrix, format='csr')
        return channel_block_matrix(single_channel, num_channels)

    def get_pixel_patch_radius(self) -> int:
        # Sub-pixel shifts round up to the next whole pixel
        return int(math.ceil(self._motion_shift_sequence.max_shift_magnitude))

    def __repr__(self) -> str:
        return f"MotionModule(frames={len(self._motion_shift_sequence)})"
