"""
General utilities shared across the super-resolution package.

Pixel indexing for channel-major buffers, sparse shift matrices used to
build operator matrices, image upsampling, and logging setup.
"""

import logging
from typing import Tuple, Union

import cv2
import numpy as np
from scipy import sparse


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# OpenCV interpolation flags by name
INTERPOLATION_MODES = {
    'nearest': cv2.INTER_NEAREST,
    'linear': cv2.INTER_LINEAR,
    'cubic': cv2.INTER_CUBIC,
}


def init_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging for an application using this package.

    Library modules only create loggers; handlers are left to the caller.

    Args:
        level: Logging level as an int or name ('debug', 'info', ...)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_pixel_index(
    image_size: Tuple[int, int],
    channel: int,
    row: int,
    col: int,
) -> int:
    """
    Index into a flat pixel array from (channel, row, col) coordinates.

    Assumes the standard channel-row-col ordering.

    Args:
        image_size: (rows, cols) of a single channel
        channel: Channel (band) index
        row: Row index
        col: Column index

    Returns:
        Flat index
    """
    rows, cols = image_size
    return channel * rows * cols + row * cols + col


def shift_array(array: np.ndarray, offset: int, axis: int) -> np.ndarray:
    """
    Integer shift with zero fill: out[j] = array[j - offset] along axis.
    """
    result = np.zeros_like(array)
    n = array.shape[axis]
    if abs(offset) >= n:
        return result

    src = [slice(None)] * array.ndim
    dst = [slice(None)] * array.ndim
    if offset >= 0:
        src[axis] = slice(0, n - offset)
        dst[axis] = slice(offset, n)
    else:
        src[axis] = slice(-offset, n)
        dst[axis] = slice(0, n + offset)
    result[tuple(dst)] = array[tuple(src)]
    return result


def shift_matrix(n: int, offset: int) -> sparse.csr_matrix:
    """
    Sparse (n, n) matrix of shift_array along one axis.

    Row j holds a single 1 at column j - offset (when in range).
    """
    if abs(offset) >= n:
        return sparse.csr_matrix((n, n))
    return sparse.eye(n, n, k=-offset, format='csr')


def channel_block_matrix(
    single_channel: sparse.spmatrix,
    num_channels: int,
) -> sparse.csr_matrix:
    """Repeat a single-channel operator along the diagonal for every channel."""
    if num_channels == 1:
        return sparse.csr_matrix(single_channel)
    return sparse.kron(sparse.identity(num_channels), single_channel, format='csr')


def upsample_image(
    pixels: np.ndarray,
    scale: int,
    interpolation: str = 'nearest',
) -> np.ndarray:
    """
    Upsample a channel-major (C, H, W) array by an integer factor.

    Args:
        pixels: Input pixels (C, H, W)
        scale: Integer upscale factor
        interpolation: 'nearest', 'linear' or 'cubic'

    Returns:
        Upsampled pixels (C, H * scale, W * scale) as float64
    """
    if interpolation not in INTERPOLATION_MODES:
        raise ValueError(f"Unknown interpolation mode: {interpolation}")
    if scale < 1:
        raise ValueError(f"scale must be a positive integer, got {scale}")

    num_channels, rows, cols = pixels.shape
    result = np.zeros((num_channels, rows * scale, cols * scale), dtype=np.float64)
    for c in range(num_channels):
        result[c] = cv2.resize(
            pixels[c].astype(np.float64),
            (cols * scale, rows * scale),
            interpolation=INTERPOLATION_MODES[interpolation],
        )
    return result
