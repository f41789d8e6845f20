"""
Channel-major pixel buffer used as the unit of exchange between operators.
"""

from typing import Tuple

import numpy as np

from ..util.util import get_pixel_index


class ImageData:
    """
    Multi-channel image stored as a (channels, rows, cols) float64 array.

    The flat layout follows the channel-row-col ordering, so flattening is
    a plain C-order ravel of the backing array. Operators mutate the buffer
    in place; size-changing operators replace the backing array with
    set_pixels().

    Args:
        pixels: (C, H, W) array, or (H, W) for a single-channel image
    """

    def __init__(self, pixels: np.ndarray):
        self._pixels = self._as_channel_major(pixels)

    @staticmethod
    def _as_channel_major(pixels: np.ndarray) -> np.ndarray:
        pixels = np.asarray(pixels, dtype=np.float64)
        if pixels.ndim == 2:
            pixels = pixels[np.newaxis, :, :]
        elif pixels.ndim != 3:
            raise ValueError(
                f"Pixels must be a (C, H, W) or (H, W) array, got {pixels.ndim} dims"
            )
        return np.array(pixels, dtype=np.float64, copy=True)

    @classmethod
    def from_hwc(cls, pixels: np.ndarray) -> "ImageData":
        """Create from an interleaved (H, W, C) or (H, W) array."""
        pixels = np.asarray(pixels)
        if pixels.ndim == 3:
            pixels = np.transpose(pixels, (2, 0, 1))
        return cls(pixels)

    @classmethod
    def zeros(cls, num_channels: int, image_size: Tuple[int, int]) -> "ImageData":
        """Create a zero-filled buffer with the given channels and (rows, cols)."""
        rows, cols = image_size
        return cls(np.zeros((num_channels, rows, cols)))

    @property
    def pixels(self) -> np.ndarray:
        """Backing (C, H, W) array (a view; writes go to the buffer)."""
        return self._pixels

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._pixels.shape

    @property
    def num_channels(self) -> int:
        return self._pixels.shape[0]

    @property
    def num_rows(self) -> int:
        return self._pixels.shape[1]

    @property
    def num_cols(self) -> int:
        return self._pixels.shape[2]

    @property
    def image_size(self) -> Tuple[int, int]:
        """(rows, cols) of a single channel."""
        return (self.num_rows, self.num_cols)

    @property
    def num_pixels(self) -> int:
        """Number of pixels in a single channel."""
        return self.num_rows * self.num_cols

    def _check_bounds(self, channel: int, row: int, col: int) -> None:
        if not (0 <= channel < self.num_channels
                and 0 <= row < self.num_rows
                and 0 <= col < self.num_cols):
            raise IndexError(
                f"Pixel ({channel}, {row}, {col}) out of range for "
                f"buffer of shape {self.shape}"
            )

    def get_pixel_value(self, channel: int, row: int, col: int) -> float:
        self._check_bounds(channel, row, col)
        return float(self._pixels[channel, row, col])

    def set_pixel_value(self, channel: int, row: int, col: int, value: float) -> None:
        self._check_bounds(channel, row, col)
        self._pixels[channel, row, col] = value

    def get_pixel_index(self, channel: int, row: int, col: int) -> int:
        """Flat index of (channel, row, col) in get_flat_data()."""
        self._check_bounds(channel, row, col)
        return get_pixel_index(self.image_size, channel, row, col)

    def get_channel(self, channel: int) -> np.ndarray:
        """Single channel as an (H, W) view."""
        if not 0 <= channel < self.num_channels:
            raise IndexError(
                f"Channel {channel} out of range for {self.num_channels} channels"
            )
        return self._pixels[channel]

    def get_flat_data(self) -> np.ndarray:
        """Copy of the pixels as a flat channel-major vector."""
        return self._pixels.ravel().copy()

    def set_flat_data(self, values: np.ndarray) -> None:
        """Overwrite all pixels from a flat channel-major vector."""
        values = np.asarray(values, dtype=np.float64)
        if values.size != self._pixels.size:
            raise ValueError(
                f"Expected {self._pixels.size} values, got {values.size}"
            )
        self._pixels[...] = values.reshape(self._pixels.shape)

    def set_pixels(self, pixels: np.ndarray) -> None:
        """Replace the backing array (dimensions may change)."""
        self._pixels = self._as_channel_major(pixels)

    def to_hwc(self) -> np.ndarray:
        """Interleaved (H, W, C) copy for export collaborators."""
        return np.transpose(self._pixels, (1, 2, 0)).copy()

    def copy(self) -> "ImageData":
        return ImageData(self._pixels)

    def __repr__(self) -> str:
        return (
            f"ImageData(channels={self.num_channels}, "
            f"rows={self.num_rows}, cols={self.num_cols})"
        )
