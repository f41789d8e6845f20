"""
Shared helpers: pixel indexing, sparse shift matrices, upsampling, logging.
"""

from .util import (
    init_logging,
    get_pixel_index,
    shift_array,
    shift_matrix,
    channel_block_matrix,
    upsample_image,
)

__all__ = [
    "init_logging",
    "get_pixel_index",
    "shift_array",
    "shift_matrix",
    "channel_block_matrix",
    "upsample_image",
]
