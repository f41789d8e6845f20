"""Shared fixtures for the super-resolution tests."""

import numpy as np
import pytest

from super_resolution.image.image_data import ImageData
from super_resolution.motion.motion_shift import MotionShiftSequence


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def motion_shift_sequence():
    return MotionShiftSequence.from_pairs([
        (0.0, 0.0),
        (1.0, 0.0),
        (0.0, 1.0),
        (0.35, -1.6),
    ])


@pytest.fixture
def apply_forward():
    """Run an operator (or model) forward on a copy of the pixels."""
    def _apply(operator, pixels, index=0):
        image = ImageData(pixels)
        operator.apply_to_image(image, index)
        return image.pixels
    return _apply


@pytest.fixture
def apply_transpose():
    """Run an operator (or model) adjoint on a copy of the pixels."""
    def _apply(operator, pixels, index=0):
        image = ImageData(pixels)
        operator.apply_transpose_to_image(image, index)
        return image.pixels
    return _apply
