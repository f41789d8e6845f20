import numpy as np
import pytest

from super_resolution.image.image_data import ImageData
from super_resolution.util.util import get_pixel_index


def test_single_channel_from_2d_array():
    image = ImageData(np.arange(12).reshape(3, 4))

    assert image.shape == (1, 3, 4)
    assert image.num_channels == 1
    assert image.image_size == (3, 4)
    assert image.num_pixels == 12
    assert image.get_pixel_value(0, 2, 1) == 9.0


def test_from_hwc_is_channel_major():
    hwc = np.zeros((2, 3, 3))
    hwc[..., 0] = 1
    hwc[..., 2] = 7

    image = ImageData.from_hwc(hwc)

    assert image.shape == (3, 2, 3)
    assert np.all(image.get_channel(0) == 1)
    assert np.all(image.get_channel(2) == 7)
    np.testing.assert_array_equal(image.to_hwc(), hwc)


def test_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        ImageData(np.zeros((1, 2, 3, 4)))
    with pytest.raises(ValueError):
        ImageData(np.zeros(5))


def test_out_of_bounds_access_raises():
    image = ImageData.zeros(2, (3, 4))

    with pytest.raises(IndexError):
        image.get_pixel_value(2, 0, 0)
    with pytest.raises(IndexError):
        image.set_pixel_value(0, 3, 0, 1.0)
    with pytest.raises(IndexError):
        image.get_pixel_value(0, 0, -1)
    with pytest.raises(IndexError):
        image.get_channel(5)


def test_flat_layout_follows_channel_row_col_order():
    image = ImageData.zeros(2, (3, 4))
    image.set_pixel_value(1, 2, 3, 42.0)
    image.set_pixel_value(0, 1, 0, -1.0)

    flat = image.get_flat_data()

    assert flat[get_pixel_index((3, 4), 1, 2, 3)] == 42.0
    assert flat[image.get_pixel_index(0, 1, 0)] == -1.0
    assert get_pixel_index((3, 4), 1, 2, 3) == 23


def test_set_flat_data_round_trip_and_size_check():
    image = ImageData.zeros(2, (2, 2))
    image.set_flat_data(np.arange(8))

    assert image.get_pixel_value(1, 0, 1) == 5.0
    with pytest.raises(ValueError):
        image.set_flat_data(np.arange(7))


def test_copy_and_flat_data_are_independent():
    image = ImageData(np.ones((2, 2)))
    clone = image.copy()
    flat = image.get_flat_data()

    clone.set_pixel_value(0, 0, 0, 5.0)
    flat[0] = 9.0

    assert image.get_pixel_value(0, 0, 0) == 1.0


def test_set_pixels_can_change_size():
    image = ImageData.zeros(1, (4, 4))
    image.set_pixels(np.ones((1, 2, 2)))

    assert image.image_size == (2, 2)
