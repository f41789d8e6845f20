import numpy as np
import pytest

from super_resolution.image.image_data import ImageData
from super_resolution.motion.motion_shift import MotionShiftSequence
from super_resolution.image_model import (
    AdditiveNoiseModule,
    DownsamplingModule,
    MotionModule,
    PsfBlurModule,
    gaussian_kernel,
)


ASYMMETRIC_KERNEL = np.array([
    [0.00, 0.10, 0.05],
    [0.20, 0.30, 0.00],
    [0.05, 0.10, 0.20],
])


def _operators(motion_shift_sequence):
    return [
        MotionModule(motion_shift_sequence),
        PsfBlurModule(2, 1.0),
        PsfBlurModule(1, 1.0, kernel=ASYMMETRIC_KERNEL),
        DownsamplingModule(2),
    ]


def _output_shape(operator, shape):
    return (shape[0], *operator.get_output_size(shape[1:]))


# ---------------------------------------------------------------------------
# Properties shared by all deterministic operators
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("operator_index", range(4))
@pytest.mark.parametrize("frame_index", [1, 3])
def test_adjoint_identity(
    operator_index, frame_index, motion_shift_sequence, rng, apply_forward, apply_transpose
):
    operator = _operators(motion_shift_sequence)[operator_index]
    shape = (2, 8, 10)
    u = rng.normal(size=shape)
    v = rng.normal(size=_output_shape(operator, shape))

    lhs = np.sum(apply_forward(operator, u, frame_index) * v)
    rhs = np.sum(u * apply_transpose(operator, v, frame_index))

    assert lhs == pytest.approx(rhs, rel=1e-10, abs=1e-10)


@pytest.mark.parametrize("operator_index", range(4))
def test_operator_matrix_matches_apply(
    operator_index, motion_shift_sequence, rng, apply_forward, apply_transpose
):
    operator = _operators(motion_shift_sequence)[operator_index]
    shape = (2, 6, 8)
    frame_index = 3
    matrix = operator.get_operator_matrix(shape[1:], frame_index, num_channels=2)

    x = rng.normal(size=shape)
    expected = apply_forward(operator, x, frame_index).ravel()
    np.testing.assert_allclose(matrix @ x.ravel(), expected, atol=1e-12)

    y = rng.normal(size=_output_shape(operator, shape))
    expected = apply_transpose(operator, y, frame_index).ravel()
    np.testing.assert_allclose(matrix.T @ y.ravel(), expected, atol=1e-12)


LARGE_FOOTPRINT_CASES = [
    # Shifts reaching past the image, including negative sub-pixel ones
    (MotionModule(MotionShiftSequence.from_pairs([(10, -7)])), (2, 5, 6)),
    (MotionModule(MotionShiftSequence.from_pairs([(-2.3, 0.6)])), (1, 5, 6)),
    (MotionModule(MotionShiftSequence.from_pairs([(-0.4, -5.5)])), (2, 5, 6)),
    (MotionModule(MotionShiftSequence.from_pairs([(6.5, 4.75)])), (1, 5, 6)),
    # Kernels larger than the image
    (PsfBlurModule(3, 1.5), (1, 2, 2)),
    (PsfBlurModule(3, 1.5), (2, 1, 1)),
    (PsfBlurModule(2, 1.0), (1, 3, 1)),
]


@pytest.mark.parametrize("operator, shape", LARGE_FOOTPRINT_CASES)
def test_operator_matrix_matches_apply_when_footprint_exceeds_image(
    operator, shape, rng, apply_forward, apply_transpose
):
    matrix = operator.get_operator_matrix(shape[1:], 0, num_channels=shape[0])
    x = rng.normal(size=shape)
    y = rng.normal(size=shape)

    assert matrix.shape == (x.size, x.size)
    np.testing.assert_allclose(matrix @ x.ravel(), apply_forward(operator, x).ravel(), atol=1e-12)
    np.testing.assert_allclose(
        matrix.T @ y.ravel(), apply_transpose(operator, y).ravel(), atol=1e-12)
    assert np.sum(apply_forward(operator, x) * y) == pytest.approx(
        np.sum(x * apply_transpose(operator, y)), rel=1e-10, abs=1e-12)


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------

def test_motion_integer_shift_moves_content(apply_forward):
    shifts = MotionShiftSequence.from_pairs([(2, 1)])
    pixels = np.arange(20, dtype=float).reshape(1, 4, 5)

    result = apply_forward(MotionModule(shifts), pixels)

    expected = np.zeros_like(pixels)
    expected[:, 1:, 2:] = pixels[:, :-1, :-2]
    np.testing.assert_allclose(result, expected)


def test_motion_half_pixel_shift_interpolates(apply_forward):
    shifts = MotionShiftSequence.from_pairs([(0.5, 0)])
    pixels = np.array([[[0.0, 2.0, 4.0, 6.0]]])

    result = apply_forward(MotionModule(shifts), pixels)

    np.testing.assert_allclose(result, [[[0.0, 1.0, 3.0, 5.0]]])


def test_motion_transpose_is_not_negated_forward_at_borders(apply_forward, apply_transpose):
    shifts = MotionShiftSequence.from_pairs([(1, 0)])
    pixels = np.array([[[1.0, 2.0, 3.0]]])

    result = apply_transpose(MotionModule(shifts), pixels)

    # Content moves back left; the first column is pushed out of the image
    np.testing.assert_allclose(result, [[[2.0, 3.0, 0.0]]])


def test_motion_index_out_of_range_raises(motion_shift_sequence, apply_forward):
    module = MotionModule(motion_shift_sequence)
    pixels = np.zeros((1, 4, 4))

    with pytest.raises(IndexError):
        apply_forward(module, pixels, len(motion_shift_sequence))
    with pytest.raises(IndexError):
        module.get_operator_matrix((4, 4), -1)


def test_motion_patch_radius_rounds_up(motion_shift_sequence):
    assert MotionModule(motion_shift_sequence).get_pixel_patch_radius() == 2


def test_motion_requires_sequence():
    with pytest.raises(TypeError):
        MotionModule([(0, 0)])


# ---------------------------------------------------------------------------
# Blur
# ---------------------------------------------------------------------------

def test_gaussian_kernel_is_normalized_and_symmetric():
    kernel = gaussian_kernel(3, 1.5)

    assert kernel.shape == (7, 7)
    assert kernel.sum() == pytest.approx(1.0)
    np.testing.assert_allclose(kernel, kernel[::-1, ::-1])
    assert kernel[3, 3] == kernel.max()


def test_blur_preserves_constant_interior(apply_forward):
    pixels = np.full((1, 12, 12), 10.0)

    result = apply_forward(PsfBlurModule(2, 1.0), pixels)

    np.testing.assert_allclose(result[:, 2:-2, 2:-2], 10.0)
    assert result[0, 0, 0] < 10.0


def test_blur_transpose_uses_rotated_kernel(apply_transpose):
    module = PsfBlurModule(1, 1.0, kernel=ASYMMETRIC_KERNEL)
    impulse = np.zeros((1, 5, 5))
    impulse[0, 2, 2] = 1.0

    response = apply_transpose(module, impulse)

    np.testing.assert_allclose(response[0, 1:4, 1:4], ASYMMETRIC_KERNEL[::-1, ::-1], atol=1e-12)


def test_blur_configuration_errors():
    with pytest.raises(ValueError):
        PsfBlurModule(0, 1.0)
    with pytest.raises(ValueError):
        PsfBlurModule(2, 0.0)
    with pytest.raises(ValueError):
        PsfBlurModule(2, 1.0, kernel=np.ones((3, 3)))


def test_blur_patch_radius():
    assert PsfBlurModule(3, 1.0).get_pixel_patch_radius() == 3


# ---------------------------------------------------------------------------
# Downsampling
# ---------------------------------------------------------------------------

def test_downsampling_hand_computed_example(apply_forward):
    pixels = np.arange(1, 17, dtype=float).reshape(1, 4, 4)

    result = apply_forward(DownsamplingModule(2), pixels)

    np.testing.assert_allclose(result, [[[3.5, 5.5], [11.5, 13.5]]])


def test_downsampling_transpose_hand_computed_example(apply_transpose):
    pixels = np.array([[[1.0, 2.0], [3.0, 4.0]]])

    result = apply_transpose(DownsamplingModule(2), pixels)

    np.testing.assert_allclose(result, [[
        [0.25, 0.25, 0.50, 0.50],
        [0.25, 0.25, 0.50, 0.50],
        [0.75, 0.75, 1.00, 1.00],
        [0.75, 0.75, 1.00, 1.00],
    ]])


def test_downsampling_of_transpose_scales_by_inverse_area(rng, apply_forward, apply_transpose):
    module = DownsamplingModule(3)
    low_res = rng.normal(size=(2, 4, 5))

    round_trip = apply_forward(module, apply_transpose(module, low_res))

    np.testing.assert_allclose(round_trip, low_res / 9.0)


def test_downsampling_output_size_and_radius():
    module = DownsamplingModule(3)

    assert module.get_output_size((9, 12)) == (3, 4)
    assert module.get_pixel_patch_radius() == 3


@pytest.mark.parametrize("scale", [0, -2, 1.5])
def test_downsampling_rejects_invalid_scale(scale):
    with pytest.raises(ValueError):
        DownsamplingModule(scale)


def test_downsampling_rejects_indivisible_size(apply_forward):
    module = DownsamplingModule(2)

    with pytest.raises(ValueError):
        apply_forward(module, np.zeros((1, 5, 4)))
    with pytest.raises(ValueError):
        module.get_operator_matrix((4, 5), 0)


# ---------------------------------------------------------------------------
# Noise
# ---------------------------------------------------------------------------

def test_noise_statistics(apply_forward):
    pixels = np.full((1, 200, 200), 50.0)

    result = apply_forward(AdditiveNoiseModule(2.0, seed=7), pixels)

    noise = result - pixels
    assert abs(noise.mean()) < 0.05
    assert noise.std() == pytest.approx(2.0, rel=0.05)


def test_noise_is_reproducible_with_seed(rng, apply_forward):
    pixels = rng.normal(size=(1, 6, 6))

    first = apply_forward(AdditiveNoiseModule(1.0, seed=3), pixels)
    second = apply_forward(AdditiveNoiseModule(1.0, seed=3), pixels)

    np.testing.assert_array_equal(first, second)


def test_noise_transpose_and_matrix_are_identity(rng, apply_transpose):
    module = AdditiveNoiseModule(5.0)
    pixels = rng.normal(size=(2, 3, 4))

    np.testing.assert_array_equal(apply_transpose(module, pixels), pixels)
    matrix = module.get_operator_matrix((3, 4), 0, num_channels=2)
    np.testing.assert_array_equal(matrix.toarray(), np.eye(24))
    assert module.get_pixel_patch_radius() == 0
    assert module.is_stochastic


def test_zero_noise_leaves_image_unchanged(rng, apply_forward):
    pixels = rng.normal(size=(1, 4, 4))

    np.testing.assert_array_equal(apply_forward(AdditiveNoiseModule(0.0), pixels), pixels)


def test_negative_noise_sigma_raises():
    with pytest.raises(ValueError):
        AdditiveNoiseModule(-1.0)
