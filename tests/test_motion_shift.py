import dataclasses

import pytest

from super_resolution.motion.motion_shift import MotionShift, MotionShiftSequence


def test_motion_shift_is_immutable():
    shift = MotionShift(1.5, -2.0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        shift.dx = 3.0
    assert shift.magnitude == pytest.approx(2.5)


def test_sequence_indexing_and_length():
    sequence = MotionShiftSequence.from_pairs([(0, 0), (1, 2), (-3, 0.5)])

    assert len(sequence) == 3
    assert sequence[1] == MotionShift(1.0, 2.0)
    assert [s.dx for s in sequence] == [0.0, 1.0, -3.0]
    assert sequence.max_shift_magnitude == 3.0


def test_empty_sequence_is_a_configuration_error():
    with pytest.raises(ValueError):
        MotionShiftSequence([])


def test_out_of_range_index_is_not_clamped():
    sequence = MotionShiftSequence.from_pairs([(0, 0), (1, 1)])

    with pytest.raises(IndexError):
        sequence[2]
    with pytest.raises(IndexError):
        sequence[-1]


def test_rejects_non_motion_shift_entries():
    with pytest.raises(TypeError):
        MotionShiftSequence([(1, 2)])


@pytest.mark.parametrize("dx, dy", [
    (float('nan'), 0.0),
    (0.0, float('inf')),
    (-float('inf'), 1.0),
])
def test_non_finite_shift_is_rejected_at_construction(dx, dy):
    with pytest.raises(ValueError):
        MotionShift(dx, dy)
    with pytest.raises(ValueError):
        MotionShiftSequence.from_pairs([(0, 0), (dx, dy)])
