"""
Motion modeling module.

Per-frame translational offsets used by the motion degradation operator.
"""

from .motion_shift import MotionShift, MotionShiftSequence

__all__ = [
    "MotionShift",
    "MotionShiftSequence",
]
