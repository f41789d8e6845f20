"""
Per-frame translational motion.

A MotionShiftSequence holds one (dx, dy) offset per frame in the observed
sequence. Offsets are in high-resolution pixels and may be sub-pixel.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class MotionShift:
    """
    Translation of one frame relative to the reference.

    Attributes:
        dx: Horizontal shift in pixels (positive moves content right)
        dy: Vertical shift in pixels (positive moves content down)
    """
    dx: float
    dy: float

    def __post_init__(self):
        if not (np.isfinite(self.dx) and np.isfinite(self.dy)):
            raise ValueError(f"Shift must be finite, got ({self.dx}, {self.dy})")

    @property
    def magnitude(self) -> float:
        return float(np.hypot(self.dx, self.dy))


class MotionShiftSequence:
    """
    Read-only ordered sequence of MotionShift values, one per frame.

    Args:
        motion_shifts: Shifts in frame order (must not be empty)
    """

    def __init__(self, motion_shifts: Sequence[MotionShift]):
        shifts = tuple(motion_shifts)
        if not shifts:
            raise ValueError("MotionShiftSequence requires at least one shift")
        for shift in shifts:
            if not isinstance(shift, MotionShift):
                raise TypeError(f"Expected MotionShift, got {type(shift).__name__}")
        self._motion_shifts = shifts

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "MotionShiftSequence":
        """Build from (dx, dy) pairs."""
        return cls([MotionShift(float(dx), float(dy)) for dx, dy in pairs])

    def __getitem__(self, index: int) -> MotionShift:
        if not 0 <= index < len(self._motion_shifts):
            raise IndexError(
                f"Frame index {index} out of range for "
                f"{len(self._motion_shifts)} motion shifts"
            )
        return self._motion_shifts[index]

    def __len__(self) -> int:
        return len(self._motion_shifts)

    def __iter__(self) -> Iterator[MotionShift]:
        return iter(self._motion_shifts)

    @property
    def max_shift_magnitude(self) -> float:
        """Largest absolute shift along either axis, in pixels."""
        return max(max(abs(s.dx), abs(s.dy)) for s in self._motion_shifts)

    def __repr__(self) -> str:
        pairs = ", ".join(f"({s.dx:g}, {s.dy:g})" for s in self._motion_shifts)
        return f"MotionShiftSequence([{pairs}])"
