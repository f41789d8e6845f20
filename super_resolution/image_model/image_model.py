"""
Forward image model.

Composes degradation operators into the full observation model
y = N(D(B(M(x)))) and provides its adjoint for propagating residuals back to
the high-resolution domain.
"""

import logging
from typing import Iterator, List, Tuple

from scipy import sparse

from ..image.image_data import ImageData
from .degradation_operator import DegradationOperator

log = logging.getLogger(__name__)


class ImageModel:
    """
    Ordered chain of degradation operators.

    Operators are applied in the order they were added. The transpose
    applies each operator's adjoint in reverse order, since
    (A B C)^T = C^T B^T A^T.

    Example:
        >>> model = ImageModel()
        >>> model.add_degradation_operator(MotionModule(shifts))
        >>> model.add_degradation_operator(PsfBlurModule(2, 1.0))
        >>> model.add_degradation_operator(DownsamplingModule(2))
        >>> model.apply_to_image(frame, index=0)
    """

    def __init__(self):
        self._degradation_operators: List[DegradationOperator] = []

    def add_degradation_operator(self, degradation_operator: DegradationOperator) -> None:
        """Append an operator to the end of the chain."""
        if not isinstance(degradation_operator, DegradationOperator):
            raise TypeError(
                "Expected a DegradationOperator, got "
                f"{type(degradation_operator).__name__}"
            )
        self._degradation_operators.append(degradation_operator)
        log.debug("Added %r (chain length %d)", degradation_operator,
                  len(self._degradation_operators))

    @property
    def num_operators(self) -> int:
        return len(self._degradation_operators)

    def __iter__(self) -> Iterator[DegradationOperator]:
        return iter(self._degradation_operators)

    def __len__(self) -> int:
        return len(self._degradation_operators)

    def apply_to_image(
        self,
        image_data: ImageData,
        index: int,
        skip_stochastic: bool = False,
    ) -> None:
        """
        Simulate the observation of frame `index` in place.

        Args:
            image_data: High-resolution buffer, degraded in place
            index: Frame index in the observed sequence
            skip_stochastic: If True, operators such as noise are left out
                so the result is a deterministic linear function of the input
        """
        for degradation_operator in self._degradation_operators:
            if skip_stochastic and degradation_operator.is_stochastic:
                continue
            degradation_operator.apply_to_image(image_data, index)

    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        """
        Apply the adjoint of the full model for frame `index` in place.

        Args:
            image_data: Buffer in the observation domain
            index: Frame index in the observed sequence
        """
        for degradation_operator in reversed(self._degradation_operators):
            degradation_operator.apply_transpose_to_image(image_data, index)

    def get_pixel_patch_radius(self) -> int:
        """Combined footprint radius of all operators."""
        return sum(op.get_pixel_patch_radius() for op in self._degradation_operators)

    def get_output_size(self, image_size: Tuple[int, int]) -> Tuple[int, int]:
        """(rows, cols) of a simulated observation for a given input size."""
        size = tuple(image_size)
        for degradation_operator in self._degradation_operators:
            size = degradation_operator.get_output_size(size)
        return size

    def get_model_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        """
        Explicit matrix of the deterministic part of the model for one frame.

        Each operator's matrix is built for the size of the image it
        receives, and the matrices are multiplied in composition order.
        Stochastic operators contribute the identity.

        Args:
            image_size: (rows, cols) of the high-resolution image
            index: Frame index in the observed sequence
            num_channels: Number of image channels

        Returns:
            Sparse matrix of shape (observed pixels, high-resolution pixels)
        """
        size = tuple(image_size)
        num_values = num_channels * size[0] * size[1]
        model_matrix = sparse.identity(num_values, format='csr')
        for degradation_operator in self._degradation_operators:
            operator_matrix = degradation_operator.get_operator_matrix(
                size, index, num_channels
            )
            model_matrix = sparse.csr_matrix(operator_matrix @ model_matrix)
            size = degradation_operator.get_output_size(size)
        return model_matrix

    def __repr__(self) -> str:
        chain = " -> ".join(repr(op) for op in self._degradation_operators)
        return f"ImageModel({chain})"
