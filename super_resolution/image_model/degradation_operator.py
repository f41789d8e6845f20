"""
Common interface for the degradation operators of the forward image model.

Each operator models one physical cause of resolution loss and acts on a
single frame of the observed sequence, identified by its frame index.
"""

from abc import ABC, abstractmethod
from typing import Tuple

from scipy import sparse

from ..image.image_data import ImageData


class DegradationOperator(ABC):
    """
    Abstract base class for degradation operators.

    Subclasses implement the forward action, its adjoint, and an explicit
    sparse matrix of the same linear map. The matrix acts on the
    channel-major flattened buffer (see ImageData.get_flat_data).
    """

    # Stochastic operators are skipped when the solver simulates observations
    is_stochastic = False

    @abstractmethod
    def apply_to_image(self, image_data: ImageData, index: int) -> None:
        """
        Apply the forward degradation to the image in place.

        Args:
            image_data: Buffer to degrade
            index: Frame index in the observed sequence
        """
        pass

    @abstractmethod
    def apply_transpose_to_image(self, image_data: ImageData, index: int) -> None:
        """
        Apply the adjoint of the forward degradation in place.

        Args:
            image_data: Buffer in the degraded domain
            index: Frame index in the observed sequence
        """
        pass

    @abstractmethod
    def get_operator_matrix(
        self,
        image_size: Tuple[int, int],
        index: int,
        num_channels: int = 1,
    ) -> sparse.csr_matrix:
        """
        Explicit matrix of the forward degradation.

        Args:
            image_size: (rows, cols) of the input image
            index: Frame index in the observed sequence
            num_channels: Number of channels in the input image

        Returns:
            Sparse matrix of shape (output pixels, input pixels)
        """
        pass

    @abstractmethod
    def get_pixel_patch_radius(self) -> int:
        """
        Maximum distance, in whole pixels, over which the operator moves
        information between neighboring pixels.
        """
        pass

    def get_output_size(self, image_size: Tuple[int, int]) -> Tuple[int, int]:
        """(rows, cols) after the forward degradation."""
        return tuple(image_size)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
