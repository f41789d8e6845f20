"""
Maximum a posteriori (MAP) super-resolution solver.

Estimates the high-resolution image x that minimizes

    f(x) = sum_i ||y_i - A_i x||^2 + lambda * R(x)

where y_i are the observed low-resolution frames, A_i is the forward image
model for frame i (without noise) and R is a regularizer such as total
variation. The gradient is built matrix-free from the model's forward and
adjoint actions:

    grad f(x) = -2 sum_i A_i^T (y_i - A_i x) + lambda * grad R(x)

and minimized with nonlinear conjugate gradients (Polak-Ribiere+) and a
backtracking line search.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..image.image_data import ImageData
from ..image_model.downsampling_module import DownsamplingModule
from ..image_model.image_model import ImageModel
from ..util.util import upsample_image, INTERPOLATION_MODES
from .regularizer import Regularizer

log = logging.getLogger(__name__)


class SolverStatus(Enum):
    """Lifecycle of a MapSolver."""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"


@dataclass
class MapSolverOptions:
    """
    Solver configuration.

    Attributes:
        regularization_parameter: Weight lambda of the regularization term
        max_iterations: Iteration cap (0 returns the initial guess)
        convergence_threshold: Stop when the gradient norm falls below this
        function_tolerance: Stop when the relative decrease of the objective
            in one iteration falls below this
        upsampling_scale: Scale used to build the initial guess from the
            first frame. If None, the product of the model's downsampling
            scales is used.
        upsampling_interpolation: 'nearest', 'linear' or 'cubic'
        max_line_search_steps: Step halvings before the line search gives up
        armijo_constant: Sufficient decrease constant for the line search
    """
    regularization_parameter: float = 0.0
    max_iterations: int = 50
    convergence_threshold: float = 1e-6
    function_tolerance: float = 1e-10
    upsampling_scale: Optional[int] = None
    upsampling_interpolation: str = 'nearest'
    max_line_search_steps: int = 30
    armijo_constant: float = 1e-4

    def __post_init__(self):
        if self.regularization_parameter < 0:
            raise ValueError(
                "regularization_parameter must be non-negative, "
                f"got {self.regularization_parameter}"
            )
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 0:
            raise ValueError(
                f"max_iterations must be a non-negative integer, got {self.max_iterations}"
            )
        if self.convergence_threshold <= 0:
            raise ValueError(
                f"convergence_threshold must be positive, got {self.convergence_threshold}"
            )
        if self.function_tolerance < 0:
            raise ValueError(
                f"function_tolerance must be non-negative, got {self.function_tolerance}"
            )
        if self.upsampling_scale is not None and (
            int(self.upsampling_scale) != self.upsampling_scale or self.upsampling_scale < 1
        ):
            raise ValueError(
                f"upsampling_scale must be a positive integer, got {self.upsampling_scale}"
            )
        if self.upsampling_interpolation not in INTERPOLATION_MODES:
            raise ValueError(
                f"Unknown upsampling_interpolation: {self.upsampling_interpolation}"
            )
        if self.max_line_search_steps < 1:
            raise ValueError(
                f"max_line_search_steps must be at least 1, got {self.max_line_search_steps}"
            )
        if not 0 < self.armijo_constant < 1:
            raise ValueError(
                f"armijo_constant must be in (0, 1), got {self.armijo_constant}"
            )
        self.max_iterations = int(self.max_iterations)


@dataclass
class SolverResult:
    """
    Outcome of MapSolver.solve().

    Attributes:
        estimate: Best high-resolution estimate reached
        status: CONVERGED or MAX_ITERATIONS_REACHED
        iterations: Number of completed iterations
        objective: Objective value at the estimate
        gradient_norm: Gradient norm at the estimate
        objective_history: Objective value before each iteration and after the last
    """
    estimate: ImageData
    status: SolverStatus
    iterations: int
    objective: float
    gradient_norm: float
    objective_history: List[float] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status == SolverStatus.CONVERGED


class MapSolver:
    """
    Iterative MAP estimator for multi-frame super-resolution.

    Args:
        options: Solver configuration
        image_model: Forward model shared by all frames
        low_res_images: Observed frames; frame i is simulated with index i
        regularizer: Prior on the estimate (required if lambda > 0)

    Example:
        >>> solver = MapSolver(MapSolverOptions(max_iterations=100), model, frames,
        ...                    TotalVariationRegularizer(hr_size))
        >>> solver.initialize()
        >>> result = solver.solve()
        >>> result.estimate, result.status
    """

    def __init__(
        self,
        options: MapSolverOptions,
        image_model: ImageModel,
        low_res_images: Sequence[ImageData],
        regularizer: Optional[Regularizer] = None,
    ):
        if not low_res_images:
            raise ValueError("MapSolver requires at least one low-resolution image")
        reference_shape = low_res_images[0].shape
        for i, image in enumerate(low_res_images):
            if image.shape != reference_shape:
                raise ValueError(
                    f"Low-resolution image {i} has shape {image.shape}, "
                    f"expected {reference_shape}"
                )
        if options.regularization_parameter > 0 and regularizer is None:
            raise ValueError("regularization_parameter > 0 requires a regularizer")

        self.options = options
        self.image_model = image_model
        self.regularizer = regularizer
        self._observations = [image.get_flat_data() for image in low_res_images]
        self._low_res_shape = reference_shape

        self._status = SolverStatus.UNINITIALIZED
        self._hr_shape: Optional[Tuple[int, int, int]] = None
        self._estimate: Optional[np.ndarray] = None

    @property
    def status(self) -> SolverStatus:
        return self._status

    @property
    def num_images(self) -> int:
        return len(self._observations)

    @property
    def estimate(self) -> Optional[ImageData]:
        """Copy of the current estimate (None before initialization)."""
        if self._estimate is None:
            return None
        return ImageData(self._estimate.reshape(self._hr_shape))

    def _upsampling_scale(self) -> int:
        if self.options.upsampling_scale is not None:
            return int(self.options.upsampling_scale)
        scale = 1
        for degradation_operator in self.image_model:
            if isinstance(degradation_operator, DownsamplingModule):
                scale *= degradation_operator.scale
        return scale

    def create_initial_estimate(self) -> ImageData:
        """Upsample the first observed frame to the high-resolution grid."""
        first_frame = self._observations[0].reshape(self._low_res_shape)
        pixels = upsample_image(
            first_frame,
            self._upsampling_scale(),
            self.options.upsampling_interpolation,
        )
        return ImageData(pixels)

    def initialize(self, initial_estimate: Optional[ImageData] = None) -> None:
        """
        Set the starting point of the optimization.

        Args:
            initial_estimate: High-resolution guess. If None, the first frame
                is upsampled (see create_initial_estimate).
        """
        if self._status == SolverStatus.ITERATING:
            raise RuntimeError("Cannot re-initialize while the solver is iterating")
        if initial_estimate is None:
            initial_estimate = self.create_initial_estimate()

        expected_size = self.image_model.get_output_size(initial_estimate.image_size)
        observed = (self._low_res_shape[0], *expected_size)
        if initial_estimate.num_channels != self._low_res_shape[0] or observed != self._low_res_shape:
            raise ValueError(
                f"Initial estimate of shape {initial_estimate.shape} maps to "
                f"{observed}, but observations have shape {self._low_res_shape}"
            )
        if self.regularizer is not None and (
            self.regularizer.image_size != initial_estimate.image_size
            or self.regularizer.num_channels != initial_estimate.num_channels
        ):
            raise ValueError(
                f"Regularizer configured for {self.regularizer.num_channels} x "
                f"{self.regularizer.image_size}, estimate is {initial_estimate.shape}"
            )

        self._hr_shape = initial_estimate.shape
        self._estimate = initial_estimate.get_flat_data()
        self._status = SolverStatus.INITIALIZED
        log.debug("Initialized solver with %r", initial_estimate)

    # ------------------------------------------------------------------
    # Model evaluation
    # ------------------------------------------------------------------

    def _simulate(self, values: np.ndarray, index: int) -> np.ndarray:
        """A_i x for flat high-resolution values."""
        image = ImageData(values.reshape(self._hr_shape))
        self.image_model.apply_to_image(image, index, skip_stochastic=True)
        return image.get_flat_data()

    def _back_project(self, residual: np.ndarray, index: int) -> np.ndarray:
        """A_i^T r for a flat low-resolution residual."""
        image = ImageData(residual.reshape(self._low_res_shape))
        self.image_model.apply_transpose_to_image(image, index)
        return image.get_flat_data()

    def _data_residuals(self, values: np.ndarray) -> List[np.ndarray]:
        residuals = []
        for index, observation in enumerate(self._observations):
            residual = observation - self._simulate(values, index)
            if not np.all(np.isfinite(residual)):
                raise FloatingPointError(
                    f"Non-finite data residual for frame {index}"
                )
            residuals.append(residual)
        return residuals

    def _evaluate(self, values: np.ndarray) -> Tuple[float, np.ndarray]:
        """Objective and gradient at flat high-resolution values."""
        objective = 0.0
        gradient = np.zeros_like(values)

        # Frames are independent; their contributions are reduced here
        for index, residual in enumerate(self._data_residuals(values)):
            objective += float(residual @ residual)
            gradient -= 2.0 * self._back_project(residual, index)

        lam = self.options.regularization_parameter
        if lam > 0:
            objective += lam * self.regularizer.compute_cost(values)
            gradient += lam * self.regularizer.compute_gradient(values)

        if not np.isfinite(objective) or not np.all(np.isfinite(gradient)):
            raise FloatingPointError("Non-finite objective or gradient")
        return objective, gradient

    def compute_data_residuals(self, image_data: ImageData) -> List[np.ndarray]:
        """Flat residual y_i - A_i x for every observed frame."""
        self._require_initialized()
        return self._data_residuals(self._check_estimate_shape(image_data))

    def compute_objective(self, image_data: ImageData) -> float:
        """Objective f(x) for a high-resolution image."""
        self._require_initialized()
        objective, _ = self._evaluate(self._check_estimate_shape(image_data))
        return objective

    def _require_initialized(self) -> None:
        if self._status == SolverStatus.UNINITIALIZED:
            raise RuntimeError("Solver is not initialized. Call initialize() first.")

    def _check_estimate_shape(self, image_data: ImageData) -> np.ndarray:
        if image_data.shape != self._hr_shape:
            raise ValueError(
                f"Expected image of shape {self._hr_shape}, got {image_data.shape}"
            )
        return image_data.get_flat_data()

    def _initial_step(self, gradient: np.ndarray, direction: np.ndarray) -> float:
        """
        Exact minimizer of the data term along the search direction.

        Along x + t d the data term is a parabola with slope g.d at t = 0 and
        curvature 2 sum_i ||A_i d||^2.
        """
        curvature = 0.0
        for index in range(self.num_images):
            simulated = self._simulate(direction, index)
            curvature += 2.0 * float(simulated @ simulated)
        slope = float(gradient @ direction)
        if curvature <= 0 or not np.isfinite(curvature):
            return 1.0 / max(float(np.linalg.norm(direction)), 1.0)
        return -slope / curvature

    def _line_search(
        self,
        values: np.ndarray,
        objective: float,
        direction: np.ndarray,
        slope: float,
        step: float,
    ) -> Optional[Tuple[np.ndarray, float, np.ndarray, float]]:
        """
        Armijo backtracking from an initial step.

        Returns:
            (candidate, objective, gradient, step) for the first step with a
            sufficient and strict decrease, or None if every halving fails.
        """
        armijo = self.options.armijo_constant
        for _ in range(self.options.max_line_search_steps):
            candidate = values + step * direction
            new_objective, new_gradient = self._evaluate(candidate)
            if new_objective < objective and (
                new_objective <= objective + armijo * step * slope
            ):
                return candidate, new_objective, new_gradient, step
            step *= 0.5
        return None

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def solve(self) -> SolverResult:
        """
        Run the optimization from the current estimate.

        Returns:
            SolverResult with the best estimate. Hitting the iteration cap, or
            a line search that cannot decrease the objective before the
            gradient is small, is reported as MAX_ITERATIONS_REACHED, not raised.
        """
        self._require_initialized()
        opts = self.options

        values = self._estimate.copy()
        objective, gradient = self._evaluate(values)
        gradient_norm = float(np.linalg.norm(gradient))
        history = [objective]
        direction = -gradient
        iterations = 0
        status = SolverStatus.MAX_ITERATIONS_REACHED

        log.info(
            "Solving %d frames for %s estimate (lambda=%g, max_iterations=%d)",
            self.num_images, self._hr_shape, opts.regularization_parameter,
            opts.max_iterations,
        )
        self._status = SolverStatus.ITERATING
        try:
            for iteration in range(opts.max_iterations):
                if gradient_norm <= opts.convergence_threshold:
                    status = SolverStatus.CONVERGED
                    break

                slope = float(gradient @ direction)
                if slope >= 0:
                    # Not a descent direction; restart from steepest descent
                    direction = -gradient
                    slope = -gradient_norm**2

                step = self._initial_step(gradient, direction)
                found = self._line_search(values, objective, direction, slope, step)
                if found is None:
                    # The data-term step can overshoot badly when the prior
                    # dominates; retry along steepest descent with a unit move
                    direction = -gradient
                    slope = -gradient_norm**2
                    found = self._line_search(
                        values, objective, direction, slope, 1.0 / gradient_norm
                    )

                if found is None:
                    log.warning(
                        "Line search failed at iteration %d with |grad|=%.3e",
                        iteration, gradient_norm,
                    )
                    break
                candidate, new_objective, new_gradient, step = found

                iterations += 1
                decrease = (objective - new_objective) / max(abs(objective), 1e-300)

                # Polak-Ribiere+ conjugate direction
                beta = float(new_gradient @ (new_gradient - gradient)) / max(
                    float(gradient @ gradient), 1e-300
                )
                beta = max(beta, 0.0)

                values = candidate
                objective = new_objective
                gradient = new_gradient
                gradient_norm = float(np.linalg.norm(gradient))
                direction = -gradient + beta * direction
                history.append(objective)

                log.debug(
                    "Iter %3d: objective=%.6e, |grad|=%.3e, step=%.3e",
                    iterations, objective, gradient_norm, step,
                )

                if decrease <= opts.function_tolerance:
                    status = SolverStatus.CONVERGED
                    break
            else:
                # The last iteration may itself have met the threshold
                if iterations > 0 and gradient_norm <= opts.convergence_threshold:
                    status = SolverStatus.CONVERGED
        except Exception:
            self._status = SolverStatus.INITIALIZED
            raise

        self._estimate = values
        self._status = status

        if status == SolverStatus.CONVERGED:
            log.info(
                "Converged after %d iterations (objective=%.6e, |grad|=%.3e)",
                iterations, objective, gradient_norm,
            )
        else:
            log.warning(
                "Did not fully converge in %d iterations (objective=%.6e, |grad|=%.3e)",
                iterations, objective, gradient_norm,
            )

        return SolverResult(
            estimate=ImageData(values.reshape(self._hr_shape)),
            status=status,
            iterations=iterations,
            objective=objective,
            gradient_norm=gradient_norm,
            objective_history=history,
        )
