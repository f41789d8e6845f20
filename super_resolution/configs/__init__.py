"""
Configuration loading and management.

Provides utilities to load YAML config files and construct the image model,
regularizer and solver options from them.
"""

from pathlib import Path
from typing import Dict, Any, Optional, Tuple, Union
import yaml

from ..motion.motion_shift import MotionShiftSequence
from ..image_model.image_model import ImageModel
from ..image_model.motion_module import MotionModule
from ..image_model.psf_blur_module import PsfBlurModule
from ..image_model.downsampling_module import DownsamplingModule
from ..image_model.additive_noise_module import AdditiveNoiseModule
from ..solvers.regularizer import Regularizer
from ..solvers.tv_regularizer import TotalVariationRegularizer
from ..solvers.tikhonov_regularizer import TikhonovRegularizer
from ..solvers.map_solver import MapSolverOptions


# Path to configs directory
CONFIGS_DIR = Path(__file__).parent


def get_config_path(name: str = "default") -> Path:
    """
    Get path to a bundled config file.

    Args:
        name: Config name (without .yaml extension)

    Returns:
        Path to config file
    """
    path = CONFIGS_DIR / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    return path


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML config file."""
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def load_default_config() -> Dict[str, Any]:
    """Load the bundled default configuration."""
    return load_config(get_config_path("default"))


def _section_enabled(config: Dict[str, Any], name: str) -> bool:
    section = config.get(name)
    return section is not None and section.get('enabled', True)


def create_motion_shift_sequence_from_config(
    config: Optional[Dict[str, Any]] = None,
) -> MotionShiftSequence:
    """Create a MotionShiftSequence from the 'motion' section."""
    if config is None:
        config = load_default_config()

    motion_cfg = config.get('motion', {})
    return MotionShiftSequence.from_pairs(motion_cfg.get('shifts', []))


def create_image_model_from_config(
    config: Optional[Dict[str, Any]] = None,
    motion_shift_sequence: Optional[MotionShiftSequence] = None,
) -> ImageModel:
    """
    Create an ImageModel from config.

    Operators are added in physical order: motion, blur, downsampling,
    noise. Sections that are missing or have enabled: false are skipped.

    Args:
        config: Config dict. If None, loads default.
        motion_shift_sequence: Overrides the shifts listed in the config
            (e.g. shifts estimated by a registration step).

    Returns:
        Configured ImageModel
    """
    if config is None:
        config = load_default_config()

    image_model = ImageModel()

    if _section_enabled(config, 'motion'):
        if motion_shift_sequence is None:
            motion_shift_sequence = create_motion_shift_sequence_from_config(config)
        image_model.add_degradation_operator(MotionModule(motion_shift_sequence))

    if _section_enabled(config, 'blur'):
        blur_cfg = config['blur']
        image_model.add_degradation_operator(PsfBlurModule(
            blur_radius=blur_cfg.get('radius', 2),
            blur_sigma=blur_cfg.get('sigma', 1.0),
        ))

    if _section_enabled(config, 'downsampling'):
        image_model.add_degradation_operator(DownsamplingModule(
            config['downsampling'].get('scale', 2),
        ))

    if _section_enabled(config, 'noise'):
        noise_cfg = config['noise']
        image_model.add_degradation_operator(AdditiveNoiseModule(
            noise_sigma=noise_cfg.get('sigma', 0.0),
            seed=noise_cfg.get('seed'),
        ))

    return image_model


def create_regularizer_from_config(
    config: Optional[Dict[str, Any]],
    image_size: Tuple[int, int],
    num_channels: int = 1,
) -> Optional[Regularizer]:
    """
    Create a regularizer from the 'regularizer' section.

    Args:
        config: Config dict. If None, loads default.
        image_size: (rows, cols) of the high-resolution estimate
        num_channels: Number of channels

    Returns:
        Configured regularizer, or None for type 'none'
    """
    if config is None:
        config = load_default_config()

    reg_cfg = config.get('regularizer', {})
    reg_type = reg_cfg.get('type', 'total_variation')

    if reg_type == 'total_variation':
        return TotalVariationRegularizer(
            image_size,
            num_channels,
            epsilon=reg_cfg.get('epsilon', 1e-3),
        )
    elif reg_type == 'tikhonov':
        return TikhonovRegularizer(image_size, num_channels)
    elif reg_type in ('none', None):
        return None
    else:
        raise ValueError(f"Unknown regularizer type: {reg_type}")


def create_solver_options_from_config(
    config: Optional[Dict[str, Any]] = None,
) -> MapSolverOptions:
    """Create MapSolverOptions from the 'solver' section."""
    if config is None:
        config = load_default_config()

    solver_cfg = config.get('solver', {})
    defaults = MapSolverOptions()

    return MapSolverOptions(
        regularization_parameter=solver_cfg.get(
            'regularization_parameter', defaults.regularization_parameter),
        max_iterations=solver_cfg.get('max_iterations', defaults.max_iterations),
        convergence_threshold=solver_cfg.get(
            'convergence_threshold', defaults.convergence_threshold),
        function_tolerance=solver_cfg.get(
            'function_tolerance', defaults.function_tolerance),
        upsampling_scale=solver_cfg.get('upsampling_scale', defaults.upsampling_scale),
        upsampling_interpolation=solver_cfg.get(
            'upsampling_interpolation', defaults.upsampling_interpolation),
        max_line_search_steps=solver_cfg.get(
            'max_line_search_steps', defaults.max_line_search_steps),
        armijo_constant=solver_cfg.get('armijo_constant', defaults.armijo_constant),
    )
