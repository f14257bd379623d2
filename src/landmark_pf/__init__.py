r"""landmark_pf package.

Small 2D particle filter for vehicle localization against a known landmark map.
"""

from .errors import ConfigurationError, DataFormatError, FilterStateError, LocalizationError, ResamplingError
from .particle_filter import ParticleFilter
from .types import Controls, Dataset, FilterConfig, Landmark, Particle, ParticleSet, Pose2D, StepRecord

__all__ = [
    "ParticleFilter",
    "FilterConfig",
    "Controls",
    "Dataset",
    "Landmark",
    "Particle",
    "ParticleSet",
    "Pose2D",
    "StepRecord",
    "ConfigurationError",
    "DataFormatError",
    "FilterStateError",
    "LocalizationError",
    "ResamplingError",
]
