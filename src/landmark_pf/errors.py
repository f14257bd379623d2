"""Exception hierarchy shared by the filter, the data loaders, and the CLI."""

from __future__ import annotations


class LocalizationError(Exception):
    """Base class for all landmark_pf errors."""


class ConfigurationError(LocalizationError, ValueError):
    """Raised when filter parameters are rejected at initialization."""


class DataFormatError(LocalizationError, ValueError):
    """Raised when an external data source is missing, unreadable, or malformed."""


class ResamplingError(LocalizationError, RuntimeError):
    """Raised when no particle carries a strictly positive weight.

    This signals filter divergence and is separate from the
    epsilon floors applied while scoring observations.
    """


class FilterStateError(LocalizationError, RuntimeError):
    """Raised when a filter stage runs before :meth:`ParticleFilter.init`."""
