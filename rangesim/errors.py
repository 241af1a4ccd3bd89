"""
Exception types raised by the range simulator.

ConfigurationError is raised while an engine is being configured and means
nothing was activated. DimensionMismatchError is raised while a tick runs
and aborts only that tick; the ground-truth state is left untouched.
"""


class RangeSimError(Exception):
    """Base class for range simulator errors."""


class ConfigurationError(RangeSimError, ValueError):
    """Unsupported continuity level, inconsistent dimensions or non-PSD noise."""


class DimensionMismatchError(RangeSimError, ValueError):
    """A state or control value does not match the configured model shape."""
