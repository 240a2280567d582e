"""
Error types raised by the band extraction engine.

A missing spectrum is not an error: the extractor answers with its last
known output instead. Everything here indicates a caller bug.
"""


class BandscopeError(Exception):
    """Base class for all bandscope errors."""


class ConfigurationError(BandscopeError, ValueError):
    """Invalid band count, frequency bounds or dynamics coefficients."""


class SpectrumShapeError(BandscopeError, ValueError):
    """A spectral frame that cannot be interpreted as bins of one transform."""


class SourceError(BandscopeError):
    """Audio for an offline spectrum source could not be loaded."""
