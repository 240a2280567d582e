"""Core band extraction modules."""

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.errors import BandscopeError, ConfigurationError
from bandscope.core.extractor import BandExtractor, BandState

__all__ = [
    "DEFAULT_CONFIG",
    "BandConfig",
    "BandExtractor",
    "BandState",
    "BandscopeError",
    "ConfigurationError",
]
