"""Perceptual log-frequency band extraction for audio-reactive visuals."""

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.errors import ConfigurationError
from bandscope.core.extractor import BandExtractor
from bandscope.io.exporter import BandManifestExporter
from bandscope.pipeline import BandPipeline
from bandscope.sources import SpectralFrame, SpectrogramSource, StaticSource

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_CONFIG",
    "BandConfig",
    "BandExtractor",
    "BandManifestExporter",
    "BandPipeline",
    "ConfigurationError",
    "SpectralFrame",
    "SpectrogramSource",
    "StaticSource",
]
