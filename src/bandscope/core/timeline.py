"""
Offline band extraction over a replayed spectrogram.

Drives a ``BandExtractor`` once per frame, the same way a renderer would,
and records every output so it can be exported as a manifest.
"""

import logging
from dataclasses import dataclass

import numpy as np

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.errors import ConfigurationError
from bandscope.core.extractor import BandExtractor
from bandscope.core.layout import band_frequencies
from bandscope.core.summary import coarse_bands, spectrum_level
from bandscope.sources import SpectrogramSource

logger = logging.getLogger(__name__)


@dataclass
class BandTimeline:
    """Band energies for every frame of a track."""

    # band_count -> array of shape (n_frames, band_count)
    bands: dict[int, np.ndarray]
    # band_count -> target frequency of each band (Hz)
    frequencies: dict[int, np.ndarray]

    level: np.ndarray   # Shape: (n_frames,)
    bass: np.ndarray
    mid: np.ndarray
    treble: np.ndarray

    n_frames: int
    fps: float
    frame_times: np.ndarray
    config: BandConfig


def render_timeline(
    source: SpectrogramSource,
    band_counts: list[int],
    config: BandConfig | None = None,
    extractor: BandExtractor | None = None,
) -> BandTimeline:
    """
    Replay ``source`` from the start and extract bands for every frame.

    Args:
        source: Spectrogram to replay; it is rewound first.
        band_counts: Band resolutions to extract, each tracked independently.
        config: Band configuration (default: ``DEFAULT_CONFIG``).
        extractor: Extractor to use; a fresh one keeps runs deterministic.

    Returns:
        BandTimeline with one row per frame.
    """
    config = (config or DEFAULT_CONFIG).validate()
    if not band_counts:
        raise ConfigurationError("At least one band count is required")

    band_counts = list(dict.fromkeys(band_counts))
    extractor = extractor or BandExtractor()
    for count in band_counts:
        extractor.state(count)
    source.reset()

    n_frames = source.n_frames
    bands = {
        count: np.zeros((n_frames, count), dtype=np.float32)
        for count in band_counts
    }
    level = np.zeros(n_frames, dtype=np.float32)
    coarse = np.zeros((n_frames, 3), dtype=np.float32)

    for i in range(n_frames):
        frame = source.get_frame()
        for count in band_counts:
            bands[count][i] = extractor.extract_bands(frame, count, config)

        level[i] = spectrum_level(frame)
        summary = coarse_bands(frame)
        coarse[i] = (summary.bass, summary.mid, summary.treble)

    logger.debug("Extracted %d frames for band counts %s", n_frames, band_counts)

    return BandTimeline(
        bands=bands,
        frequencies={count: band_frequencies(count, config) for count in band_counts},
        level=level,
        bass=coarse[:, 0],
        mid=coarse[:, 1],
        treble=coarse[:, 2],
        n_frames=n_frames,
        fps=source.fps,
        frame_times=source.frame_times,
        config=config,
    )
