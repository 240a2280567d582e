"""
Coarse, stateless readings of a spectral frame.

These mirror what a browser analyser exposes as byte frequency data: each
bin's decibel value mapped linearly from [min_db, max_db] to [0, 1].
"""

from dataclasses import dataclass

import numpy as np

from bandscope.sources import SpectralFrame

# Web Audio AnalyserNode defaults
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


@dataclass
class CoarseBands:
    """Bass / mid / treble snapshot (all values 0..1)."""

    bass: float = 0.0
    mid: float = 0.0
    treble: float = 0.0


def normalized_magnitudes(
    frame: SpectralFrame,
    min_db: float = MIN_DECIBELS,
    max_db: float = MAX_DECIBELS,
) -> np.ndarray:
    """Map each bin's decibels onto [0, 1]."""
    scaled = (frame.decibels - min_db) / (max_db - min_db)
    return np.clip(np.nan_to_num(scaled, nan=0.0), 0.0, 1.0)


def spectrum_level(
    frame: SpectralFrame | None,
    min_db: float = MIN_DECIBELS,
    max_db: float = MAX_DECIBELS,
) -> float:
    """
    Overall loudness as the mean normalised magnitude of all bins.

    Levels at or above ``max_db`` read as 1.0.
    """
    if frame is None or frame.bin_count == 0:
        return 0.0
    return float(np.mean(normalized_magnitudes(frame, min_db, max_db)))


def coarse_bands(
    frame: SpectralFrame | None,
    min_db: float = MIN_DECIBELS,
    max_db: float = MAX_DECIBELS,
) -> CoarseBands:
    """
    Split the bins into three equal runs and average each.

    Bins left over after the split belong to the treble run.
    """
    if frame is None:
        return CoarseBands()

    third = frame.bin_count // 3
    if third == 0:
        return CoarseBands()

    values = normalized_magnitudes(frame, min_db, max_db)
    return CoarseBands(
        bass=float(np.mean(values[:third])),
        mid=float(np.mean(values[third:2 * third])),
        treble=float(np.mean(values[2 * third:])),
    )
