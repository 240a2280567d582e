"""
Placement of log-spaced bands onto FFT bins.

A layout depends only on the band count, the frequency settings of the
config and the shape of the transform, so the extractor computes it once
and reuses it until one of those changes.
"""

from dataclasses import dataclass

import numpy as np

from bandscope.core.config import BandConfig

# Silence floor and ceiling for the dB -> linear conversion.
DB_FLOOR = -80.0
DB_CEILING = 100.0


@dataclass(frozen=True)
class BandLayout:
    """Per-band target frequency and averaging window (inclusive bin range)."""

    positions: np.ndarray    # j / (band_count - 1)
    frequencies: np.ndarray  # Target frequency in Hz
    centers: np.ndarray      # Bin nearest the target frequency
    starts: np.ndarray       # First bin of the window
    stops: np.ndarray        # Last bin of the window
    valid: bool              # False when no bin lies in [freq_min, freq_max]

    @property
    def band_count(self) -> int:
        return len(self.positions)


def band_positions(band_count: int) -> np.ndarray:
    """Normalised band index in [0, 1]; a single band sits at 0."""
    if band_count == 1:
        return np.zeros(1)
    return np.arange(band_count) / (band_count - 1)


def band_frequencies(band_count: int, config: BandConfig) -> np.ndarray:
    """
    Target frequencies evenly spaced in log-frequency.

    ``log_curve`` warps the spacing: values above 1 spend more bands on the
    low end, values below 1 on the high end.
    """
    t = band_positions(band_count) ** config.log_curve
    log_min = np.log(config.freq_min)
    log_max = np.log(config.freq_max)
    return np.exp(log_min + t * (log_max - log_min))


def window_half_widths(positions: np.ndarray) -> np.ndarray:
    """Averaging half-width in bins: 3 at the bottom, down to 1 at the top."""
    return np.maximum(1, np.floor(3.0 - 2.0 * positions)).astype(np.int64)


def compute_layout(
    band_count: int,
    config: BandConfig,
    sample_rate: float,
    fft_size: int,
    bin_count: int,
) -> BandLayout:
    """
    Map each band to a window of bins.

    Args:
        band_count: Number of bands (> 0).
        config: Validated band configuration.
        sample_rate: Sample rate of the analysed audio.
        fft_size: Transform length.
        bin_count: Bins present in the spectrum.

    Returns:
        BandLayout for these parameters.
    """
    hz_per_bin = sample_rate / fft_size

    positions = band_positions(band_count)
    frequencies = band_frequencies(band_count, config)

    lowest = max(1, int(np.floor(config.freq_min / hz_per_bin)))
    highest = min(bin_count - 1, int(np.ceil(config.freq_max / hz_per_bin)))
    valid = lowest <= highest

    if not valid:
        empty = np.zeros(band_count, dtype=np.int64)
        return BandLayout(positions, frequencies, empty, empty, empty, valid=False)

    # Round half up
    centers = np.floor(frequencies / hz_per_bin + 0.5).astype(np.int64)
    centers = np.clip(centers, lowest, highest)

    half_widths = window_half_widths(positions)
    starts = np.maximum(centers - half_widths, lowest)
    stops = np.minimum(centers + half_widths, highest)

    return BandLayout(
        positions=positions,
        frequencies=frequencies,
        centers=centers,
        starts=starts,
        stops=stops,
        valid=True,
    )


def db_to_linear(decibels: np.ndarray) -> np.ndarray:
    """
    Decibels to linear amplitude.

    Levels are clamped to [``DB_FLOOR``, ``DB_CEILING``]; NaN counts as
    silence and +inf as the ceiling, so window sums stay finite.
    """
    clamped = np.clip(np.fmax(decibels, DB_FLOOR), DB_FLOOR, DB_CEILING)
    return np.power(10.0, clamped / 20.0)


def window_means(linear: np.ndarray, layout: BandLayout) -> np.ndarray:
    """Mean linear energy over each band's bin window."""
    if not layout.valid:
        return np.zeros(layout.band_count)

    cumulative = np.concatenate(([0.0], np.cumsum(linear)))
    sums = cumulative[layout.stops + 1] - cumulative[layout.starts]
    counts = layout.stops - layout.starts + 1
    return sums / counts
