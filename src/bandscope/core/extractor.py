"""
Perceptual log-frequency band extraction.

Turns decibel spectra into a short vector of band energies in [0.0, 1.0]
that moves smoothly from frame to frame: bands are log-spaced, tilted
toward the highs, tamed at the low end, compressed, soft-limited and then
run through an attack/release envelope and a final low-pass.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.errors import ConfigurationError
from bandscope.core.layout import BandLayout, compute_layout, db_to_linear, window_means
from bandscope.sources import SpectralFrame, SpectrumSource

logger = logging.getLogger(__name__)

# Soft-knee limiter threshold
KNEE = 0.8


@dataclass
class BandState:
    """Persistent buffers for one band count, updated in place."""

    raw: np.ndarray       # This call's energy before the envelope
    peak: np.ndarray      # Attack/release envelope
    smoothed: np.ndarray  # Output returned to callers
    output: np.ndarray    # Read-only view of ``smoothed``
    layout: BandLayout | None = None
    layout_key: tuple[Any, ...] | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    calls: int = 0

    @classmethod
    def zeros(cls, band_count: int) -> "BandState":
        smoothed = np.zeros(band_count, dtype=np.float32)
        output = smoothed.view()
        output.flags.writeable = False
        return cls(
            raw=np.zeros(band_count, dtype=np.float32),
            peak=np.zeros(band_count, dtype=np.float32),
            smoothed=smoothed,
            output=output,
        )

    def reset(self) -> None:
        """Zero the buffers without reallocating them."""
        with self.lock:
            self.raw.fill(0.0)
            self.peak.fill(0.0)
            self.smoothed.fill(0.0)
            self.calls = 0


def shape_energy(
    energy: np.ndarray,
    layout: BandLayout,
    config: BandConfig,
) -> np.ndarray:
    """
    Apply tilt, bass taming, gain, noise floor, compression and the limiter.

    Args:
        energy: Mean linear energy per band.
        layout: Layout the energies were measured with.
        config: Band configuration.

    Returns:
        Shaped energies clamped to [0.0, 1.0].
    """
    energy = energy * (layout.frequencies / config.freq_min) ** config.tilt

    tame_mask = layout.positions < config.bass_tame_range
    if np.any(tame_mask):
        tame_amount = 1.0 - layout.positions[tame_mask] / config.bass_tame_range
        exponent = 1.0 + tame_amount * config.bass_tame * 0.8
        energy[tame_mask] = energy[tame_mask] ** exponent

    energy = np.maximum(0.0, energy * config.gain - config.noise_floor)

    if config.compress != 1.0:
        energy = energy ** config.compress

    over = energy > KNEE
    excess = energy[over] - KNEE
    energy[over] = KNEE + excess / (1.0 + excess * 2.0)

    return np.clip(energy, 0.0, 1.0)


class BandExtractor:
    """
    Extracts smoothed log-frequency band energies from spectral frames.

    Keeps one ``BandState`` per requested band count, so a renderer drawing
    64 bars and another reading 8 bands can share an extractor without
    disturbing each other's envelopes.

    Envelope coefficients apply per call. Callers should call at most once
    per animation frame per band count, or pass ``dt`` so the coefficients
    are rescaled to the elapsed time.
    """

    def __init__(self, source: SpectrumSource | None = None):
        """
        Initialize the extractor.

        Args:
            source: Optional spectrum provider used by ``poll``.
        """
        self.source = source
        self._states: dict[int, BandState] = {}
        self._states_lock = threading.Lock()

    @property
    def band_counts(self) -> list[int]:
        """Band counts that currently own state."""
        with self._states_lock:
            return sorted(self._states)

    def attach(self, source: SpectrumSource | None) -> None:
        """Attach a spectrum source; None detaches."""
        self.source = source
        logger.debug("Spectrum source %s", "detached" if source is None else "attached")

    def state(self, band_count: int) -> BandState:
        """Return the state for ``band_count``, creating it on first use."""
        _check_band_count(band_count)
        band_count = int(band_count)
        state = self._states.get(band_count)
        if state is None:
            with self._states_lock:
                state = self._states.get(band_count)
                if state is None:
                    state = BandState.zeros(band_count)
                    self._states[band_count] = state
                    logger.debug("Allocated band state for %d bands", band_count)
        return state

    def reset(self, band_count: int | None = None) -> None:
        """Zero one band count's state, or all of them."""
        if band_count is None:
            with self._states_lock:
                states = list(self._states.values())
            for state in states:
                state.reset()
        elif band_count in self._states:
            self._states[band_count].reset()

    def extract_bands(
        self,
        spectrum: SpectralFrame | None,
        band_count: int,
        config: BandConfig | None = None,
        dt: float | None = None,
    ) -> np.ndarray:
        """
        Advance the envelope for ``band_count`` by one frame.

        Args:
            spectrum: Current frame, or None while no audio is available.
            band_count: Number of bands to produce (> 0).
            config: Band configuration (default: ``DEFAULT_CONFIG``).
            dt: Seconds since the previous call. None keeps the per-call
                coefficients as configured.

        Returns:
            Read-only array of ``band_count`` values in [0.0, 1.0], ordered
            by ascending frequency. The same array is overwritten by the
            next call for this band count.

        Raises:
            ConfigurationError: Invalid band count or configuration.
        """
        config = (config or DEFAULT_CONFIG).validate()
        if dt is not None:
            config = config.scaled(dt)
        state = self.state(band_count)

        if spectrum is None:
            return state.output

        with state.lock:
            layout = self._layout_for(state, band_count, config, spectrum)

            energy = window_means(db_to_linear(spectrum.decibels), layout)
            state.raw[:] = shape_energy(energy, layout, config)

            rising = state.raw > state.peak
            rate = np.where(rising, config.attack, config.release)
            state.peak += (state.raw - state.peak) * rate

            state.smoothed += (state.peak - state.smoothed) * (1.0 - config.smoothing)
            state.calls += 1

        return state.output

    def poll(
        self,
        band_count: int,
        config: BandConfig | None = None,
        dt: float | None = None,
    ) -> np.ndarray:
        """
        Extract bands from the attached source's current frame.

        Without a source, or while it has no frame, returns the last output
        for ``band_count`` unchanged.
        """
        frame = self.source.get_frame() if self.source is not None else None
        if frame is None:
            logger.debug("No spectrum available for %d bands", band_count)
        return self.extract_bands(frame, band_count, config, dt=dt)

    def _layout_for(
        self,
        state: BandState,
        band_count: int,
        config: BandConfig,
        spectrum: SpectralFrame,
    ) -> BandLayout:
        key = (
            config.freq_min,
            config.freq_max,
            config.log_curve,
            spectrum.sample_rate,
            spectrum.fft_size,
            spectrum.bin_count,
        )
        if state.layout is None or state.layout_key != key:
            state.layout = compute_layout(
                band_count,
                config,
                spectrum.sample_rate,
                spectrum.fft_size,
                spectrum.bin_count,
            )
            state.layout_key = key
            if not state.layout.valid:
                logger.warning(
                    "No FFT bins between %.1f and %.1f Hz at %.0f Hz / %d; bands stay silent",
                    config.freq_min,
                    config.freq_max,
                    spectrum.sample_rate,
                    spectrum.fft_size,
                )
        return state.layout


def _check_band_count(band_count: int) -> None:
    if isinstance(band_count, bool) or not isinstance(band_count, (int, np.integer)):
        raise ConfigurationError(f"band_count must be an integer, got {band_count!r}")
    if band_count <= 0:
        raise ConfigurationError(f"band_count must be > 0, got {band_count}")
