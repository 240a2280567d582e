"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from bandscope.core.config import BandConfig
from bandscope.sources import SpectralFrame

# Default analysis parameters for test spectra
TEST_SR = 44100
TEST_FFT = 2048
TEST_BINS = TEST_FFT // 2


def _make_frame(
    decibels: np.ndarray,
    sample_rate: float = TEST_SR,
    fft_size: int = TEST_FFT,
) -> SpectralFrame:
    """Wrap an array of decibels as a SpectralFrame."""
    return SpectralFrame(decibels=decibels, sample_rate=sample_rate, fft_size=fft_size)


def _flat_frame(db: float, fft_size: int = TEST_FFT, sample_rate: float = TEST_SR) -> SpectralFrame:
    """Every bin at the same level."""
    return _make_frame(np.full(fft_size // 2, db), sample_rate=sample_rate, fft_size=fft_size)


@pytest.fixture
def make_frame():
    """Factory wrapping an array of decibels as a SpectralFrame."""
    return _make_frame


@pytest.fixture
def flat_frame():
    """Factory for spectra with every bin at the same level."""
    return _flat_frame


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def neutral_config() -> BandConfig:
    """
    Config with every perceptual and dynamics stage switched off.

    Raw band values then equal the window mean of linear magnitudes.
    """
    return BandConfig(
        tilt=0.0,
        bass_tame=0.0,
        gain=1.0,
        compress=1.0,
        noise_floor=0.0,
        attack=1.0,
        release=1.0,
        smoothing=0.0,
    )


@pytest.fixture
def silent_frame() -> SpectralFrame:
    """Spectrum at the analyser floor."""
    return _flat_frame(-100.0)


@pytest.fixture
def loud_frame() -> SpectralFrame:
    """Full-scale spectrum in every bin."""
    return _flat_frame(0.0)


@pytest.fixture
def noise_frames() -> list[SpectralFrame]:
    """
    A short sequence of random spectra.

    Returns:
        List of 30 frames with levels in [-100, 0] dB.
    """
    rng = np.random.default_rng(42)  # Reproducible
    return [_make_frame(rng.uniform(-100.0, 0.0, TEST_BINS)) for _ in range(30)]


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 1.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path
