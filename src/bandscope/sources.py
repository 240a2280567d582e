"""
Spectrum providers for the band extractor.

The extractor only ever borrows a ``SpectralFrame`` for the duration of one
call. Sources hand those frames out: either a live value pushed by the host
(``StaticSource``) or a precomputed spectrogram replayed one column per
call (``SpectrogramSource``).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

import librosa
import numpy as np

from bandscope.core.errors import SourceError, SpectrumShapeError

logger = logging.getLogger(__name__)

# Lowest level a spectrogram is allowed to report.
MIN_DB = -100.0


@dataclass(frozen=True)
class SpectralFrame:
    """One frame of decibel magnitudes from a real-input FFT."""

    decibels: np.ndarray  # Shape: (fft_size // 2,)
    sample_rate: float
    fft_size: int

    def __post_init__(self):
        decibels = np.asarray(self.decibels, dtype=np.float64)
        if decibels.ndim != 1:
            raise SpectrumShapeError(
                f"decibels must be 1-D, got shape {decibels.shape}"
            )
        if not self.sample_rate > 0:
            raise SpectrumShapeError(f"sample_rate must be > 0, got {self.sample_rate}")
        if not self.fft_size > 0:
            raise SpectrumShapeError(f"fft_size must be > 0, got {self.fft_size}")
        object.__setattr__(self, "decibels", decibels)

    @property
    def bin_count(self) -> int:
        """Number of magnitude bins actually present."""
        return len(self.decibels)

    @property
    def hz_per_bin(self) -> float:
        """Frequency spacing between adjacent bins."""
        return self.sample_rate / self.fft_size


class SpectrumSource(Protocol):
    """Anything that can produce the current spectral frame on demand."""

    sample_rate: float
    fft_size: int

    def get_frame(self) -> SpectralFrame | None:
        """Return the current frame, or None while not ready."""
        ...


class StaticSource:
    """
    Holds the most recent frame pushed by the host.

    Starts empty, so it reports "not ready" until the first ``update``.
    """

    def __init__(self, sample_rate: float = 44100.0, fft_size: int = 2048):
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self._frame: SpectralFrame | None = None

    def update(self, decibels: np.ndarray | None) -> None:
        """Replace the current frame; None marks the source as not ready."""
        if decibels is None:
            self._frame = None
            return
        self._frame = SpectralFrame(
            decibels=decibels,
            sample_rate=self.sample_rate,
            fft_size=self.fft_size,
        )

    def get_frame(self) -> SpectralFrame | None:
        return self._frame


class SpectrogramSource:
    """
    Replays a decibel spectrogram one frame per ``get_frame`` call.

    Returns None once every frame has been handed out, which the extractor
    treats like an unready source.
    """

    def __init__(
        self,
        spectrogram_db: np.ndarray,
        sample_rate: float,
        fft_size: int,
        fps: float = 60.0,
    ):
        """
        Args:
            spectrogram_db: Decibel magnitudes, shape (bins, frames).
            sample_rate: Sample rate of the analysed audio.
            fft_size: Transform length used to compute the spectrogram.
            fps: Frames per second the columns are spaced at.
        """
        spectrogram_db = np.asarray(spectrogram_db, dtype=np.float64)
        if spectrogram_db.ndim != 2:
            raise SpectrumShapeError(
                f"spectrogram must be 2-D (bins, frames), got {spectrogram_db.shape}"
            )

        self.spectrogram_db = spectrogram_db
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.fps = fps
        self._index = 0

    @property
    def n_frames(self) -> int:
        return self.spectrogram_db.shape[1]

    @property
    def position(self) -> int:
        """Index of the frame the next ``get_frame`` call returns."""
        return self._index

    @property
    def exhausted(self) -> bool:
        return self._index >= self.n_frames

    @property
    def frame_times(self) -> np.ndarray:
        return np.arange(self.n_frames) / self.fps

    def seek(self, index: int) -> None:
        """Move the replay cursor, clamped to [0, n_frames]."""
        self._index = min(max(0, int(index)), self.n_frames)

    def reset(self) -> None:
        self.seek(0)

    def get_frame(self) -> SpectralFrame | None:
        if self.exhausted:
            return None

        column = self.spectrogram_db[:, self._index]
        self._index += 1
        return SpectralFrame(
            decibels=column,
            sample_rate=self.sample_rate,
            fft_size=self.fft_size,
        )

    @classmethod
    def from_audio(
        cls,
        y: np.ndarray,
        sr: int,
        fft_size: int = 2048,
        fps: float = 60.0,
    ) -> "SpectrogramSource":
        """
        Compute a decibel spectrogram from an audio signal.

        Magnitudes are scaled by ``fft_size / 2`` so that a full-scale sine
        lands close to 0 dB, matching what browser analysers report.

        Args:
            y: Mono audio time series.
            sr: Sample rate.
            fft_size: Transform length.
            fps: Output frames per second; sets the hop length.

        Returns:
            SpectrogramSource with ``fft_size // 2`` bins per frame.
        """
        hop_length = max(1, int(sr / fps))

        stft = librosa.stft(
            y,
            n_fft=fft_size,
            hop_length=hop_length,
            window="hann",
        )
        # Drop the Nyquist bin: an analyser reports fft_size / 2 bins
        magnitude = np.abs(stft[: fft_size // 2]) / (fft_size / 2)

        spectrogram_db = librosa.amplitude_to_db(
            magnitude,
            ref=1.0,
            amin=10 ** (MIN_DB / 20),
            top_db=None,
        )

        return cls(
            spectrogram_db=spectrogram_db,
            sample_rate=sr,
            fft_size=fft_size,
            fps=sr / hop_length,
        )


def load_audio_source(
    audio_path: Union[str, Path],
    fft_size: int = 2048,
    fps: float = 60.0,
    sample_rate: int | None = 44100,
) -> tuple[SpectrogramSource, float]:
    """
    Load an audio file and wrap its spectrogram as a replayable source.

    Args:
        audio_path: Path to audio file (wav, mp3, flac).
        fft_size: Transform length.
        fps: Output frames per second.
        sample_rate: Resample target; None preserves the file's rate.

    Returns:
        Tuple of (source, duration_seconds).

    Raises:
        SourceError: The file could not be read.
    """
    try:
        y, sr = librosa.load(audio_path, sr=sample_rate, mono=True)
    except Exception as e:
        raise SourceError(f"Could not load audio from {audio_path}: {e}") from e

    duration = librosa.get_duration(y=y, sr=sr)
    logger.debug("Loaded %s: %.2fs at %d Hz", audio_path, duration, sr)

    return SpectrogramSource.from_audio(y, sr, fft_size=fft_size, fps=fps), duration
