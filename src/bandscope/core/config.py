"""
Band mapping and dynamics configuration.

All coefficients are expressed per extractor call. The defaults are tuned
for a renderer calling once per frame at roughly 60 Hz.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Mapping

from bandscope.core.errors import ConfigurationError

# Keys as the browser shell names them.
_CAMEL_KEYS = {
    "freqMin": "freq_min",
    "freqMax": "freq_max",
    "bassTame": "bass_tame",
    "bassTameRange": "bass_tame_range",
    "noiseFloor": "noise_floor",
    "logCurve": "log_curve",
    "referenceFps": "reference_fps",
}


@dataclass(frozen=True)
class BandConfig:
    """Log-frequency band mapping and envelope parameters."""

    # Frequency range (Hz)
    freq_min: float = 30.0
    freq_max: float = 16000.0
    log_curve: float = 1.0  # 1.0 = evenly log-spaced

    # Perceptual shaping
    tilt: float = 0.3
    bass_tame: float = 0.6
    bass_tame_range: float = 0.25  # Fraction of bands affected

    # Dynamics
    gain: float = 1.5
    compress: float = 0.8  # < 1 compresses
    noise_floor: float = 0.0

    # Envelope, as fraction of the gap closed per call
    attack: float = 0.8
    release: float = 0.08
    smoothing: float = 0.75

    # Call rate the per-call coefficients assume, used for dt scaling
    reference_fps: float = 60.0

    def validate(self) -> "BandConfig":
        """
        Check every field and raise on the first invalid one.

        Returns:
            self, so the call can be chained.

        Raises:
            ConfigurationError: A field is out of range.
        """
        if not self.freq_min > 0:
            raise ConfigurationError(f"freq_min must be > 0, got {self.freq_min}")
        if not self.freq_max > self.freq_min:
            raise ConfigurationError(
                f"freq_max ({self.freq_max}) must exceed freq_min ({self.freq_min})"
            )
        if not math.isfinite(self.freq_max):
            raise ConfigurationError("freq_max must be finite")

        for name in ("attack", "release", "smoothing", "bass_tame_range"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")

        for name in ("gain", "noise_floor", "bass_tame"):
            value = getattr(self, name)
            if not value >= 0.0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")

        for name in ("compress", "log_curve", "reference_fps"):
            value = getattr(self, name)
            if not value > 0.0:
                raise ConfigurationError(f"{name} must be > 0, got {value}")

        if not math.isfinite(self.tilt):
            raise ConfigurationError("tilt must be finite")

        return self

    def replace(self, **overrides: Any) -> "BandConfig":
        """Return a validated copy with some fields replaced."""
        return dataclasses.replace(self, **overrides).validate()

    def scaled(self, dt: float) -> "BandConfig":
        """
        Rescale the per-call envelope coefficients to an elapsed time.

        A call ``dt`` seconds after the previous one behaves like
        ``dt * reference_fps`` calls at the reference rate, so
        ``dt == 1 / reference_fps`` leaves the coefficients unchanged.

        Args:
            dt: Seconds since the previous call for the same band count.

        Returns:
            Config whose attack, release and smoothing cover ``dt``.
        """
        if not dt >= 0.0:
            raise ConfigurationError(f"dt must be >= 0, got {dt}")

        frames = dt * self.reference_fps
        return dataclasses.replace(
            self,
            attack=1.0 - (1.0 - self.attack) ** frames,
            release=1.0 - (1.0 - self.release) ** frames,
            smoothing=self.smoothing ** frames,
        )

    def to_dict(self) -> dict[str, float]:
        """Snake-case mapping of every field."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "BandConfig":
        """
        Build a config from a mapping of overrides.

        Accepts snake_case field names as well as the camelCase names used
        by the browser shell (``freqMin``, ``bassTame``, ...). Missing keys
        keep their defaults.

        Raises:
            ConfigurationError: Unknown key or invalid value.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, float] = {}

        for key, value in values.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown band config option: {key!r}")
            try:
                kwargs[name] = float(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{key} must be a number, got {value!r}") from e

        return cls(**kwargs).validate()


DEFAULT_CONFIG = BandConfig()
