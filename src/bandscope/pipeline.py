"""
Offline band extraction pipeline.

Orchestrates the flow from audio file to band manifest: load and
transform the audio, replay it through the band extractor, export.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Union

from bandscope.core.config import DEFAULT_CONFIG, BandConfig
from bandscope.core.timeline import BandTimeline, render_timeline
from bandscope.io.exporter import BandManifestExporter
from bandscope.sources import SpectrogramSource, load_audio_source

logger = logging.getLogger(__name__)


class BandPipeline:
    """
    Complete audio-to-manifest processing pipeline.

    Combines spectrogram loading, per-frame band extraction and export
    into a single interface.
    """

    # Part of the cache key; bump when extraction output changes.
    ANALYSIS_VERSION = "1.0"

    def __init__(
        self,
        target_fps: int = 60,
        sample_rate: int = 44100,
        fft_size: int = 2048,
        band_counts: tuple[int, ...] = (8, 16, 32, 64),
        config: BandConfig | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            target_fps: Frames per second of the extracted timeline.
            sample_rate: Audio sample rate for analysis.
            fft_size: Transform length; yields fft_size // 2 bins.
            band_counts: Band resolutions to extract.
            config: Band configuration (default: ``DEFAULT_CONFIG``).
        """
        self.target_fps = target_fps or 60
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.band_counts = list(band_counts)
        self.config = (config or DEFAULT_CONFIG).validate()
        self.exporter = BandManifestExporter()

    def _get_cache_dir(self) -> Path:
        """Directory holding cached JSON manifests (created on demand)."""
        path = Path.home() / ".cache" / "bandscope" / "manifests"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _settings_digest(self) -> str:
        """Digest of every setting besides the audio that shapes a manifest."""
        settings = {
            "version": self.ANALYSIS_VERSION,
            "fps": self.target_fps,
            "sr": self.sample_rate,
            "fft_size": self.fft_size,
            "band_counts": sorted(set(self.band_counts)),
            "bands": self.config.to_dict(),
        }
        payload = json.dumps(settings, sort_keys=True).encode("utf-8")
        return hashlib.md5(payload).hexdigest()

    def _cache_path(self, audio_path: Path) -> Path:
        """Cache entry for this audio content under the current settings."""
        audio_digest = hashlib.sha256()
        with open(audio_path, "rb") as f:
            for chunk in iter(lambda: f.read(1 << 16), b""):
                audio_digest.update(chunk)
        name = f"manifest_{audio_digest.hexdigest()}_{self._settings_digest()}.json"
        return self._get_cache_dir() / name

    def clear_cache(self) -> int:
        """Delete cached manifests. Returns the number of files removed."""
        removed = 0
        for path in self._get_cache_dir().glob("*.json"):
            path.unlink()
            removed += 1
        logger.debug("Removed %d cached manifests", removed)
        return removed

    def load(self, audio_path: Union[str, Path]) -> tuple[SpectrogramSource, float]:
        """
        Phase A: Load audio and compute its decibel spectrogram.

        Returns:
            Tuple of (source, duration_seconds).
        """
        return load_audio_source(
            audio_path,
            fft_size=self.fft_size,
            fps=self.target_fps,
            sample_rate=self.sample_rate,
        )

    def extract(self, source: SpectrogramSource) -> BandTimeline:
        """
        Phase B: Replay the spectrogram through a fresh band extractor.
        """
        return render_timeline(source, self.band_counts, self.config)

    def export(
        self,
        timeline: BandTimeline,
        duration: float,
        output_path: Union[str, Path],
        format: str = "json",
    ) -> Path:
        """
        Phase C: Export to manifest file.

        Args:
            timeline: Extracted band timeline.
            duration: Audio duration.
            output_path: Output file path.
            format: "json" or "numpy".

        Returns:
            Path to written file.
        """
        if format == "numpy":
            return self.exporter.export_numpy(timeline, output_path)
        return self.exporter.export_json(timeline, duration, output_path)

    def process(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path] | None = None,
        format: str = "json",
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """
        Run the complete pipeline from audio file to manifest.

        Args:
            audio_path: Path to input audio file.
            output_path: Path for output manifest. If None, only returns dict.
            format: Output format ("json" or "numpy").
            use_cache: Whether to use a cached manifest if available.

        Returns:
            Dictionary containing manifest data and processing info.
        """
        audio_path = Path(audio_path)

        # The cache only holds JSON manifests, numpy export needs the timeline
        if use_cache and format == "json":
            try:
                cache_path = self._cache_path(audio_path)
                if cache_path.exists():
                    with open(cache_path, "r", encoding="utf-8") as f:
                        manifest = json.load(f)

                    metadata = manifest.get("metadata", {})
                    logger.info("Loaded bands from cache: %s", cache_path)

                    result = {
                        "manifest": manifest,
                        "duration": metadata.get("duration", 0.0),
                        "n_frames": metadata.get("n_frames", 0),
                        "fps": metadata.get("fps", self.target_fps),
                    }

                    if output_path:
                        with open(output_path, "w", encoding="utf-8") as f:
                            json.dump(manifest, f, indent=2)
                        result["output_path"] = str(output_path)

                    return result
            except (OSError, ValueError) as e:
                logger.warning("Failed to load cache: %s. Re-analyzing.", e)

        # Phase A: Load
        source, duration = self.load(audio_path)

        # Phase B: Extract
        timeline = self.extract(source)

        manifest = self.exporter.to_dict(timeline, duration)

        if use_cache:
            try:
                cache_path = self._cache_path(audio_path)
                with open(cache_path, "w", encoding="utf-8") as f:
                    json.dump(manifest, f, indent=2)
            except OSError as e:
                logger.warning("Failed to save cache: %s", e)

        # Phase C: Export if path provided
        result = {
            "manifest": manifest,
            "duration": duration,
            "n_frames": timeline.n_frames,
            "fps": timeline.fps,
        }

        if output_path:
            written_path = self.export(timeline, duration, output_path, format)
            result["output_path"] = str(written_path)

        return result

    def process_to_manifest(self, audio_path: Union[str, Path]) -> dict[str, Any]:
        """Process audio and return the manifest dictionary directly."""
        return self.process(audio_path)["manifest"]
