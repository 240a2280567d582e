"""
Manifest serialization module.

Exports band timelines to JSON (one entry per frame) or to a NumPy
archive, for renderers that replay a track offline.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import numpy as np

from bandscope.core.timeline import BandTimeline


@dataclass
class ManifestMetadata:
    """Metadata header for the band manifest."""

    duration: float
    fps: float
    n_frames: int
    band_counts: list[int]
    schema_version: str = "1.0"


class BandManifestExporter:
    """
    Exports band timelines to manifest format.

    Each frame carries the extracted bands for every requested band count
    plus the coarse level / bass / mid / treble readings.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _build_frame(self, index: int, timeline: BandTimeline) -> dict[str, Any]:
        return {
            "frame_index": index,
            "time": self._round(timeline.frame_times[index]),
            "level": self._round(timeline.level[index]),
            "bass": self._round(timeline.bass[index]),
            "mid": self._round(timeline.mid[index]),
            "treble": self._round(timeline.treble[index]),
            "bands": {
                str(count): [self._round(v) for v in values[index]]
                for count, values in timeline.bands.items()
            },
        }

    def build_manifest(
        self,
        timeline: BandTimeline,
        duration: float,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            timeline: Extracted band timeline.
            duration: Audio duration in seconds.

        Returns:
            Complete manifest dictionary ready for serialization.
        """
        metadata = ManifestMetadata(
            duration=self._round(duration),
            fps=self._round(timeline.fps),
            n_frames=timeline.n_frames,
            band_counts=sorted(timeline.bands),
        )

        return {
            "metadata": {
                "duration": metadata.duration,
                "fps": metadata.fps,
                "n_frames": metadata.n_frames,
                "band_counts": metadata.band_counts,
                "schema_version": metadata.schema_version,
                "config": timeline.config.to_dict(),
                "frequencies": {
                    str(count): [round(float(f), 2) for f in freqs]
                    for count, freqs in timeline.frequencies.items()
                },
            },
            "frames": [
                self._build_frame(i, timeline)
                for i in range(timeline.n_frames)
            ],
        }

    def export_json(
        self,
        timeline: BandTimeline,
        duration: float,
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Export manifest to JSON file.

        Returns:
            Path to written file.
        """
        manifest = self.build_manifest(timeline, duration)
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        timeline: BandTimeline,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Export the timeline as a NumPy .npz archive for faster loading.

        Band matrices are stored as ``bands_<count>`` with shape
        (n_frames, count).

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)
        if output_path.suffix != ".npz":
            output_path = output_path.with_suffix(".npz")

        arrays = {f"bands_{count}": values for count, values in timeline.bands.items()}
        arrays.update(
            {f"frequencies_{count}": freqs for count, freqs in timeline.frequencies.items()}
        )

        np.savez_compressed(
            output_path,
            level=timeline.level,
            bass=timeline.bass,
            mid=timeline.mid,
            treble=timeline.treble,
            frame_times=timeline.frame_times,
            fps=timeline.fps,
            n_frames=timeline.n_frames,
            **arrays,
        )

        return output_path

    def to_dict(self, timeline: BandTimeline, duration: float) -> dict[str, Any]:
        """Return manifest as dictionary (for in-memory use)."""
        return self.build_manifest(timeline, duration)
