"""Tests for the BandManifestExporter module."""

import json

import numpy as np
import pytest

from bandscope.core.timeline import render_timeline
from bandscope.io.exporter import BandManifestExporter
from bandscope.sources import SpectrogramSource


class TestBandManifestExporter:
    """Tests for manifest serialization."""

    @pytest.fixture
    def timeline(self):
        rng = np.random.default_rng(3)
        spectrogram = rng.uniform(-90.0, -10.0, (1024, 30))
        source = SpectrogramSource(spectrogram, sample_rate=44100, fft_size=2048, fps=60)
        return render_timeline(source, [8, 16])

    def test_build_manifest_structure(self, timeline):
        """Manifest should have correct top-level structure."""
        manifest = BandManifestExporter().build_manifest(timeline, duration=0.5)

        assert "metadata" in manifest
        assert "frames" in manifest

    def test_metadata_fields(self, timeline):
        manifest = BandManifestExporter().build_manifest(timeline, duration=0.5)
        meta = manifest["metadata"]

        assert meta["n_frames"] == 30
        assert meta["band_counts"] == [8, 16]
        assert meta["duration"] == 0.5
        assert meta["config"]["freq_min"] == 30.0
        assert len(meta["frequencies"]["16"]) == 16

    def test_frame_structure(self, timeline):
        manifest = BandManifestExporter().build_manifest(timeline, duration=0.5)
        frame = manifest["frames"][0]

        for field in ["frame_index", "time", "level", "bass", "mid", "treble", "bands"]:
            assert field in frame, f"Missing field: {field}"

        assert len(frame["bands"]["8"]) == 8
        assert len(frame["bands"]["16"]) == 16

    def test_frame_count_matches(self, timeline):
        manifest = BandManifestExporter().build_manifest(timeline, duration=0.5)

        assert len(manifest["frames"]) == timeline.n_frames

    def test_precision(self, timeline):
        exporter = BandManifestExporter(precision=2)
        manifest = exporter.build_manifest(timeline, duration=0.5)

        for value in manifest["frames"][-1]["bands"]["16"]:
            assert round(value, 2) == value

    def test_export_json(self, timeline, tmp_path):
        output_path = tmp_path / "bands.json"

        written = BandManifestExporter().export_json(timeline, 0.5, output_path)

        assert written == output_path
        with open(output_path, encoding="utf-8") as f:
            manifest = json.load(f)
        assert manifest["metadata"]["n_frames"] == 30

    def test_export_numpy(self, timeline, tmp_path):
        written = BandManifestExporter().export_numpy(timeline, tmp_path / "bands")

        assert written.suffix == ".npz"
        data = np.load(written)
        assert data["bands_8"].shape == (30, 8)
        assert data["bands_16"].shape == (30, 16)
        assert data["level"].shape == (30,)
        assert int(data["n_frames"]) == 30
