"""Manifest export."""

from bandscope.io.exporter import BandManifestExporter

__all__ = ["BandManifestExporter"]
