"""Tests for log-frequency band placement."""

import numpy as np
import pytest

from bandscope.core.config import BandConfig
from bandscope.core.layout import (
    band_frequencies,
    band_positions,
    compute_layout,
    db_to_linear,
    window_half_widths,
    window_means,
)


class TestBandPlacement:
    """Target frequencies and positions."""

    def test_endpoints(self):
        """First and last bands sit on the configured bounds."""
        config = BandConfig(freq_min=100.0, freq_max=10000.0)
        freqs = band_frequencies(8, config)

        assert np.isclose(freqs[0], 100.0)
        assert np.isclose(freqs[-1], 10000.0)

    def test_even_log_spacing(self):
        """Adjacent bands share a constant frequency ratio."""
        freqs = band_frequencies(16, BandConfig())
        ratios = freqs[1:] / freqs[:-1]

        assert np.allclose(ratios, ratios[0])

    def test_single_band_at_freq_min(self):
        assert np.array_equal(band_positions(1), [0.0])
        assert np.isclose(band_frequencies(1, BandConfig())[0], 30.0)

    def test_log_curve_shifts_bands_down(self):
        """log_curve > 1 moves the middle bands toward the low end."""
        straight = band_frequencies(9, BandConfig())
        curved = band_frequencies(9, BandConfig(log_curve=2.0))

        assert curved[4] < straight[4]
        assert np.isclose(curved[0], straight[0])
        assert np.isclose(curved[-1], straight[-1])

    def test_window_widths(self):
        """Three bins either side at the bottom, one at the top."""
        widths = window_half_widths(band_positions(16))

        assert widths[0] == 3
        assert widths[-1] == 1
        assert np.all(np.diff(widths) <= 0)


class TestComputeLayout:
    """Mapping bands onto bins."""

    def test_worked_example_bins(self):
        """100 Hz to 10 kHz over 4 bands at 44.1 kHz / 4096."""
        config = BandConfig(freq_min=100.0, freq_max=10000.0)
        layout = compute_layout(4, config, 44100, 4096, 2048)

        assert layout.valid
        assert list(layout.centers) == [9, 43, 200, 929]
        assert list(layout.starts) == [9, 41, 199, 928]
        assert list(layout.stops) == [12, 45, 201, 929]

    def test_windows_within_valid_range(self):
        config = BandConfig()
        layout = compute_layout(64, config, 44100, 2048, 1024)

        assert np.all(layout.starts >= 1)
        assert np.all(layout.stops <= 1023)
        assert np.all(layout.starts <= layout.centers)
        assert np.all(layout.centers <= layout.stops)

    def test_range_clamped_to_available_bins(self):
        """freq_max beyond Nyquist is clamped to the last bin."""
        config = BandConfig(freq_min=1000.0, freq_max=40000.0)
        layout = compute_layout(8, config, 44100, 2048, 1024)

        assert layout.valid
        assert layout.centers[-1] == 1023

    def test_invalid_when_no_bins_in_range(self):
        config = BandConfig(freq_min=30000.0, freq_max=40000.0)
        layout = compute_layout(8, config, 44100, 2048, 1024)

        assert not layout.valid
        assert np.all(window_means(np.ones(1024), layout) == 0.0)


class TestConversions:
    """Decibel conversion and window averaging."""

    @pytest.mark.parametrize(
        "db,expected",
        [(0.0, 1.0), (-20.0, 0.1), (-80.0, 1e-4), (-120.0, 1e-4)],
    )
    def test_db_to_linear(self, db, expected):
        assert np.isclose(db_to_linear(np.array([db]))[0], expected)

    def test_db_to_linear_clamps_non_finite(self):
        """NaN and -inf read as the floor, +inf and overflowing levels as the ceiling."""
        linear = db_to_linear(np.array([np.nan, -np.inf, np.inf, 1e6]))

        assert np.all(np.isfinite(linear))
        assert np.allclose(linear, [1e-4, 1e-4, 1e5, 1e5])

    def test_window_means_finite_with_infinite_bin(self):
        """One +inf bin does not spill NaN into later windows."""
        config = BandConfig(freq_min=100.0, freq_max=10000.0)
        layout = compute_layout(4, config, 44100, 4096, 2048)
        decibels = np.full(2048, -80.0)
        decibels[layout.centers[0]] = np.inf

        means = window_means(db_to_linear(decibels), layout)

        assert np.all(np.isfinite(means))
        assert means[0] > means[1]
        assert np.allclose(means[1:], 1e-4)

    def test_window_means(self):
        """Each band averages its own inclusive bin window."""
        config = BandConfig(freq_min=100.0, freq_max=10000.0)
        layout = compute_layout(4, config, 44100, 4096, 2048)
        linear = np.arange(2048, dtype=float)

        means = window_means(linear, layout)

        assert np.allclose(means, (layout.starts + layout.stops) / 2.0)
