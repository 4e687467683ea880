"""
Unit tests for BufferedEstimator and its peak / interval helpers.
Run with:  pytest tests/test_buffered.py
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_heart_rate.buffered import BufferedEstimator, local_maxima, plausible_intervals
from ppg_heart_rate.samples import FilteredSample, HREstimate
from ppg_heart_rate.synthetic import triangle_wave


def _feed(est: BufferedEstimator, values, fs: float):
    return [est.update(FilteredSample(float(v), i / fs)) for i, v in enumerate(values)]


def _sine(fs: float, seconds: float, hz: float = 1.2) -> np.ndarray:
    t = np.arange(int(fs * seconds)) / fs
    return np.sin(2 * np.pi * hz * t)


# ---------------------------------------------------------------------------
# Helper tests
# ---------------------------------------------------------------------------

class TestLocalMaxima:

    def test_simple_peak(self):
        assert local_maxima([0.0, 1.0, 0.0]).tolist() == [1]

    def test_boundaries_never_peaks(self):
        assert local_maxima([5.0, 1.0, 5.0]).size == 0
        assert local_maxima([1.0, 2.0, 3.0, 4.0]).size == 0

    def test_random_windows_exclude_boundaries(self):
        rng = np.random.default_rng(0)
        for _ in range(200):
            values = rng.normal(size=30)
            peaks = local_maxima(values)
            assert np.all(peaks >= 1)
            assert np.all(peaks <= len(values) - 2)

    def test_plateau_is_not_a_peak(self):
        assert local_maxima([0.0, 1.0, 1.0, 0.0]).size == 0

    def test_short_input(self):
        assert local_maxima([1.0, 2.0]).size == 0


class TestPlausibleIntervals:

    def test_bounds_are_exclusive(self):
        assert plausible_intervals([0.0, 2.0, 2.5]).tolist() == [0.5]

    def test_implausible_dropped(self):
        assert plausible_intervals([0.0, 0.1, 0.9, 3.5]).tolist() == pytest.approx([0.8])


# ---------------------------------------------------------------------------
# BufferedEstimator tests
# ---------------------------------------------------------------------------

class TestBufferedEstimator:

    def test_invalid_until_window_full(self):
        est = BufferedEstimator(capacity=30)
        results = _feed(est, triangle_wave(29, 10), fs=12.0)
        assert all(not r.valid for r in results)
        assert all(r.bpm == -1 for r in results)

    def test_length_pinned_at_capacity(self):
        est = BufferedEstimator(capacity=30)
        for i, v in enumerate(_sine(50.0, 4.0)):
            est.update(FilteredSample(float(v), i / 50.0))
            assert len(est) == min(i + 1, 30)
        assert est.is_full
        assert est.fill_ratio == 1.0

    def test_triangle_72_bpm(self):
        """Peaks every 10 samples, 1/12 s apart -> 0.833 s -> 72 BPM."""
        est = BufferedEstimator(capacity=30)
        results = _feed(est, triangle_wave(40, 10), fs=12.0)
        assert all(not r.valid for r in results[:29])
        for r in results[29:]:
            assert r.valid
            assert abs(r.bpm - 72) <= 2

    def test_sine_50hz_long_window(self):
        est = BufferedEstimator(capacity=100)
        results = _feed(est, _sine(50.0, 10.0), fs=50.0)
        for r in results[99:]:
            assert r.valid
            assert abs(r.bpm - 72) <= 2

    def test_sine_50hz_default_window_too_short(self):
        """30 samples at 50 Hz span 0.6 s, less than one 0.833 s beat."""
        est = BufferedEstimator(capacity=30)
        results = _feed(est, _sine(50.0, 10.0), fs=50.0)
        assert all(not r.valid for r in results)

    def test_interval_above_upper_bound_is_invalid(self):
        """Two peaks 2.5 s apart with no other interval -> invalid."""
        values = np.zeros(30)
        values[2] = 1.0
        values[27] = 1.0
        est = BufferedEstimator(capacity=30)
        results = _feed(est, values, fs=10.0)
        assert est.peak_times().tolist() == pytest.approx([0.2, 2.7])
        assert not results[-1].valid

    def test_interval_equal_to_upper_bound_is_invalid(self):
        values = np.zeros(12)
        values[1] = 1.0
        values[9] = 1.0
        est = BufferedEstimator(capacity=12)
        results = _feed(est, values, fs=4.0)   # 8 samples * 0.25 s = 2.0 s
        assert not results[-1].valid

    def test_single_peak_is_invalid(self):
        values = np.zeros(30)
        values[15] = 1.0
        est = BufferedEstimator(capacity=30)
        assert not _feed(est, values, fs=50.0)[-1].valid

    def test_compute_is_pure(self):
        est = BufferedEstimator(capacity=30)
        last = _feed(est, triangle_wave(35, 10), fs=12.0)[-1]
        first = est.compute()
        second = est.compute()
        assert first == second == last
        assert len(est) == 30

    def test_reset(self):
        est = BufferedEstimator(capacity=30)
        _feed(est, triangle_wave(40, 10), fs=12.0)
        assert est.last_estimate.valid
        assert est.last_mean_interval == pytest.approx(10 / 12.0)
        est.reset()
        assert len(est) == 0
        assert est.last_estimate == HREstimate.invalid()
        assert est.last_mean_interval == 0.0

    def test_capacity_too_small(self):
        with pytest.raises(ValueError):
            BufferedEstimator(capacity=2)


class TestHREstimate:

    def test_non_positive_interval_is_invalid(self):
        assert not HREstimate.from_interval(0.0).valid
        assert not HREstimate.from_interval(-0.5).valid

    def test_rounding(self):
        assert HREstimate.from_interval(1.0).bpm == 60
        assert HREstimate.from_interval(0.8).bpm == 75
