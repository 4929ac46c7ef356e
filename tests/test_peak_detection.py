"""Tests for adaptive-threshold peak detection.

Uses synthetic signals with known peak locations.
"""
import numpy as np
import pytest

from ecg_signal_lab.core import InsufficientDataWarning, Signal
from ecg_signal_lab.processing import apply_filter
from ecg_signal_lab.processing.peak_detection import (
    compute_threshold,
    detect_peaks,
    enforce_refractory,
    find_candidate_peaks,
)


def make_signal(times, amplitudes, filtered=None):
    signal = Signal()
    signal.extend(times, amplitudes)
    signal.set_filtered(amplitudes if filtered is None else filtered)
    return signal


@pytest.fixture
def alternating_signal():
    """Amplitudes 0,10,0,10,0,10,0 at t = 0..6 (filtered = raw)."""
    return make_signal(np.arange(7, dtype=float), [0.0, 10.0, 0.0, 10.0, 0.0, 10.0, 0.0])


@pytest.fixture
def synthetic_ecg():
    """Spiky ECG-like trace at 250 Hz with beats every 0.8 s (75 bpm)."""
    fs = 250.0
    t = np.arange(0, 10, 1 / fs)
    beat_times = np.arange(0.4, 10, 0.8)
    ecg = np.zeros_like(t)
    for bt in beat_times:
        ecg += 1.5 * np.exp(-((t - bt) ** 2) / (2 * 0.01 ** 2))
        # Smaller T-wave 0.25 s after each R-peak
        ecg += 0.3 * np.exp(-((t - bt - 0.25) ** 2) / (2 * 0.04 ** 2))
    return t, ecg, beat_times


class TestComputeThreshold:
    def test_rms_based(self, alternating_signal):
        stats = compute_threshold(alternating_signal.filtered, min_threshold=1.0)
        expected_rms = np.sqrt(300.0 / 7.0)
        assert stats.rms == pytest.approx(expected_rms)
        assert stats.max_abs == 10.0
        assert stats.threshold == pytest.approx(1.2 * expected_rms)

    def test_min_threshold_floor(self):
        y = np.array([0.0, 0.1, 0.0, -0.1, 0.0, 5.0, 0.0, 0.0, 0.0, 0.0])
        stats = compute_threshold(y, min_threshold=2.0)
        assert stats.threshold == 2.0

    def test_fallback_when_threshold_near_peak(self):
        # Flat-ish signal: 1.2 * rms exceeds 0.9 * max_abs
        y = np.array([1.0, 1.0, 1.0, 1.0])
        stats = compute_threshold(y, min_threshold=0.5)
        assert stats.threshold == pytest.approx(0.6)

    def test_fallback_from_min_threshold(self):
        y = np.array([0.0, 0.2, 0.0, 0.2, 0.0])
        stats = compute_threshold(y, min_threshold=0.5)
        assert stats.threshold == pytest.approx(0.6 * 0.2)

    def test_all_zero_keeps_min_threshold(self):
        stats = compute_threshold(np.zeros(5), min_threshold=0.5)
        assert stats.rms == 0.0
        assert stats.max_abs == 0.0
        assert stats.threshold == 0.5

    def test_uses_absolute_values(self):
        stats = compute_threshold(np.array([0.0, -4.0, 0.0, 2.0]), min_threshold=0.0)
        assert stats.max_abs == 4.0


class TestFindCandidatePeaks:
    def test_interior_maxima(self):
        y = np.array([0.0, 2.0, 1.0, 3.0, 0.0])
        np.testing.assert_array_equal(find_candidate_peaks(y, 1.5), [1, 3])

    def test_endpoints_never_candidates(self):
        y = np.array([5.0, 1.0, 0.0, 1.0, 5.0])
        assert len(find_candidate_peaks(y, 0.0)) == 0

    def test_plateau_not_a_peak(self):
        y = np.array([0.0, 2.0, 2.0, 0.0])
        assert len(find_candidate_peaks(y, 0.0)) == 0

    def test_below_threshold_rejected(self):
        y = np.array([0.0, 2.0, 0.0, 5.0, 0.0])
        np.testing.assert_array_equal(find_candidate_peaks(y, 3.0), [3])

    def test_threshold_inclusive(self):
        y = np.array([0.0, 3.0, 0.0])
        np.testing.assert_array_equal(find_candidate_peaks(y, 3.0), [1])

    def test_negative_local_maximum_by_magnitude(self):
        # A local maximum in a negative trough still passes on |y|
        y = np.array([-10.0, -4.0, -10.0])
        np.testing.assert_array_equal(find_candidate_peaks(y, 3.0), [1])

    def test_too_short(self):
        assert len(find_candidate_peaks(np.array([0.0, 1.0]), 0.0)) == 0


class TestEnforceRefractory:
    def test_drops_close_candidates(self):
        accepted = enforce_refractory(np.array([0.0, 0.1, 0.3, 0.5, 0.56]), refractory_period=0.25)
        np.testing.assert_array_equal(accepted, [0.0, 0.3, 0.56])

    def test_rejected_candidate_does_not_reset_reference(self):
        accepted = enforce_refractory(np.array([1.0, 1.2, 1.4]), refractory_period=0.3)
        np.testing.assert_array_equal(accepted, [1.0, 1.4])

    def test_gap_exactly_refractory_accepted(self):
        accepted = enforce_refractory(np.array([1.0, 2.0]), refractory_period=1.0)
        np.testing.assert_array_equal(accepted, [1.0, 2.0])

    def test_first_candidate_always_accepted(self):
        accepted = enforce_refractory(np.array([-1e12]), refractory_period=1e6)
        np.testing.assert_array_equal(accepted, [-1e12])

    def test_zero_refractory_keeps_all(self):
        times = np.array([0.0, 0.001, 0.002])
        np.testing.assert_array_equal(enforce_refractory(times, 0.0), times)

    def test_empty(self):
        assert len(enforce_refractory(np.array([]), 0.25)) == 0


class TestDetectPeaks:
    def test_alternating_scenario(self, alternating_signal):
        peaks = detect_peaks(alternating_signal, min_threshold=1.0, refractory_period=1.5)
        np.testing.assert_array_equal(peaks, [1.0, 3.0, 5.0])

    def test_alternating_with_long_refractory(self, alternating_signal):
        peaks = detect_peaks(alternating_signal, min_threshold=1.0, refractory_period=2.5)
        np.testing.assert_array_equal(peaks, [1.0, 5.0])

    def test_returns_times_not_amplitudes(self):
        signal = make_signal([10.0, 10.5, 11.0], [0.0, 7.0, 0.0])
        np.testing.assert_array_equal(detect_peaks(signal), [10.5])

    def test_reads_filtered_column(self):
        signal = make_signal([0.0, 1.0, 2.0], [0.0, 9.0, 0.0], filtered=[0.0, 0.0, 0.0])
        assert len(detect_peaks(signal)) == 0

    def test_two_samples_returns_empty(self):
        signal = make_signal([0.0, 1.0], [0.0, 100.0])
        with pytest.warns(InsufficientDataWarning):
            peaks = detect_peaks(signal, min_threshold=0.0, refractory_period=0.0)
        assert len(peaks) == 0

    def test_empty_signal(self):
        with pytest.warns(InsufficientDataWarning):
            assert len(detect_peaks(Signal())) == 0

    def test_unfiltered_signal_has_no_peaks(self):
        signal = Signal()
        signal.extend([0.0, 1.0, 2.0], [0.0, 5.0, 0.0])
        assert len(detect_peaks(signal)) == 0

    def test_synthetic_ecg(self, synthetic_ecg):
        t, ecg, beat_times = synthetic_ecg
        signal = make_signal(t, ecg)
        peaks = detect_peaks(signal, min_threshold=0.5, refractory_period=0.25)
        assert len(peaks) == len(beat_times)
        np.testing.assert_allclose(peaks, beat_times, atol=0.005)

    @pytest.mark.parametrize("refractory", [0.0, 0.1, 0.25, 0.5, 1.0, 2.0])
    def test_spacing_invariant(self, refractory):
        rng = np.random.default_rng(7)
        t = np.arange(0, 5, 0.004)
        noise = rng.standard_normal(len(t))
        signal = make_signal(t, noise)
        peaks = detect_peaks(signal, min_threshold=0.0, refractory_period=refractory)
        gaps = np.diff(peaks)
        assert np.all(gaps > 0)
        assert np.all(gaps >= refractory)

    def test_fresh_result_each_call(self, alternating_signal):
        first = detect_peaks(alternating_signal, min_threshold=1.0, refractory_period=1.5)
        apply_filter(alternating_signal, "iir", alpha=1.0)
        second = detect_peaks(alternating_signal, min_threshold=1.0, refractory_period=1.5)
        assert len(first) == 3
        assert len(second) == 0
