"""Heart rate from detected peak times.

The mean rate uses the mean RR interval over the whole peak list; the
instantaneous rate gives one value per consecutive peak pair.
"""
from __future__ import annotations

import warnings

import numpy as np
from loguru import logger

from ecg_signal_lab.core.data_models import HeartRateEstimate, Signal
from ecg_signal_lab.core.exceptions import InsufficientDataWarning
from ecg_signal_lab.processing.peak_detection import detect_peaks


def mean_heart_rate(peak_times: np.ndarray) -> HeartRateEstimate:
    """Compute mean BPM from ascending peak timestamps.

    mean_rr = (last - first) / (count - 1), which equals the mean of the
    consecutive differences; bpm = 60 / mean_rr, or 0 if mean_rr <= 0.

    Returns:
        HeartRateEstimate; bpm is 0.0 and an InsufficientDataWarning is issued
        when fewer than 2 peaks are given
    """
    peak_times = np.asarray(peak_times, dtype=np.float64)

    if len(peak_times) < 2:
        message = f"Insufficient peaks for heart rate: {len(peak_times)} found, need 2"
        logger.warning(message)
        warnings.warn(message, InsufficientDataWarning, stacklevel=2)
        return HeartRateEstimate(bpm=0.0, mean_rr=None, peak_times=peak_times)

    mean_rr = float((peak_times[-1] - peak_times[0]) / (len(peak_times) - 1))
    bpm = 60.0 / mean_rr if mean_rr > 0 else 0.0

    logger.info(f"Heart rate: {bpm:.1f} bpm (mean RR {mean_rr:.4f}s over {len(peak_times)} peaks)")
    return HeartRateEstimate(bpm=bpm, mean_rr=mean_rr, peak_times=peak_times)


def estimate_heart_rate(
    signal: Signal,
    *,
    min_threshold: float = 0.5,
    refractory_period: float = 0.25,
) -> HeartRateEstimate:
    """Detect peaks in signal and derive the mean heart rate.

    Args:
        signal: Signal with a populated filtered column
        min_threshold: Peak threshold floor passed to detect_peaks
        refractory_period: Minimum peak spacing in seconds passed to detect_peaks

    Returns:
        HeartRateEstimate (bpm 0.0 when fewer than 2 peaks are detected)
    """
    peak_times = detect_peaks(
        signal, min_threshold=min_threshold, refractory_period=refractory_period
    )
    return mean_heart_rate(peak_times)


def instantaneous_heart_rate(peak_times: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Compute beat-to-beat heart rate from consecutive peaks.

    Args:
        peak_times: Ascending peak timestamps in seconds

    Returns:
        Tuple of (times, bpm):
          - times: midpoints between consecutive peaks
          - bpm: 60 / interval for each pair
        Pairs with a non-positive interval are dropped. Both arrays are empty
        if fewer than 2 peaks are given.
    """
    peak_times = np.asarray(peak_times, dtype=np.float64)
    if len(peak_times) < 2:
        logger.debug("instantaneous_heart_rate: fewer than 2 peaks, returning empty arrays")
        return np.array([]), np.array([])

    rr = np.diff(peak_times)
    mid_times = (peak_times[:-1] + peak_times[1:]) / 2.0

    valid = rr > 0
    if not np.all(valid):
        logger.warning(f"instantaneous_heart_rate: {int(np.sum(~valid))} non-positive RR intervals removed")
        rr = rr[valid]
        mid_times = mid_times[valid]

    return mid_times, 60.0 / rr
