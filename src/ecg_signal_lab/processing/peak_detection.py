"""Adaptive-threshold R-peak detection over the filtered column.

Pipeline: threshold statistics -> local-maximum candidates -> refractory
enforcement. Returns ascending peak timestamps (never amplitudes).
"""
from __future__ import annotations

import warnings

import numpy as np
from loguru import logger

from ecg_signal_lab.core.data_models import Signal, ThresholdStats
from ecg_signal_lab.core.exceptions import InsufficientDataWarning

MIN_SAMPLES = 3

# Threshold is RMS_FACTOR * rms unless that exceeds CEILING_FACTOR * max_abs,
# in which case it drops to FALLBACK_FACTOR * max_abs.
RMS_FACTOR = 1.2
CEILING_FACTOR = 0.9
FALLBACK_FACTOR = 0.6


def compute_threshold(filtered: np.ndarray, min_threshold: float = 0.5) -> ThresholdStats:
    """Derive the adaptive peak threshold from signal energy.

    threshold = max(min_threshold, 1.2 * rms), lowered to 0.6 * max_abs when
    it would exceed 0.9 * max_abs. The fallback keeps low-amplitude signals
    from having a threshold above their own peaks.

    Args:
        filtered: Filtered samples (1D array, non-empty)
        min_threshold: Absolute floor for the threshold

    Returns:
        ThresholdStats with rms, max_abs and the final threshold
    """
    y = np.asarray(filtered, dtype=np.float64)
    rms = float(np.sqrt(np.mean(y * y)))
    max_abs = float(np.max(np.abs(y)))

    threshold = max(min_threshold, RMS_FACTOR * rms)
    if max_abs > 0 and threshold > CEILING_FACTOR * max_abs:
        threshold = FALLBACK_FACTOR * max_abs

    logger.debug(f"Peak threshold: rms={rms:.4f}, max_abs={max_abs:.4f}, threshold={threshold:.4f}")
    return ThresholdStats(rms=rms, max_abs=max_abs, threshold=threshold)


def find_candidate_peaks(filtered: np.ndarray, threshold: float) -> np.ndarray:
    """Find strict interior local maxima whose magnitude reaches threshold.

    The first and last samples are never candidates.

    Returns:
        Ascending array of sample indices
    """
    y = np.asarray(filtered, dtype=np.float64)
    if len(y) < MIN_SAMPLES:
        return np.array([], dtype=int)

    centre = y[1:-1]
    is_peak = (centre > y[:-2]) & (centre > y[2:]) & (np.abs(centre) >= threshold)
    return np.flatnonzero(is_peak) + 1


def enforce_refractory(candidate_times: np.ndarray, refractory_period: float = 0.25) -> np.ndarray:
    """Keep candidates at least refractory_period after the last accepted one.

    Candidates are visited in order; a rejected candidate does not reset the
    reference time. The first candidate is always accepted.

    Returns:
        Accepted timestamps
    """
    accepted: list[float] = []
    last_accepted = -np.inf

    for t in np.asarray(candidate_times, dtype=np.float64):
        if t - last_accepted >= refractory_period:
            accepted.append(float(t))
            last_accepted = t

    return np.asarray(accepted, dtype=np.float64)


def detect_peaks(
    signal: Signal,
    *,
    min_threshold: float = 0.5,
    refractory_period: float = 0.25,
) -> np.ndarray:
    """Detect peaks in the signal's filtered column.

    Args:
        signal: Signal with a populated filtered column
        min_threshold: Absolute threshold floor (default 0.5)
        refractory_period: Minimum seconds between accepted peaks (default 0.25)

    Returns:
        Ascending array of peak timestamps in seconds. Empty, with an
        InsufficientDataWarning, when the signal has fewer than 3 samples.
    """
    n = signal.size()
    if n < MIN_SAMPLES:
        message = f"Peak detection needs at least {MIN_SAMPLES} samples, got {n}"
        logger.warning(message)
        warnings.warn(message, InsufficientDataWarning, stacklevel=2)
        return np.array([], dtype=np.float64)

    filtered = signal.filtered
    stats = compute_threshold(filtered, min_threshold)
    candidates = find_candidate_peaks(filtered, stats.threshold)
    peak_times = enforce_refractory(signal.times[candidates], refractory_period)

    logger.info(
        f"Peak detection: {len(peak_times)} peaks accepted from {len(candidates)} candidates "
        f"(threshold={stats.threshold:.4f}, refractory={refractory_period}s)"
    )
    return peak_times
