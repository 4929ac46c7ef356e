"""Exponential (IIR) and centered moving-average (FIR) smoothing filters.

Both functions follow the registry convention:
    func(amplitudes, **params) -> filtered

They never reject a parameter: out-of-range values are clamped so the
pipeline always produces an output.
"""
from __future__ import annotations

import numpy as np
from loguru import logger
from scipy.signal import lfilter

from ecg_signal_lab.processing.pipeline import register_operation


def exponential_filter(
    amplitudes: np.ndarray,
    *,
    alpha: float = 0.98,
) -> np.ndarray:
    """Apply a first-order exponential low-pass filter.

    y[0] = x[0]
    y[n] = alpha * y[n-1] + (1 - alpha) * x[n]

    Each output is a convex combination of the previous output and the current
    input, so the result stays within [min(x), max(x)]. alpha = 0 returns the
    input unchanged; alpha = 1 holds x[0] for the whole sequence.

    Args:
        amplitudes: Raw samples (1D array)
        alpha: Smoothing factor, clamped to [0, 1]. Larger = smoother, more lag.

    Returns:
        Filtered samples, same length as input
    """
    x = np.asarray(amplitudes, dtype=np.float64)
    if len(x) == 0:
        return x.copy()

    if np.isnan(alpha):
        logger.debug("alpha is NaN, clamped to 0.0")
        clamped = 0.0
    else:
        clamped = min(max(float(alpha), 0.0), 1.0)
        if clamped != alpha:
            logger.debug(f"alpha {alpha} outside [0, 1], clamped to {clamped}")
    alpha = clamped

    y = np.empty_like(x)
    y[0] = x[0]
    if len(x) > 1:
        # Initial state alpha * y[0] seeds the recurrence at n = 1
        y[1:], _ = lfilter([1.0 - alpha], [1.0, -alpha], x[1:], zi=[alpha * y[0]])
        # Rounding in the recurrence can step one ulp past the input range
        np.clip(y, x.min(), x.max(), out=y)

    logger.debug(f"Exponential filter applied: alpha={alpha}, {len(x)} samples")
    return y


def moving_average_filter(
    amplitudes: np.ndarray,
    *,
    window_length: int = 51,
) -> np.ndarray:
    """Apply a centered moving average truncated at the sequence edges.

    The window radius is window_length // 2, giving an odd effective width of
    2 * radius + 1 (even lengths round down). Near either end the window is
    cut off rather than zero-padded, and the divisor is the number of samples
    actually included, so endpoints are smoothed less.

    Args:
        amplitudes: Raw samples (1D array)
        window_length: Requested window width, clamped to >= 1

    Returns:
        Filtered samples, same length as input
    """
    x = np.asarray(amplitudes, dtype=np.float64)
    n = len(x)
    if n == 0:
        return x.copy()

    if window_length < 1:
        logger.debug(f"window_length {window_length} < 1, clamped to 1")
        window_length = 1

    radius = min(int(window_length) // 2, n - 1)
    width = 2 * radius + 1
    if radius == 0:
        return x.copy()

    # Window for sample i is [max(0, i - radius), min(n - 1, i + radius)]
    idx = np.arange(n)
    lo = np.maximum(idx - radius, 0)
    hi = np.minimum(idx + radius, n - 1)
    offset = x.mean()
    csum = np.concatenate(([0.0], np.cumsum(x - offset)))
    filtered = (csum[hi + 1] - csum[lo]) / (hi - lo + 1) + offset

    logger.debug(f"Moving average applied: width={width} (requested {window_length}), {n} samples")
    return filtered


register_operation("iir", exponential_filter)
register_operation("fir", moving_average_filter)
