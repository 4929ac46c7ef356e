"""Signal processing modules for ECG Signal Lab.

Provides the filter registry, exponential and moving-average filters,
adaptive peak detection, and heart-rate estimation.
"""

from ecg_signal_lab.processing.pipeline import (
    apply_filter,
    get_operation,
    list_operations,
    register_operation,
)
from ecg_signal_lab.processing.filters import (
    exponential_filter,
    moving_average_filter,
)
from ecg_signal_lab.processing.peak_detection import (
    compute_threshold,
    detect_peaks,
    enforce_refractory,
    find_candidate_peaks,
)
from ecg_signal_lab.processing.heart_rate import (
    estimate_heart_rate,
    instantaneous_heart_rate,
    mean_heart_rate,
)

__all__ = [
    # Registry
    "apply_filter",
    "register_operation",
    "get_operation",
    "list_operations",
    # Filters
    "exponential_filter",
    "moving_average_filter",
    # Peak detection
    "compute_threshold",
    "find_candidate_peaks",
    "enforce_refractory",
    "detect_peaks",
    # Heart rate
    "estimate_heart_rate",
    "mean_heart_rate",
    "instantaneous_heart_rate",
]
