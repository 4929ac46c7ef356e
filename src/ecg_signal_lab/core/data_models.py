"""Data models for ECG sample storage and processing results.

The Signal store keeps every sample in one contiguous float64 buffer laid out
as three rows (time, amplitude, filtered). Individual samples handed out to
callers are immutable attrs snapshots, never references into the buffer.
"""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, TextIO

import attrs
import numpy as np
from attrs import define, field

if TYPE_CHECKING:
    from collections.abc import Sequence

_TIME = 0
_AMPLITUDE = 1
_FILTERED = 2


def _validate_nonnegative(instance, attribute, value):
    """Validator: ensure value is >= 0."""
    if value < 0:
        raise ValueError(f"{attribute.name} must be >= 0, got {value}")


@define(frozen=True)
class Sample:
    """Snapshot of one stored sample."""

    time: float = field(converter=float)
    amplitude: float = field(converter=float)
    filtered: float = field(default=0.0, converter=float)


@define
class ProcessingStep:
    """Record of a single filter application."""

    operation: str = field(validator=attrs.validators.instance_of(str))
    parameters: dict[str, Any] = field(factory=dict, validator=attrs.validators.instance_of(dict))
    timestamp: float | None = field(default=None)


@define(frozen=True)
class ThresholdStats:
    """Adaptive threshold statistics computed over a filtered column."""

    rms: float = field(validator=_validate_nonnegative)
    max_abs: float = field(validator=_validate_nonnegative)
    threshold: float


@define
class HeartRateEstimate:
    """Mean heart rate derived from detected peak times.

    bpm is 0.0 and mean_rr is None when fewer than two peaks were found.
    """

    bpm: float = field(converter=float)
    mean_rr: float | None = field(default=None)
    peak_times: np.ndarray = field(factory=lambda: np.array([], dtype=np.float64))

    @property
    def num_peaks(self) -> int:
        """Number of peaks the estimate is based on."""
        return len(self.peak_times)

    @property
    def is_sufficient(self) -> bool:
        """Whether enough peaks were found to estimate a rate."""
        return self.num_peaks >= 2


class Signal:
    """Ordered, append-only store of ECG samples.

    Insertion order is processing order. Timestamps are expected to be
    non-decreasing, but this is the caller's responsibility and is never
    enforced; use is_time_monotonic() to check.

    Example:
        >>> signal = Signal()
        >>> signal.append(0.0, 1.5)
        >>> signal.size()
        1
    """

    _INITIAL_CAPACITY = 256

    def __init__(self):
        self._buffer = np.zeros((3, self._INITIAL_CAPACITY), dtype=np.float64)
        self._size = 0
        self.history: list[ProcessingStep] = []

    def _reserve(self, capacity: int) -> None:
        """Grow the buffer geometrically so it holds at least capacity samples."""
        current = self._buffer.shape[1]
        if capacity <= current:
            return
        new_capacity = max(capacity, current * 2)
        grown = np.zeros((3, new_capacity), dtype=np.float64)
        grown[:, : self._size] = self._buffer[:, : self._size]
        self._buffer = grown

    def append(self, time: float, amplitude: float) -> None:
        """Add one sample at the end. No ordering or duplicate checks."""
        self._reserve(self._size + 1)
        self._buffer[_TIME, self._size] = time
        self._buffer[_AMPLITUDE, self._size] = amplitude
        self._buffer[_FILTERED, self._size] = 0.0
        self._size += 1

    def extend(self, times: Sequence[float] | np.ndarray, amplitudes: Sequence[float] | np.ndarray) -> None:
        """Append many samples at once.

        Raises:
            ValueError: If times and amplitudes differ in length
        """
        times = np.asarray(times, dtype=np.float64)
        amplitudes = np.asarray(amplitudes, dtype=np.float64)
        if times.shape != amplitudes.shape or times.ndim != 1:
            raise ValueError(
                f"times {times.shape} and amplitudes {amplitudes.shape} must be 1D with equal length"
            )
        n = len(times)
        self._reserve(self._size + n)
        end = self._size + n
        self._buffer[_TIME, self._size : end] = times
        self._buffer[_AMPLITUDE, self._size : end] = amplitudes
        self._buffer[_FILTERED, self._size : end] = 0.0
        self._size = end

    def size(self) -> int:
        """Current sample count."""
        return self._size

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index: int) -> Sample:
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError(f"sample index out of range (size {self._size})")
        t, a, f = self._buffer[:, index]
        return Sample(t, a, f)

    def __iter__(self) -> Iterator[Sample]:
        for i in range(self._size):
            yield self[i]

    def __repr__(self) -> str:
        return f"Signal(size={self._size}, history={[s.operation for s in self.history]})"

    def _column(self, row: int) -> np.ndarray:
        view = self._buffer[row, : self._size]
        view.flags.writeable = False
        return view

    @property
    def times(self) -> np.ndarray:
        """Read-only view of the time column in seconds."""
        return self._column(_TIME)

    @property
    def amplitudes(self) -> np.ndarray:
        """Read-only view of the raw amplitude column."""
        return self._column(_AMPLITUDE)

    @property
    def filtered(self) -> np.ndarray:
        """Read-only view of the filtered column (0.0 until a filter runs)."""
        return self._column(_FILTERED)

    def set_filtered(self, values: Sequence[float] | np.ndarray) -> None:
        """Replace the whole filtered column in a single assignment.

        Raises:
            ValueError: If values length differs from the sample count
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (self._size,):
            raise ValueError(
                f"filtered column must have shape ({self._size},), got {values.shape}"
            )
        self._buffer[_FILTERED, : self._size] = values

    def head(self, n: int = 10) -> list[Sample]:
        """Return the first n samples as snapshots."""
        if n <= 0:
            return []
        return [self[i] for i in range(min(n, self._size))]

    def is_time_monotonic(self) -> bool:
        """Check that timestamps never decrease."""
        if self._size < 2:
            return True
        return bool(np.all(np.diff(self.times) >= 0))

    def load_from_source(self, source: str | Path | TextIO) -> int:
        """Append (time, amplitude) pairs read from a text source.

        See ecg_signal_lab.core.file_loader.load_from_source.
        """
        from ecg_signal_lab.core.file_loader import load_from_source

        return load_from_source(self, source)

    def export_to(self, sink: str | Path | TextIO) -> None:
        """Write time, amplitude and filtered columns to a text sink.

        See ecg_signal_lab.core.exporter.export_signal.
        """
        from ecg_signal_lab.core.exporter import export_signal

        export_signal(self, sink)
