"""Core data models, text ingestion, export, and error types for ECG Signal Lab."""

from .data_models import (
    HeartRateEstimate,
    ProcessingStep,
    Sample,
    Signal,
    ThresholdStats,
)
from .exceptions import (
    EmptySourceError,
    InsufficientDataWarning,
    SignalIOError,
    SinkUnavailableError,
    SourceUnavailableError,
)
from .exporter import export_peaks, export_signal
from .file_loader import load_from_source, parse_records

__all__ = [
    "Sample",
    "Signal",
    "ProcessingStep",
    "ThresholdStats",
    "HeartRateEstimate",
    "SignalIOError",
    "SourceUnavailableError",
    "EmptySourceError",
    "SinkUnavailableError",
    "InsufficientDataWarning",
    "load_from_source",
    "parse_records",
    "export_signal",
    "export_peaks",
]
