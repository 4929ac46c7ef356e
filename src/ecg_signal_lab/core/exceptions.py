"""Error taxonomy for signal ingestion and export.

I/O boundary failures are raised as distinct, catchable exceptions. Data that
is too short for peak detection or rate estimation is reported through
InsufficientDataWarning and an empty/zero result instead.
"""
from __future__ import annotations


class SignalIOError(Exception):
    """Base class for ingestion and export failures."""


class SourceUnavailableError(SignalIOError):
    """The ingestion source could not be opened."""


class EmptySourceError(SignalIOError):
    """The source was opened but contained no parseable (time, amplitude) pairs."""


class SinkUnavailableError(SignalIOError):
    """The export destination could not be opened for writing."""


class InsufficientDataWarning(UserWarning):
    """Too few samples or peaks to produce a meaningful result."""
