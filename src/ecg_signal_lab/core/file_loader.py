"""Plain-text ingestion of (time, amplitude) records.

Each record is two whitespace-separated decimal numbers, time then amplitude.
Tokens are consumed pairwise until the source is exhausted or a token fails
to parse; anything after the first malformed token is ignored.
"""
from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Iterable, Iterator, TextIO

import numpy as np
from loguru import logger

from ecg_signal_lab.core.data_models import Signal
from ecg_signal_lab.core.exceptions import EmptySourceError, SourceUnavailableError

# Plain decimal or scientific notation; excludes nan, inf and underscore grouping
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _iter_tokens(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield from line.split()


def _parse_decimal(token: str) -> float:
    """Convert a decimal token to a finite float, raising ValueError otherwise."""
    if not _DECIMAL_RE.fullmatch(token):
        raise ValueError(f"Not a decimal number: {token!r}")
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Out of range: {token!r}")
    return value


def parse_records(lines: Iterable[str]) -> tuple[np.ndarray, np.ndarray]:
    """Parse (time, amplitude) pairs from text lines.

    Args:
        lines: Iterable of text lines (an open file works)

    Returns:
        Tuple of (times, amplitudes) float64 arrays of equal length. Parsing
        stops at the first token that is not a finite decimal number or at a
        dangling unpaired token.
    """
    times: list[float] = []
    amplitudes: list[float] = []
    tokens = _iter_tokens(lines)

    for time_token in tokens:
        amplitude_token = next(tokens, None)
        if amplitude_token is None:
            logger.debug(f"Dangling token {time_token!r} after {len(times)} records, ignored")
            break
        try:
            t = _parse_decimal(time_token)
            a = _parse_decimal(amplitude_token)
        except ValueError:
            logger.debug(
                f"Stopped parsing at malformed pair ({time_token!r}, {amplitude_token!r}) "
                f"after {len(times)} records"
            )
            break
        times.append(t)
        amplitudes.append(a)

    return np.asarray(times, dtype=np.float64), np.asarray(amplitudes, dtype=np.float64)


def _describe(source: str | Path | TextIO) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", type(source).__name__)


def load_from_source(signal: Signal, source: str | Path | TextIO) -> int:
    """Append every parseable record from source to signal.

    Timestamps are not required to be sorted, but a warning is logged when the
    resulting signal is not monotonic in time, since peak detection assumes it.

    Args:
        signal: Signal to append to
        source: Path to a text file, or an open text stream

    Returns:
        Number of samples ingested

    Raises:
        SourceUnavailableError: If the source cannot be opened
        EmptySourceError: If the source yields zero records

    On either error the signal is left unchanged.
    """
    name = _describe(source)

    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            with open(path, encoding="utf-8", errors="replace") as fh:
                times, amplitudes = parse_records(fh)
        except OSError as e:
            raise SourceUnavailableError(f"Cannot open source {path}: {e}") from e
    else:
        times, amplitudes = parse_records(source)

    if len(times) == 0:
        raise EmptySourceError(f"No (time, amplitude) records found in {name}")

    signal.extend(times, amplitudes)
    logger.info(f"Loaded {len(times)} samples from {name} (signal size {signal.size()})")

    if not signal.is_time_monotonic():
        logger.warning(
            f"Timestamps in {name} are not non-decreasing; "
            f"refractory spacing and peak timing assume sorted time"
        )

    return len(times)
