"""Export signals and detected peaks as tab-separated text.

Floats are written with pandas' shortest round-trip formatting, so exported
time and amplitude columns re-ingest to identical values.
"""
from __future__ import annotations

from pathlib import Path
from typing import TextIO

import numpy as np
import pandas as pd
from loguru import logger

from ecg_signal_lab.core.data_models import Signal
from ecg_signal_lab.core.exceptions import SinkUnavailableError

SIGNAL_COLUMNS = ["time", "original", "filtered"]
PEAK_COLUMNS = ["peak_time", "rr_interval_s", "heart_rate_bpm"]


def _write_table(df: pd.DataFrame, sink: str | Path | TextIO) -> str:
    """Write df tab-separated to a path or open text stream.

    Returns:
        Printable name of the sink
    """
    if isinstance(sink, (str, Path)):
        path = Path(sink)
        try:
            df.to_csv(path, sep="\t", index=False, lineterminator="\n", na_rep="")
        except OSError as e:
            raise SinkUnavailableError(f"Cannot write to {path}: {e}") from e
        return str(path)

    df.to_csv(sink, sep="\t", index=False, lineterminator="\n", na_rep="")
    return getattr(sink, "name", type(sink).__name__)


def export_signal(signal: Signal, sink: str | Path | TextIO) -> None:
    """Export a signal as ``time\\toriginal\\tfiltered`` rows.

    The filtered column holds whatever filter ran last, or 0.0 if none has.
    Repeated export of an unchanged signal is byte-identical.

    Args:
        signal: Signal to export
        sink: Output path or open text stream

    Raises:
        SinkUnavailableError: If the output path cannot be opened for writing
    """
    df = pd.DataFrame({
        "time": signal.times,
        "original": signal.amplitudes,
        "filtered": signal.filtered,
    }, columns=SIGNAL_COLUMNS)

    name = _write_table(df, sink)
    logger.info(f"Exported signal to {name} ({len(df)} rows)")


def export_peaks(peak_times: np.ndarray, sink: str | Path | TextIO) -> None:
    """Export peak times with the RR interval and rate to the next peak.

    Columns:
    - peak_time: Peak timestamp in seconds
    - rr_interval_s: Interval to the *next* peak (empty for the last peak)
    - heart_rate_bpm: 60 / rr_interval_s (empty where the interval is
      missing or not positive)

    Args:
        peak_times: Ascending peak timestamps
        sink: Output path or open text stream

    Raises:
        SinkUnavailableError: If the output path cannot be opened for writing
    """
    peak_times = np.asarray(peak_times, dtype=np.float64)

    rr = np.full(len(peak_times), np.nan)
    if len(peak_times) > 1:
        rr[:-1] = np.diff(peak_times)

    bpm = np.full(len(peak_times), np.nan)
    positive = rr > 0
    bpm[positive] = 60.0 / rr[positive]

    df = pd.DataFrame({
        "peak_time": peak_times,
        "rr_interval_s": rr,
        "heart_rate_bpm": bpm,
    }, columns=PEAK_COLUMNS)

    if len(peak_times) == 0:
        logger.warning("No peaks to export; writing header only")

    name = _write_table(df, sink)
    logger.info(f"Exported {len(df)} peaks to {name}")
