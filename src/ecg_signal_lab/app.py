"""ECG Signal Lab command-line entry point.

Registered as the console script entry point in pyproject.toml. Runs one
batch pass: load -> filter -> detect peaks -> heart rate -> export.
"""
from __future__ import annotations

import argparse
import sys

from loguru import logger

from ecg_signal_lab import __version__
from ecg_signal_lab.config.settings import FILTER_CHOICES, AppConfig, get_config
from ecg_signal_lab.core import (
    Signal,
    SignalIOError,
    SinkUnavailableError,
    export_peaks,
)
from ecg_signal_lab.processing import apply_filter, estimate_heart_rate

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_WRITE_FAILED = 2


def configure_logging(verbose: bool = False) -> None:
    """Send logs to stderr and a rotating log file."""
    logger.remove()
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level="DEBUG" if verbose else "INFO",
    )
    logger.add(
        "ecg_signal_lab.log",
        rotation="10 MB",
        retention="7 days",
        level="DEBUG",
    )


def build_parser(config: AppConfig) -> argparse.ArgumentParser:
    """Build the argument parser with defaults taken from config."""
    proc = config.processing
    parser = argparse.ArgumentParser(
        prog="ecg-signal-lab",
        description="Filter an ECG trace, detect R-peaks and estimate heart rate.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default=config.paths.input_file,
        help=f"Whitespace-separated 'time amplitude' text file (default: {config.paths.input_file})",
    )
    parser.add_argument(
        "-o", "--output",
        default=config.paths.output_file,
        help=f"Tab-separated output file (default: {config.paths.output_file})",
    )
    parser.add_argument(
        "--filter",
        choices=FILTER_CHOICES,
        default=proc.default_filter,
        help=f"Filter to apply before peak detection (default: {proc.default_filter})",
    )
    parser.add_argument("--alpha", type=float, default=proc.alpha,
                        help=f"Exponential filter smoothing factor (default: {proc.alpha})")
    parser.add_argument("--window", type=int, default=proc.window_length,
                        help=f"Moving-average window length (default: {proc.window_length})")
    parser.add_argument("--threshold", type=float, default=proc.min_threshold,
                        help=f"Minimum peak threshold (default: {proc.min_threshold})")
    parser.add_argument("--refractory", type=float, default=proc.refractory_period,
                        help=f"Refractory period in seconds (default: {proc.refractory_period})")
    parser.add_argument(
        "--peaks-out",
        default=config.paths.peaks_file,
        help="Optional tab-separated file for peak times and RR intervals",
    )
    parser.add_argument("--preview", type=int, default=0, metavar="N",
                        help="Print the first N samples after filtering")
    parser.add_argument("--config", default=None, help="JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _resolve_config(argv: list[str] | None) -> AppConfig:
    """Load the config named by --config, or the global config."""
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    known, _ = pre.parse_known_args(argv)
    if known.config:
        return AppConfig.load(known.config)
    return get_config()


def run(argv: list[str] | None = None) -> int:
    """Run one batch pass and return the process exit code."""
    try:
        config = _resolve_config(argv)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Cannot load configuration: {e}")
        return EXIT_LOAD_FAILED

    args = build_parser(config).parse_args(argv)

    signal = Signal()
    try:
        signal.load_from_source(args.input)
    except SignalIOError as e:
        logger.error(f"Cannot load {args.input}: {e}")
        return EXIT_LOAD_FAILED

    if args.filter == "iir":
        apply_filter(signal, "iir", alpha=args.alpha)
    elif args.filter == "fir":
        apply_filter(signal, "fir", window_length=args.window)

    for sample in signal.head(args.preview):
        print(f"{sample.time}\t{sample.amplitude}\t{sample.filtered}")

    estimate = estimate_heart_rate(
        signal, min_threshold=args.threshold, refractory_period=args.refractory
    )
    print(f"Peaks detected: {estimate.num_peaks}")
    for t in estimate.peak_times:
        print(t)
    if estimate.is_sufficient:
        print(f"BPM: {estimate.bpm:.2f}")
    else:
        print("BPM: insufficient peaks")

    try:
        signal.export_to(args.output)
        if args.peaks_out:
            export_peaks(estimate.peak_times, args.peaks_out)
    except SinkUnavailableError as e:
        logger.error(str(e))
        return EXIT_WRITE_FAILED

    return EXIT_OK


def main() -> None:
    """Console script entry point."""
    configure_logging(verbose="-v" in sys.argv[1:] or "--verbose" in sys.argv[1:])
    logger.info("Starting ECG Signal Lab")
    sys.exit(run())
