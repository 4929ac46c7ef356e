"""Named filter registry and application onto a Signal.

Operations follow the convention ``func(amplitudes, **params) -> filtered``
and always read the raw amplitude column. Applying one commits the complete
filtered column in a single step and records a ProcessingStep in the
signal's history.
"""
from __future__ import annotations

import time
from typing import Callable

import numpy as np
from loguru import logger

from ecg_signal_lab.core.data_models import ProcessingStep, Signal

# Registry of filter operations (name -> callable)
_OPERATIONS: dict[str, Callable[..., np.ndarray]] = {}


def register_operation(name: str, func: Callable[..., np.ndarray]):
    """Register a filter operation by name.

    Args:
        name: Operation name (must be unique)
        func: Callable with signature (amplitudes, **params) -> filtered
    """
    if name in _OPERATIONS:
        logger.warning(f"Overwriting registered operation: {name}")
    _OPERATIONS[name] = func
    logger.debug(f"Registered filter operation: {name}")


def get_operation(name: str) -> Callable[..., np.ndarray]:
    """Get a registered operation by name.

    Raises:
        KeyError: If operation not found
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Unknown operation: {name}. Available: {list(_OPERATIONS.keys())}")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    """List all registered operation names."""
    return list(_OPERATIONS.keys())


def apply_filter(signal: Signal, operation: str, **params) -> Signal:
    """Run a registered filter over signal and store the result.

    No-op on an empty signal (nothing is recorded in history).

    Args:
        signal: Signal whose filtered column is overwritten
        operation: Registered operation name ("iir" or "fir" by default)
        **params: Parameters passed to the operation

    Returns:
        The same signal, for chaining

    Raises:
        KeyError: If operation is not registered
    """
    func = get_operation(operation)

    if signal.size() == 0:
        logger.debug(f"apply_filter({operation}): empty signal, nothing to do")
        return signal

    filtered = func(signal.amplitudes, **params)
    signal.set_filtered(filtered)

    signal.history.append(
        ProcessingStep(operation=operation, parameters=dict(params), timestamp=time.time())
    )
    logger.info(f"Applied filter {operation} (params: {params}) to {signal.size()} samples")
    return signal
