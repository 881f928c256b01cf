"""
Timing helpers

Context manager and decorator that log how long a block or function took.
Used around record loading, remote pagination, series reconstruction and
grid building.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Elapsed seconds above which a block is reported as slow
SLOW_WARNING_S = 1.0
SLOW_ERROR_S = 10.0


def _log_elapsed(operation_name: str, elapsed: float) -> None:
    if elapsed >= SLOW_ERROR_S:
        logger.error(f"SLOW: {operation_name} took {elapsed:.2f}s (threshold: {SLOW_ERROR_S:.0f}s)")
    elif elapsed >= SLOW_WARNING_S:
        logger.warning(f"{operation_name} took {elapsed:.2f}s (threshold: {SLOW_WARNING_S:.0f}s)")
    else:
        logger.info(f"{operation_name} completed in {elapsed:.2f}s")


def measure_time(func: F) -> F:
    """
    Decorator logging the wall time of each call.

    Args:
        func: function to time

    Returns:
        wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _log_elapsed(func.__name__, time.perf_counter() - start_time)

    return wrapper  # type: ignore[return-value]


def measure_time_context(operation_name: str) -> PerformanceContext:
    """
    Time a code block.

    Examples:
        >>> with measure_time_context("load events"):
        ...     records = client.list_records(base_id, table_id)
        INFO - load events completed in 0.42s
    """
    return PerformanceContext(operation_name)


class PerformanceContext:
    """
    Context manager measuring the execution time of a block.

    Attributes:
        operation_name: label used in the log lines
        start_time: ``perf_counter`` value on entry
        elapsed: seconds spent in the block, set on exit
    """

    def __init__(self, operation_name: str) -> None:
        self.operation_name = operation_name
        self.start_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> PerformanceContext:
        self.start_time = time.perf_counter()
        logger.debug(f"Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {self.elapsed:.2f}s")
            return
        _log_elapsed(self.operation_name, self.elapsed)
