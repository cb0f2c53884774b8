"""
Caller-owned execution counters for micro-benchmarks.

Benchmarked expressions are often pure; feeding their results to a counter
keeps them observable. The counter is an ordinary object: create one per
measurement and pass it around explicitly.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ExecutionCounter:
    """
    Running count of forced results.

    Attributes:
        count: Number of results that were non-empty (force) or non-zero
            (force_nonzero) since the last reset
    """
    count: int = 0

    def force(self, t: Any) -> None:
        """Count t if it holds at least one element."""
        self.count += int(len(t) != 0)

    def force_nonzero(self, x: Any) -> None:
        """Count a scalar if it differs from zero."""
        self.count += int(x != 0)

    def reset(self) -> int:
        """Zero the counter, returning the previous count."""
        previous = self.count
        self.count = 0
        return previous


def time_execution(fn: Callable[[], Any], counter: Optional[ExecutionCounter] = None,
                   repeats: int = 1) -> float:
    """
    Run fn repeatedly and return the mean wall-clock seconds per call.

    Args:
        fn: Callable taking no arguments
        counter: If given, every result is passed to counter.force()
        repeats: Number of calls to average over

    Returns:
        Mean elapsed time in seconds
    """
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}")
    start = time.perf_counter()
    for _ in range(repeats):
        result = fn()
        if counter is not None:
            counter.force(result)
    elapsed = (time.perf_counter() - start) / repeats
    logger.debug("%s: %.3g s per call over %d calls", getattr(fn, "__name__", fn), elapsed, repeats)
    return elapsed
