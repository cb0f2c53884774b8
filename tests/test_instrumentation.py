"""
Tests for instrumentation module.
"""

import logging

import pytest
import sys
sys.path.append('..')

from tensorview.instrumentation import ExecutionCounter, time_execution
from tensorview.tensor import RTensor


class TestExecutionCounter:
    """Test cases for ExecutionCounter."""

    def test_force_counts_non_empty(self):
        """Test only non-empty results are counted."""
        counter = ExecutionCounter()
        counter.force(RTensor.ones(3))
        counter.force(RTensor())
        counter.force([1])
        assert counter.count == 2

    def test_force_nonzero(self):
        """Test scalars are counted when non-zero."""
        counter = ExecutionCounter()
        for x in (0.0, 1.5, -2, 0, 1j):
            counter.force_nonzero(x)
        assert counter.count == 3

    def test_reset(self):
        """Test reset returns and clears the count."""
        counter = ExecutionCounter(count=4)
        assert counter.reset() == 4
        assert counter.count == 0

    def test_counters_are_independent(self):
        """Test two counters do not share state."""
        a = ExecutionCounter()
        b = ExecutionCounter()
        a.force_nonzero(1)
        assert b.count == 0


class TestTimeExecution:
    """Test cases for time_execution."""

    def test_returns_mean_seconds(self):
        """Test the result is a non-negative float."""
        elapsed = time_execution(lambda: RTensor.zeros(10), repeats=3)
        assert isinstance(elapsed, float)
        assert elapsed >= 0.0

    def test_results_are_forced(self):
        """Test each result goes through the counter."""
        counter = ExecutionCounter()
        time_execution(lambda: RTensor.ones(2), counter=counter, repeats=5)
        assert counter.count == 5

    def test_debug_record(self, caplog):
        """Test timings are logged at debug level."""
        def work():
            return RTensor.ones(1)

        with caplog.at_level(logging.DEBUG, logger="tensorview.instrumentation"):
            time_execution(work, repeats=2)
        assert any("work" in record.getMessage() for record in caplog.records)

    def test_repeats_must_be_positive(self):
        """Test zero repeats are rejected."""
        with pytest.raises(ValueError):
            time_execution(lambda: None, repeats=0)


if __name__ == "__main__":
    pytest.main([__file__])
