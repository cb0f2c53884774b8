"""
Tests for sparse module.
"""

import logging

import pytest
import numpy as np
import sys
sys.path.append('..')

from tensorview.dimensions import Dimensions
from tensorview.sparse import CSRMatrix, SparseTriplet, full
from tensorview.tensor import RTensor, CTensor, Indices
from tensorview.operations import all_equal
from tensorview import operations as ops
from tensorview.exceptions import InvalidRangeError, OutOfBoundsError, SizeMismatchError


class TestSparseTriplet:
    """Test cases for SparseTriplet."""

    def test_ordering_by_row_then_column(self):
        """Test triplets sort by (row, column)."""
        triplets = [SparseTriplet(1, 0, 5.0), SparseTriplet(0, 2, 1.0), SparseTriplet(0, 1, 2.0)]
        assert [(t.row, t.column) for t in sorted(triplets)] == [(0, 1), (0, 2), (1, 0)]


class TestAssembly:
    """Test cases for building CSR matrices."""

    def test_zero_matrix(self):
        """Test CSRMatrix(rows, columns) has no entries."""
        s = CSRMatrix(3, 4)
        assert s.dimensions == Dimensions(3, 4)
        assert s.length() == 0
        assert s.row_start.raw_buffer().tolist() == [0, 0, 0, 0]
        assert not s.is_empty()
        assert s(2, 3) == 0.0

    def test_default_is_empty(self):
        """Test the default matrix has no rows or columns."""
        s = CSRMatrix()
        assert s.is_empty()
        assert s.length() == 0

    def test_duplicates_are_summed(self):
        """Test repeated coordinates add up."""
        s = CSRMatrix.from_triplets([(0, 0, 1.0), (0, 0, 2.0), (1, 1, 5.0)], 2, 2)
        assert s.row_start.raw_buffer().tolist() == [0, 1, 2]
        assert s.column.raw_buffer().tolist() == [0, 1]
        assert s.data.raw_buffer().tolist() == [3.0, 5.0]
        assert s.length() == 2

    def test_duplicate_merge_is_logged(self, caplog):
        """Test merging duplicates leaves a debug record."""
        with caplog.at_level(logging.DEBUG, logger="tensorview.sparse"):
            CSRMatrix.from_triplets([(0, 0, 1.0), (0, 0, 2.0)], 1, 1)
        assert any("duplicate" in record.message for record in caplog.records)

    def test_unsorted_input(self):
        """Test entries are sorted by row and column."""
        s = CSRMatrix.from_coordinates([2, 0, 1, 0], [0, 3, 1, 1], [4.0, 2.0, 3.0, 1.0])
        assert s.dimensions == Dimensions(3, 4)
        assert s.row_start.raw_buffer().tolist() == [0, 2, 3, 4]
        assert s.column.raw_buffer().tolist() == [1, 3, 1, 0]
        assert s.data.raw_buffer().tolist() == [1.0, 2.0, 3.0, 4.0]

    def test_coordinates_from_tensors(self):
        """Test Indices and RTensor inputs."""
        s = CSRMatrix.from_coordinates(Indices([0, 1]), Indices([1, 0]), RTensor([7.0, 8.0]), 2, 2)
        assert s(0, 1) == 7.0
        assert s(1, 0) == 8.0

    def test_mismatched_lengths(self):
        """Test coordinate and value lists of different lengths."""
        with pytest.raises(SizeMismatchError):
            CSRMatrix.from_coordinates([0, 1], [0], [1.0, 2.0])

    def test_out_of_bounds_coordinates(self):
        """Test coordinates outside the requested shape."""
        with pytest.raises(OutOfBoundsError):
            CSRMatrix.from_triplets([(2, 0, 1.0)], 2, 2)
        with pytest.raises(OutOfBoundsError):
            CSRMatrix.from_triplets([(0, -1, 1.0)], 2, 2)

    @pytest.mark.parametrize("rows,columns,entries", [(4, 5, 40), (1, 7, 20), (6, 1, 15), (8, 8, 3)])
    def test_repeated_coordinates_match_dense_accumulation(self, rng, rows, columns, entries):
        """Test random entries with repeated keys add up like a dense accumulation."""
        r = rng.integers(0, rows, size=entries)
        c = rng.integers(0, columns, size=entries)
        values = rng.random(entries)
        expected = RTensor.zeros(rows, columns)
        for i, j, x in zip(r, c, values):
            expected[int(i), int(j)] = expected(int(i), int(j)) + x
        s = CSRMatrix.from_coordinates(Indices(r), Indices(c), RTensor(values), rows, columns)
        assert s.dimensions == Dimensions(rows, columns)
        assert np.allclose(full(s).as_array(), expected.as_array())
        assert s.length() == len(set(zip(r.tolist(), c.tolist())))
        row_start = s.row_start.raw_buffer()
        column = s.column.raw_buffer()
        assert row_start[0] == 0 and row_start[-1] == s.length()
        assert np.all(np.diff(row_start) >= 0)
        for row in range(rows):
            assert np.all(np.diff(column[row_start[row]:row_start[row + 1]]) > 0)

    def test_from_tensor(self):
        """Test nonzero extraction from a dense matrix."""
        dense = RTensor([[0.0, 2.0, 0.0], [1.0, 0.0, 3.0]])
        s = CSRMatrix.from_tensor(dense)
        assert s.dimensions == Dimensions(2, 3)
        assert s.length() == 3
        assert s.row_start.raw_buffer().tolist() == [0, 1, 3]
        assert s.column.raw_buffer().tolist() == [1, 0, 2]
        assert all_equal(full(s), dense)

    def test_from_tensor_requires_matrix(self):
        """Test other ranks raise."""
        with pytest.raises(InvalidRangeError):
            CSRMatrix.from_tensor(RTensor([1.0, 2.0]))

    def test_complex_values(self):
        """Test complex data keeps its type."""
        s = CSRMatrix.from_triplets([(0, 0, 1j)], 1, 1)
        assert s.dtype == np.complex128
        assert isinstance(s.data, CTensor)
        assert isinstance(full(s), CTensor)

    def test_eye(self):
        """Test the sparse identity."""
        assert all_equal(full(CSRMatrix.eye(3)), RTensor.eye(3))
        assert all_equal(full(CSRMatrix.eye(2, 4)), RTensor.eye(2, 4))

    def test_random(self, rng):
        """Test random matrices have plausible fill and values."""
        s = CSRMatrix.random(20, 30, density=0.2, rng=rng)
        assert s.dimensions == Dimensions(20, 30)
        assert 0 < s.length() < 20 * 30
        values = s.data.raw_buffer()
        assert np.all((values >= 0) & (values < 1))
        assert CSRMatrix.random(5, 5, density=0.0, rng=rng).length() == 0
        with pytest.raises(InvalidRangeError):
            CSRMatrix.random(2, 2, density=1.5)


class TestFromParts:
    """Test cases for the internal representation constructor."""

    def test_valid_parts(self):
        """Test a consistent representation is accepted."""
        s = CSRMatrix.from_parts((2, 3), [0, 1, 3], [2, 0, 1], [1.0, 2.0, 3.0])
        assert s(0, 2) == 1.0
        assert s(1, 1) == 3.0

    @pytest.mark.parametrize("row_start,column,data,error", [
        ([0, 1], [0], [1.0], SizeMismatchError),
        ([0, 1, 2], [0], [1.0, 2.0], SizeMismatchError),
        ([0, 2, 1], [0, 1], [1.0, 2.0], SizeMismatchError),
        ([0, 2, 2], [1, 0], [1.0, 2.0], InvalidRangeError),
        ([0, 2, 2], [1, 1], [1.0, 2.0], InvalidRangeError),
        ([0, 1, 1], [3], [1.0], OutOfBoundsError),
    ])
    def test_invalid_parts(self, row_start, column, data, error):
        """Test each broken invariant is detected."""
        with pytest.raises(error):
            CSRMatrix.from_parts((2, 3), row_start, column, data)


class TestAccess:
    """Test cases for element reads and conversions."""

    @pytest.fixture
    def sample(self):
        return CSRMatrix.from_triplets([(0, 1, 1.0), (1, 0, 2.0), (1, 2, 3.0), (2, 2, 4.0)], 3, 3)

    def test_element_reads(self, sample):
        """Test stored and absent elements."""
        assert sample(0, 1) == 1.0
        assert sample[1, 2] == 3.0
        assert sample(0, 0) == 0.0
        assert sample(2, 1) == 0.0

    def test_out_of_bounds_reads(self, sample):
        """Test reads outside the shape."""
        with pytest.raises(OutOfBoundsError):
            sample(3, 0)
        with pytest.raises(OutOfBoundsError):
            sample(0, -1)

    def test_triplets(self, sample):
        """Test entries come back in row-major order."""
        assert [(t.row, t.column, t.value) for t in sample.triplets()] == [
            (0, 1, 1.0), (1, 0, 2.0), (1, 2, 3.0), (2, 2, 4.0)]

    def test_sum_matches_dense(self, sample):
        """Test the sum of stored data equals the sum of the dense form."""
        assert ops.sum(sample.data) == ops.sum(full(sample))

    def test_dense_round_trip(self, rng):
        """Test dense to sparse to dense."""
        dense = RTensor.random(6, 5, rng=rng)
        dense.at(dense < 0.5).assign(0.0)
        s = CSRMatrix.from_tensor(dense)
        assert all_equal(full(s), dense)
        assert full(s).dimensions == dense.dimensions
        for r in range(6):
            for c in range(5):
                assert s(r, c) == dense(r, c)

    def test_structural_equality(self, sample):
        """Test equality compares the representation."""
        same = CSRMatrix.from_tensor(full(sample))
        assert same == sample
        assert sample != CSRMatrix.eye(3)
        with pytest.raises(TypeError):
            hash(sample)

    def test_accessors_are_copies(self, sample):
        """Test modifying exported arrays leaves the matrix alone."""
        data = sample.data
        data[0] = 100.0
        assert sample(0, 1) == 1.0


if __name__ == "__main__":
    pytest.main([__file__])
