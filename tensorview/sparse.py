"""
Compressed sparse row (CSR) matrices.

A CSRMatrix stores the nonzero entries of a rows x columns matrix in three
arrays:

- row_start: rows + 1 offsets; the entries of row r live in
  [row_start[r], row_start[r + 1])
- column: the column of every entry, strictly increasing within a row
- data: the value of every entry

Assembly from coordinate triplets sorts by (row, column), sums duplicate
coordinates and prefix-counts the entries of every row.
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

import numpy as np

from .config import default_rng, get_config
from .dimensions import Dimensions
from .exceptions import InvalidRangeError, OutOfBoundsError, SizeMismatchError
from .tensor import ElementwiseMixin, Indices, Tensor, tensor_class_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SparseTriplet:
    """
    One (row, column, value) entry, ordered by row then column.

    Attributes:
        row: Row index
        column: Column index
        value: Element value
    """
    row: int
    column: int
    value: Any

    def __lt__(self, other: 'SparseTriplet') -> bool:
        return (self.row, self.column) < (other.row, other.column)


def _value_array(data: Any) -> np.ndarray:
    values = np.asarray(data._values() if isinstance(data, ElementwiseMixin) else data).ravel()
    if values.dtype.kind == 'c':
        return values.astype(np.complex128)
    if values.dtype.kind in 'biuf' or values.size == 0:
        return values.astype(np.float64)
    raise TypeError(f"Sparse matrix values must be numeric, got {values.dtype}")


def _index_array(indices: Any) -> np.ndarray:
    values = np.asarray(indices._values() if isinstance(indices, ElementwiseMixin) else indices).ravel()
    if values.size and values.dtype.kind not in 'iu':
        raise TypeError(f"Sparse matrix coordinates must be integers, got {values.dtype}")
    return values.astype(np.int64)


class CSRMatrix:
    """
    Sparse matrix in compressed sparse row form.

    CSRMatrix(rows, columns) is the all-zero matrix of that shape; use the
    from_* class methods to build matrices with entries.
    """

    def __init__(self, rows: int = 0, columns: int = 0):
        self._dims = Dimensions(rows, columns)
        self._row_start = np.zeros(rows + 1, dtype=np.int64)
        self._column = np.zeros(0, dtype=np.int64)
        self._data = np.zeros(0, dtype=np.float64)

    @classmethod
    def from_parts(cls, dims: Any, row_start: Any, column: Any, data: Any) -> 'CSRMatrix':
        """
        Build a matrix from its internal representation.

        Args:
            dims: (rows, columns)
            row_start: rows + 1 non-decreasing offsets starting at 0
            column: Column of each entry
            data: Value of each entry

        Raises:
            SizeMismatchError: if the array lengths are inconsistent
            OutOfBoundsError: if a column lies outside the matrix
            InvalidRangeError: if offsets decrease or columns within a row
                are not strictly increasing
        """
        dims = dims if isinstance(dims, Dimensions) else Dimensions(dims)
        if dims.rank() != 2:
            raise InvalidRangeError(f"Sparse matrices have rank 2, got dimensions {dims}")
        rows, columns = dims
        row_start = _index_array(row_start)
        column = _index_array(column)
        data = _value_array(data)
        if row_start.size != rows + 1:
            raise SizeMismatchError(f"row_start needs {rows + 1} entries, got {row_start.size}")
        if column.size != data.size:
            raise SizeMismatchError(f"column has {column.size} entries but data has {data.size}")
        if row_start[0] != 0 or row_start[-1] != column.size:
            raise SizeMismatchError(
                f"row_start must run from 0 to {column.size}, got {row_start[0]}..{row_start[-1]}")
        if np.any(np.diff(row_start) < 0):
            raise InvalidRangeError("row_start must be non-decreasing")
        if column.size and (column.min() < 0 or column.max() >= columns):
            raise OutOfBoundsError(f"Column index out of bounds for {columns} columns")
        for r in range(rows):
            if np.any(np.diff(column[row_start[r]:row_start[r + 1]]) <= 0):
                raise InvalidRangeError(f"Columns of row {r} are not strictly increasing")
        output = cls.__new__(cls)
        output._dims = dims
        output._row_start = row_start
        output._column = column
        output._data = data
        return output

    @classmethod
    def from_coordinates(cls, row_indices: Any, column_indices: Any, data: Any,
                         rows: Optional[int] = None, columns: Optional[int] = None) -> 'CSRMatrix':
        """
        Assemble a matrix from parallel arrays of coordinates and values.

        Duplicate coordinates are summed.

        Args:
            row_indices: Row of each value
            column_indices: Column of each value
            data: Values
            rows: Number of rows (defaults to the largest row index + 1)
            columns: Number of columns (defaults to the largest column index + 1)

        Raises:
            SizeMismatchError: if the three inputs have different lengths
            OutOfBoundsError: if a coordinate lies outside the matrix
        """
        r = _index_array(row_indices)
        c = _index_array(column_indices)
        v = _value_array(data)
        if not r.size == c.size == v.size:
            raise SizeMismatchError(
                f"Coordinate and value lists differ in length: {r.size}, {c.size}, {v.size}")
        if rows is None:
            rows = int(r.max()) + 1 if r.size else 0
        if columns is None:
            columns = int(c.max()) + 1 if c.size else 0
        if r.size:
            if r.min() < 0 or r.max() >= rows:
                raise OutOfBoundsError(f"Row index out of bounds for {rows} rows")
            if c.min() < 0 or c.max() >= columns:
                raise OutOfBoundsError(f"Column index out of bounds for {columns} columns")
        order = np.lexsort((c, r))
        r, c, v = r[order], c[order], v[order]
        if r.size:
            first = np.ones(r.size, dtype=bool)
            first[1:] = (r[1:] != r[:-1]) | (c[1:] != c[:-1])
            group = np.cumsum(first) - 1
            merged = np.zeros(int(group[-1]) + 1, dtype=v.dtype)
            np.add.at(merged, group, v)
            if merged.size != v.size:
                logger.debug("Summed %d duplicate entries into %d", v.size, merged.size)
            r, c, v = r[first], c[first], merged
        row_start = np.zeros(rows + 1, dtype=np.int64)
        np.cumsum(np.bincount(r, minlength=rows), out=row_start[1:])
        output = cls.__new__(cls)
        output._dims = Dimensions(rows, columns)
        output._row_start = row_start
        output._column = c
        output._data = v
        return output

    @classmethod
    def from_triplets(cls, triplets: Iterable[SparseTriplet],
                      rows: Optional[int] = None, columns: Optional[int] = None) -> 'CSRMatrix':
        """Assemble a matrix from SparseTriplet entries (or (row, column, value) tuples)."""
        triplets = [t if isinstance(t, SparseTriplet) else SparseTriplet(*t) for t in triplets]
        return cls.from_coordinates([t.row for t in triplets], [t.column for t in triplets],
                                    [t.value for t in triplets], rows, columns)

    @classmethod
    def from_tensor(cls, t: Tensor) -> 'CSRMatrix':
        """
        Sparse form of a dense matrix, keeping its nonzero elements.

        Raises:
            InvalidRangeError: if t is not a rank-2 tensor
        """
        if t.rank() != 2:
            raise InvalidRangeError(f"Only rank 2 tensors convert to sparse form, got rank {t.rank()}")
        array = t.as_array()
        r, c = np.nonzero(array)
        return cls.from_coordinates(r, c, array[r, c], t.rows(), t.columns())

    @classmethod
    def eye(cls, rows: int, columns: Optional[int] = None) -> 'CSRMatrix':
        """Sparse rectangular identity."""
        columns = rows if columns is None else columns
        n = min(rows, columns)
        return cls.from_coordinates(np.arange(n), np.arange(n), np.ones(n), rows, columns)

    @classmethod
    def random(cls, rows: int, columns: int, density: Optional[float] = None,
               rng: Optional[np.random.Generator] = None) -> 'CSRMatrix':
        """
        Matrix whose elements are nonzero with probability density.

        Nonzero values are drawn uniformly from [0, 1).
        """
        density = get_config().sparse_density if density is None else density
        if not 0.0 <= density <= 1.0:
            raise InvalidRangeError(f"Density must lie in [0, 1], got {density}")
        rng = rng if rng is not None else default_rng()
        mask = rng.random((rows, columns)) < density
        r, c = np.nonzero(mask)
        return cls.from_coordinates(r, c, rng.random(r.size), rows, columns)

    @property
    def dimensions(self) -> Dimensions:
        return self._dims

    def dimension(self, which: int) -> int:
        return self._dims[which]

    def rows(self) -> int:
        return self._dims[0]

    def columns(self) -> int:
        return self._dims[1]

    def length(self) -> int:
        """Number of stored entries."""
        return int(self._row_start[-1]) if self.rows() else 0

    def is_empty(self) -> bool:
        """True if the matrix has no rows or no columns."""
        return self.rows() == 0 or self.columns() == 0

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def row_start(self) -> Indices:
        return Indices._wrap(self._row_start.copy(), Dimensions(self._row_start.size))

    @property
    def column(self) -> Indices:
        return Indices._wrap(self._column.copy(), Dimensions(self._column.size))

    @property
    def data(self) -> Tensor:
        return tensor_class_for(self._data.dtype)._wrap(self._data.copy(), Dimensions(self._data.size))

    def __call__(self, row: int, column: int) -> Any:
        """
        Element (row, column), zero when no entry is stored.

        Raises:
            OutOfBoundsError: if the coordinate lies outside the matrix
        """
        if not (0 <= row < self.rows() and 0 <= column < self.columns()):
            raise OutOfBoundsError(f"Element ({row}, {column}) out of bounds for dimensions {self._dims}")
        start, end = int(self._row_start[row]), int(self._row_start[row + 1])
        position = bisect.bisect_left(self._column, column, start, end)
        if position < end and self._column[position] == column:
            return self._data[position]
        return self._data.dtype.type(0)

    def __getitem__(self, key: Tuple[int, int]) -> Any:
        row, column = key
        return self(row, column)

    def triplets(self) -> List[SparseTriplet]:
        """Stored entries in (row, column) order."""
        output = []
        for r in range(self.rows()):
            for k in range(int(self._row_start[r]), int(self._row_start[r + 1])):
                output.append(SparseTriplet(r, int(self._column[k]), self._data[k]))
        return output

    def to_tensor(self) -> Tensor:
        """Dense copy of the matrix."""
        rows, columns = self._dims
        dense = np.zeros((rows, columns), dtype=self._data.dtype)
        entry_rows = np.repeat(np.arange(rows), np.diff(self._row_start))
        dense[entry_rows, self._column] = self._data
        return tensor_class_for(dense.dtype)(dense)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CSRMatrix):
            return NotImplemented
        return (self._dims == other._dims
                and np.array_equal(self._row_start, other._row_start)
                and np.array_equal(self._column, other._column)
                and np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        return f"CSRMatrix(dimensions={self._dims}, length={self.length()}, dtype={self.dtype})"


def full(s: CSRMatrix) -> Tensor:
    """Dense tensor with the contents of a sparse matrix."""
    return s.to_tensor()
