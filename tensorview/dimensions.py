"""
Shape descriptor for column-major N-dimensional arrays.

The first axis varies fastest: the offset of coordinate (i0, i1, ..., ik) is
i0 + d0 * (i1 + d1 * (i2 + ...)).
"""

import math
import numbers
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import sympy as sp

from .exceptions import InvalidRangeError, OutOfBoundsError


class Dimensions:
    """Immutable sequence of axis sizes."""

    __slots__ = ("_sizes", "_total")

    def __init__(self, *sizes: Union[int, Sequence[int], 'Dimensions']):
        """
        Initialize dimensions.

        Accepts either the sizes as separate arguments, Dimensions(2, 3), or a
        single sequence, Dimensions([2, 3]).
        """
        if len(sizes) == 1 and not isinstance(sizes[0], numbers.Integral) and hasattr(sizes[0], '__iter__'):
            sizes = tuple(sizes[0])
        values = []
        for s in sizes:
            s = int(s)
            if s < 0:
                raise InvalidRangeError(f"Dimension sizes must be non-negative, got {list(sizes)}")
            values.append(s)
        self._sizes: Tuple[int, ...] = tuple(values)
        self._total = math.prod(self._sizes)

    def rank(self) -> int:
        """Number of axes."""
        return len(self._sizes)

    def total_size(self) -> int:
        """Product of all axis sizes (1 for rank 0)."""
        return self._total

    def __len__(self) -> int:
        return len(self._sizes)

    def __getitem__(self, axis: int) -> int:
        """Size of the given axis."""
        n = len(self._sizes)
        if not -n <= axis < n:
            raise OutOfBoundsError(f"Axis {axis} out of bounds for rank {n}")
        return self._sizes[axis]

    def __iter__(self) -> Iterator[int]:
        return iter(self._sizes)

    def __eq__(self, other) -> bool:
        if isinstance(other, Dimensions):
            return self._sizes == other._sizes
        if isinstance(other, (tuple, list)):
            return self._sizes == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._sizes)

    def __repr__(self) -> str:
        return f"Dimensions{self._sizes}"

    def __str__(self) -> str:
        return "{" + ",".join(str(s) for s in self._sizes) + "}"

    def to_list(self) -> List[int]:
        """Convert to list."""
        return list(self._sizes)

    def to_tuple(self) -> Tuple[int, ...]:
        return self._sizes

    def strides(self) -> Tuple[int, ...]:
        """Column-major strides: (1, d0, d0*d1, ...)."""
        strides = []
        stride = 1
        for s in self._sizes:
            strides.append(stride)
            stride *= s
        return tuple(strides)

    def column_major_position(self, *coords: int) -> int:
        """
        Linear offset of a coordinate tuple.

        Args:
            *coords: One coordinate per axis

        Returns:
            Offset into a column-major buffer

        Raises:
            OutOfBoundsError: if the number of coordinates differs from the
                rank or any coordinate lies outside [0, size)
        """
        if len(coords) == 1 and isinstance(coords[0], (tuple, list)):
            coords = tuple(coords[0])
        if len(coords) != len(self._sizes):
            raise OutOfBoundsError(
                f"Expected {len(self._sizes)} coordinates for dimensions {self}, got {len(coords)}")
        offset = 0
        for axis in range(len(coords) - 1, -1, -1):
            i = coords[axis]
            size = self._sizes[axis]
            if i < 0 or i >= size:
                raise OutOfBoundsError(f"Coordinate {i} out of bounds for axis {axis} of size {size}")
            offset = offset * size + int(i)
        return offset

    def coordinates_of(self, offset: int) -> Tuple[int, ...]:
        """Inverse of column_major_position()."""
        if offset < 0 or offset >= self._total:
            raise OutOfBoundsError(f"Offset {offset} out of bounds for total size {self._total}")
        coords = []
        for size in self._sizes:
            coords.append(offset % size)
            offset //= size
        return tuple(coords)

    def sympy_position(self, symbols: Optional[Sequence[sp.Expr]] = None) -> sp.Expr:
        """
        Symbolic column-major offset.

        Args:
            symbols: One symbol per axis (defaults to i0, i1, ...)

        Returns:
            SymPy expression such as i0 + 3*i1 + 12*i2
        """
        if symbols is None:
            symbols = [sp.Symbol(f"i{k}", integer=True) for k in range(len(self._sizes))]
        if len(symbols) != len(self._sizes):
            raise OutOfBoundsError(f"Expected {len(self._sizes)} symbols, got {len(symbols)}")
        offset = sp.Integer(0)
        for symbol, stride in zip(symbols, self.strides()):
            offset += symbol * stride
        return offset


def as_dimensions(value: Union[int, Sequence[int], Dimensions]) -> Dimensions:
    """Coerce an int, sequence or Dimensions into Dimensions."""
    if isinstance(value, Dimensions):
        return value
    if isinstance(value, numbers.Integral):
        return Dimensions(value)
    return Dimensions(*value)
