"""
One-dimensional index subsets along a single tensor axis.

A Range is one of three variants:

- an inclusive arithmetic progression start, start+step, ..., end
- an explicit list of indices, in any order and possibly repeated
- a wildcard covering the whole axis

The size of the owning axis may be unknown when the Range is built. It is
bound later with set_dimension(), at which point negative positions wrap
around once (-1 is the last element) and every element is bounds-checked.
"""

import numbers
from enum import Enum, auto
from typing import Any, Iterator, Optional, Sequence

import numpy as np

from .exceptions import InvalidRangeError, OutOfBoundsError


class RangeKind(Enum):
    """Variants of a Range."""
    PROGRESSION = auto()
    INDICES = auto()
    FULL = auto()


def _progression_size(start: int, end: int, step: int) -> int:
    span = end - start
    if (step > 0 and span < 0) or (step < 0 and span > 0):
        return 0
    return span // step + 1


class Range:
    """
    Index subset along one axis.

    Attributes:
        kind: Which variant this range is
        dimension: Size of the owning axis, or None while unbound
    """

    __slots__ = ("kind", "dimension", "_start", "_end", "_step", "_indices", "_empty")

    def __init__(self, start: int, end: Optional[int] = None, step: int = 1,
                 dimension: Optional[int] = None):
        """
        Initialize an arithmetic progression.

        Args:
            start: First index
            end: Last index, inclusive (defaults to start)
            step: Distance between consecutive indices, may be negative
            dimension: Size of the owning axis, if already known
        """
        if end is None:
            end = start
        start, end, step = int(start), int(end), int(step)
        if step == 0:
            raise InvalidRangeError("Range step cannot be zero")
        if step < 0 and 0 <= start < end:
            raise InvalidRangeError(f"Negative step {step} requires start >= end, got {start} < {end}")
        self.kind = RangeKind.PROGRESSION
        self.dimension: Optional[int] = None
        self._start = start
        self._end = end
        self._step = step
        self._indices: Optional[np.ndarray] = None
        self._empty = False
        if dimension is not None:
            self.set_dimension(dimension)

    @classmethod
    def empty(cls, dimension: Optional[int] = None) -> 'Range':
        """An explicitly empty range."""
        r = cls(0, 0, 1)
        r._empty = True
        r._end = -1
        if dimension is not None:
            r.set_dimension(dimension)
        return r

    @classmethod
    def full(cls, dimension: Optional[int] = None) -> 'Range':
        """Wildcard covering every index of the owning axis."""
        r = cls(0, 0, 1)
        r.kind = RangeKind.FULL
        if dimension is not None:
            r.set_dimension(dimension)
        return r

    @classmethod
    def from_indices(cls, indices: Sequence[int], dimension: Optional[int] = None) -> 'Range':
        """
        Range over an explicit list of indices.

        Args:
            indices: Integer positions, kept in the given order
            dimension: Size of the owning axis, if already known
        """
        values = np.asarray(indices)
        if values.dtype == np.bool_:
            raise InvalidRangeError("Boolean masks must be converted with as_range() or which()")
        if values.size and not np.issubdtype(values.dtype, np.integer):
            raise InvalidRangeError(f"Index lists must contain integers, got dtype {values.dtype}")
        values = values.astype(np.int64).ravel()
        r = cls(0, 0, 1)
        r.kind = RangeKind.INDICES
        r._indices = values
        r._indices.setflags(write=False)
        if dimension is not None:
            r.set_dimension(dimension)
        return r

    @classmethod
    def from_slice(cls, s: slice, dimension: int) -> 'Range':
        """Translate a Python slice (exclusive stop) into an inclusive Range."""
        if s.start is None and s.stop is None and s.step in (None, 1):
            return cls.full(dimension)
        start, stop, step = s.indices(dimension)
        count = len(range(start, stop, step))
        if count == 0:
            return cls.empty(dimension)
        return cls(start, start + (count - 1) * step, step, dimension)

    def set_dimension(self, dimension: int) -> 'Range':
        """
        Bind the size of the owning axis.

        Negative positions wrap around once, then every element must lie in
        [0, dimension).

        Raises:
            InvalidRangeError: if already bound to a different size, or if a
                negative step would walk forward
            OutOfBoundsError: if an element falls outside the axis
        """
        dimension = int(dimension)
        if dimension < 0:
            raise InvalidRangeError(f"Dimension must be non-negative, got {dimension}")
        if self.dimension is not None:
            if self.dimension != dimension:
                raise InvalidRangeError(
                    f"Range already bound to dimension {self.dimension}, cannot rebind to {dimension}")
            return self
        if self.kind is RangeKind.FULL:
            self._start, self._end, self._step = 0, dimension - 1, 1
        elif self.kind is RangeKind.INDICES:
            values = self._indices
            if values.size and values.min() < 0:
                values = np.where(values < 0, values + dimension, values)
                values.setflags(write=False)
            if values.size and (values.min() < 0 or values.max() >= dimension):
                bad = values[(values < 0) | (values >= dimension)][0]
                raise OutOfBoundsError(f"Index {int(bad)} out of bounds for dimension {dimension}")
            self._indices = values
        elif not self._empty:
            start = self._start + dimension if self._start < 0 else self._start
            end = self._end + dimension if self._end < 0 else self._end
            if self._step < 0 and start < end:
                raise InvalidRangeError(
                    f"Negative step {self._step} requires start >= end, got {start} < {end}")
            if _progression_size(start, end, self._step):
                last = start + (_progression_size(start, end, self._step) - 1) * self._step
                for position in (start, last):
                    if position < 0 or position >= dimension:
                        raise OutOfBoundsError(
                            f"Range element {position} out of bounds for dimension {dimension}")
            self._start, self._end = start, end
        self.dimension = dimension
        return self

    def is_bound(self) -> bool:
        return self.dimension is not None

    def has_indices(self) -> bool:
        """True for the explicit index-list variant."""
        return self.kind is RangeKind.INDICES

    def is_full(self) -> bool:
        return self.kind is RangeKind.FULL

    def is_empty(self) -> bool:
        return self.size() == 0

    def size(self) -> int:
        """
        Number of indices covered.

        Raises:
            InvalidRangeError: for an unbound wildcard, or an unbound
                progression whose size depends on wrapping negative ends
        """
        if self._empty:
            return 0
        if self.kind is RangeKind.INDICES:
            return int(self._indices.size)
        if self.dimension is None:
            if self.kind is RangeKind.FULL or (self._start < 0) != (self._end < 0):
                raise InvalidRangeError(f"Size of {self!r} depends on the dimension, which is not set")
        return _progression_size(self._start, self._end, self._step)

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def step(self) -> int:
        return self._step

    def first(self) -> int:
        """First index, for non-empty ranges."""
        if self.size() == 0:
            raise InvalidRangeError("Empty range has no first element")
        if self.kind is RangeKind.INDICES:
            return int(self._indices[0])
        return self._start

    def last(self) -> int:
        """Last index, for non-empty ranges."""
        n = self.size()
        if n == 0:
            raise InvalidRangeError("Empty range has no last element")
        if self.kind is RangeKind.INDICES:
            return int(self._indices[-1])
        return self._start + (n - 1) * self._step

    def indices(self) -> np.ndarray:
        """Materialize the covered indices (read-only for the index variant)."""
        if self.kind is RangeKind.INDICES:
            return self._indices
        n = self.size()
        return self._start + self._step * np.arange(n, dtype=np.int64)

    def __iter__(self) -> Iterator[int]:
        if self.kind is RangeKind.INDICES:
            for i in self._indices:
                yield int(i)
        else:
            for k in range(self.size()):
                yield self._start + k * self._step

    def __len__(self) -> int:
        return self.size()

    def copy(self) -> 'Range':
        r = Range.__new__(Range)
        r.kind = self.kind
        r.dimension = self.dimension
        r._start = self._start
        r._end = self._end
        r._step = self._step
        r._indices = self._indices
        r._empty = self._empty
        return r

    def __eq__(self, other) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        if self.kind is not other.kind or self.dimension != other.dimension or self._empty != other._empty:
            return False
        if self.kind is RangeKind.INDICES:
            return np.array_equal(self._indices, other._indices)
        return (self._start, self._end, self._step) == (other._start, other._end, other._step)

    __hash__ = None

    def __repr__(self) -> str:
        if self.kind is RangeKind.FULL:
            return f"Range.full(dimension={self.dimension})"
        if self.kind is RangeKind.INDICES:
            return f"Range.from_indices({self._indices.tolist()}, dimension={self.dimension})"
        if self._empty:
            return f"Range.empty(dimension={self.dimension})"
        return f"Range(start={self._start}, end={self._end}, step={self._step}, dimension={self.dimension})"

    def __str__(self) -> str:
        dim = "?" if self.dimension is None else str(self.dimension)
        if self.kind is RangeKind.FULL:
            return f"(_)/{dim}"
        if self.kind is RangeKind.INDICES:
            return "[" + ",".join(str(i) for i in self._indices.tolist()) + f"]/{dim}"
        if self._empty:
            return f"[]/{dim}"
        return f"({self._start}:{self._step}:{self._end})/{dim}"


def full(dimension: Optional[int] = None) -> Range:
    """Shorthand for Range.full()."""
    return Range.full(dimension)


def as_range(obj: Any, dimension: Optional[int] = None) -> Range:
    """
    Convert an axis selector into a Range.

    Accepted selectors are Range (copied), integers (single index), slices,
    Ellipsis (whole axis), boolean masks and integer sequences.

    Args:
        obj: Selector
        dimension: Size of the axis, bound on the result when given

    Returns:
        A new Range
    """
    if isinstance(obj, Range):
        r = obj.copy()
    elif isinstance(obj, (bool, np.bool_)):
        raise InvalidRangeError("A single boolean is not a valid axis selector")
    elif isinstance(obj, numbers.Integral):
        r = Range(int(obj), int(obj))
    elif obj is Ellipsis:
        r = Range.full()
    elif isinstance(obj, slice):
        if dimension is None:
            if obj == slice(None):
                return Range.full()
            raise InvalidRangeError("Slices other than [:] need a known dimension")
        return Range.from_slice(obj, dimension)
    else:
        values = np.asarray(obj)
        if values.dtype == np.bool_:
            values = values.ravel(order='F')
            if dimension is not None and values.size != dimension:
                raise OutOfBoundsError(f"Boolean mask of length {values.size} does not match dimension {dimension}")
            r = Range.from_indices(np.flatnonzero(values))
        else:
            r = Range.from_indices(values)
    if dimension is not None:
        r.set_dimension(dimension)
    return r
