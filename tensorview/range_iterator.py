"""
Lazy iteration over the linear offsets selected by a sequence of ranges.

Each bound per-axis Range is turned into a level, a (step, count) pair scaled
by the column-major stride of its axis. Levels are then compacted:

- an empty axis makes the whole iterator empty
- axes of size 1 contribute a constant and disappear
- index lists that form an arithmetic progression become progressions
- adjacent progressions merge when the upper one continues the lower one,
  i.e. upper.step == lower.step * lower.count

so that a contiguous slice of any rank is a single level. The first level
varies fastest, which reproduces column-major order.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
import sympy as sp

from .exceptions import InvalidRangeError
from .range import Range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Level:
    """
    One nested loop of the iteration.

    Values are relative to the first element of the level, so value(0) is
    always zero; the first offsets of all levels are folded into the
    iterator's base offset.

    Attributes:
        step: Distance between consecutive values of a progression
        count: Number of values
        indices: Relative offsets for an explicit index list, or None
    """
    step: int
    count: int
    indices: Optional[Tuple[int, ...]] = None

    def value(self, k: int) -> int:
        if self.indices is not None:
            return self.indices[k]
        return k * self.step

    def values(self) -> np.ndarray:
        if self.indices is not None:
            return np.asarray(self.indices, dtype=np.int64)
        return self.step * np.arange(self.count, dtype=np.int64)

    def __str__(self) -> str:
        if self.indices is not None:
            return f"[{','.join(str(i) for i in self.indices)}]"
        return f"({self.step}x{self.count})"


def _axis_level(r: Range, stride: int) -> Tuple[int, Optional[Level]]:
    """First offset of an axis and its level (None when the axis has one element)."""
    n = r.size()
    if r.has_indices():
        scaled = r.indices() * stride
        first = int(scaled[0])
        if n == 1:
            return first, None
        diffs = np.diff(scaled)
        if np.all(diffs == diffs[0]):
            return first, Level(int(diffs[0]), n)
        return first, Level(0, n, tuple(int(x) - first for x in scaled))
    first = r.first() * stride
    if n == 1:
        return first, None
    return first, Level(r.step * stride, n)


def _merge_levels(levels: List[Level]) -> List[Level]:
    merged: List[Level] = []
    for level in levels:
        if merged:
            lower = merged[-1]
            if (lower.indices is None and level.indices is None
                    and level.step == lower.step * lower.count):
                merged[-1] = Level(lower.step, lower.count * level.count)
                continue
        merged.append(level)
    return merged


def build_levels(ranges: Sequence[Range]) -> Tuple[int, int, Tuple[Level, ...]]:
    """
    Compute (limit, base offset, levels) for bound ranges.

    Raises:
        InvalidRangeError: if any range has not been bound to a dimension
    """
    for r in ranges:
        if not r.is_bound():
            raise InvalidRangeError(f"Range {r} must be bound to a dimension before iteration")
    if any(r.size() == 0 for r in ranges):
        return 0, 0, ()
    base = 0
    limit = 1
    stride = 1
    levels: List[Level] = []
    for r in ranges:
        first, level = _axis_level(r, stride)
        base += first
        limit *= r.size()
        if level is not None:
            levels.append(level)
        stride *= r.dimension
    merged = _merge_levels(levels)
    if len(merged) != len(levels):
        logger.debug("Merged %d axis levels into %d for %d ranges", len(levels), len(merged), len(ranges))
    return limit, base, tuple(merged)


class RangeIterator:
    """
    Cursor over the offsets selected by a sequence of bound ranges.

    The cursor is clamped: once finished, further advances leave it at the
    last valid offset (or at 0 for an empty selection).
    """

    def __init__(self, ranges: Sequence[Range]):
        """
        Initialize range iterator at the first offset.

        Args:
            ranges: Bound per-axis ranges, first axis fastest
        """
        self._limit, self._base, self._levels = build_levels(ranges)
        self._counter = 0
        self._position: List[int] = [0] * len(self._levels)
        self._offset = self._base

    @classmethod
    def begin(cls, ranges: Sequence[Range]) -> 'RangeIterator':
        """Iterator positioned at the first offset."""
        return cls(ranges)

    @classmethod
    def end(cls, ranges: Sequence[Range]) -> 'RangeIterator':
        """Iterator in the finished state."""
        it = cls(ranges)
        it._move_to_end()
        return it

    def _move_to_end(self) -> None:
        if self._limit == 0:
            return
        self._counter = self._limit
        self._position = [level.count - 1 for level in self._levels]
        self._offset = self._base + sum(level.value(level.count - 1) for level in self._levels)

    @property
    def offset(self) -> int:
        """Current linear offset."""
        return self._offset

    def current(self) -> int:
        return self._offset

    @property
    def counter(self) -> int:
        """Number of offsets consumed so far."""
        return self._counter

    @property
    def limit(self) -> int:
        """Total number of offsets."""
        return self._limit

    @property
    def step(self) -> int:
        """Step of the innermost level (0 when there is no level)."""
        if not self._levels or self._levels[0].indices is not None:
            return 0
        return self._levels[0].step

    @property
    def base(self) -> int:
        return self._base

    @property
    def levels(self) -> Tuple[Level, ...]:
        return self._levels

    def size(self) -> int:
        return self._limit

    def finished(self) -> bool:
        return self._counter >= self._limit

    def has_next(self) -> bool:
        """True if advancing once more still lands on a valid offset."""
        return self._counter + 1 < self._limit

    def advance(self) -> 'RangeIterator':
        """Move to the next offset; no effect once finished."""
        if self._counter >= self._limit:
            return self
        self._counter += 1
        if self._counter == self._limit:
            return self
        for k, level in enumerate(self._levels):
            p = self._position[k] + 1
            if p < level.count:
                self._offset += level.value(p) - level.value(p - 1)
                self._position[k] = p
                return self
            self._offset -= level.value(level.count - 1)
            self._position[k] = 0
        return self

    def restart(self) -> 'RangeIterator':
        self._counter = 0
        self._position = [0] * len(self._levels)
        self._offset = self._base
        return self

    def copy(self) -> 'RangeIterator':
        it = RangeIterator.__new__(RangeIterator)
        it._limit = self._limit
        it._base = self._base
        it._levels = self._levels
        it._counter = self._counter
        it._position = list(self._position)
        it._offset = self._offset
        return it

    def __iter__(self) -> 'RangeIterator':
        return self

    def __next__(self) -> int:
        if self._counter >= self._limit:
            raise StopIteration
        offset = self._offset
        self.advance()
        return offset

    def offsets(self) -> Iterator[int]:
        """Generator over all offsets from the beginning, leaving self untouched."""
        it = self.copy().restart()
        while not it.finished():
            yield it._offset
            it.advance()

    def offset_array(self) -> np.ndarray:
        """All offsets as an int64 array, in iteration order."""
        if self._limit == 0:
            return np.zeros(0, dtype=np.int64)
        acc = np.array([self._base], dtype=np.int64)
        for level in self._levels:
            acc = (level.values()[:, None] + acc[None, :]).ravel()
        return acc

    def sympy_offset(self) -> sp.Expr:
        """
        Symbolic offset in terms of one counter k0, k1, ... per level.

        Index-list levels appear as indexed lookups idx<l>[k<l>].
        """
        expr = sp.Integer(self._base)
        for n, level in enumerate(self._levels):
            k = sp.Symbol(f"k{n}", integer=True, nonnegative=True)
            if level.indices is None:
                expr += level.step * k
            else:
                expr += sp.IndexedBase(f"idx{n}")[k]
        return expr

    def __eq__(self, other) -> bool:
        """
        Same position over the same offset sequence.

        Level decompositions are not unique once index lists are involved, so
        iterators with different levels are compared by their offsets.
        """
        if not isinstance(other, RangeIterator):
            return NotImplemented
        if (self._limit != other._limit or self._counter != other._counter
                or self._offset != other._offset):
            return False
        if self._base == other._base and self._levels == other._levels:
            return True
        return bool(np.array_equal(self.offset_array(), other.offset_array()))

    __hash__ = None

    def __repr__(self) -> str:
        return (f"RangeIterator(base={self._base}, levels=[{', '.join(str(l) for l in self._levels)}], "
                f"counter={self._counter}, limit={self._limit}, offset={self._offset})")

    __str__ = __repr__
