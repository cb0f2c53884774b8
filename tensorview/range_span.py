"""
Resolution of per-axis ranges against the dimensions of a parent tensor.
"""

from typing import List, Sequence, Tuple

from .dimensions import Dimensions
from .exceptions import InvalidRangeError
from .range import Range, as_range


class RangeSpan:
    """
    A sequence of per-axis ranges, one per axis of the parent.

    A single range applied to a parent of higher rank treats the parent as a
    flattened 1-D array of total_size() elements.
    """

    def __init__(self, ranges: Sequence[Range]):
        """
        Initialize range span.

        Args:
            ranges: Axis selectors; Range objects are copied, other selectors
                are converted with as_range() once the axis size is known
        """
        self._selectors = list(ranges)
        self._ranges: List[Range] = []
        self._parent: Dimensions = None

    def get_dimensions(self, parent: Dimensions) -> Dimensions:
        """
        Bind every range to its axis of the parent and compute view dimensions.

        Args:
            parent: Dimensions of the tensor being sliced

        Returns:
            Dimensions with one entry per range, the size of that range

        Raises:
            InvalidRangeError: if the number of ranges does not match the rank
        """
        if not isinstance(parent, Dimensions):
            parent = Dimensions(parent)
        n = len(self._selectors)
        if n == 1 and parent.rank() != 1:
            axis_sizes = [parent.total_size()]
        elif n == parent.rank():
            axis_sizes = parent.to_list()
        else:
            raise InvalidRangeError(
                f"Expected {parent.rank()} ranges for dimensions {parent}, got {n}")
        self._ranges = [as_range(selector, size) for selector, size in zip(self._selectors, axis_sizes)]
        self._parent = parent
        return Dimensions(*[r.size() for r in self._ranges])

    @property
    def ranges(self) -> List[Range]:
        """Bound copies of the ranges (empty before get_dimensions())."""
        return self._ranges

    @property
    def parent(self) -> Dimensions:
        return self._parent

    def size(self) -> int:
        """Number of elements selected by the bound ranges."""
        total = 1
        for r in self._ranges:
            total *= r.size()
        return total

    def __len__(self) -> int:
        return len(self._selectors)

    def __repr__(self) -> str:
        return f"RangeSpan({[str(r) for r in (self._ranges or self._selectors)]})"


def dimensions_from_ranges(ranges: Sequence[Range], parent: Dimensions) -> Tuple[List[Range], Dimensions]:
    """
    Bind ranges against a parent shape.

    Returns:
        (bound ranges, resulting view dimensions)
    """
    span = RangeSpan(ranges)
    dims = span.get_dimensions(parent)
    return span.ranges, dims
