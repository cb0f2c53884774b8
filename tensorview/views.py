"""
Non-owning windows onto a Tensor.

A View combines the bound per-axis ranges of a selection with a reference to
its parent Tensor. Elements are never copied on construction; they are read
from (or, for a MutableView, written to) the parent's current buffer in
iterator order, first axis fastest.
"""

import operator
import warnings
from typing import Any, Iterator, List, Sequence

import numpy as np

from .config import get_config
from .dimensions import Dimensions
from .exceptions import OutOfBoundsError, SizeMismatchError
from .range import Range
from .range_iterator import RangeIterator
from .range_span import RangeSpan
from .tensor import ElementwiseMixin, Tensor, _is_index, _is_scalar, check_lossless


class View(ElementwiseMixin):
    """
    Read-only window over a selection of a tensor's elements.

    Attributes:
        parent: The tensor whose buffer the view reads
    """

    def __init__(self, parent: Tensor, ranges: Sequence[Any] = ()):
        """
        Initialize view.

        Args:
            parent: Tensor to look into
            ranges: One selector per axis, or a single selector over the
                flattened tensor; no selectors selects everything
        """
        if not isinstance(parent, Tensor):
            raise TypeError(f"Views are taken from tensors, got {type(parent).__name__}")
        ranges = list(ranges)
        if not ranges:
            ranges = [Range.full() for _ in range(parent.rank())]
        span = RangeSpan(ranges)
        self.parent = parent
        self._dims = span.get_dimensions(parent.dimensions)
        self._ranges: List[Range] = span.ranges
        self._bound_to = parent.dimensions

    @property
    def dimensions(self) -> Dimensions:
        return self._dims

    @property
    def ranges(self) -> List[Range]:
        """Bound per-axis ranges."""
        return self._ranges

    @property
    def dtype(self) -> np.dtype:
        return self.parent.dtype

    def rank(self) -> int:
        return self._dims.rank()

    def size(self) -> int:
        return self._dims.total_size()

    def __len__(self) -> int:
        return self.size()

    def iterator(self) -> RangeIterator:
        """Fresh iterator over the parent offsets, at the first element."""
        return RangeIterator.begin(self._ranges)

    def offsets(self) -> np.ndarray:
        """Parent offsets of all selected elements, in iteration order."""
        offsets = self.iterator().offset_array()
        self._check_offsets(offsets)
        return offsets

    def _check_offsets(self, offsets: np.ndarray) -> None:
        if not get_config().debug_checks:
            return
        if self.parent.dimensions != self._bound_to:
            warnings.warn(f"View was bound to dimensions {self._bound_to}, "
                          f"parent now has {self.parent.dimensions}")
        if offsets.size and int(offsets.max()) >= self.parent.size():
            raise OutOfBoundsError(
                f"View offset {int(offsets.max())} outside parent buffer of size {self.parent.size()}")

    def _values(self) -> np.ndarray:
        return self.parent._buffer.gather(self.offsets())

    def __iter__(self) -> Iterator[Any]:
        data = self.parent._buffer.data
        for offset in self.iterator():
            yield data[offset]

    def _offset_of(self, coords: Sequence[int]) -> int:
        self._dims.column_major_position(*coords)
        offset = 0
        stride = 1
        for r, c in zip(self._ranges, coords):
            offset += int(r.indices()[c]) * stride
            stride *= r.dimension
        return offset

    def __getitem__(self, key: Any) -> Any:
        """Element at view coordinates; a single index on a view of rank > 1 is linear."""
        if not isinstance(key, tuple):
            key = (key,)
        if not all(_is_index(k) for k in key):
            raise TypeError("Views only support integer element access; slice the parent tensor instead")
        if len(key) == 1 and self.rank() != 1:
            i = key[0]
            if i < 0 or i >= self.size():
                raise OutOfBoundsError(f"Linear index {i} out of bounds for size {self.size()}")
            return self.parent._buffer.data[self.offsets()[i]]
        return self.parent._buffer.data[self._offset_of(key)]

    def __call__(self, *coords: int) -> Any:
        return self[coords]

    def to_tensor(self) -> Tensor:
        """Copy the selected elements into a new tensor of the parent's family."""
        return type(self.parent)._wrap(self._values(), self._dims)

    def __array__(self, dtype=None, copy=None):
        return np.array(self.to_tensor().as_array(), dtype=dtype, copy=True)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(dimensions={self._dims}, "
                f"ranges=[{', '.join(str(r) for r in self._ranges)}])")


class MutableView(View):
    """View that writes through to the parent tensor."""

    def assign(self, source: Any) -> 'MutableView':
        """
        Copy source into the selected elements in iteration order.

        Args:
            source: Tensor, View, scalar (broadcast) or nested sequence with
                the same number of elements

        Returns:
            self

        Raises:
            SizeMismatchError: if source has a different number of elements
            TypeError: if the copy would drop information (e.g. complex into real)
        """
        offsets = self.offsets()
        if isinstance(source, ElementwiseMixin):
            if source.size() != offsets.size:
                raise SizeMismatchError(
                    f"Cannot assign {source.size()} elements to a view of {offsets.size}")
            values = np.array(source._values(), copy=True)
        elif _is_scalar(source):
            values = np.asarray(source)
        else:
            values = np.asarray(source)
            values = values.ravel(order='F')
            if values.size != offsets.size:
                raise SizeMismatchError(
                    f"Cannot assign {values.size} elements to a view of {offsets.size}")
        if values.size:
            check_lossless(values.dtype, self.parent.dtype)
        self._write(offsets, values)
        return self

    def _write(self, offsets: np.ndarray, values: Any) -> None:
        # detach a shared parent before touching its buffer
        self.parent._mutable_data()
        self.parent._buffer.scatter(offsets, values)

    def fill_with(self, value: Any) -> 'MutableView':
        return self.assign(value)

    def _inplace(self, other: Any, op) -> 'MutableView':
        result = self._binary(other, op)
        if result is NotImplemented:
            return NotImplemented
        return self.assign(result)

    def __iadd__(self, other):
        return self._inplace(other, operator.add)

    def __isub__(self, other):
        return self._inplace(other, operator.sub)

    def __imul__(self, other):
        return self._inplace(other, operator.mul)

    def __itruediv__(self, other):
        return self._inplace(other, operator.truediv)

    def __setitem__(self, key: Any, value: Any) -> None:
        """Write one element at view coordinates."""
        if not isinstance(key, tuple):
            key = (key,)
        if not all(_is_index(k) for k in key):
            raise TypeError("Views only support integer element access; slice the parent tensor instead")
        if len(key) == 1 and self.rank() != 1:
            i = key[0]
            if i < 0 or i >= self.size():
                raise OutOfBoundsError(f"Linear index {i} out of bounds for size {self.size()}")
            offset = int(self.offsets()[i])
        else:
            offset = self._offset_of(key)
        check_lossless(np.asarray(value).dtype, self.parent.dtype)
        self._write(np.array([offset]), value)
