"""
Dense N-dimensional column-major tensors.

A Tensor owns a SharedBuffer and a Dimensions. Copying a tensor is O(1) and
shares the buffer; the first write through a tensor whose buffer is shared
detaches a private copy, so tensors behave as values. Slicing returns View
and MutableView windows (see views.py), which behave as references.

Typed families fix the element type: RTensor (float64), CTensor
(complex128), Indices (int64) and Booleans (bool). Converting between them
never drops information silently; use the named conversions in
operations.py (real, imag, to_complex) instead.
"""

import copy as _copy
import logging
import numbers
import operator
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple

import numpy as np

from .config import default_rng
from .dimensions import Dimensions
from .exceptions import InvalidRangeError, OutOfBoundsError, SizeMismatchError
from .range import Range
from .shared_buffer import SharedBuffer

logger = logging.getLogger(__name__)


def _is_index(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (numbers.Number, np.generic)) and not isinstance(value, np.ndarray)


def _dims_from_args(args: Sequence[Any]) -> Dimensions:
    if len(args) == 1 and not _is_index(args[0]):
        return Dimensions(args[0])
    return Dimensions(*args)


def check_lossless(src: np.dtype, dst: np.dtype) -> None:
    """
    Reject element conversions that would drop information.

    Raises:
        TypeError: complex into a real type, or floating point into an
            integer or boolean type
    """
    src, dst = np.dtype(src), np.dtype(dst)
    if src.kind == 'c' and dst.kind != 'c':
        raise TypeError(f"Cannot store {src} elements in a {dst} tensor; use real() or imag() explicitly")
    if src.kind == 'f' and dst.kind in 'biu':
        raise TypeError(f"Cannot store {src} elements in a {dst} tensor without rounding")
    if src.kind in 'iu' and dst.kind == 'b':
        raise TypeError(f"Cannot store {src} elements in a boolean tensor; compare explicitly")


def tensor_class_for(dtype: Any) -> type:
    """Typed tensor family holding elements of the given numpy dtype."""
    kind = np.dtype(dtype).kind
    if kind == 'b':
        return Booleans
    if kind in 'iu':
        return Indices
    if kind == 'f':
        return RTensor
    if kind == 'c':
        return CTensor
    raise TypeError(f"Unsupported element type {dtype}")


class ElementwiseMixin:
    """
    Element-wise arithmetic and comparisons for tensor-like objects.

    Subclasses provide `dimensions` and `_values()`, the elements as a flat
    numpy array in column-major (or iteration) order.
    """

    __array_ufunc__ = None

    def _values(self) -> np.ndarray:
        raise NotImplementedError

    def _operand(self, other: Any) -> Any:
        if isinstance(other, ElementwiseMixin):
            if other.size() != self.size():
                raise SizeMismatchError(
                    f"Operands have different sizes: {self.size()} vs {other.size()}")
            return other._values()
        if _is_scalar(other):
            return other
        return NotImplemented

    def _binary(self, other: Any, op: Callable, reflected: bool = False) -> Any:
        value = self._operand(other)
        if value is NotImplemented:
            return NotImplemented
        mine = self._values()
        result = op(value, mine) if reflected else op(mine, value)
        result = np.asarray(result)
        return tensor_class_for(result.dtype)._wrap(result, self.dimensions)

    def __add__(self, other):
        return self._binary(other, operator.add)

    def __radd__(self, other):
        return self._binary(other, operator.add, reflected=True)

    def __sub__(self, other):
        return self._binary(other, operator.sub)

    def __rsub__(self, other):
        return self._binary(other, operator.sub, reflected=True)

    def __mul__(self, other):
        return self._binary(other, operator.mul)

    def __rmul__(self, other):
        return self._binary(other, operator.mul, reflected=True)

    def __truediv__(self, other):
        return self._binary(other, operator.truediv)

    def __rtruediv__(self, other):
        return self._binary(other, operator.truediv, reflected=True)

    def __neg__(self):
        result = -self._values()
        return tensor_class_for(result.dtype)._wrap(result, self.dimensions)

    def __lt__(self, other):
        return self._binary(other, operator.lt)

    def __le__(self, other):
        return self._binary(other, operator.le)

    def __gt__(self, other):
        return self._binary(other, operator.gt)

    def __ge__(self, other):
        return self._binary(other, operator.ge)

    def __eq__(self, other):
        return self._binary(other, operator.eq)

    def __ne__(self, other):
        return self._binary(other, operator.ne)

    __hash__ = None

    def __bool__(self) -> bool:
        if self.size() != 1:
            raise ValueError(
                f"The truth value of a tensor with {self.size()} elements is ambiguous; use all_equal()")
        return bool(self._values()[0])


class Tensor(ElementwiseMixin):
    """
    N-dimensional array of numbers stored in column-major order.

    Attributes:
        element_type: numpy dtype enforced by a typed family, or None for a
            tensor whose dtype follows its data
    """

    element_type: Optional[np.dtype] = None

    def __init__(self, data: Any = None, dimensions: Any = None):
        """
        Initialize a tensor.

        Args:
            data: Nested lists (data[i][j] becomes element (i, j)), a numpy
                array, another Tensor (shares its buffer), a View (copied),
                a scalar, or a flat sequence in column-major order when
                dimensions is given
            dimensions: Target dimensions, or None to take them from data
        """
        from .views import View

        dims = None if dimensions is None else _dims_from_args([dimensions])
        if isinstance(data, Tensor):
            self._init_from_tensor(data, dims)
            return
        if isinstance(data, View):
            data = data.to_tensor()
            self._init_from_tensor(data, dims)
            return
        if data is None:
            arr = np.zeros(0 if dims is None else dims.total_size(), dtype=self._default_dtype())
            if dims is None:
                dims = Dimensions(0)
        else:
            arr = self._coerce(np.asarray(data))
            if dims is None:
                dims = Dimensions(*arr.shape) if arr.ndim else Dimensions(1)
            elif arr.size != dims.total_size():
                raise SizeMismatchError(
                    f"Data with {arr.size} elements cannot fill dimensions {dims}")
        self._adopt(SharedBuffer(np.array(arr.ravel(order='F'), copy=True)), dims)

    def _init_from_tensor(self, other: 'Tensor', dims: Optional[Dimensions]) -> None:
        if dims is not None and dims.total_size() != other.size():
            raise SizeMismatchError(f"Cannot view {other.size()} elements with dimensions {dims}")
        target = self.element_type
        if target is None or other.dtype == target:
            self._adopt(other._buffer, dims if dims is not None else other._dims)
        else:
            check_lossless(other.dtype, target)
            self._adopt(SharedBuffer(other._buffer.data.astype(target)), dims if dims is not None else other._dims)

    def _adopt(self, buffer: SharedBuffer, dims: Dimensions) -> None:
        self._buffer = buffer
        self._dims = dims
        buffer.attach(self)

    @classmethod
    def _default_dtype(cls) -> np.dtype:
        return np.dtype(cls.element_type if cls.element_type is not None else np.float64)

    @classmethod
    def _coerce(cls, arr: np.ndarray) -> np.ndarray:
        if arr.dtype == object:
            raise TypeError("Tensor data must be numeric and rectangular")
        if cls.element_type is None:
            return arr.astype(tensor_class_for(arr.dtype).element_type, copy=False)
        if arr.size:
            check_lossless(arr.dtype, cls.element_type)
        return arr.astype(cls.element_type, copy=False)

    @classmethod
    def _wrap(cls, flat: np.ndarray, dims: Dimensions) -> 'Tensor':
        """Build a tensor around a flat column-major array without copying."""
        t = cls.__new__(cls)
        if cls.element_type is not None and flat.dtype != cls.element_type:
            flat = flat.astype(cls.element_type)
        t._adopt(SharedBuffer(np.ascontiguousarray(flat).reshape(-1)), dims)
        return t

    #
    # Factories
    #
    @classmethod
    def empty(cls, *dims) -> 'Tensor':
        """Tensor with the given dimensions and unspecified contents."""
        d = _dims_from_args(dims)
        return cls._wrap(np.empty(d.total_size(), dtype=cls._default_dtype()), d)

    @classmethod
    def zeros(cls, *dims) -> 'Tensor':
        d = _dims_from_args(dims)
        return cls._wrap(np.zeros(d.total_size(), dtype=cls._default_dtype()), d)

    @classmethod
    def ones(cls, *dims) -> 'Tensor':
        d = _dims_from_args(dims)
        return cls._wrap(np.ones(d.total_size(), dtype=cls._default_dtype()), d)

    @classmethod
    def eye(cls, rows: int, columns: Optional[int] = None) -> 'Tensor':
        """Rectangular identity matrix."""
        columns = rows if columns is None else columns
        output = cls.zeros(rows, columns)
        data = output._buffer.data
        for i in range(min(rows, columns)):
            data[i + i * rows] = 1
        return output

    @classmethod
    def random(cls, *dims, rng: Optional[np.random.Generator] = None) -> 'Tensor':
        """Tensor filled with random numbers (see randomize())."""
        return cls.empty(*dims).randomize(rng=rng)

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Tensor':
        """Copy a numpy array; element array[i, j, ...] becomes (i, j, ...)."""
        return cls(np.asarray(array))

    @classmethod
    def from_dimensions(cls, dims: Any) -> 'Tensor':
        """Uninitialized tensor with the dimensions of a Dimensions or shape."""
        return cls.empty(Dimensions(dims) if not isinstance(dims, Dimensions) else dims)

    #
    # Queries
    #
    @property
    def dimensions(self) -> Dimensions:
        return self._dims

    @property
    def dtype(self) -> np.dtype:
        return self._buffer.dtype

    def rank(self) -> int:
        return self._dims.rank()

    def size(self) -> int:
        return self._buffer.size

    def dimension(self, which: int) -> int:
        """Length of a given axis."""
        return self._dims[which]

    def rows(self) -> int:
        return self.dimension(0)

    def columns(self) -> int:
        return self.dimension(1)

    def is_empty(self) -> bool:
        return self.size() == 0

    def ref_count(self) -> int:
        """Number of tensors sharing this tensor's buffer."""
        return self._buffer.ref_count()

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Any]:
        return iter(self._buffer.data)

    def _values(self) -> np.ndarray:
        return self._buffer.data

    #
    # Copy-on-write
    #
    def _mutable_data(self) -> np.ndarray:
        """Buffer data, detached onto a private copy first if it is shared."""
        if self._buffer.is_shared():
            logger.debug("Detaching %s of %d elements from shared buffer", type(self).__name__, self.size())
            fresh = self._buffer.copy()
            self._buffer.detach(self)
            self._adopt(fresh, self._dims)
        return self._buffer.data

    def _check_value(self, value: Any) -> None:
        if isinstance(value, (ElementwiseMixin, np.ndarray)):
            check_lossless(value.dtype, self.dtype)
        else:
            check_lossless(np.asarray(value).dtype, self.dtype)

    def __copy__(self) -> 'Tensor':
        return type(self)(self)

    def __deepcopy__(self, memo) -> 'Tensor':
        return type(self)._wrap(self._buffer.data.copy(), self._dims)

    def copy(self) -> 'Tensor':
        """O(1) copy sharing the buffer until either side writes."""
        return _copy.copy(self)

    #
    # Element access
    #
    def at_seq(self, i: int) -> Any:
        """Element i in column-major order."""
        n = self.size()
        if i < 0 or i >= n:
            raise OutOfBoundsError(f"Linear index {i} out of bounds for size {n}")
        return self._buffer.data[i]

    def get_element(self, idx: Sequence[int]) -> Any:
        """Element at the given coordinates."""
        return self._buffer.data[self._dims.column_major_position(*idx)]

    def set_element(self, idx: Sequence[int], value: Any) -> None:
        """Write one element at the given coordinates (copy-on-write)."""
        position = self._dims.column_major_position(*idx)
        self._check_value(value)
        self._mutable_data()[position] = value

    def set(self, coords: Sequence[int], value: Any) -> None:
        """Alias of set_element()."""
        self.set_element(coords, value)

    def _selectors(self, key: Any) -> Tuple[Tuple[Any, ...], bool]:
        """Normalize an index key; returns (selectors, all_integers)."""
        if not isinstance(key, tuple):
            key = (key,)
        if key and all(_is_index(k) for k in key):
            return key, True
        ellipses = [n for n, k in enumerate(key) if k is Ellipsis]
        if len(ellipses) > 1:
            raise InvalidRangeError("Only one Ellipsis is allowed in a tensor index")
        if ellipses:
            pos = ellipses[0]
            fill = self.rank() - (len(key) - 1)
            if fill < 0:
                raise InvalidRangeError(f"Too many selectors for a rank {self.rank()} tensor")
            key = key[:pos] + tuple(Range.full() for _ in range(fill)) + key[pos + 1:]
        return key, False

    def _read(self, coords: Tuple[int, ...]) -> Any:
        if len(coords) == 1 and self.rank() != 1:
            return self.at_seq(coords[0])
        return self._buffer.data[self._dims.column_major_position(*coords)]

    def __call__(self, *selectors: Any) -> Any:
        """Element read for integer coordinates, View for anything else."""
        key, scalar = self._selectors(tuple(selectors))
        if scalar:
            return self._read(key)
        return self.view(*key)

    def __getitem__(self, key: Any) -> Any:
        key, scalar = self._selectors(key)
        if scalar:
            return self._read(key)
        return self.view(*key)

    def __setitem__(self, key: Any, value: Any) -> None:
        key, scalar = self._selectors(key)
        if scalar:
            if len(key) == 1 and self.rank() != 1:
                i = key[0]
                if i < 0 or i >= self.size():
                    raise OutOfBoundsError(f"Linear index {i} out of bounds for size {self.size()}")
                self._check_value(value)
                self._mutable_data()[i] = value
            else:
                self.set_element(key, value)
            return
        self.at(*key).assign(value)

    def view(self, *ranges: Any) -> 'View':
        """Read-only window over the selected elements."""
        from .views import View
        return View(self, ranges)

    def at(self, *ranges: Any) -> 'MutableView':
        """Writable window over the selected elements."""
        from .views import MutableView
        return MutableView(self, ranges)

    #
    # Fill operations
    #
    def fill_with(self, value: Any) -> 'Tensor':
        """Set every element to value."""
        self._check_value(value)
        self._mutable_data()[:] = value
        return self

    def fill_with_zeros(self) -> 'Tensor':
        return self.fill_with(self.dtype.type(0))

    def randomize(self, rng: Optional[np.random.Generator] = None) -> 'Tensor':
        """
        Fill with random numbers.

        Real tensors draw from [0, 1), complex tensors draw both parts from
        [0, 1), booleans are fair coin flips and indices draw from [0, 2**31).
        """
        rng = rng if rng is not None else default_rng()
        n = self.size()
        kind = self.dtype.kind
        if kind == 'c':
            values = rng.random(n) + 1j * rng.random(n)
        elif kind == 'b':
            values = rng.random(n) < 0.5
        elif kind in 'iu':
            values = rng.integers(0, 2 ** 31, size=n)
        else:
            values = rng.random(n)
        self._mutable_data()[:] = values
        return self

    #
    # Shape
    #
    def reshape(self, *dims) -> None:
        """
        Replace the dimensions in place, keeping the data.

        Raises:
            SizeMismatchError: if the total size would change
        """
        new_dims = _dims_from_args(dims)
        if new_dims.total_size() != self.size():
            raise SizeMismatchError(
                f"Cannot reshape {self._dims} ({self.size()} elements) into {new_dims}")
        self._dims = new_dims

    #
    # Raw access for numerical collaborators
    #
    def raw_buffer(self, writable: bool = False) -> np.ndarray:
        """
        The contiguous column-major element buffer.

        A writable buffer is private to this tensor (shared storage is
        detached first). It stays valid while the tensor is not reassigned.
        """
        if writable:
            return self._mutable_data()
        data = self._buffer.data.view()
        data.flags.writeable = False
        return data

    def as_array(self, writable: bool = False) -> np.ndarray:
        """The buffer viewed as a Fortran-ordered numpy array of this shape."""
        return self.raw_buffer(writable).reshape(self._dims.to_tuple(), order='F')

    def __array__(self, dtype=None, copy=None):
        return np.array(self.as_array(), dtype=dtype, copy=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.as_array().tolist()})"

    def __str__(self) -> str:
        return f"{type(self).__name__}{self._dims}{self._buffer.data.tolist()}"


class RTensor(Tensor):
    """Tensor of float64."""
    element_type = np.dtype(np.float64)


class CTensor(Tensor):
    """Tensor of complex128."""
    element_type = np.dtype(np.complex128)


class Indices(Tensor):
    """Tensor of int64 positions."""
    element_type = np.dtype(np.int64)


class Booleans(Tensor):
    """Tensor of booleans."""
    element_type = np.dtype(np.bool_)


def reshape(t: Tensor, *dims) -> Tensor:
    """Copy of t (sharing its buffer) with new dimensions."""
    return type(t)(t, _dims_from_args(dims))
