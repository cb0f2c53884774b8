"""
Element-wise helpers and explicit conversions between tensor families.

Every function accepts Tensors and Views alike and returns new tensors;
nothing here modifies its arguments.
"""

from typing import Any, Optional, Union

import numpy as np

from .exceptions import DegenerateInputError, InvalidRangeError, SizeMismatchError
from .tensor import (CTensor, ElementwiseMixin, Indices, RTensor, Tensor,
                     _dims_from_args, _is_scalar, tensor_class_for)
from .tensor import reshape as _reshape_tensor
from .views import View

TensorLike = Union[Tensor, View]


def _same_size(a: TensorLike, b: TensorLike) -> None:
    if a.size() != b.size():
        raise SizeMismatchError(f"Operands have different sizes: {a.size()} vs {b.size()}")


def _result(values: np.ndarray, like: TensorLike) -> Tensor:
    values = np.asarray(values)
    return tensor_class_for(values.dtype)._wrap(values, like.dimensions)


def all_equal(a: Any, b: Any) -> bool:
    """
    True if both operands hold the same elements in column-major order.

    Either operand may be a scalar, in which case every element of the other
    must equal it. Tensors of different sizes are never equal; their
    dimensions are not compared.
    """
    if _is_scalar(a) and isinstance(b, ElementwiseMixin):
        a, b = b, a
    if _is_scalar(b):
        return bool(np.all(a._values() == b))
    if a.size() != b.size():
        return False
    return bool(np.array_equal(a._values(), b._values()))


def which(mask: TensorLike) -> Indices:
    """Column-major positions of the true elements of a boolean tensor."""
    values = mask._values()
    if values.dtype != np.bool_:
        raise TypeError(f"which() expects booleans, got {values.dtype}")
    positions = np.flatnonzero(values)
    return Indices._wrap(positions.astype(np.int64), _dims_from_args([positions.size]))


def sort(t: TensorLike, reverse: bool = False) -> Tensor:
    """Sorted copy of the elements, keeping the dimensions of t."""
    values = np.sort(t._values(), kind='stable')
    if reverse:
        values = values[::-1]
    return _result(values, t)


def sort_indices(t: TensorLike, reverse: bool = False) -> Indices:
    """
    Positions that sort the elements, as a stable permutation.

    With reverse=True the order is descending, ties still keeping their
    original relative order.
    """
    values = t._values()
    if reverse:
        n = values.size
        order = (n - 1) - np.argsort(values[::-1], kind='stable')[::-1]
    else:
        order = np.argsort(values, kind='stable')
    return Indices._wrap(order.astype(np.int64), _dims_from_args([order.size]))


def sum(t: TensorLike) -> Any:
    """Sum of all elements (zero for an empty tensor)."""
    return t._values().sum()


def mean(t: TensorLike) -> Any:
    """Arithmetic mean of all elements."""
    if t.size() == 0:
        raise DegenerateInputError("Mean of an empty tensor is undefined")
    return t._values().mean()


def norm2(t: TensorLike) -> float:
    """Euclidean norm of the elements seen as a flat vector."""
    return float(np.linalg.norm(t._values()))


def scprod(a: TensorLike, b: TensorLike) -> Any:
    """Scalar product sum(conj(a) * b)."""
    _same_size(a, b)
    return np.vdot(a._values(), b._values())


def abs(t: TensorLike) -> Tensor:
    """Element-wise absolute value; complex input gives an RTensor."""
    return _result(np.abs(t._values()), t)


def conj(t: TensorLike) -> Tensor:
    return _result(np.conj(t._values()), t)


def real(t: TensorLike) -> RTensor:
    """Real parts, as an RTensor."""
    return RTensor._wrap(np.real(t._values()).astype(np.float64), t.dimensions)


def imag(t: TensorLike) -> RTensor:
    """Imaginary parts, as an RTensor (zeros for real input)."""
    return RTensor._wrap(np.imag(t._values()).astype(np.float64), t.dimensions)


def to_complex(re: TensorLike, im: Optional[TensorLike] = None) -> CTensor:
    """
    Build a CTensor from real and (optionally) imaginary parts.

    Raises:
        SizeMismatchError: if re and im have different sizes
        TypeError: if either part is already complex
    """
    for part in (re, im):
        if part is not None and part.dtype.kind == 'c':
            raise TypeError("to_complex() expects real parts; the input is already complex")
    values = re._values().astype(np.complex128)
    if im is not None:
        _same_size(re, im)
        values = values + 1j * im._values()
    return CTensor._wrap(values, re.dimensions)


def transpose(t: TensorLike) -> Tensor:
    """
    Matrix transpose.

    Raises:
        InvalidRangeError: if t is not a rank-2 tensor
    """
    if t.rank() != 2:
        raise InvalidRangeError(f"transpose() needs a rank 2 tensor, got rank {t.rank()}")
    rows, columns = t.dimensions
    values = t._values().reshape((rows, columns), order='F').T
    return tensor_class_for(values.dtype)._wrap(values.ravel(order='F'),
                                                _dims_from_args([(columns, rows)]))


def linspace(start: Any, end: Any, n: int = 100) -> Tensor:
    """
    n evenly spaced values from start to end, both included.

    With scalar bounds the result is a vector. With tensor bounds of size d
    the result is a (d, n) matrix whose column k is the k-th point on the
    segment joining start and end.
    """
    if n < 0:
        raise InvalidRangeError(f"Number of points must be non-negative, got {n}")
    if _is_scalar(start) and _is_scalar(end):
        values = np.linspace(start, end, n)
        return tensor_class_for(values.dtype)._wrap(values, _dims_from_args([n]))
    if not (isinstance(start, ElementwiseMixin) and isinstance(end, ElementwiseMixin)):
        raise TypeError("linspace() bounds must both be scalars or both be tensors")
    _same_size(start, end)
    points = np.linspace(start._values(), end._values(), n, axis=1)
    return tensor_class_for(points.dtype)._wrap(points.ravel(order='F'),
                                                _dims_from_args([(start.size(), n)]))


def iota(n: int, start: int = 0) -> Indices:
    """Indices start, start + 1, ..., start + n - 1."""
    return Indices._wrap(np.arange(start, start + n, dtype=np.int64), _dims_from_args([n]))


def reshape(t: TensorLike, *dims) -> Tensor:
    """
    Copy of t with new dimensions (sharing the buffer when t is a Tensor).

    Raises:
        SizeMismatchError: if the total size would change
    """
    if isinstance(t, View):
        t = t.to_tensor()
    return _reshape_tensor(t, *dims)

