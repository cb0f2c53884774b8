"""
Validated adapters onto numpy.linalg.

The decompositions themselves are computed by LAPACK through numpy; these
functions only check shapes, hand over the column-major buffer and wrap the
results back into tensors.
"""

from typing import Tuple, Union

import numpy as np

from .exceptions import DegenerateInputError, InvalidRangeError, SizeMismatchError
from .tensor import Tensor, tensor_class_for
from .views import View


def _matrix(a: Union[Tensor, View], square: bool) -> np.ndarray:
    if isinstance(a, View):
        a = a.to_tensor()
    if a.rank() != 2:
        raise InvalidRangeError(f"Expected a matrix, got a rank {a.rank()} tensor")
    rows, columns = a.dimensions
    if rows == 0 or columns == 0:
        raise DegenerateInputError(f"Cannot decompose an empty {rows}x{columns} matrix")
    if square and rows != columns:
        raise SizeMismatchError(f"Expected a square matrix, got {rows}x{columns}")
    return a.as_array()


def _tensor(array: np.ndarray) -> Tensor:
    return tensor_class_for(array.dtype)(array)


def eig_sym(a: Union[Tensor, View], vectors: bool = False):
    """
    Eigenvalues (ascending) of a real symmetric or complex Hermitian matrix.

    Only the lower triangle of a is read.

    Args:
        a: Square matrix
        vectors: Also return the eigenvectors, one per column

    Returns:
        RTensor of eigenvalues, or (eigenvalues, eigenvectors) when vectors is True
    """
    matrix = _matrix(a, square=True)
    if vectors:
        values, vecs = np.linalg.eigh(matrix)
        return _tensor(values), _tensor(vecs)
    return _tensor(np.linalg.eigvalsh(matrix))


def eig(a: Union[Tensor, View], vectors: bool = False):
    """
    Eigenvalues of a general square matrix (unordered, complex).

    Returns:
        CTensor of eigenvalues, or (eigenvalues, eigenvectors) when vectors is True
    """
    matrix = _matrix(a, square=True)
    if vectors:
        values, vecs = np.linalg.eig(matrix)
        return _tensor(values.astype(np.complex128)), _tensor(vecs.astype(np.complex128))
    return _tensor(np.linalg.eigvals(matrix).astype(np.complex128))


def svd(a: Union[Tensor, View], economic: bool = False) -> Tuple[Tensor, Tensor, Tensor]:
    """
    Singular value decomposition a = U * diag(s) * V.

    Args:
        a: Matrix of shape (m, n)
        economic: Return the reduced factors U (m, k) and V (k, n) with
            k = min(m, n) instead of the square ones

    Returns:
        (U, s, V) with s an RTensor of descending singular values
    """
    matrix = _matrix(a, square=False)
    u, s, v = np.linalg.svd(matrix, full_matrices=not economic)
    return _tensor(u), _tensor(s), _tensor(v)
