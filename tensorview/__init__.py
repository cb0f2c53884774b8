"""
tensorview - Column-major tensors with zero-copy views and CSR sparse matrices

This package provides dense N-dimensional tensors stored in column-major
order, lazy strided views built from per-axis ranges, and compressed sparse
row matrices assembled from coordinate triplets.
"""

# Errors and configuration
from .exceptions import (
    TensorError,
    OutOfBoundsError,
    InvalidRangeError,
    SizeMismatchError,
    DegenerateInputError
)
from .config import (
    TensorConfig,
    get_config,
    set_config,
    default_rng,
    setup_logging
)

# Shapes and ranges
from .dimensions import Dimensions, as_dimensions
from .range import RangeKind, Range, full, as_range
from .range_span import RangeSpan, dimensions_from_ranges
from .range_iterator import Level, RangeIterator, build_levels

# Storage, tensors and views
from .shared_buffer import SharedBuffer
from .tensor import (
    Tensor,
    RTensor,
    CTensor,
    Indices,
    Booleans,
    tensor_class_for
)
from .views import View, MutableView

# Element-wise operations (sum and abs stay in the operations namespace)
from . import operations
from .operations import (
    all_equal,
    which,
    sort,
    sort_indices,
    mean,
    norm2,
    scprod,
    conj,
    real,
    imag,
    to_complex,
    transpose,
    linspace,
    iota,
    reshape
)

# Sparse matrices
from .sparse import SparseTriplet, CSRMatrix

# Numerical collaborators and benchmarking
from . import linalg
from .instrumentation import ExecutionCounter, time_execution

__version__ = '0.1.0'

__all__ = [
    # Errors and configuration
    'TensorError',
    'OutOfBoundsError',
    'InvalidRangeError',
    'SizeMismatchError',
    'DegenerateInputError',
    'TensorConfig',
    'get_config',
    'set_config',
    'default_rng',
    'setup_logging',

    # Shapes and ranges
    'Dimensions',
    'as_dimensions',
    'RangeKind',
    'Range',
    'full',
    'as_range',
    'RangeSpan',
    'dimensions_from_ranges',
    'Level',
    'RangeIterator',
    'build_levels',

    # Storage, tensors and views
    'SharedBuffer',
    'Tensor',
    'RTensor',
    'CTensor',
    'Indices',
    'Booleans',
    'tensor_class_for',
    'View',
    'MutableView',

    # Element-wise operations
    'operations',
    'all_equal',
    'which',
    'sort',
    'sort_indices',
    'mean',
    'norm2',
    'scprod',
    'conj',
    'real',
    'imag',
    'to_complex',
    'transpose',
    'linspace',
    'iota',
    'reshape',

    # Sparse matrices
    'SparseTriplet',
    'CSRMatrix',

    # Numerical collaborators and benchmarking
    'linalg',
    'ExecutionCounter',
    'time_execution',
]
