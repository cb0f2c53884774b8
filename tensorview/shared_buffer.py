"""
Reference-counted element storage shared between tensors.

A SharedBuffer wraps a flat numpy array together with the set of tensors that
currently own it. Copying a tensor attaches the copy to the same buffer; a
tensor that wants to write first checks is_shared() and, if so, detaches onto
a private copy. Owners are held through weak references so that a tensor
that is garbage collected stops counting as an owner.
"""

import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from .exceptions import OutOfBoundsError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SharedBuffer:
    """
    Flat storage with an owner count.

    Attributes:
        data: One-dimensional numpy array holding the elements
    """
    data: np.ndarray
    _owners: Dict[int, Any] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        """Validate buffer after dataclass initialization."""
        if self.data is None:
            raise ValueError("Buffer data cannot be None")
        if self.data.ndim != 1:
            self.data = np.ascontiguousarray(self.data).reshape(-1)

    def attach(self, owner: Any) -> None:
        """Register an owner of this buffer."""
        key = id(owner)
        buffers_owners = self._owners

        def _forget(_ref, key=key):
            buffers_owners.pop(key, None)

        self._owners[key] = weakref.ref(owner, _forget)

    def detach(self, owner: Any) -> None:
        """Unregister an owner (no effect if it was not registered)."""
        self._owners.pop(id(owner), None)

    def ref_count(self) -> int:
        """Number of live owners."""
        return sum(1 for ref in self._owners.values() if ref() is not None)

    def is_shared(self) -> bool:
        return self.ref_count() > 1

    def copy(self) -> 'SharedBuffer':
        """Fresh, unowned buffer with a copy of the elements."""
        logger.debug("Copying shared buffer of %d elements (%d owners)", self.size, self.ref_count())
        return SharedBuffer(self.data.copy())

    @property
    def size(self) -> int:
        return int(self.data.size)

    @property
    def dtype(self):
        """Get the data type of the buffer."""
        return self.data.dtype

    def __len__(self) -> int:
        return int(self.data.size)

    def __getitem__(self, index: int) -> Any:
        """Get element at linear index."""
        if index < 0 or index >= self.data.size:
            raise OutOfBoundsError(f"Offset {index} out of bounds for buffer of size {self.data.size}")
        return self.data[index]

    def gather(self, offsets: np.ndarray) -> np.ndarray:
        """Copy out the elements at the given offsets, in order."""
        return self.data[offsets]

    def scatter(self, offsets: np.ndarray, values: Any) -> None:
        """Write values (array or scalar) at the given offsets, in order."""
        self.data[offsets] = values

    def __repr__(self) -> str:
        return (f"SharedBuffer(size={self.size}, dtype={self.dtype}, "
                f"owners={self.ref_count()}, data_ptr={hex(id(self.data))})")
