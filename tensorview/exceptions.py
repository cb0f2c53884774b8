"""
Error taxonomy for the tensorview package.

All errors are precondition violations detected at the call that received the
bad input. They derive from the built-in exception a caller would naturally
catch (IndexError for bad coordinates, ValueError for bad shapes and ranges).
"""


class TensorError(Exception):
    """Base class for all tensorview errors."""


class OutOfBoundsError(TensorError, IndexError):
    """A coordinate or axis index lies outside its valid range."""


class InvalidRangeError(TensorError, ValueError):
    """A Range is malformed or was bound to an inconsistent dimension."""


class SizeMismatchError(TensorError, ValueError):
    """Source and destination element counts differ."""


class DegenerateInputError(TensorError, ValueError):
    """An operation that needs at least one element received an empty input."""
