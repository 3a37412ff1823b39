"""
Element representations supported by the on-disk format.

A matrix stores one of a closed set of floating-point widths. The tag is
persisted in the header and resolved once when a matrix is created; the
numpy view over the data region is typed from it so that element access
never has to dispatch on the width again.
"""

from enum import Enum

import numpy as np

from .errors import UnsupportedDtypeError


class FloatType(Enum):
    """Closed set of element representations, valued by their header tag."""
    SINGLE = 0
    DOUBLE = 1

    @property
    def tag(self) -> int:
        return self.value

    @property
    def numpy_dtype(self) -> np.dtype:
        # Little-endian on disk regardless of host order
        return _NUMPY_DTYPES[self]

    @property
    def width(self) -> int:
        """Size of one element in bytes."""
        return self.numpy_dtype.itemsize

    @classmethod
    def from_tag(cls, tag: int) -> 'FloatType':
        """Resolve a persisted header tag."""
        try:
            return cls(int(tag))
        except ValueError:
            raise UnsupportedDtypeError(f"Unknown representation tag: {tag}") from None

    @classmethod
    def resolve(cls, dtype_like) -> 'FloatType':
        """
        Resolve a user-supplied element kind.

        Accepts a FloatType, its name ("single", "double"), or anything numpy
        understands as a dtype (np.float32, "f8", np.dtype("<f4"), ...).
        """
        if isinstance(dtype_like, cls):
            return dtype_like
        if isinstance(dtype_like, str) and dtype_like.upper() in cls.__members__:
            return cls[dtype_like.upper()]
        if dtype_like is None:
            # np.dtype(None) silently means float64
            raise UnsupportedDtypeError("An element type is required")
        try:
            dtype = np.dtype(dtype_like)
        except TypeError:
            raise UnsupportedDtypeError(f"Not a dtype: {dtype_like!r}") from None

        for float_type, candidate in _NUMPY_DTYPES.items():
            if dtype.kind == 'f' and dtype.itemsize == candidate.itemsize:
                return float_type
        raise UnsupportedDtypeError(
            f"Unsupported element type {dtype}; only float32 and float64 are supported"
        )

    def __repr__(self):
        return f"FloatType.{self.name}"


_NUMPY_DTYPES = {
    FloatType.SINGLE: np.dtype('<f4'),
    FloatType.DOUBLE: np.dtype('<f8'),
}
