"""
Out-of-core matrices backed by memory-mapped files.

A matrix file is a fixed 64-byte header followed by its elements; the whole
file is mapped so the OS page cache does the paging.
"""

from .core import DiskMatrix
from .dtypes import FloatType
from .errors import (
    ClosedMatrixError,
    DiskMatrixError,
    InvalidShapeError,
    MappingError,
    MappingReleaseError,
    MatrixIOError,
    UnsupportedDtypeError,
)
from .header import HeaderRecord
from .index import StridedIndexGenerator
from .observability import configure_logging, get_profiler

__all__ = [
    'DiskMatrix',
    'FloatType',
    'HeaderRecord',
    'StridedIndexGenerator',
    'configure_logging',
    'get_profiler',
    'DiskMatrixError',
    'MatrixIOError',
    'MappingError',
    'MappingReleaseError',
    'InvalidShapeError',
    'UnsupportedDtypeError',
    'ClosedMatrixError',
]
