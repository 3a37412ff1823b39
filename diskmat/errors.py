"""
diskmat/errors.py

Exception hierarchy for the diskmat storage layer.
"""


class DiskMatrixError(Exception):
    """Base class for all diskmat exceptions."""
    pass


class MatrixIOError(DiskMatrixError):
    """Raised when the backing file cannot be opened, created or resized."""

    def __init__(self, path, message):
        super().__init__(f"{path}: {message}")
        self.path = path


class MappingError(DiskMatrixError):
    """Raised when the memory mapping cannot be established."""
    pass


class MappingReleaseError(MappingError):
    """
    Raised when a mapping cannot be released cleanly.

    This is fatal: once the disposition of a mapping is unknown there is no
    well-defined state to continue from. Callers should not try to recover.
    """
    pass


class InvalidShapeError(DiskMatrixError, ValueError):
    """Raised for zero, negative, non-integer or overflowing dimensions."""
    pass


class UnsupportedDtypeError(DiskMatrixError, ValueError):
    """Raised for element representations other than float32 and float64."""
    pass


class ClosedMatrixError(DiskMatrixError):
    """Raised when a matrix (or one of its iterators) is used after close()."""
    pass
