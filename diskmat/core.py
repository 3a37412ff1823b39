# --- Purpose: Handles the physical on-disk representation of a matrix. ---

import logging
import mmap
import os
import sys
import weakref
from typing import Iterator, Tuple

import numpy as np

from .config import DEFAULT_DTYPE, FILE_MODE, HEADER_SIZE, MAX_FILE_LENGTH, TILE_SIZE
from .dtypes import FloatType
from .errors import (
    ClosedMatrixError,
    DiskMatrixError,
    InvalidShapeError,
    MappingError,
    MappingReleaseError,
    MatrixIOError,
)
from .header import HeaderRecord, HeaderView, compute_length
from .iteration import ElementIter, ElementIterMut
from .observability import get_profiler
from .rng import get_rng

logger = logging.getLogger(__name__)


def _validate_dimension(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidShapeError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if value <= 0:
        raise InvalidShapeError(f"{name} must be positive, got {value}")
    return value


def _random_values(rng: np.random.Generator, scalar_type, count: int) -> Iterator[float]:
    """Draw `count` uniform [0, 1) values, a block at a time."""
    while count > 0:
        block = rng.random(min(count, TILE_SIZE), dtype=scalar_type)
        count -= len(block)
        yield from block.tolist()


class DiskMatrix:
    """
    Represents a matrix stored on disk using a memory-mapped file.

    The file is a 64-byte header followed by the elements. One shared,
    read/write mapping covers both; the header and data views held here are
    projections into it and never escape the object, so close() can always
    release the mapping.

    Use as a context manager so the mapping is released on every exit path:

        with DiskMatrix.create("a.mat", 1000, 1000, FloatType.DOUBLE) as m:
            m.randomise()
            m.transpose()
    """

    def __init__(self, path: str, fd: int, mapping: mmap.mmap, header: HeaderRecord):
        """Adopt an open descriptor and its mapping. Prefer DiskMatrix.create()."""
        self.path = path
        self._fd = fd
        self._mmap = mapping
        self._header = HeaderView(mapping)
        self._data = None
        self._fd_finalizer = None
        try:
            self._header.store(header)

            # The data view is typed once, here; element access never re-dispatches on width
            self._data = np.frombuffer(
                mapping,
                dtype=header.representation.numpy_dtype,
                count=header.data_length_elements(),
                offset=header.byte_address(0),
            )

            # Closes the descriptor if the matrix is dropped without close()
            self._fd_finalizer = weakref.finalize(self, os.close, fd)
        except BaseException:
            # Drop the exports so the caller can still unmap
            self._header.release()
            self._header = None
            self._data = None
            self._mmap = None
            self._fd = None
            raise

    @classmethod
    def create(cls, path, rows: int, cols: int, dtype=DEFAULT_DTYPE) -> 'DiskMatrix':
        """
        Create (or overwrite) a matrix file of exactly HEADER_SIZE + rows * cols * width
        bytes, map it, and install the header.

        Args:
            path: Backing file; created if absent
            rows: Number of rows, positive
            cols: Number of columns, positive
            dtype: FloatType, "single"/"double", or a float32/float64 numpy dtype

        Raises:
            InvalidShapeError: bad dimensions or a length that does not fit a file offset
            UnsupportedDtypeError: dtype is not single or double precision
            MatrixIOError: the file cannot be opened or resized
            MappingError: the mapping cannot be established
        """
        rows = _validate_dimension("rows", rows)
        cols = _validate_dimension("cols", cols)
        representation = FloatType.resolve(dtype)
        length = compute_length(rows, cols, representation)
        if length > min(MAX_FILE_LENGTH, sys.maxsize):
            raise InvalidShapeError(
                f"A {rows}x{cols} {representation.name.lower()} matrix needs {length} bytes, "
                f"which exceeds the largest mappable file"
            )
        path = os.fspath(path)

        with get_profiler().profile("diskmat.create", rows=rows, cols=cols,
                                    dtype=representation.name):
            try:
                fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            except OSError as exc:
                raise MatrixIOError(path, f"cannot open for read/write: {exc.strerror}") from exc

            mapping = None
            try:
                try:
                    # Extending the emptied file zero-fills the data region
                    os.ftruncate(fd, length)
                except OSError as exc:
                    raise MatrixIOError(path, f"cannot resize to {length} bytes: {exc.strerror}") from exc

                try:
                    mapping = mmap.mmap(fd, length, access=mmap.ACCESS_WRITE)
                except (OSError, ValueError, OverflowError) as exc:
                    raise MappingError(f"{path}: cannot map {length} bytes: {exc}") from exc

                matrix = cls(path, fd, mapping,
                             HeaderRecord.for_new_matrix(rows, cols, representation))
            except BaseException:
                # A partially constructed matrix must not leak its mapping or descriptor
                if mapping is not None:
                    mapping.close()
                os.close(fd)
                raise

        logger.info(f"Created {rows}x{cols} {representation.name.lower()} matrix at '{path}' "
                    f"({length} bytes)")
        return matrix

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._mmap is None

    def _require_header(self) -> HeaderView:
        if self._header is None:
            raise ClosedMatrixError(f"Matrix at '{self.path}' is closed")
        return self._header

    def _data_view(self) -> np.ndarray:
        if self._data is None:
            raise ClosedMatrixError(f"Matrix at '{self.path}' is closed")
        return self._data

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def num_rows(self) -> int:
        return self._require_header().num_rows

    def num_cols(self) -> int:
        return self._require_header().num_cols

    @property
    def shape(self) -> Tuple[int, int]:
        header = self._require_header()
        return header.num_rows, header.num_cols

    @property
    def dtype(self) -> FloatType:
        return self._require_header().representation

    @property
    def transposed(self) -> bool:
        return self._require_header().transposed

    @property
    def lda(self) -> int:
        """Stride between major-axis slices, in elements."""
        return self._require_header().lda

    def header(self) -> HeaderRecord:
        """Snapshot of the header as currently stored in the file."""
        return self._require_header().snapshot()

    def nbytes(self) -> int:
        """Exact file length implied by the current header."""
        return self.header().file_length()

    def transpose(self):
        """
        Swap the meaning of rows and columns. O(1): only the header changes,
        the elements stay where they are.
        """
        self._require_header().transpose()
        logger.debug(f"Transposed '{self.path}' to shape {self.shape}")

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def element_iter(self) -> ElementIter:
        """Read-only traversal in major-then-minor order."""
        return ElementIter(self)

    def element_iter_mut(self) -> ElementIterMut:
        """Mutable traversal, same order as element_iter()."""
        return ElementIterMut(self)

    def items(self) -> Iterator[Tuple[Tuple[int, int], float]]:
        """Yield ((row, col), value) in traversal order."""
        elements = self.element_iter()
        for value in elements:
            yield (elements.row(), elements.col()), value

    def randomise(self, rng: np.random.Generator = None):
        """
        Fill every element with uniform [0, 1) values in traversal order.
        Draws from the process-wide generator unless `rng` is given.
        """
        rng = rng if rng is not None else get_rng()
        scalar_type = self.dtype.numpy_dtype.type
        count = self.num_rows() * self.num_cols()

        with get_profiler().profile("diskmat.randomise", path=self.path, elements=count):
            for element, value in zip(self.element_iter_mut(),
                                      _random_values(rng, scalar_type, count)):
                element.value = value
        logger.debug(f"Randomised {count} elements of '{self.path}'")

    def get_tile(self, r_start: int, c_start: int, tile_size: int = TILE_SIZE) -> np.ndarray:
        """
        Copy a logical tile into memory, clipped to the matrix bounds.
        The result is a copy, never a view into the mapping.
        """
        if tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        header = self._require_header().snapshot()
        rows, cols = header.num_rows, header.num_cols
        if not (0 <= r_start < rows and 0 <= c_start < cols):
            raise IndexError(f"Tile start ({r_start}, {c_start}) outside {rows}x{cols} matrix")
        r_end = min(r_start + tile_size, rows)
        c_end = min(c_start + tile_size, cols)

        major_size, minor_size = header.physical_extents()
        physical = self._data_view().reshape(major_size, header.lda)[:, :minor_size]
        logical = physical.T if header.transposed else physical
        return np.array(logical[r_start:r_end, c_start:c_end], copy=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self):
        """Write dirty pages back to the backing file."""
        self._require_header()
        try:
            self._mmap.flush()
        except OSError as exc:
            raise MappingError(f"{self.path}: flush failed: {exc}") from exc

    def _release_problem(self):
        """
        Check that the length we are about to release still describes the file.
        Returns a description of the inconsistency, or None.
        """
        try:
            file_size = os.fstat(self._fd).st_size
        except OSError as exc:
            return f"cannot stat backing file: {exc.strerror}"
        if file_size < HEADER_SIZE:
            # Touching the header now would fault
            return f"backing file shrank to {file_size} bytes, header is gone"

        # Recomputed from the current (possibly transposed) header, never cached
        try:
            length = self._header.snapshot().file_length()
        except DiskMatrixError as exc:
            return f"header unreadable: {exc}"
        if length != len(self._mmap) or length != file_size:
            return (f"release length {length} does not match the mapping "
                    f"({len(self._mmap)} bytes) and file ({file_size} bytes)")
        return None

    def close(self):
        """
        Flush and release the mapping, then close the file. Idempotent.

        Raises:
            MappingReleaseError: the mapping could not be released cleanly. This
                is fatal; the matrix is closed either way and must not be reused.
        """
        if self._mmap is None:
            return

        with get_profiler().profile("diskmat.close", path=self.path):
            problem = self._release_problem()
            mapping, fd = self._mmap, self._fd
            self._fd_finalizer.detach()

            # Views go first: the mapping cannot be closed while they export it
            self._header.release()
            self._header = None
            self._data = None
            self._mmap = None
            self._fd = None
            self._fd_finalizer = None

            try:
                if problem is None:
                    try:
                        mapping.flush()
                    except OSError as exc:
                        problem = f"flush failed: {exc}"
                try:
                    mapping.close()
                except (BufferError, OSError, ValueError) as exc:
                    problem = problem or f"cannot unmap: {exc}"
            finally:
                try:
                    os.close(fd)
                except OSError as exc:
                    problem = problem or f"cannot close descriptor: {exc.strerror}"

        if problem is not None:
            logger.critical(f"Failed to release mapping of '{self.path}': {problem}")
            raise MappingReleaseError(f"{self.path}: {problem}")
        logger.debug(f"Released mapping of '{self.path}'")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def __repr__(self):
        if self.closed:
            return f"DiskMatrix(path='{self.path}', closed)"
        return (f"DiskMatrix(path='{self.path}', shape={self.shape}, "
                f"dtype={self.dtype.name.lower()}, transposed={self.transposed})")
