"""
The fixed 64-byte header stored at offset 0 of every matrix file.

Layout (little-endian):

    offset  size  field
    0       8     magic
    8       8     num_rows        logical, current orientation
    16      8     num_cols        logical, current orientation
    24      4     representation  FloatType tag
    32      8     lda             stride between major-axis slices, in elements
    40      1     transposed      0 or 1
    41      23    padding

The element region starts right after the header and is always laid out
row-major in the orientation the matrix was created with.
"""

from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from .config import HEADER_SIZE, MAGIC
from .dtypes import FloatType

HEADER_DTYPE = np.dtype({
    'names': ['magic', 'num_rows', 'num_cols', 'representation', 'lda', 'transposed'],
    'formats': ['<u8', '<u8', '<u8', '<u4', '<u8', 'u1'],
    'offsets': [0, 8, 16, 24, 32, 40],
    'itemsize': HEADER_SIZE,
})


def compute_length(rows: int, cols: int, representation: FloatType) -> int:
    """Exact byte length of a matrix file: header plus rows x cols elements."""
    return HEADER_SIZE + rows * cols * representation.width


@dataclass(frozen=True)
class HeaderRecord:
    """Immutable snapshot of a header."""
    num_rows: int
    num_cols: int
    representation: FloatType
    lda: int
    transposed: bool = False
    magic: bytes = MAGIC

    @classmethod
    def for_new_matrix(cls, rows: int, cols: int, representation: FloatType) -> 'HeaderRecord':
        """Header of a freshly created matrix: untransposed, no row padding."""
        return cls(num_rows=rows, num_cols=cols, representation=representation, lda=cols)

    @classmethod
    def unpack(cls, buffer) -> 'HeaderRecord':
        """Decode the first HEADER_SIZE bytes of `buffer`."""
        if len(buffer) < HEADER_SIZE:
            raise ValueError(f"Header needs {HEADER_SIZE} bytes, got {len(buffer)}")
        rec = np.frombuffer(buffer, dtype=HEADER_DTYPE, count=1)[0]
        return cls(
            num_rows=int(rec['num_rows']),
            num_cols=int(rec['num_cols']),
            representation=FloatType.from_tag(rec['representation']),
            lda=int(rec['lda']),
            transposed=bool(rec['transposed']),
            magic=int(rec['magic']).to_bytes(8, 'little'),
        )

    def pack(self) -> bytes:
        rec = np.zeros((), dtype=HEADER_DTYPE)
        rec['magic'] = int.from_bytes(self.magic, 'little')
        rec['num_rows'] = self.num_rows
        rec['num_cols'] = self.num_cols
        rec['representation'] = self.representation.tag
        rec['lda'] = self.lda
        rec['transposed'] = 1 if self.transposed else 0
        return rec.tobytes()

    def transposed_copy(self) -> 'HeaderRecord':
        return replace(self, num_rows=self.num_cols, num_cols=self.num_rows,
                       transposed=not self.transposed)

    def physical_extents(self) -> Tuple[int, int]:
        """
        (major_size, minor_size) of the physical storage.
        The dimension fields are logical, so undo the swap when transposed.
        """
        if self.transposed:
            return self.num_cols, self.num_rows
        return self.num_rows, self.num_cols

    def data_length_elements(self) -> int:
        major_size, _ = self.physical_extents()
        return self.lda * major_size

    def file_length(self) -> int:
        """Byte length required by this header, recomputed from its current fields."""
        return compute_length(self.num_rows, self.num_cols, self.representation)

    def byte_address(self, element_offset: int) -> int:
        """Byte position in the file of a linear element offset."""
        return HEADER_SIZE + element_offset * self.representation.width


class HeaderView:
    """
    Writable projection of the header record onto mapped memory.

    The view does not own the buffer. It must be released before the mapping
    underneath it is closed.
    """

    def __init__(self, buffer):
        self._record = np.frombuffer(buffer, dtype=HEADER_DTYPE, count=1).reshape(())

    def _field(self, name):
        return self._record[name]

    @property
    def num_rows(self) -> int:
        return int(self._field('num_rows'))

    @property
    def num_cols(self) -> int:
        return int(self._field('num_cols'))

    @property
    def representation(self) -> FloatType:
        return FloatType.from_tag(self._field('representation'))

    @property
    def lda(self) -> int:
        return int(self._field('lda'))

    @property
    def transposed(self) -> bool:
        return bool(self._field('transposed'))

    def store(self, header: HeaderRecord):
        self._record['magic'] = int.from_bytes(header.magic, 'little')
        self._record['num_rows'] = header.num_rows
        self._record['num_cols'] = header.num_cols
        self._record['representation'] = header.representation.tag
        self._record['lda'] = header.lda
        self._record['transposed'] = 1 if header.transposed else 0

    def snapshot(self) -> HeaderRecord:
        return HeaderRecord.unpack(self._record.tobytes())

    def transpose(self):
        """Flip the orientation flag and swap the dimension fields. Data is untouched."""
        rows, cols = self.num_rows, self.num_cols
        self._record['num_rows'] = cols
        self._record['num_cols'] = rows
        self._record['transposed'] = 0 if self.transposed else 1

    def release(self):
        """Drop the reference into the mapped buffer."""
        self._record = None

    def __repr__(self):
        if self._record is None:
            return "HeaderView(released)"
        return f"HeaderView({self.snapshot()!r})"
