# --- Purpose: Turns a (major, minor) coordinate walk into linear element offsets. ---

class StridedIndexGenerator:
    """
    Pure state machine over the physical layout of a matrix.

    The major axis is the outer, strided dimension and the minor axis the
    inner, contiguous one. Offsets are emitted major-then-minor, in elements.
    A generator is single-use: once exhausted it stays exhausted, and a new
    traversal needs a new generator.

    Example:
        gen = StridedIndexGenerator(major_size=2, minor_size=3, lda=3)
        list(gen)  # [0, 1, 2, 3, 4, 5]
    """

    def __init__(self, major_size: int, minor_size: int, lda: int, transposed: bool = False):
        if lda < minor_size:
            raise ValueError(f"lda ({lda}) must be at least the minor extent ({minor_size})")
        self.major_size = major_size
        self.minor_size = minor_size
        self.lda = lda
        self.transposed = transposed

        self.major_index = 0
        self.major_offset = 0
        self.minor_offset = 0
        self._started = False

    @classmethod
    def from_header(cls, header) -> 'StridedIndexGenerator':
        """
        Build a generator for a header (a HeaderRecord or HeaderView).
        The header stores logical dimensions, so the physical extents are
        recovered by swapping them back when the matrix is transposed.
        """
        major_size, minor_size = header.num_rows, header.num_cols
        if header.transposed:
            major_size, minor_size = minor_size, major_size
        return cls(major_size, minor_size, header.lda, header.transposed)

    def _advance(self):
        if self.minor_offset + 1 < self.minor_size:
            self.minor_offset += 1
        else:
            self.minor_offset = 0
            self.major_index += 1
            self.major_offset += self.lda

    def exhausted(self) -> bool:
        return self.minor_size == 0 or self.major_index >= self.major_size

    def __iter__(self):
        return self

    def __next__(self) -> int:
        if self.exhausted():
            raise StopIteration
        if self._started:
            self._advance()
            if self.exhausted():
                raise StopIteration
        else:
            self._started = True
        return self.major_offset + self.minor_offset

    def remaining(self) -> int:
        """Number of offsets still to be emitted."""
        if self.exhausted():
            return 0
        total = self.major_size * self.minor_size
        if not self._started:
            return total
        emitted = self.major_index * self.minor_size + self.minor_offset + 1
        return total - emitted

    def __length_hint__(self):
        return self.remaining()

    def row(self) -> int:
        """Logical row of the most recently emitted offset."""
        return self.minor_offset if self.transposed else self.major_index

    def col(self) -> int:
        """Logical column of the most recently emitted offset."""
        return self.major_index if self.transposed else self.minor_offset

    def __repr__(self):
        return (f"StridedIndexGenerator(major={self.major_index}/{self.major_size}, "
                f"minor={self.minor_offset}/{self.minor_size}, lda={self.lda}, "
                f"transposed={self.transposed})")
