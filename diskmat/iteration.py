"""
Lazy element traversals over the mapped data region.

Both traversals are driven by a StridedIndexGenerator, so the read-only and
the mutable walk visit elements in exactly the same order (major-then-minor
over the physical layout; column-major relative to it when the matrix is
transposed). That keeps coordinate-paired algorithms such as fill-then-verify
consistent between the two.

Traversals hold the matrix, not the mapping. Nothing here guards against
aliasing: mixing a mutable traversal with other views of the same elements is
the caller's responsibility.
"""

from .index import StridedIndexGenerator


class _ElementTraversal:

    def __init__(self, matrix):
        self._matrix = matrix
        self._generator = StridedIndexGenerator.from_header(matrix._require_header())

    def __iter__(self):
        return self

    def __length_hint__(self):
        return self._generator.remaining()

    def row(self) -> int:
        """Logical row of the element yielded last."""
        return self._generator.row()

    def col(self) -> int:
        """Logical column of the element yielded last."""
        return self._generator.col()


class ElementIter(_ElementTraversal):
    """Read-only traversal yielding element values as Python floats."""

    def __next__(self) -> float:
        data = self._matrix._data_view()
        return data.item(next(self._generator))


class ElementIterMut(_ElementTraversal):
    """Mutable traversal yielding an ElementRef per element."""

    def __next__(self) -> 'ElementRef':
        self._matrix._data_view()
        offset = next(self._generator)
        return ElementRef(self._matrix, offset, self.row(), self.col())


class ElementRef:
    """
    Reference to one mapped element. Reading or assigning `value` goes
    straight to the mapping, so writes are visible to every later traversal.
    """
    __slots__ = ('_matrix', 'offset', 'row', 'col')

    def __init__(self, matrix, offset: int, row: int, col: int):
        self._matrix = matrix
        self.offset = offset
        self.row = row
        self.col = col

    @property
    def value(self) -> float:
        return self._matrix._data_view().item(self.offset)

    @value.setter
    def value(self, new_value):
        self._matrix._data_view()[self.offset] = new_value

    def __float__(self):
        return self.value

    def __repr__(self):
        return f"ElementRef(row={self.row}, col={self.col}, offset={self.offset})"
