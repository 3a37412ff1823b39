"""
Unit tests for the StridedIndexGenerator state machine.
"""

import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from diskmat.dtypes import FloatType
from diskmat.header import HeaderRecord
from diskmat.index import StridedIndexGenerator


def walk(generator):
    """Collect (offset, row, col) for every emitted offset."""
    return [(offset, generator.row(), generator.col()) for offset in generator]


class TestStridedIndexGenerator(unittest.TestCase):

    def test_contiguous_offsets(self):
        gen = StridedIndexGenerator(major_size=2, minor_size=3, lda=3)
        self.assertEqual(list(gen), [0, 1, 2, 3, 4, 5])

    def test_first_offset_is_zero(self):
        gen = StridedIndexGenerator(major_size=1, minor_size=1, lda=1)
        self.assertEqual(list(gen), [0])

    def test_padded_stride_skips_gap(self):
        """With lda larger than the minor extent, each major slice starts lda apart."""
        gen = StridedIndexGenerator(major_size=3, minor_size=2, lda=4)
        self.assertEqual(list(gen), [0, 1, 4, 5, 8, 9])

    def test_coordinates_untransposed(self):
        gen = StridedIndexGenerator(major_size=2, minor_size=3, lda=3)
        self.assertEqual(walk(gen), [
            (0, 0, 0), (1, 0, 1), (2, 0, 2),
            (3, 1, 0), (4, 1, 1), (5, 1, 2),
        ])

    def test_coordinates_transposed(self):
        """Transposed: the minor offset is the row, the major index the column."""
        gen = StridedIndexGenerator(major_size=2, minor_size=3, lda=3, transposed=True)
        self.assertEqual(walk(gen), [
            (0, 0, 0), (1, 1, 0), (2, 2, 0),
            (3, 0, 1), (4, 1, 1), (5, 2, 1),
        ])

    def test_exhaustion_is_sticky(self):
        gen = StridedIndexGenerator(major_size=1, minor_size=2, lda=2)
        self.assertEqual(list(gen), [0, 1])
        with self.assertRaises(StopIteration):
            next(gen)
        with self.assertRaises(StopIteration):
            next(gen)
        self.assertTrue(gen.exhausted())

    def test_remaining(self):
        gen = StridedIndexGenerator(major_size=2, minor_size=3, lda=3)
        self.assertEqual(gen.remaining(), 6)
        next(gen)
        self.assertEqual(gen.remaining(), 5)
        for _ in range(4):
            next(gen)
        self.assertEqual(gen.remaining(), 1)
        next(gen)
        self.assertEqual(gen.remaining(), 0)
        self.assertEqual(list(gen), [])

    def test_empty_extents(self):
        self.assertEqual(list(StridedIndexGenerator(0, 3, 3)), [])
        self.assertEqual(list(StridedIndexGenerator(3, 0, 0)), [])

    def test_lda_smaller_than_minor_rejected(self):
        with self.assertRaises(ValueError):
            StridedIndexGenerator(major_size=2, minor_size=3, lda=2)

    def test_from_header_recovers_physical_extents(self):
        """A transposed header stores swapped dimensions; the generator swaps them back."""
        header = HeaderRecord.for_new_matrix(2, 3, FloatType.SINGLE).transposed_copy()
        self.assertEqual((header.num_rows, header.num_cols), (3, 2))

        gen = StridedIndexGenerator.from_header(header)
        self.assertEqual((gen.major_size, gen.minor_size), (2, 3))
        self.assertTrue(gen.transposed)
        self.assertEqual(list(gen), [0, 1, 2, 3, 4, 5])

    def test_visits_full_rectangle_once(self):
        for rows, cols, transposed in [(1, 7, False), (4, 3, True), (5, 5, False)]:
            with self.subTest(rows=rows, cols=cols, transposed=transposed):
                header = HeaderRecord.for_new_matrix(rows, cols, FloatType.DOUBLE)
                if transposed:
                    header = header.transposed_copy()
                gen = StridedIndexGenerator.from_header(header)
                visited = walk(gen)
                coords = [(row, col) for _, row, col in visited]
                expected = {(r, c) for r in range(header.num_rows) for c in range(header.num_cols)}

                self.assertEqual(len(coords), rows * cols)
                self.assertEqual(set(coords), expected)
                self.assertEqual(sorted(offset for offset, _, _ in visited),
                                 list(range(rows * cols)))


if __name__ == '__main__':
    unittest.main()
