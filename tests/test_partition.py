import unittest

import numpy as np

from mpi_array.errors import ConfigurationError
from mpi_array.partition import Chunk, check_divisible, chunk_offset, chunk_size, partition
from mpi_array.transform import initial_array, update


class PartitionTest(unittest.TestCase):

    def test_chunk_size(self):
        self.assertEqual(chunk_size(12, 4), 3)
        self.assertEqual(chunk_size(8, 4), 2)
        self.assertEqual(chunk_size(7, 1), 7)
        self.assertEqual(chunk_offset(2, 3), 6)

    def test_partition_covers_array_exactly_once(self):
        for n, p in [(12, 4), (8, 4), (12, 1), (12, 12), (100, 5), (64, 8)]:
            chunks = partition(n, p)
            self.assertEqual(len(chunks), p)
            self.assertEqual(chunks[0], Chunk(0, n // p))
            covered = np.zeros(n, dtype=int)
            for chunk in chunks:
                self.assertEqual(chunk.length, n // p)
                self.assertLessEqual(chunk.offset + chunk.length, n)
                covered[chunk.offset:chunk.offset + chunk.length] += 1
            np.testing.assert_array_equal(covered, np.ones(n, dtype=int))
            # Contiguous: each chunk starts where the previous one ends
            for left, right in zip(chunks, chunks[1:]):
                self.assertEqual(left.offset + left.length, right.offset)

    def test_uneven_split_is_rejected(self):
        with self.assertRaises(ConfigurationError):
            chunk_size(12, 5)
        with self.assertRaises(ConfigurationError):
            partition(10, 3)

    def test_degenerate_counts_are_rejected(self):
        for n, p in [(12, 0), (12, -2), (0, 4)]:
            with self.assertRaises(ConfigurationError):
                check_divisible(n, p)


class TransformTest(unittest.TestCase):

    def test_initial_array(self):
        np.testing.assert_array_equal(initial_array(5), [1.0, 2.0, 3.0, 4.0, 5.0])
        self.assertEqual(initial_array(5).dtype, np.float64)

    def test_update_adds_global_index(self):
        data = initial_array(12)
        total = update(data[3:6], 3)
        np.testing.assert_array_equal(data[3:6], [7.0, 9.0, 11.0])
        self.assertEqual(total, 27.0)
        # Only the chunk is touched
        np.testing.assert_array_equal(data[:3], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(data[6:], np.arange(7, 13, dtype=np.float64))

    def test_update_on_private_copy(self):
        data = initial_array(8)
        chunk = data[4:6].copy()
        total = update(chunk, 4)
        np.testing.assert_array_equal(chunk, [9.0, 11.0])
        self.assertEqual(total, 20.0)
        np.testing.assert_array_equal(data[4:6], [5.0, 6.0])

    def test_update_is_not_idempotent(self):
        data = initial_array(4)
        update(data, 0)
        update(data, 0)
        np.testing.assert_array_equal(data, [1.0, 4.0, 7.0, 10.0])


if __name__ == "__main__":
    unittest.main()
