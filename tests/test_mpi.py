"""Runs against MPI.COMM_WORLD; under plain pytest that is a single process.

    mpiexec -n 4 python -m pytest tests/test_mpi.py

exercises the real multi-process exchange.
"""
import unittest

import numpy as np

try:
    from mpi4py import MPI
except (ImportError, RuntimeError):
    MPI = None


@unittest.skipIf(MPI is None, "mpi4py is not available")
class MPITransportTest(unittest.TestCase):

    def setUp(self):
        from mpi_array.mpi import MPITransport
        self.transport = MPITransport(MPI.COMM_WORLD)

    def test_identity(self):
        self.assertEqual(self.transport.rank, MPI.COMM_WORLD.Get_rank())
        self.assertEqual(self.transport.size, MPI.COMM_WORLD.Get_size())

    def test_full_run(self):
        from mpi_array.driver import run_participant

        size = self.transport.size
        n = 12 * size
        result = run_participant(self.transport, n)
        if self.transport.rank == 0:
            i = np.arange(n, dtype=np.float64)
            np.testing.assert_array_equal(result.data, (i + 1) + i)
            self.assertEqual(result.total, float(np.sum((i + 1) + i)))
        else:
            self.assertIsNone(result)

    def test_reduction_marker(self):
        from mpi_array.reduction import NO_VALUE, reduce_sum

        total = reduce_sum(self.transport, 1.0)
        if self.transport.rank == 0:
            self.assertEqual(total, float(self.transport.size))
        else:
            self.assertIs(total, NO_VALUE)


if __name__ == "__main__":
    unittest.main()
