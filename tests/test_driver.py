import contextlib
import io
import os
import shutil
import tempfile
import unittest

import numpy as np

from mpi_array.driver import main, parse_args


class CommandLineTest(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def run_main(self, argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_defaults(self):
        args = parse_args([])
        self.assertEqual(args.size, 12)
        self.assertEqual(args.backend, "mpi")
        self.assertIsNone(args.timeout)
        self.assertIsNone(args.timing_dir)

    def test_local_run(self):
        code, out = self.run_main(["--backend", "local", "-p", "4", "-n", "12", "--timeout", "5"])
        self.assertEqual(code, 0)
        self.assertIn("Final sum =  144.0", out)

    def test_local_run_quiet(self):
        code, out = self.run_main(["--backend", "local", "-p", "4", "-n", "8", "-q", "--timeout", "5"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "")

    def test_uneven_split_exits_non_zero(self):
        code, out = self.run_main(["--backend", "local", "-p", "5", "-n", "12", "--timeout", "5"])
        self.assertEqual(code, 1)
        self.assertIn("encountered an error", out)
        self.assertIn("not divisible", out)
        self.assertNotIn("has started", out)

    def test_timing_dir(self):
        code, _ = self.run_main(["--backend", "local", "-p", "2", "-n", "8", "-q", "--timeout", "5",
                                 "--timing-dir", self.tmpdir])
        self.assertEqual(code, 0)
        times = np.load(os.path.join(self.tmpdir, "timing_2_processes.npy"))
        self.assertEqual(times.shape, (2,))
        self.assertTrue(np.all(times >= 0))

    def test_unwritable_timing_dir_exits_non_zero(self):
        blocker = os.path.join(self.tmpdir, "not_a_dir")
        with open(blocker, "w") as f:
            f.write("")
        code, out = self.run_main(["--backend", "local", "-p", "2", "-n", "8", "-q", "--timeout", "5",
                                   "--timing-dir", os.path.join(blocker, "timings")])
        self.assertEqual(code, 1)
        self.assertIn("encountered an error", out)


if __name__ == "__main__":
    unittest.main()
