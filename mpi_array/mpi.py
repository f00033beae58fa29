from mpi4py import MPI
import numpy as np

from mpi_array.errors import ReductionError, TransportError
from mpi_array.transport import Transport, pack_address


class MPITransport(Transport):
    """Transport backed by an mpi4py communicator (COMM_WORLD by default)."""

    def __init__(self, comm=None):
        self.comm = comm if comm is not None else MPI.COMM_WORLD
        # Surface MPI failures as exceptions instead of killing the process
        self.comm.Set_errhandler(MPI.ERRORS_RETURN)
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()

    def send(self, dest, tag, payload):
        self.check_peer(dest)
        if isinstance(payload, np.ndarray):
            buf = [np.ascontiguousarray(payload, dtype=np.float64), MPI.DOUBLE]
        else:
            buf = [pack_address(payload), MPI.INT64_T]
        try:
            self.comm.Send(buf, dest=dest, tag=tag)
        except MPI.Exception as e:
            raise TransportError(f"Process {self.rank}: send to {dest} (tag {tag}) failed: {e}") from e

    def recv(self, source, tag, count=None):
        self.check_peer(source)
        if count is None:
            buf, datatype, expected = np.empty(1, dtype=np.int64), MPI.INT64_T, 1
        else:
            buf, datatype, expected = np.empty(count, dtype=np.float64), MPI.DOUBLE, count
        status = MPI.Status()
        try:
            self.comm.Recv([buf, datatype], source=source, tag=tag, status=status)
        except MPI.Exception as e:
            raise TransportError(f"Process {self.rank}: receive from {source} (tag {tag}) failed: {e}") from e
        received = status.Get_count(datatype)
        if received != expected:
            raise TransportError(f"Process {self.rank}: expected {expected} items from {source}, got {received}")
        return int(buf[0]) if count is None else buf

    def reduce(self, value, root):
        try:
            return self.comm.reduce(value, op=MPI.SUM, root=root)
        except MPI.Exception as e:
            raise ReductionError(f"Process {self.rank}: reduction failed: {e}") from e

    def gather(self, value, root):
        try:
            return self.comm.gather(value, root=root)
        except MPI.Exception as e:
            raise ReductionError(f"Process {self.rank}: gather failed: {e}") from e

    def abort(self, code=1):
        self.comm.Abort(code)

    def wtime(self):
        return MPI.Wtime()
