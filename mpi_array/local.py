"""
In-process substrate: one thread per participant, no shared array.

Every message is copied on send, so a receiver never aliases the sender's
buffer. Collectives meet at a single reusable barrier.
"""
import queue
import threading
import time

import numpy as np

from mpi_array.errors import ConfigurationError, ReductionError, TransportError
from mpi_array.transport import Transport, check_address, check_chunk


class LocalFabric:
    """Shared wiring for `size` participants running in one process.

    With timeout=None a receive or a barrier waits forever, as under MPI.
    A finite timeout turns a stuck receive into TransportError and a stuck
    barrier into ReductionError.
    """

    def __init__(self, size, timeout=None, poll_interval=0.01):
        if size < 1:
            raise ConfigurationError(f"A local run needs at least one participant, got {size}.")
        self.size = size
        self.timeout = timeout
        self.poll_interval = poll_interval
        # (source, dest, tag, payload) in send order
        self.messages = []
        self._queues = {}
        self._lock = threading.Lock()
        self._aborted = threading.Event()
        self._slots = [None] * size
        self._snapshot = None
        self._barrier = threading.Barrier(size, action=self._collect)

    def endpoint(self, rank):
        return LocalTransport(self, rank)

    @property
    def aborted(self):
        return self._aborted.is_set()

    def abort(self):
        self._aborted.set()
        self._barrier.abort()

    def channel(self, source, dest, tag):
        with self._lock:
            return self._queues.setdefault((source, dest, tag), queue.Queue())

    def post(self, source, dest, tag, payload):
        with self._lock:
            self.messages.append((source, dest, tag, payload))
            q = self._queues.setdefault((source, dest, tag), queue.Queue())
        q.put(payload)

    def _collect(self):
        # Runs once, in one thread, after everyone arrived and before anyone leaves
        self._snapshot = list(self._slots)

    def collective(self, rank, value):
        self._slots[rank] = value
        try:
            self._barrier.wait(self.timeout)
        except threading.BrokenBarrierError as e:
            self.abort()
            raise ReductionError(f"Process {rank}: not every participant reached the barrier") from e
        return self._snapshot


class LocalTransport(Transport):

    def __init__(self, fabric, rank):
        self.fabric = fabric
        self.rank = rank
        self.size = fabric.size

    def send(self, dest, tag, payload):
        self.check_peer(dest)
        if self.fabric.aborted:
            raise TransportError(f"Process {self.rank}: run aborted before send to {dest}")
        if isinstance(payload, np.ndarray):
            payload = np.array(payload, dtype=np.float64, copy=True)
        self.fabric.post(self.rank, dest, tag, payload)

    def recv(self, source, tag, count=None):
        self.check_peer(source)
        q = self.fabric.channel(source, self.rank, tag)
        deadline = None if self.fabric.timeout is None else time.monotonic() + self.fabric.timeout
        while True:
            if self.fabric.aborted:
                raise TransportError(f"Process {self.rank}: run aborted while waiting on {source} (tag {tag})")
            wait = self.fabric.poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TransportError(f"Process {self.rank}: no message from {source} (tag {tag})")
                wait = min(wait, remaining)
            try:
                payload = q.get(timeout=wait)
                break
            except queue.Empty:
                continue
        if count is None:
            return check_address(payload)
        return check_chunk(payload, count)

    def reduce(self, value, root):
        values = self.fabric.collective(self.rank, value)
        if self.rank != root:
            return None
        return sum(values)

    def gather(self, value, root):
        values = self.fabric.collective(self.rank, value)
        if self.rank != root:
            return None
        return values

    def abort(self, code=1):
        self.fabric.abort()

    def wtime(self):
        return time.perf_counter()
