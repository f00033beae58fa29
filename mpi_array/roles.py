"""
Coordinator and worker roles.

Both roles share Participant.run(): the role's own work, then the reduction
(unconditionally, whatever the role), then the role's finishing step. The
role is picked once from the participant's rank and never re-checked.
"""
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np

from mpi_array.errors import TransportError
from mpi_array.partition import chunk_size, partition
from mpi_array.reduction import NO_VALUE, reduce_sum
from mpi_array.report import Reporter
from mpi_array.transform import initial_array, update
from mpi_array.transport import COORDINATOR, Channel


class CoordinatorState(Enum):
    INIT = "init"
    DISTRIBUTE = "distribute"
    COMPUTE = "compute"
    COLLECT = "collect"
    REDUCE = "reduce"
    REPORT = "report"
    DONE = "done"


class WorkerState(Enum):
    INIT = "init"
    RECEIVE = "receive"
    COMPUTE = "compute"
    SEND = "send"
    REDUCE = "reduce"
    DONE = "done"


class Identity(NamedTuple):
    rank: int
    size: int

    @property
    def is_coordinator(self):
        return self.rank == COORDINATOR


@dataclass
class RunResult:
    data: np.ndarray
    total: float
    naive_sum: float
    local_sum: float


class Participant:
    states = None

    def __init__(self, identity, transport, n, reporter=None):
        self.identity = identity
        self.transport = transport
        self.n = n
        self.chunk_size = chunk_size(n, identity.size)
        self.channel = Channel(transport)
        self.reporter = reporter if reporter is not None else Reporter(identity.rank, quiet=True)
        self.state = self.states.INIT
        self.local_sum = None
        self.total = NO_VALUE

    def run(self):
        self.local_sum = self.work()
        self.state = self.states.REDUCE
        self.total = reduce_sum(self.transport, self.local_sum, root=COORDINATOR)
        result = self.finish(self.total)
        self.state = self.states.DONE
        return result

    def work(self):
        """Role-specific phases up to the reduction; returns the local sum."""
        raise NotImplementedError

    def finish(self, total):
        return None

    def check_offset(self, offset, peer):
        if offset < 0 or offset + self.chunk_size > self.n or offset % self.chunk_size:
            raise TransportError(f"Process {self.identity.rank}: bad offset {offset} from process {peer}")


class CoordinatorRole(Participant):
    states = CoordinatorState

    def __init__(self, identity, transport, n, reporter=None):
        super().__init__(identity, transport, n, reporter)
        self.chunks = partition(n, identity.size)
        self.data = None
        self.naive_sum = None
        self.sent_offsets = {}
        self.received_offsets = {}

    def work(self):
        # Build the full array; its plain sum is only printed, never trusted
        self.data = initial_array(self.n)
        self.naive_sum = float(np.sum(self.data))
        self.reporter.initial(self.data, self.naive_sum)

        # Send each worker its chunk, keeping the first one
        self.state = CoordinatorState.DISTRIBUTE
        for dest in range(1, self.identity.size):
            chunk = self.chunks[dest]
            self.channel.send_chunk(dest, chunk.offset, self.data[chunk.offset:chunk.offset + chunk.length])
            self.sent_offsets[dest] = chunk.offset
            self.reporter.distributed(dest, chunk.offset, chunk.length)

        self.state = CoordinatorState.COMPUTE
        own = self.chunks[COORDINATOR]
        local_sum = update(self.data[own.offset:own.offset + own.length], own.offset)
        self.reporter.local_sum(local_sum)

        # Write each updated chunk back where its worker says it belongs
        self.state = CoordinatorState.COLLECT
        for source in range(1, self.identity.size):
            offset, values = self.channel.recv_chunk(source, self.chunk_size)
            self.check_offset(offset, source)
            self.received_offsets[source] = offset
            if offset != self.sent_offsets[source]:
                raise TransportError(
                    f"Process {source} returned offset {offset}, expected {self.sent_offsets[source]}")
            self.data[offset:offset + self.chunk_size] = values
        return local_sum

    def finish(self, total):
        self.state = CoordinatorState.REPORT
        self.reporter.samples(self.data, self.chunks)
        self.reporter.final_array(self.data)
        self.reporter.final_sum(total)
        return RunResult(self.data, total, self.naive_sum, self.local_sum)


class WorkerRole(Participant):
    states = WorkerState

    def __init__(self, identity, transport, n, reporter=None):
        super().__init__(identity, transport, n, reporter)
        self.offset = None
        self.values = None

    def work(self):
        self.state = WorkerState.RECEIVE
        self.offset, self.values = self.channel.recv_chunk(COORDINATOR, self.chunk_size)
        self.check_offset(self.offset, COORDINATOR)
        self.reporter.dump("after receive", self.values)

        self.state = WorkerState.COMPUTE
        local_sum = update(self.values, self.offset)
        self.reporter.dump("after update", self.values)
        self.reporter.local_sum(local_sum)

        self.state = WorkerState.SEND
        self.channel.send_chunk(COORDINATOR, self.offset, self.values)
        return local_sum


def select_role(identity, transport, n, reporter=None) -> Participant:
    role = CoordinatorRole if identity.is_coordinator else WorkerRole
    return role(identity, transport, n, reporter)
