"""
Point-to-point and collective primitives shared by every participant.

A chunk always travels as two messages on the same channel: its global offset
under OFFSET_TAG, then its values under CHUNK_TAG. The length is never sent;
both ends derive it from the shared chunk size.
"""
import numbers

import numpy as np

from mpi_array.errors import TransportError

COORDINATOR = 0
OFFSET_TAG = 1
CHUNK_TAG = 2
ADDRESS_MAX = np.iinfo(np.int64).max


class Transport:
    """Blocking messaging between the participants of one run."""

    rank = 0
    size = 1

    def send(self, dest, tag, payload):
        """Send an address (int) or a chunk (float array) to `dest`."""
        raise NotImplementedError

    def recv(self, source, tag, count=None):
        """Receive from `source`; an address when count is None, else `count` floats."""
        raise NotImplementedError

    def reduce(self, value, root):
        """Sum `value` over all participants; the total at root, None elsewhere."""
        raise NotImplementedError

    def gather(self, value, root):
        """List of every participant's value at root, None elsewhere."""
        raise NotImplementedError

    def abort(self, code=1):
        raise NotImplementedError

    def wtime(self):
        raise NotImplementedError

    def check_peer(self, peer):
        if not 0 <= peer < self.size or peer == self.rank:
            raise TransportError(f"Process {self.rank}: invalid peer rank {peer} (size {self.size}).")


def check_address(payload):
    if isinstance(payload, bool) or not isinstance(payload, numbers.Integral):
        raise TransportError(f"Malformed address payload: {payload!r}")
    return int(payload)


def pack_address(payload):
    """One-element int64 buffer holding a validated address."""
    address = check_address(payload)
    if not 0 <= address <= ADDRESS_MAX:
        raise TransportError(f"Address {address} out of range [0, {ADDRESS_MAX}]")
    return np.array([address], dtype=np.int64)


def check_chunk(payload, count):
    if not isinstance(payload, np.ndarray) or payload.ndim != 1:
        raise TransportError(f"Malformed chunk payload of type {type(payload).__name__}")
    if len(payload) != count:
        raise TransportError(f"Expected a chunk of {count} values, received {len(payload)}")
    return payload.astype(np.float64, copy=False)


class Channel:
    """Typed two-phase exchange of (offset, values) pairs over a transport."""

    def __init__(self, transport):
        self.transport = transport

    def send_chunk(self, dest, offset, values):
        # Address first, then the payload it locates
        self.transport.send(dest, OFFSET_TAG, int(offset))
        self.transport.send(dest, CHUNK_TAG, np.ascontiguousarray(values, dtype=np.float64))

    def recv_chunk(self, source, length):
        offset = self.transport.recv(source, OFFSET_TAG)
        values = self.transport.recv(source, CHUNK_TAG, count=length)
        return offset, values
