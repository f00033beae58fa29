import numpy as np


def initial_array(n):
    """Array holding 1.0, 2.0, ..., n."""
    return np.arange(1, n + 1, dtype=np.float64)


def update(values, offset):
    """Add each element's global index to it, in place, and return the chunk sum.

    `values` is either a view into the full array (coordinator) or a private
    copy of one chunk (worker); `offset` is the global index of values[0].
    """
    values += np.arange(offset, offset + len(values), dtype=np.float64)
    return float(np.sum(values))
