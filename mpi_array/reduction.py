from mpi_array.transport import COORDINATOR


class _NoValue:
    """Marker returned to participants that do not receive a reduction."""

    def __repr__(self):
        return "NO_VALUE"

    def __bool__(self):
        return False


NO_VALUE = _NoValue()


def reduce_sum(transport, value, root=COORDINATOR):
    """Sum one float per participant; only `root` gets the total.

    Every participant must call this exactly once per run or the others
    wait forever.
    """
    total = transport.reduce(float(value), root)
    if transport.rank != root:
        return NO_VALUE
    return float(total)
