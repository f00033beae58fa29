"""
Bootstrap and run a job.

Under MPI each process runs one participant:

    mpiexec -n 4 python -m mpi_array --size 12

The local backend runs every participant on its own thread in this process:

    python -m mpi_array --backend local --procs 4 --size 12
"""
import argparse
import threading

from mpi_array.local import LocalFabric
from mpi_array.metrics import save_timings
from mpi_array.partition import check_divisible
from mpi_array.report import Reporter
from mpi_array.roles import Identity, select_role
from mpi_array.transport import COORDINATOR

DEFAULT_ARRAY_SIZE = 12


def run_participant(transport, n, reporter=None, timing_dir=None):
    """Run this participant's role to completion; the RunResult at the coordinator, None elsewhere."""
    identity = Identity(transport.rank, transport.size)
    reporter = reporter if reporter is not None else Reporter(identity.rank, quiet=True)

    # Every participant decides from the same n and size, before any message
    check_divisible(n, identity.size)
    reporter.started()

    start = transport.wtime()
    result = select_role(identity, transport, n, reporter).run()
    elapsed = transport.wtime() - start

    if timing_dir is not None:
        times = transport.gather(elapsed, root=COORDINATOR)
        if identity.is_coordinator:
            save_timings(timing_dir, identity.size, times)
    return result


class LocalRun:
    """Outcome of a job run on the local backend."""

    def __init__(self, fabric):
        self.fabric = fabric
        self.results = [None] * fabric.size
        self.errors = [None] * fabric.size
        # Errors in the order they happened; the first one caused the abort
        self.failures = []

    @property
    def result(self):
        return self.results[COORDINATOR]


def launch(fabric, n, reporter_factory=None, timing_dir=None):
    """Run one thread per participant on `fabric` and wait for all of them."""
    run = LocalRun(fabric)
    lock = threading.Lock()

    def participant(rank):
        transport = fabric.endpoint(rank)
        reporter = reporter_factory(rank) if reporter_factory is not None else None
        try:
            run.results[rank] = run_participant(transport, n, reporter, timing_dir)
        except Exception as exc:
            with lock:
                run.errors[rank] = exc
                run.failures.append(exc)
            transport.abort()

    threads = [threading.Thread(target=participant, args=(rank,), name=f"participant-{rank}")
               for rank in range(fabric.size)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return run


def simulate(n, p, timeout=None, stream=None, quiet=True, debug=False, show_final=False, timing_dir=None):
    """Run a whole job in this process and return the coordinator's RunResult.

    Raises the first error any participant hit.
    """
    def reporter_factory(rank):
        return Reporter(rank, stream=stream, quiet=quiet, debug=debug, show_final=show_final)

    run = launch(LocalFabric(p, timeout=timeout), n, reporter_factory, timing_dir)
    if run.failures:
        raise run.failures[0]
    return run.result


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Master/worker array decomposition with a global sum reduction.")
    parser.add_argument("-n", "--size", type=int, default=DEFAULT_ARRAY_SIZE,
                        help="Number of array elements")
    parser.add_argument("--backend", choices=["mpi", "local"], default="mpi",
                        help="Messaging substrate: mpi4py or in-process threads")
    parser.add_argument("-p", "--procs", type=int, default=4,
                        help="Number of participants for the local backend")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds a local participant waits on a peer before failing")
    parser.add_argument("--show-final", action="store_true", help="Print the whole final array")
    parser.add_argument("--debug", action="store_true", help="Dump each participant's chunk")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    parser.add_argument("--timing-dir", default=None, help="Save per-rank wall times in this directory")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.backend == "local":
        return _main_local(args)
    return _main_mpi(args)


def _main_local(args):
    try:
        simulate(args.size, args.procs, timeout=args.timeout, quiet=args.quiet, debug=args.debug,
                 show_final=args.show_final, timing_dir=args.timing_dir)
    except Exception as exc:
        Reporter(COORDINATOR).failure(exc)
        return 1
    return 0


def _main_mpi(args):
    from mpi_array.mpi import MPITransport

    transport = MPITransport()
    reporter = Reporter(transport.rank, quiet=args.quiet, debug=args.debug, show_final=args.show_final)
    try:
        run_participant(transport, args.size, reporter, timing_dir=args.timing_dir)
    except Exception as exc:
        reporter.failure(exc)
        transport.abort(1)
        return 1
    return 0
