import sys
import traceback

SAMPLE_WIDTH = 5


def format_values(values, width=4, precision=0):
    return " ".join(f"{v:{width}.{precision}f}" for v in values)


class Reporter:
    """Console output of one participant.

    quiet silences progress output but never failure diagnostics. debug dumps
    the participant's buffer after receiving and after updating it.
    """

    def __init__(self, rank, stream=None, quiet=False, debug=False, show_final=False):
        self.rank = rank
        self.stream = stream
        self.quiet = quiet
        self.debug = debug
        self.show_final = show_final

    def emit(self, text, force=False):
        if self.quiet and not force:
            return
        print(text, file=self.stream if self.stream is not None else sys.stdout, flush=True)

    def started(self):
        self.emit(f"MPI task {self.rank} has started...")

    def initial(self, data, naive_sum):
        self.emit(f"Array data({self.rank}) = ( {format_values(data)} )")
        self.emit(f"Initialized array sum = {naive_sum:4.1f}")

    def distributed(self, dest, offset, length):
        self.emit(f"Sent {length} elements to process {dest} offset = {offset}")

    def local_sum(self, value):
        self.emit(f"Process {self.rank} my sum = {value:6.1f}")

    def samples(self, data, chunks):
        self.emit("  Sample results:")
        for rank, chunk in enumerate(chunks):
            width = min(SAMPLE_WIDTH, chunk.length)
            sample = data[chunk.offset:chunk.offset + width]
            self.emit(f"Array({rank}) = {format_values(sample, width=7, precision=1)}")

    def final_array(self, data):
        if self.show_final:
            self.emit(f"Final array data({self.rank}) = ( {format_values(data)} )")

    def final_sum(self, total):
        self.emit(f"  Final sum = {total:6.1f}")

    def dump(self, label, values):
        if self.debug:
            self.emit(f"Process {self.rank} {label}: ( {format_values(values, width=5, precision=1)} )")

    def failure(self, exc):
        self.emit(f"Process {self.rank} encountered an error: {exc}", force=True)
        self.emit("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), force=True)
