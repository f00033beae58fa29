"""
Wall-time capture and parallel scaling analysis.

Each run with --timing-dir leaves timing_{P}_processes.npy holding one
elapsed time per rank. Running this module over a directory of such files
plots wall time, speedup, efficiency and the Karp-Flatt serial fraction
side by side, each against its ideal.
"""
import argparse
import os

import numpy as np
import matplotlib.pyplot as plt


def timing_filename(size):
    return f"timing_{size}_processes.npy"


def save_timings(directory, size, times):
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, timing_filename(size))
    np.save(path, np.asarray(times, dtype=np.float64))
    return path


def load_timings(directory):
    """Return (processes, mean_times, std_times) sorted by process count."""
    files = [f for f in os.listdir(directory) if f.startswith("timing_") and f.endswith("_processes.npy")]

    # Sort files by number of processes
    file_process_pairs = [(f, int(f.split("_")[1])) for f in files]
    file_process_pairs.sort(key=lambda x: x[1])
    processes = np.array([pair[1] for pair in file_process_pairs], dtype=int)

    timing_data = [np.load(os.path.join(directory, pair[0])) for pair in file_process_pairs]
    mean_times = np.array([np.mean(data) for data in timing_data])
    std_times = np.array([np.std(data) for data in timing_data])
    return processes, mean_times, std_times


def scaling_metrics(processes, mean_times):
    """Speedup, efficiency and serial fraction relative to the 1-process time."""
    processes = np.asarray(processes, dtype=float)
    mean_times = np.asarray(mean_times, dtype=float)

    sequential_idx = np.where(processes == 1)[0]
    if len(sequential_idx) > 0:
        sequential_time = mean_times[sequential_idx[0]]
    else:
        # No single-process run: assume perfect scaling down to the smallest one
        sequential_time = mean_times[0] * processes[0]

    speedup = sequential_time / mean_times
    efficiency = speedup / processes

    # Karp-Flatt: e = (p/S - 1) / (p - 1), zero for a single process
    serial_fraction = np.zeros_like(processes)
    for i, p in enumerate(processes):
        if p > 1:
            serial_fraction[i] = min(1.0, max(0.0, (p / speedup[i] - 1) / (p - 1)))
    return speedup, efficiency, serial_fraction


def scaling_panels(processes, mean_times):
    """(title, measured, reference, log_scale) for each panel of the scaling figure."""
    processes = np.asarray(processes, dtype=float)
    mean_times = np.asarray(mean_times, dtype=float)
    speedup, efficiency, serial_fraction = scaling_metrics(processes, mean_times)
    sequential_time = mean_times[0] * speedup[0]
    return [
        ("wall time [s]", mean_times, sequential_time / processes, True),
        ("speedup", speedup, processes, False),
        ("efficiency", efficiency, np.ones_like(processes), False),
        ("serial fraction", serial_fraction, np.zeros_like(processes), False),
    ]


def plot_scaling(processes, mean_times, std_times, output):
    panels = scaling_panels(processes, mean_times)
    fig, axs = plt.subplots(1, len(panels), figsize=(4 * len(panels), 4))

    for ax, (title, measured, reference, log_scale) in zip(axs, panels):
        if log_scale:
            ax.errorbar(processes, measured, yerr=std_times, fmt='o-', label="measured")
            ax.set_xscale("log")
            ax.set_yscale("log")
        else:
            ax.plot(processes, measured, 'o-', label="measured")
        ax.plot(processes, reference, ':', color="gray", label="ideal")
        ax.set_title(title)
        ax.set_xlabel("processes")
        ax.grid(True, alpha=0.5)
    axs[0].legend()

    fig.tight_layout()
    fig.savefig(output, dpi=150)
    plt.close(fig)
    return output


def main(argv=None):
    parser = argparse.ArgumentParser(description="Plot scaling metrics from saved timing files.")
    parser.add_argument("directory", help="Directory holding timing_<P>_processes.npy files")
    parser.add_argument("-o", "--output", default="mpi_array_performance.png", help="Output image path")
    args = parser.parse_args(argv)

    processes, mean_times, std_times = load_timings(args.directory)
    if len(processes) == 0:
        print(f"No timing files found in {args.directory}")
        return 1
    plot_scaling(processes, mean_times, std_times, args.output)
    print(f"Scaling plot saved as '{args.output}'")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
