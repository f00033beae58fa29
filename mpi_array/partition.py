from typing import List, NamedTuple

from mpi_array.errors import ConfigurationError


class Chunk(NamedTuple):
    offset: int
    length: int


def check_divisible(n, p):
    """Raise ConfigurationError unless n elements split evenly over p participants."""
    if p < 1:
        raise ConfigurationError(f"Number of participants must be at least 1, got {p}.")
    if n < 1:
        raise ConfigurationError(f"Array size must be at least 1, got {n}.")
    if n % p != 0:
        raise ConfigurationError(
            f"Quitting. Array size {n} is not divisible by the number of participants {p}.")


def chunk_size(n, p):
    check_divisible(n, p)
    return n // p


def chunk_offset(rank, size):
    return rank * size


def partition(n, p) -> List[Chunk]:
    """Split [0, n) into p contiguous chunks; chunk r belongs to rank r."""
    size = chunk_size(n, p)
    return [Chunk(chunk_offset(r, size), size) for r in range(p)]
