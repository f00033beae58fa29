from mpi_array.errors import ConfigurationError, MpiArrayError, ReductionError, TransportError
from mpi_array.partition import Chunk, chunk_offset, chunk_size, partition
from mpi_array.reduction import NO_VALUE, reduce_sum
from mpi_array.transform import initial_array, update
from mpi_array.transport import CHUNK_TAG, COORDINATOR, OFFSET_TAG, Channel, Transport

__version__ = "0.1.0"
