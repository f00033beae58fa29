import sys

from mpi_array.driver import main

if __name__ == "__main__":
    sys.exit(main())
