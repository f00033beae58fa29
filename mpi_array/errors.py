class MpiArrayError(Exception):
    """Base class for every fatal condition of a run."""


class ConfigurationError(MpiArrayError):
    """The participant count does not evenly divide the array."""


class TransportError(MpiArrayError):
    """A send or receive failed: peer gone, malformed payload or aborted run."""


class ReductionError(MpiArrayError):
    """A participant never reached the reduction barrier."""
