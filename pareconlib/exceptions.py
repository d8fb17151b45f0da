"""Error taxonomy for pareconlib."""


class ReconstructionError(Exception):
    """Base class for all reconstruction errors raised by pareconlib."""


class ShapeError(ReconstructionError, ValueError):
    """Raised when an array has the wrong dimensionality or axis lengths."""


class ParameterError(ReconstructionError, ValueError):
    """Raised when a scalar physical parameter or an option is invalid."""


class MemoryBudgetError(ReconstructionError, MemoryError):
    """Raised when the frequency volume would exceed the configured memory budget."""


class NumericalWarning(UserWarning):
    """
    Non-fatal warning: the reconstruction completed but may be degraded,
    e.g. when most frequency samples were discarded as evanescent.
    """
