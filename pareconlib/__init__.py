"""
pareconlib: FFT-based photoacoustic reconstruction for planar sensor arrays.
"""

__version__ = "0.1.0"

from .exceptions import ReconstructionError, ShapeError, ParameterError, MemoryBudgetError, NumericalWarning
from .logging_config import setup_logging
from .modalities.photoacoustic import (
    AxisOrder,
    BoundaryRecording,
    ReconstructedVolume,
    normalize_recording,
    InterpolationMethod,
    ReconstructionOptions,
    options_from_dict,
    load_options,
    ReconstructionDiagnostics,
    PlanarFFTReconstructor,
    kspace_plane_reconstruction,
    planar_fft_reconstruction,
    apply_positivity,
    TimeReversalReconstructor,
)

# plotting pulls in matplotlib; import pareconlib.plotting explicitly

__all__ = [
    '__version__',
    'ReconstructionError', 'ShapeError', 'ParameterError', 'MemoryBudgetError', 'NumericalWarning',
    'setup_logging',
    'AxisOrder', 'BoundaryRecording', 'ReconstructedVolume', 'normalize_recording',
    'InterpolationMethod', 'ReconstructionOptions', 'options_from_dict', 'load_options',
    'ReconstructionDiagnostics', 'PlanarFFTReconstructor',
    'kspace_plane_reconstruction', 'planar_fft_reconstruction', 'apply_positivity',
    'TimeReversalReconstructor',
]
