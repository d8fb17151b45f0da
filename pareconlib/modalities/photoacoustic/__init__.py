"""
pareconlib.modalities.photoacoustic
===================================

This module provides tools for Photoacoustic Tomography (PAT) reconstruction
from data recorded over a planar sensor: axis-order normalization of the raw
recording, the FFT (k-space) planar reconstruction, and a time reversal
adapter for an external wave solver.
"""

from .data import AxisOrder, BoundaryRecording, ReconstructedVolume, normalize_recording
from .config import InterpolationMethod, ReconstructionOptions, options_from_dict, load_options
from .reconstructors import (
    ReconstructionDiagnostics,
    PlanarFFTReconstructor,
    kspace_plane_reconstruction,
    planar_fft_reconstruction,
    apply_positivity,
)
from .time_reversal import TimeReversalReconstructor
# from .utils import gaussian_source_recording, make_ball # Test sources, not exported at this level

__all__ = [
    'AxisOrder',
    'BoundaryRecording',
    'ReconstructedVolume',
    'normalize_recording',
    'InterpolationMethod',
    'ReconstructionOptions',
    'options_from_dict',
    'load_options',
    'ReconstructionDiagnostics',
    'PlanarFFTReconstructor',
    'kspace_plane_reconstruction',
    'planar_fft_reconstruction',
    'apply_positivity',
    'TimeReversalReconstructor',
]
