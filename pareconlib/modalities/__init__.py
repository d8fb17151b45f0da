"""
pareconlib.modalities
=====================

This package contains modules for imaging modalities within pareconlib.
"""

from . import photoacoustic

__all__ = [
    'photoacoustic',
]
