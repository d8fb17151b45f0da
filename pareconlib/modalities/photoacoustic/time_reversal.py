"""
Time reversal reconstruction driven by an external acoustic propagator.

The wave solver itself lives outside pareconlib. This module only fixes the
contract: the recording is time-reversed, handed to the propagator as a
Dirichlet boundary source on the sensor plane, and the final pressure field
it returns is scaled for half-space recording and optionally clamped.

Example:
    >>> tr = TimeReversalReconstructor(my_solver, positivity=True)
    >>> p0 = tr.reconstruct(recording)
"""

import logging
import math
from typing import Callable

import numpy as np
import torch

from pareconlib.exceptions import ParameterError, ShapeError
from .config import DEFAULT_COMPENSATION_FACTOR
from .data import BoundaryRecording, ReconstructedVolume
from .reconstructors import apply_positivity

logger = logging.getLogger(__name__)


class TimeReversalReconstructor:
    """
    Time reversal reconstruction for a planar sensor.

    Args:
        propagator: Callable `propagator(reversed_data, recording)` that runs the
            wave solver with `reversed_data` (canonical (dim1, dim2, time) order,
            time-reversed) enforced on the sensor plane and returns the final
            pressure field, a 3D array indexed (depth, dim1, dim2).
        compensation_factor: Factor to compensate for half-plane recording (default: 2.0)
        positivity: Clamp negative values of the result to zero (default: False)

    Raises:
        ParameterError: If the propagator is not callable or the factor is invalid
    """

    def __init__(self,
                 propagator: Callable,
                 compensation_factor: float = DEFAULT_COMPENSATION_FACTOR,
                 positivity: bool = False):
        if not callable(propagator):
            raise ParameterError("propagator must be callable.")
        if isinstance(compensation_factor, bool) or not isinstance(compensation_factor, (int, float)) \
                or not math.isfinite(compensation_factor) or compensation_factor <= 0:
            raise ParameterError(f"compensation_factor must be a finite positive number, got {compensation_factor!r}.")
        self.propagator = propagator
        self.compensation_factor = float(compensation_factor)
        self.positivity = positivity

    def reconstruct(self, recording: BoundaryRecording) -> ReconstructedVolume:
        """
        Runs the propagator on the time-reversed recording.

        Returns:
            ReconstructedVolume: Scaled (and optionally clamped) final pressure field.
                Spacing is (sound_speed * dt, spacing1, spacing2); propagators
                working on another depth grid should resample their output.

        Raises:
            ShapeError: If the propagator does not return a 3D array matching
                the sensor plane along dim1 and dim2.
        """
        if not isinstance(recording, BoundaryRecording):
            raise TypeError(f"recording must be a BoundaryRecording, got {type(recording).__name__}.")

        reversed_data = torch.flip(recording.data, dims=(2,))
        logger.debug("Running time reversal propagator on %s.", recording)
        result = self.propagator(reversed_data, recording)

        if isinstance(result, dict):
            result = result['p_final']
        if isinstance(result, torch.Tensor):
            p0 = result.detach()
        else:
            p0 = torch.from_numpy(np.ascontiguousarray(np.asarray(result)))

        if p0.ndim != 3:
            raise ShapeError(f"Propagator must return a 3D (depth, dim1, dim2) field, got shape {tuple(p0.shape)}.")
        n1, n2, _ = recording.shape
        if tuple(p0.shape[1:]) != (n1, n2):
            raise ShapeError(
                f"Propagator output shape {tuple(p0.shape)} does not match the sensor plane ({n1}, {n2})."
            )

        p0 = self.compensation_factor * p0
        if self.positivity:
            p0 = apply_positivity(p0)

        spacing = (recording.sound_speed * recording.dt, recording.spacing1, recording.spacing2)
        return ReconstructedVolume(p0, spacing)
