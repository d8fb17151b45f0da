"""
Data model for planar-sensor photoacoustic reconstruction.

Holds the boundary recording (sensor-plane pressure time series), the axis
order tag used to canonicalise caller arrays, and the reconstructed volume
returned to the caller.
"""

import logging
import math
from enum import Enum

import numpy as np
import torch

from pareconlib.exceptions import ParameterError, ShapeError

logger = logging.getLogger(__name__)

CANONICAL_AXES = ('dim1', 'dim2', 'time')
MIN_AXIS_LENGTH = 2


class AxisOrder(Enum):
    """
    Which logical axis (dim1, dim2, time) sits on which physical array axis.

    Short names ('yzt', 'zyt', 'tyz', 'tzy', with y = dim1, z = dim2) are accepted as
    aliases by `AxisOrder.coerce`.
    """
    DIM1_DIM2_TIME = 'dim1_dim2_time'
    DIM2_DIM1_TIME = 'dim2_dim1_time'
    TIME_DIM1_DIM2 = 'time_dim1_dim2'
    TIME_DIM2_DIM1 = 'time_dim2_dim1'

    @property
    def layout(self) -> tuple[str, str, str]:
        return tuple(self.value.split('_'))

    @property
    def permutation(self) -> tuple[int, int, int]:
        """Physical axis index of each canonical axis; pass to `Tensor.permute`."""
        layout = self.layout
        return tuple(layout.index(name) for name in CANONICAL_AXES)

    @classmethod
    def coerce(cls, value) -> 'AxisOrder':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key in _AXIS_ORDER_ALIASES:
                return _AXIS_ORDER_ALIASES[key]
            try:
                return cls(key)
            except ValueError:
                pass
        valid = [member.value for member in cls] + sorted(_AXIS_ORDER_ALIASES)
        raise ParameterError(f"Unknown axis order {value!r}. Expected one of {valid}.")


_AXIS_ORDER_ALIASES = {
    'yzt': AxisOrder.DIM1_DIM2_TIME,
    'zyt': AxisOrder.DIM2_DIM1_TIME,
    'tyz': AxisOrder.TIME_DIM1_DIM2,
    'tzy': AxisOrder.TIME_DIM2_DIM1,
}


def _check_positive_finite(name: str, value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ParameterError(f"{name} must be a real number, got {value!r}.") from None
    if not math.isfinite(value):
        raise ParameterError(f"{name} must be finite, got {value}.")
    if value <= 0:
        raise ParameterError(f"{name} must be strictly positive, got {value}.")
    return value


def _as_real_tensor(data) -> torch.Tensor:
    """Converts array-like input to a real floating point tensor without copying where possible."""
    if isinstance(data, torch.Tensor):
        tensor = data.detach()
    else:
        array = np.asarray(data)
        if array.dtype == object:
            raise ParameterError("Recording must be a numeric array.")
        tensor = torch.from_numpy(np.ascontiguousarray(array))

    if tensor.is_complex():
        raise ParameterError("Recording must be real-valued pressure samples, got a complex array.")
    if not tensor.is_floating_point():
        tensor = tensor.to(torch.float64)
    return tensor


class BoundaryRecording:
    """
    Pressure recorded over a planar sensor, in canonical (dim1, dim2, time) order.

    Attributes:
        data (torch.Tensor): Real samples, shape (N1, N2, Nt).
        spacing1 (float): Sensor spacing along dim1 [m].
        spacing2 (float): Sensor spacing along dim2 [m].
        dt (float): Sampling interval [s].
        sound_speed (float): Homogeneous sound speed [m/s].
    """
    def __init__(self,
                 data,
                 spacing1: float,
                 spacing2: float,
                 dt: float,
                 sound_speed: float):
        self.spacing1 = _check_positive_finite('spacing1', spacing1)
        self.spacing2 = _check_positive_finite('spacing2', spacing2)
        self.dt = _check_positive_finite('dt', dt)
        self.sound_speed = _check_positive_finite('sound_speed', sound_speed)

        data = _as_real_tensor(data)
        if data.ndim != 3:
            raise ShapeError(
                f"Recording must be 3-dimensional (dim1, dim2, time), got {data.ndim} dimension(s) "
                f"with shape {tuple(data.shape)}."
            )
        for name, length in zip(CANONICAL_AXES, data.shape):
            if length < MIN_AXIS_LENGTH:
                raise ShapeError(
                    f"Axis '{name}' has {length} sample(s); at least {MIN_AXIS_LENGTH} are required."
                )
        if not bool(torch.isfinite(data).all()):
            raise ParameterError("Recording contains non-finite samples (NaN or Inf).")
        self.data = data

    @property
    def shape(self) -> tuple[int, int, int]:
        return tuple(self.data.shape)

    @property
    def n_time(self) -> int:
        return self.data.shape[2]

    @property
    def time_vector(self) -> np.ndarray:
        return np.arange(self.n_time) * self.dt

    def transposed(self) -> 'BoundaryRecording':
        """Returns the recording with dim1 and dim2 swapped (spacings swapped too)."""
        return BoundaryRecording(self.data.transpose(0, 1), self.spacing2, self.spacing1,
                                 self.dt, self.sound_speed)

    def __repr__(self):
        return (f"BoundaryRecording(shape={self.shape}, spacing1={self.spacing1}, "
                f"spacing2={self.spacing2}, dt={self.dt}, sound_speed={self.sound_speed})")


class ReconstructedVolume:
    """
    Recovered initial pressure, indexed (depth, dim1, dim2).

    Depth index 0 lies on the sensor plane; depth spacing is sound_speed * dt.

    Attributes:
        volume (torch.Tensor): Real tensor of shape (Nt, N1, N2).
        spacing (tuple[float, float, float]): Voxel spacing (depth, dim1, dim2) [m].
        diagnostics (ReconstructionDiagnostics | None): Diagnostic record of the run.
    """
    def __init__(self, volume: torch.Tensor, spacing: tuple[float, float, float], diagnostics=None):
        if volume.ndim != 3:
            raise ShapeError(f"Reconstructed volume must be 3-dimensional, got shape {tuple(volume.shape)}.")
        self.volume = volume
        self.spacing = tuple(float(s) for s in spacing)
        self.diagnostics = diagnostics

    @property
    def shape(self) -> tuple[int, int, int]:
        return tuple(self.volume.shape)

    @property
    def depth_vector(self) -> np.ndarray:
        return np.arange(self.volume.shape[0]) * self.spacing[0]

    def numpy(self) -> np.ndarray:
        return self.volume.detach().cpu().numpy()

    def __repr__(self):
        return f"ReconstructedVolume(shape={self.shape}, spacing={self.spacing})"


def normalize_recording(data,
                        spacing1: float,
                        spacing2: float,
                        dt: float,
                        sound_speed: float,
                        axis_order: AxisOrder | str = AxisOrder.DIM1_DIM2_TIME,
                        shape: tuple[int, int, int] | None = None) -> BoundaryRecording:
    """
    Reorders a raw sensor array into canonical (dim1, dim2, time) layout and validates it.

    `spacing1` and `spacing2` always refer to the logical dim1 and dim2 axes,
    whatever physical position those axes occupy in `data`.

    Args:
        data (np.ndarray | torch.Tensor): Raw 3D pressure samples.
        spacing1 (float): Sensor spacing along dim1 [m].
        spacing2 (float): Sensor spacing along dim2 [m].
        dt (float): Sampling interval [s].
        sound_speed (float): Sound speed [m/s].
        axis_order (AxisOrder | str): Physical layout of `data`.
        shape (tuple[int, int, int] | None): Optional declared canonical shape
            (N1, N2, Nt); checked against the permuted array.

    Returns:
        BoundaryRecording: Canonical recording. The caller's array is not modified.

    Raises:
        ShapeError: If `data` is not 3D, an axis is shorter than 2 samples, or
            the declared shape does not match.
        ParameterError: If a scalar is non-positive or non-finite, the samples
            are complex or non-finite, or the axis order is unknown.
    """
    axis_order = AxisOrder.coerce(axis_order)
    for name, value in (('spacing1', spacing1), ('spacing2', spacing2), ('dt', dt), ('sound_speed', sound_speed)):
        _check_positive_finite(name, value)

    tensor = _as_real_tensor(data)
    if tensor.ndim != 3:
        raise ShapeError(
            f"Recording must be 3-dimensional, got {tensor.ndim} dimension(s) with shape {tuple(tensor.shape)}."
        )

    canonical = tensor.permute(*axis_order.permutation)

    if shape is not None:
        declared = tuple(int(n) for n in shape)
        if len(declared) != 3 or declared != tuple(canonical.shape):
            raise ShapeError(
                f"Declared shape {declared} (dim1, dim2, time) does not match array of shape "
                f"{tuple(tensor.shape)} laid out as {axis_order.value}, which gives {tuple(canonical.shape)}."
            )

    logger.debug("Normalized recording from %s layout %s to canonical shape %s.",
                 axis_order.value, tuple(tensor.shape), tuple(canonical.shape))
    return BoundaryRecording(canonical, spacing1, spacing2, dt, sound_speed)
