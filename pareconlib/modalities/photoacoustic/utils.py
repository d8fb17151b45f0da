import torch
import numpy as np

from pareconlib.exceptions import ParameterError, ShapeError
from .data import _check_positive_finite


def make_ball(volume_shape: tuple[int, int, int],
              center: tuple[float, float, float],
              radius: float,
              magnitude: float = 1.0,
              spacing: tuple[float, float, float] = (1.0, 1.0, 1.0),
              device: str | torch.device = 'cpu') -> torch.Tensor:
    """
    Creates a ball-shaped initial pressure phantom.

    Args:
        volume_shape (tuple[int, int, int]): Shape of the volume (depth, dim1, dim2).
        center (tuple[float, float, float]): Ball centre in grid points.
        radius (float): Ball radius in the units of `spacing` (grid points by default).
        magnitude (float, optional): Value inside the ball. Defaults to 1.0.
        spacing (tuple[float, float, float], optional): Grid spacing per axis, e.g. the
            spacing of a `ReconstructedVolume`. Defaults to (1, 1, 1).
        device (str | torch.device, optional): Device for the tensor. Defaults to 'cpu'.

    Returns:
        torch.Tensor: Float32 tensor of shape `volume_shape`.
    """
    if len(volume_shape) != 3 or len(center) != 3 or len(spacing) != 3:
        raise ShapeError(f"make_ball needs a 3D shape, centre and spacing, got {volume_shape}, "
                         f"{center} and {spacing}.")
    radius = _check_positive_finite('radius', radius)
    spacing = [_check_positive_finite('spacing', s) for s in spacing]

    grids = torch.meshgrid(*[torch.arange(n, device=device, dtype=torch.float64) for n in volume_shape],
                           indexing='ij')
    dist_sq = sum(((g - c) * s) ** 2 for g, c, s in zip(grids, center, spacing))
    ball = torch.zeros(volume_shape, dtype=torch.float32, device=device)
    ball[dist_sq <= radius ** 2] = magnitude
    return ball


def gaussian_source_recording(source_positions,
                              amplitudes,
                              sigma: float,
                              sensor_shape: tuple[int, int],
                              spacing1: float,
                              spacing2: float,
                              dt: float,
                              n_time: int,
                              sound_speed: float,
                              dtype: torch.dtype = torch.float64,
                              device: str | torch.device = 'cpu') -> torch.Tensor:
    """
    Pressure recorded on a planar sensor from Gaussian initial pressure blobs.

    Uses the exact free-space solution of the 3D wave equation for a Gaussian
    initial pressure A*exp(-r^2 / (2 sigma^2)) with zero initial particle velocity:

        p(r, t) = A / (2r) * [(r - ct) exp(-(r - ct)^2 / 2sigma^2) + (r + ct) exp(-(r + ct)^2 / 2sigma^2)]

    Sensor element (i, j) sits at depth 0, dim1 = i * spacing1, dim2 = j * spacing2;
    sample n is taken at t = n * dt.

    Args:
        source_positions: (num_sources, 3) positions (depth, dim1, dim2) in metres.
            Depth must be positive (sources lie below the sensor plane).
        amplitudes: Scalar or (num_sources,) peak initial pressures.
        sigma (float): Gaussian width [m].
        sensor_shape (tuple[int, int]): (N1, N2) number of sensor elements.
        spacing1 (float), spacing2 (float): Element spacing [m].
        dt (float): Sampling interval [s].
        n_time (int): Number of time samples.
        sound_speed (float): Sound speed [m/s].

    Returns:
        torch.Tensor: Recording of shape (N1, N2, n_time) in canonical order.
    """
    sigma = _check_positive_finite('sigma', sigma)
    spacing1 = _check_positive_finite('spacing1', spacing1)
    spacing2 = _check_positive_finite('spacing2', spacing2)
    dt = _check_positive_finite('dt', dt)
    c = _check_positive_finite('sound_speed', sound_speed)

    positions = torch.as_tensor(np.asarray(source_positions, dtype=np.float64), device=device).reshape(-1, 3)
    amps = torch.as_tensor(np.asarray(amplitudes, dtype=np.float64), device=device).reshape(-1)
    if amps.numel() == 1:
        amps = amps.expand(positions.shape[0])
    if amps.numel() != positions.shape[0]:
        raise ShapeError(f"Got {amps.numel()} amplitudes for {positions.shape[0]} sources.")
    if bool((positions[:, 0] <= 0).any()):
        raise ParameterError("Source depths must be strictly positive (below the sensor plane).")

    n1, n2 = sensor_shape
    pos1 = torch.arange(n1, dtype=torch.float64, device=device) * spacing1
    pos2 = torch.arange(n2, dtype=torch.float64, device=device) * spacing2
    ct = c * torch.arange(n_time, dtype=torch.float64, device=device) * dt

    recording = torch.zeros((n1, n2, n_time), dtype=torch.float64, device=device)
    for (depth, src1, src2), amp in zip(positions, amps):
        r = torch.sqrt(depth ** 2 + (pos1[:, None] - src1) ** 2 + (pos2[None, :] - src2) ** 2)
        r = r[..., None]  # (N1, N2, 1)
        outgoing = (r - ct) * torch.exp(-(r - ct) ** 2 / (2 * sigma ** 2))
        incoming = (r + ct) * torch.exp(-(r + ct) ** 2 / (2 * sigma ** 2))
        recording += amp / (2 * r) * (outgoing + incoming)

    return recording.to(dtype)
