"""Module for FFT helper functions shared by the reconstruction code."""

import math

import numpy as np
import torch


def centered_fftn(data: torch.Tensor) -> torch.Tensor:
    """
    Centred n-dimensional DFT over all axes: fftshift(fftn(ifftshift(x))).

    The zero-frequency sample ends up in the middle of every axis, matching
    the ordering produced by `wavenumber_vector`.

    Args:
        data (torch.Tensor): Real or complex input of any dimensionality.

    Returns:
        torch.Tensor: Complex spectrum with the same shape as `data`.
    """
    return torch.fft.fftshift(torch.fft.fftn(torch.fft.ifftshift(data)))


def centered_ifftn(spectrum: torch.Tensor) -> torch.Tensor:
    """
    Inverse of `centered_fftn`: fftshift(ifftn(ifftshift(X))).

    Args:
        spectrum (torch.Tensor): Centred complex spectrum.

    Returns:
        torch.Tensor: Complex array in the original domain.
    """
    return torch.fft.fftshift(torch.fft.ifftn(torch.fft.ifftshift(spectrum)))


def wavenumber_vector(num_points: int, spacing: float) -> np.ndarray:
    """
    Angular wavenumbers (rad per unit length) of a centred DFT grid.

    For N points and spacing dx this gives 2*pi*fftshift(fftfreq(N, dx)), i.e.
    (-N/2 .. N/2-1) * 2*pi/(N*dx) for even N and
    (-(N-1)/2 .. (N-1)/2) * 2*pi/(N*dx) for odd N.

    Args:
        num_points (int): Number of grid points.
        spacing (float): Grid spacing (metres, or seconds for angular frequency).

    Returns:
        np.ndarray: Float64 vector of length `num_points`.
    """
    if num_points < 1:
        raise ValueError(f"num_points must be positive, got {num_points}.")
    return 2.0 * math.pi * np.fft.fftshift(np.fft.fftfreq(num_points, d=spacing))


def mirror_time_axis(data: torch.Tensor, dim: int = 0) -> torch.Tensor:
    """
    Mirrors time-series data about t = 0 along `dim`.

    [p(t_{N-1}), ..., p(t_1), p(t_0), p(t_1), ..., p(t_{N-1})], length 2N - 1.
    The resulting even signal lets the temporal FFT act as a cosine transform.
    """
    flipped = torch.flip(data, dims=(dim,))
    tail = data.narrow(dim, 1, data.shape[dim] - 1)
    return torch.cat((flipped, tail), dim=dim)
