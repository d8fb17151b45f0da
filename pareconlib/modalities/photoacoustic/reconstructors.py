"""
FFT (k-space) reconstruction for photoacoustic data recorded over a planar sensor.

The recording p(dim1, dim2, t) is mirrored about t = 0, transformed to
P(omega, k1, k2), remapped column by column from the uniform omega grid onto
the depth wavenumber grid kz via the dispersion relation
omega = c * sqrt(k1^2 + k2^2 + kz^2), weighted by the Jacobian of that change
of variables and inverse transformed to give p0(depth, dim1, dim2).
"""

import functools
import logging
import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
import torch
from scipy.interpolate import CubicSpline

from pareconlib.exceptions import MemoryBudgetError, NumericalWarning
from pareconlib.utils import centered_fftn, centered_ifftn, mirror_time_axis, wavenumber_vector
from .config import InterpolationMethod, ReconstructionOptions
from .data import BoundaryRecording, ReconstructedVolume, _check_positive_finite, normalize_recording

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconstructionDiagnostics:
    """Diagnostic record returned alongside a reconstructed volume."""
    elapsed_time: float
    num_discarded: int
    discarded_fraction: float
    interpolation_method: InterpolationMethod
    frequency_volume_bytes: int
    degraded: bool = False


def estimate_frequency_volume_bytes(shape: tuple[int, int, int], dtype: torch.dtype = torch.float64) -> int:
    """Bytes held by the complex frequency volume for a canonical (N1, N2, Nt) recording."""
    n1, n2, nt = shape
    itemsize = 16 if dtype == torch.float64 else 8
    return (2 * nt - 1) * n1 * n2 * itemsize


def dispersion_query(kz: np.ndarray, k_perp, sound_speed: float) -> np.ndarray:
    """
    Temporal angular frequency that maps onto each depth wavenumber.

    omega(kz) = c * sign(kz) * sqrt(k_perp^2 + kz^2), with sign(0) taken as +1
    so the kz = 0 plane samples the propagating edge omega = c * k_perp.
    """
    kz, k_perp = np.broadcast_arrays(np.asarray(kz, dtype=np.float64), np.asarray(k_perp, dtype=np.float64))
    sign = np.where(kz >= 0, 1.0, -1.0)
    return sound_speed * sign * np.sqrt(k_perp ** 2 + kz ** 2)


def dispersion_weights(kz: np.ndarray, k_perp) -> np.ndarray:
    """
    Jacobian weight |d omega / d kz| / c = |kz| / |k| for the omega -> kz change of variables.

    Zero where |k| = 0 (the DC sample).
    """
    kz, k_perp = np.broadcast_arrays(np.asarray(kz, dtype=np.float64), np.asarray(k_perp, dtype=np.float64))
    k_mag = np.sqrt(kz ** 2 + k_perp ** 2)
    weights = np.zeros(k_mag.shape, dtype=np.float64)
    nonzero = k_mag > 0
    weights[nonzero] = np.abs(kz[nonzero]) / k_mag[nonzero]
    return weights


def remap_column(values: np.ndarray,
                 omega: np.ndarray,
                 omega_query: np.ndarray,
                 method: InterpolationMethod | str = InterpolationMethod.LINEAR) -> np.ndarray:
    """
    Interpolates one (k1, k2) column of the spectrum from the uniform omega grid.

    Args:
        values (np.ndarray): Complex spectrum samples on `omega`, shape (M,).
        omega (np.ndarray): Increasing, uniformly spaced angular frequencies, shape (M,).
        omega_query (np.ndarray): Frequencies to look up.
        method (InterpolationMethod | str): 'linear', 'nearest' or 'cubic'.

    Returns:
        np.ndarray: Interpolated values; queries outside [omega[0], omega[-1]] give 0.
    """
    method = InterpolationMethod.coerce(method)
    inside = (omega_query >= omega[0]) & (omega_query <= omega[-1])

    if method is InterpolationMethod.LINEAR:
        remapped = np.interp(omega_query, omega, values, left=0.0, right=0.0)
    elif method is InterpolationMethod.NEAREST:
        d_omega = omega[1] - omega[0]
        index = np.rint((omega_query - omega[0]) / d_omega).astype(np.int64)
        index = np.clip(index, 0, len(omega) - 1)
        remapped = np.where(inside, values[index], 0.0)
    else:
        spline = CubicSpline(omega, values, extrapolate=False)
        remapped = np.where(inside, np.nan_to_num(spline(omega_query), nan=0.0), 0.0)
    return remapped


def _remap_block(spectrum: np.ndarray,
                 omega: np.ndarray,
                 kz: np.ndarray,
                 k_perp: np.ndarray,
                 sound_speed: float,
                 method: InterpolationMethod,
                 columns: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    block = np.empty((spectrum.shape[0], len(columns)), dtype=spectrum.dtype)
    for j, col in enumerate(columns):
        query = dispersion_query(kz, k_perp[col], sound_speed)
        weights = dispersion_weights(kz, k_perp[col])
        block[:, j] = remap_column(spectrum[:, col], omega, query, method) * weights
    return columns, block


def _remap_columns(spectrum: np.ndarray,
                   omega: np.ndarray,
                   kz: np.ndarray,
                   k_perp: np.ndarray,
                   sound_speed: float,
                   method: InterpolationMethod,
                   num_workers: int = 1) -> np.ndarray:
    """
    Maps every (k1, k2) column onto the kz grid.

    Columns are independent: blocks of column indices are processed in
    parallel when `num_workers > 1` and written back by the caller thread.
    """
    n_columns = spectrum.shape[1]
    n_blocks = 1 if num_workers == 1 else min(n_columns, 4 * num_workers)
    blocks = np.array_split(np.arange(n_columns), n_blocks)
    work = functools.partial(_remap_block, spectrum, omega, kz, k_perp, sound_speed, method)

    remapped = np.empty_like(spectrum)
    if num_workers == 1:
        for columns, block in map(work, blocks):
            remapped[:, columns] = block
    else:
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            for columns, block in executor.map(work, blocks):
                remapped[:, columns] = block
    return remapped


def apply_positivity(volume: torch.Tensor) -> torch.Tensor:
    """Clamps negative voxels to zero (initial pressure is non-negative)."""
    return torch.clamp(volume, min=0.0)


def kspace_plane_reconstruction(recording: BoundaryRecording,
                                options: ReconstructionOptions | None = None) -> ReconstructedVolume:
    """
    Reconstructs the initial pressure below a planar sensor with the FFT method.

    Args:
        recording (BoundaryRecording): Canonical (dim1, dim2, time) recording,
            e.g. from `normalize_recording`. Not modified.
        options (ReconstructionOptions, optional): Defaults to `ReconstructionOptions()`.
            `options.axis_order` is not used here since the recording is canonical.

    Returns:
        ReconstructedVolume: Volume of shape (Nt, N1, N2) indexed (depth, dim1, dim2)
        with depth spacing sound_speed * dt, carrying a `ReconstructionDiagnostics`.

    Raises:
        ParameterError: If sound_speed or dt is not strictly positive.
        MemoryBudgetError: If the frequency volume exceeds `options.max_frequency_volume_bytes`.

    Warns:
        NumericalWarning: If more than `options.evanescent_warning_fraction` of the
            frequency samples are evanescent and some of the discarded samples are
            non-zero. The warning is attributed to the caller of this function.
    """
    return _reconstruct(recording, options, stacklevel=3)


def _reconstruct(recording: BoundaryRecording,
                 options: ReconstructionOptions | None,
                 stacklevel: int) -> ReconstructedVolume:
    # stacklevel counts from the warnings.warn call inside this function
    if options is None:
        options = ReconstructionOptions()
    if not isinstance(recording, BoundaryRecording):
        raise TypeError(f"recording must be a BoundaryRecording, got {type(recording).__name__}. "
                        "Use normalize_recording() to build one from a raw array.")

    c = _check_positive_finite('sound_speed', recording.sound_speed)
    dt = _check_positive_finite('dt', recording.dt)
    n1, n2, nt = recording.shape
    method = options.interpolation_method
    device = recording.data.device
    real_dtype = recording.data.dtype

    volume_bytes = estimate_frequency_volume_bytes(recording.shape, real_dtype)
    budget = options.max_frequency_volume_bytes
    if budget is not None and volume_bytes > budget:
        raise MemoryBudgetError(
            f"Frequency volume for a {n1} x {n2} x {nt} recording needs {volume_bytes} bytes, "
            f"above max_frequency_volume_bytes={budget}. Crop or downsample the recording, "
            f"or raise the limit."
        )

    progress = logger.info if options.emit_progress else logger.debug
    progress("Running planar FFT reconstruction on a %d x %d x %d recording (%s interpolation)...",
             n1, n2, nt, method.value)
    start_time = time.perf_counter()

    # (time, dim1, dim2), mirrored about t = 0
    p = mirror_time_axis(recording.data.permute(2, 0, 1), dim=0)
    m = p.shape[0]

    progress("  computing FFT of the mirrored recording (%d x %d x %d)...", m, n1, n2)
    spectrum = centered_fftn(p).cpu().numpy().reshape(m, n1 * n2)

    omega = wavenumber_vector(m, dt)
    k1 = wavenumber_vector(n1, recording.spacing1)
    k2 = wavenumber_vector(n2, recording.spacing2)
    k_perp = np.sqrt(k1[:, None] ** 2 + k2[None, :] ** 2).reshape(-1)
    # depth grid spacing is c * dt, so the kz grid is omega / c
    kz = omega / c

    evanescent = np.abs(omega)[:, None] < c * k_perp[None, :]
    num_discarded = int(evanescent.sum())
    discarded_fraction = num_discarded / evanescent.size
    discards_content = bool(np.any(spectrum[evanescent] != 0))
    spectrum[evanescent] = 0

    progress("  remapping %d columns onto the kz grid (%.1f%% evanescent samples discarded)...",
             n1 * n2, 100.0 * discarded_fraction)
    remapped = _remap_columns(spectrum, omega, kz, k_perp, c, method, options.num_workers)
    remapped *= options.compensation_factor

    progress("  computing inverse FFT...")
    remapped = torch.from_numpy(remapped.reshape(m, n1, n2)).to(device)
    p0 = centered_ifftn(remapped).real
    # drop the mirrored negative-depth half; index nt - 1 is the sensor plane
    p0 = p0[nt - 1:].to(real_dtype).clone()

    elapsed = time.perf_counter() - start_time
    progress("Reconstruction completed in %.3f s.", elapsed)

    if options.positivity:
        p0 = apply_positivity(p0)

    # an all-zero spectrum loses nothing, whatever the geometry
    degraded = discarded_fraction > options.evanescent_warning_fraction and discards_content
    if degraded:
        message = (
            f"{discarded_fraction:.1%} of frequency samples ({num_discarded} of {evanescent.size}) were discarded "
            f"as evanescent, above the {options.evanescent_warning_fraction:.0%} threshold; the reconstruction may be "
            f"degraded. Check the recording duration against the intended depth range and that "
            f"sound_speed * dt ({c * dt:.3e} m) is not large compared with the sensor spacing "
            f"({recording.spacing1:.3e} m, {recording.spacing2:.3e} m)."
        )
        logger.warning(message)
        warnings.warn(message, NumericalWarning, stacklevel=stacklevel)

    diagnostics = ReconstructionDiagnostics(
        elapsed_time=elapsed,
        num_discarded=num_discarded,
        discarded_fraction=discarded_fraction,
        interpolation_method=method,
        frequency_volume_bytes=volume_bytes,
        degraded=degraded,
    )
    return ReconstructedVolume(p0, (c * dt, recording.spacing1, recording.spacing2), diagnostics)


def planar_fft_reconstruction(data,
                              spacing1: float,
                              spacing2: float,
                              dt: float,
                              sound_speed: float,
                              options: ReconstructionOptions | None = None) -> ReconstructedVolume:
    """
    Normalizes a raw sensor array using `options.axis_order` and reconstructs it.

    See `normalize_recording` and `kspace_plane_reconstruction`.
    """
    if options is None:
        options = ReconstructionOptions()
    recording = normalize_recording(data, spacing1, spacing2, dt, sound_speed, axis_order=options.axis_order)
    return _reconstruct(recording, options, stacklevel=3)


class PlanarFFTReconstructor:
    """
    Reconstructor object holding a fixed set of `ReconstructionOptions`.

    Stateless between calls; one instance can serve concurrent reconstructions.
    """
    def __init__(self, options: ReconstructionOptions | None = None, **option_overrides):
        options = options if options is not None else ReconstructionOptions()
        if option_overrides:
            options = options.replace(**option_overrides)
        self.options = options

    def reconstruct(self, recording: BoundaryRecording) -> ReconstructedVolume:
        return _reconstruct(recording, self.options, stacklevel=3)

    def reconstruct_array(self, data, spacing1: float, spacing2: float, dt: float,
                          sound_speed: float) -> ReconstructedVolume:
        recording = normalize_recording(data, spacing1, spacing2, dt, sound_speed,
                                        axis_order=self.options.axis_order)
        return _reconstruct(recording, self.options, stacklevel=3)

    def __repr__(self):
        return f"PlanarFFTReconstructor(options={self.options!r})"
