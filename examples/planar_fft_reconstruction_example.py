import logging
import torch
import sys
import os

# Ensure pareconlib is in the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pareconlib import setup_logging
from pareconlib.modalities.photoacoustic import (
    AxisOrder,
    ReconstructionOptions,
    normalize_recording,
    planar_fft_reconstruction,
)
from pareconlib.modalities.photoacoustic.utils import gaussian_source_recording, make_ball
from pareconlib.plotting import plot_recording, plot_volume_slices


def main():
    setup_logging(logging.INFO)

    # 1. Geometry: 64 x 64 sensor plane, 0.1 mm pitch, 40 MHz sampling
    sound_speed = 1500.0       # [m/s]
    dx = 0.1e-3                # [m]
    dt = 1 / 40e6              # [s]
    n1, n2, nt = 64, 64, 256

    # 2. Synthetic recording: three Gaussian absorbers at different depths
    sources = [
        (1.5e-3, 3.2e-3, 3.2e-3),
        (2.5e-3, 2.0e-3, 4.0e-3),
        (4.0e-3, 4.5e-3, 2.0e-3),
    ]
    amplitudes = [10.0, 6.0, 8.0]
    sigma = 1.5 * dx
    sensor_data = gaussian_source_recording(sources, amplitudes, sigma=sigma,
                                            sensor_shape=(n1, n2), spacing1=dx, spacing2=dx,
                                            dt=dt, n_time=nt, sound_speed=sound_speed)

    # Recordings often arrive as (dim2, dim1, time); the axis order tag undoes that
    raw = sensor_data.transpose(0, 1).numpy()
    options = ReconstructionOptions(
        axis_order=AxisOrder.DIM2_DIM1_TIME,
        positivity=True,
        interpolation_method='linear',
        emit_progress=True,
        num_workers=4,
    )

    # 3. Reconstruction
    result = planar_fft_reconstruction(raw, dx, dx, dt, sound_speed, options)
    diagnostics = result.diagnostics
    print(f"Reconstructed volume: {result.shape}, voxel spacing {tuple(s * 1e3 for s in result.spacing)} mm")
    print(f"Transform time: {diagnostics.elapsed_time:.3f} s, "
          f"evanescent samples discarded: {diagnostics.discarded_fraction:.1%}")

    for (depth, pos1, pos2), amplitude in zip(sources, amplitudes):
        i, j = int(round(pos1 / dx)), int(round(pos2 / dx))
        profile = result.volume[:, i, j]
        peak = int(torch.argmax(profile))
        print(f"  source at depth {depth * 1e3:.2f} mm (p0 = {amplitude}): "
              f"peak at {result.depth_vector[peak] * 1e3:.2f} mm, value {profile[peak].item():.2f}")

    # 4. Reference phantom on the reconstruction grid: one ball of radius 2 sigma per source
    depth_step = result.spacing[0]
    reference = sum(
        make_ball(result.shape, (depth / depth_step, pos1 / dx, pos2 / dx), 2 * sigma,
                  magnitude=amplitude, spacing=result.spacing)
        for (depth, pos1, pos2), amplitude in zip(sources, amplitudes)
    )

    # 5. Visualization
    recording = normalize_recording(raw, dx, dx, dt, sound_speed, axis_order=options.axis_order)
    slice_index = (int(round(sources[0][0] / depth_step)), n1 // 2, n2 // 2)
    plot_recording(recording)
    plot_volume_slices(reference, spacing=result.spacing, slice_index=slice_index,
                       title="Reference Phantom")
    plot_volume_slices(result, slice_index=slice_index)


if __name__ == "__main__":
    main()
