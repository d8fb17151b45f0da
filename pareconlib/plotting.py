# pareconlib/plotting.py
"""Module for visualization of planar photoacoustic recordings and reconstructions."""

import numpy as np
import matplotlib.pyplot as plt
import torch


def _to_numpy(array) -> np.ndarray:
    if isinstance(array, torch.Tensor):
        return array.detach().cpu().numpy()
    return np.asarray(array)


def _finish(fig, filename: str = None):
    if filename:
        fig.savefig(filename)
        plt.close(fig)
    else:
        plt.show()


def plot_volume_slices(volume,
                       spacing: tuple[float, float, float] = (1.0, 1.0, 1.0),
                       slice_index: tuple[int, int, int] | None = None,
                       title: str = "Reconstructed Initial Pressure",
                       cmap: str = "gray",
                       plot_scale: tuple[float, float] | None = None,
                       filename: str = None):
    """
    Shows three orthogonal slices through a (depth, dim1, dim2) volume.

    Args:
        volume (torch.Tensor | np.ndarray | ReconstructedVolume): The 3D volume.
            A ReconstructedVolume also supplies its own spacing.
        spacing (tuple[float, float, float], optional): Voxel spacing in metres; axes are labelled in mm.
        slice_index (tuple[int, int, int], optional): Slice through each axis. Defaults to the centre.
        title (str, optional): Figure title.
        cmap (str, optional): Colormap. Defaults to "gray".
        plot_scale (tuple[float, float], optional): (vmin, vmax). Defaults to the data range.
        filename (str, optional): If provided, saves the figure to this path instead of showing.

    Returns:
        matplotlib.figure.Figure: The figure.
    """
    if hasattr(volume, 'volume') and hasattr(volume, 'spacing'):
        spacing = volume.spacing
        volume = volume.volume
    data = _to_numpy(volume)
    if data.ndim != 3:
        raise ValueError(f"volume must be 3D, got shape {data.shape}.")

    if slice_index is None:
        slice_index = tuple(n // 2 for n in data.shape)
    vmin, vmax = plot_scale if plot_scale is not None else (data.min(), data.max())

    extents_mm = [n * d * 1e3 for n, d in zip(data.shape, spacing)]
    d_mm, a_mm, b_mm = extents_mm

    fig, axes = plt.subplots(2, 2, figsize=(10, 10))
    panels = [
        (axes[0, 0], data[slice_index[0], :, :], [0, b_mm, a_mm, 0], 'dim1-dim2 plane'),
        (axes[0, 1], data[:, slice_index[1], :], [0, b_mm, d_mm, 0], 'depth-dim2 plane'),
        (axes[1, 0], data[:, :, slice_index[2]], [0, a_mm, d_mm, 0], 'depth-dim1 plane'),
    ]
    for ax, image, extent, label in panels:
        im = ax.imshow(image, cmap=cmap, vmin=vmin, vmax=vmax, extent=extent, aspect='equal')
        ax.set_title(label)
        fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    axes[1, 0].set_xlabel('(All axes in mm)')
    axes[1, 1].axis('off')
    fig.suptitle(title)
    fig.tight_layout()

    _finish(fig, filename)
    return fig


def plot_recording(recording,
                   time_index: int | None = None,
                   element: tuple[int, int] | None = None,
                   title: str = "Sensor Data",
                   cmap: str = "gray",
                   filename: str = None):
    """
    Shows one time frame over the sensor plane and the time trace of a single element.

    Args:
        recording (BoundaryRecording): Canonical recording.
        time_index (int, optional): Frame to show. Defaults to the frame with the largest peak.
        element (tuple[int, int], optional): Sensor element for the trace. Defaults to the centre.
        title (str, optional): Figure title.
        cmap (str, optional): Colormap for the frame.
        filename (str, optional): If provided, saves the figure to this path instead of showing.

    Returns:
        matplotlib.figure.Figure: The figure.
    """
    data = _to_numpy(recording.data)
    n1, n2, nt = data.shape
    if time_index is None:
        time_index = int(np.argmax(np.abs(data).max(axis=(0, 1))))
    if element is None:
        element = (n1 // 2, n2 // 2)

    fig, (ax_frame, ax_trace) = plt.subplots(1, 2, figsize=(12, 5))
    extent = [0, n2 * recording.spacing2 * 1e3, n1 * recording.spacing1 * 1e3, 0]
    im = ax_frame.imshow(data[:, :, time_index], cmap=cmap, extent=extent)
    ax_frame.set_title(f"t = {time_index * recording.dt * 1e6:.2f} us")
    ax_frame.set_xlabel('dim2 [mm]')
    ax_frame.set_ylabel('dim1 [mm]')
    fig.colorbar(im, ax=ax_frame)

    ax_trace.plot(recording.time_vector * 1e6, data[element[0], element[1], :])
    ax_trace.set_title(f"Element {element}")
    ax_trace.set_xlabel('Time [us]')
    ax_trace.set_ylabel('Pressure')
    fig.suptitle(title)
    fig.tight_layout()

    _finish(fig, filename)
    return fig
