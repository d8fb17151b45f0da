"""Reconstruction options and YAML loading for planar FFT reconstruction."""

import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from pareconlib.exceptions import ParameterError
from .data import AxisOrder

# Half-space recording compensation (sensor only sees one side of the source)
DEFAULT_COMPENSATION_FACTOR = 2.0

# Above this evanescent fraction the result is flagged as degraded
DEFAULT_EVANESCENT_WARNING_FRACTION = 0.5


class InterpolationMethod(Enum):
    LINEAR = 'linear'
    NEAREST = 'nearest'
    CUBIC = 'cubic'

    @classmethod
    def coerce(cls, value) -> 'InterpolationMethod':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                # a leading '*' is tolerated, e.g. '*nearest'
                return cls(value.strip().lower().lstrip('*'))
            except ValueError:
                pass
        raise ParameterError(
            f"Unknown interpolation method {value!r}. Expected one of {[m.value for m in cls]}."
        )


@dataclass(frozen=True)
class ReconstructionOptions:
    """Options for the planar FFT reconstruction.

    Parameters
    ----------
    axis_order : AxisOrder or str, optional
        Physical layout of the caller's array (default: canonical dim1-dim2-time)
    positivity : bool, optional
        Clamp negative voxels to zero after reconstruction (default: False)
    interpolation_method : InterpolationMethod or str, optional
        Per-column remapping from the omega grid onto the kz grid:
        'linear', 'nearest' or 'cubic' (default: 'linear')
    emit_progress : bool, optional
        Log stage progress and the elapsed transform time at INFO (default: False)
    compensation_factor : float, optional
        Scalar applied for one-sided (half-space) recording (default: 2.0)
    evanescent_warning_fraction : float, optional
        Discarded-sample fraction above which a NumericalWarning is raised (default: 0.5)
    num_workers : int, optional
        Threads used for the per-column remapping; 1 runs sequentially (default: 1)
    max_frequency_volume_bytes : int, optional
        Upper bound on the complex frequency volume; None disables the check (default: None)

    Examples
    --------
    >>> options = ReconstructionOptions(positivity=True, interpolation_method='cubic')
    >>> options.replace(num_workers=4).num_workers
    4
    """

    axis_order: AxisOrder = AxisOrder.DIM1_DIM2_TIME
    positivity: bool = False
    interpolation_method: InterpolationMethod = InterpolationMethod.LINEAR
    emit_progress: bool = False

    compensation_factor: float = DEFAULT_COMPENSATION_FACTOR
    evanescent_warning_fraction: float = DEFAULT_EVANESCENT_WARNING_FRACTION
    num_workers: int = 1
    max_frequency_volume_bytes: Optional[int] = None

    def __post_init__(self):
        # frozen dataclass: coerced values go through object.__setattr__
        object.__setattr__(self, 'axis_order', AxisOrder.coerce(self.axis_order))
        object.__setattr__(self, 'interpolation_method', InterpolationMethod.coerce(self.interpolation_method))

        for name in ('positivity', 'emit_progress'):
            if not isinstance(getattr(self, name), bool):
                raise ParameterError(f"{name} must be a bool, got {getattr(self, name)!r}.")

        factor = self.compensation_factor
        if isinstance(factor, bool) or not isinstance(factor, (int, float)) or not math.isfinite(factor) or factor <= 0:
            raise ParameterError(f"compensation_factor must be a finite positive number, got {factor!r}.")

        fraction = self.evanescent_warning_fraction
        if isinstance(fraction, bool) or not isinstance(fraction, (int, float)) or not 0.0 < fraction <= 1.0:
            raise ParameterError(
                f"evanescent_warning_fraction must lie in (0, 1], got {fraction!r}."
            )

        workers = self.num_workers
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ParameterError(f"num_workers must be an integer >= 1, got {workers!r}.")

        budget = self.max_frequency_volume_bytes
        if budget is not None and (isinstance(budget, bool) or not isinstance(budget, int) or budget <= 0):
            raise ParameterError(f"max_frequency_volume_bytes must be a positive integer or None, got {budget!r}.")

    def replace(self, **changes) -> 'ReconstructionOptions':
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        values = dataclasses.asdict(self)
        values['axis_order'] = self.axis_order.value
        values['interpolation_method'] = self.interpolation_method.value
        return values


def options_from_dict(values: Mapping[str, Any]) -> ReconstructionOptions:
    """Builds `ReconstructionOptions` from a plain mapping, rejecting unknown keys."""
    if not isinstance(values, Mapping):
        raise ParameterError(f"Options must be a mapping, got {type(values).__name__}.")
    known = {f.name for f in dataclasses.fields(ReconstructionOptions)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ParameterError(f"Unknown reconstruction option(s) {unknown}. Known options: {sorted(known)}.")
    return ReconstructionOptions(**values)


def load_options(path: Union[str, Path]) -> ReconstructionOptions:
    """Load reconstruction options from a YAML file.

    The mapping may sit at the top level or under a ``reconstruction`` key.
    An empty file yields the defaults.

    Parameters
    ----------
    path : str or Path
        Path to the YAML file.

    Returns
    -------
    ReconstructionOptions
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return ReconstructionOptions()
    if isinstance(raw, dict) and 'reconstruction' in raw:
        raw = raw['reconstruction'] or {}
    return options_from_dict(raw)
