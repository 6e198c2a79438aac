"""
Utility submodule for pyOED.

Modules
-------

- :mod:`interpolation`:
  Defines :class:`~pyoed.utils.interpolation.DoseVolumeCurve` and the
  :class:`~pyoed.utils.interpolation.Interpolator` that inverts a cumulative
  DVH into dose as a function of volume fraction (pchip or linear kernels).

- :mod:`parallel`:
  Defines :func:`~pyoed.utils.parallel.optimal_worker_count`, used to size
  the process pool when organs are evaluated in parallel.
"""

from .interpolation import DoseVolumeCurve, InterpolationMethod, Interpolator, interpolate_dose
from .parallel import optimal_worker_count

__all__ = ["DoseVolumeCurve", "InterpolationMethod", "Interpolator", "interpolate_dose", "optimal_worker_count"]
