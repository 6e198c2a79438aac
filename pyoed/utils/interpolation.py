"""
Interpolation utilities for cumulative dose-volume histograms.

This module defines:

- :class:`DoseVolumeCurve`: validated, read-only container for the samples
  of a cumulative DVH (dose on the x-axis, volume fraction on the y-axis).
- :class:`InterpolationMethod`: the supported kernels, ``pchip`` and ``linear``.
- :class:`Interpolator`: the inverse of the cumulative DVH, mapping a volume
  fraction to the dose received by at least that fraction of the organ.

The OED integrands are evaluated on volume fractions in [0, 1], so the
interpolant is built on the inverted curve. Tied volume fractions are collapsed
to a single knot using the generalized inverse ``D(v) = sup{d : V(d) >= v}``,
except at zero volume, where the first dose reaching zero volume is kept.

Examples
--------

>>> curve = DoseVolumeCurve.from_samples([0, 10, 20, 30], [100, 80, 30, 0])
>>> interp = Interpolator(curve, method="pchip")
>>> interp([0.3, 0.8])
array([20., 10.])
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union
import numpy as np
from scipy.interpolate import PchipInterpolator

from pyoed.exceptions import ShapeMismatchError

ArrayLike = Union[float, Sequence[float], np.ndarray]


class InterpolationMethod(str, Enum):
    """Interpolation kernels available for the inverted DVH."""

    PCHIP = "pchip"
    LINEAR = "linear"

    @classmethod
    def from_name(cls, name: Union[str, "InterpolationMethod"]) -> "InterpolationMethod":
        """
        Resolve a kernel from its name (case-insensitive) or return the member unchanged.

        :raises ValueError: If the name is not a supported kernel.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ValueError(
                f"Unsupported interpolation method '{name}'. Choose one of: {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True, eq=False)
class DoseVolumeCurve:
    """
    Samples of a cumulative dose-volume histogram.

    :ivar dose: Dose values [Gy], non-decreasing.
    :ivar volume_fraction: Fraction of the organ volume receiving at least the
        corresponding dose, in [0, 1].

    Both arrays are flattened to 1D float arrays and made read-only.
    """

    dose: np.ndarray
    volume_fraction: np.ndarray

    def __post_init__(self):
        """
        Validate and freeze the sample arrays.

        :raises ShapeMismatchError: If dose and volume fraction differ in length.
        :raises ValueError: If fewer than two samples are given, samples contain NaN,
            dose decreases, or volume fractions fall outside [0, 1]
            or take a single value.
        """
        dose = np.array(self.dose, dtype=float).ravel()
        volume = np.array(self.volume_fraction, dtype=float).ravel()

        if dose.shape != volume.shape:
            raise ShapeMismatchError(
                f"dose and volume_fraction must have the same length, got {dose.size} and {volume.size}."
            )
        if dose.size < 2:
            raise ValueError("A dose-volume curve requires at least two samples.")
        if np.isnan(dose).any() or np.isnan(volume).any():
            raise ValueError("Dose-volume samples must not contain NaN values.")
        if np.any(np.diff(dose) < 0):
            raise ValueError("Dose samples must be non-decreasing.")
        if np.any(volume < 0) or np.any(volume > 1):
            raise ValueError(
                "Volume fractions must lie in [0, 1]. Use DoseVolumeCurve.from_samples() for percentages."
            )
        if np.unique(volume).size < 2:
            raise ValueError("Volume fractions must take at least two distinct values.")

        dose.setflags(write=False)
        volume.setflags(write=False)
        object.__setattr__(self, "dose", dose)
        object.__setattr__(self, "volume_fraction", volume)

    @classmethod
    def from_samples(cls, dose: ArrayLike, volume: ArrayLike) -> "DoseVolumeCurve":
        """
        Build a curve from raw samples, rescaling percentages to fractions.

        If the largest volume value exceeds 1, the volume is assumed to be given
        in percent and all values are divided by 100.

        :param dose: Dose samples [Gy].
        :param volume: Volume samples, as fractions or percentages.
        :returns: Validated curve.
        :rtype: DoseVolumeCurve
        """
        volume = np.asarray(volume, dtype=float)
        if volume.size and np.nanmax(volume) > 1:
            volume = volume / 100.0
        return cls(dose, volume)

    def __len__(self) -> int:
        return self.dose.size

    def __repr__(self):
        return (f"<DoseVolumeCurve n={len(self)}, dose=[{self.dose[0]:g}, {self.dose[-1]:g}] Gy, "
                f"volume=[{self.volume_fraction.min():g}, {self.volume_fraction.max():g}]>")


def _invert_curve(curve: DoseVolumeCurve) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build strictly increasing volume knots and the matching dose values.

    :param curve: Source dose-volume curve.
    :returns: Tuple (volume_knots, dose_values).
    :rtype: tuple[np.ndarray, np.ndarray]
    """
    order = np.lexsort((curve.dose, curve.volume_fraction))
    volume = curve.volume_fraction[order]
    dose = curve.dose[order]

    knots, first = np.unique(volume, return_index=True)
    last = np.append(first[1:] - 1, volume.size - 1)
    values = dose[last]
    if knots[0] == 0.0:
        values[0] = dose[first[0]]
    return knots, values


class Interpolator:
    """
    Continuous dose as a function of volume fraction, built from a cumulative DVH.

    Supports scalar and vectorized evaluation. Arguments outside the sampled
    volume range are clamped to it (``extrapolation="clamp"``) or rejected
    (``extrapolation="raise"``).
    """

    def __init__(
        self,
        curve: DoseVolumeCurve,
        method: Union[str, InterpolationMethod] = InterpolationMethod.PCHIP,
        extrapolation: str = "clamp",
    ):
        """
        Initialize the Interpolator.

        :param curve: Cumulative dose-volume samples.
        :type curve: DoseVolumeCurve
        :param method: Kernel, 'pchip' or 'linear'.
        :type method: str or InterpolationMethod
        :param extrapolation: Out-of-range policy, 'clamp' or 'raise'.
        :type extrapolation: str

        :raises TypeError: If `curve` is not a DoseVolumeCurve.
        :raises ValueError: If the extrapolation policy is unknown.
        """
        if not isinstance(curve, DoseVolumeCurve):
            raise TypeError("curve must be an instance of DoseVolumeCurve.")
        if extrapolation not in ("clamp", "raise"):
            raise ValueError("Invalid extrapolation. Choose 'clamp' or 'raise'.")

        self.curve = curve
        self.method = InterpolationMethod.from_name(method)
        self.extrapolation = extrapolation
        self.knots, self.values = _invert_curve(curve)

        self._pchip = None
        if self.method is InterpolationMethod.PCHIP:
            self._pchip = PchipInterpolator(self.knots, self.values, extrapolate=False)

    @property
    def domain(self) -> Tuple[float, float]:
        """Sampled volume fraction range (min, max)."""
        return float(self.knots[0]), float(self.knots[-1])

    def __repr__(self):
        return f"<Interpolator method={self.method.value}, domain={self.domain}>"

    def __call__(self, volume_fraction: ArrayLike) -> Union[float, np.ndarray]:
        """
        Evaluate the dose at one or more volume fractions.

        :param volume_fraction: Volume fraction(s) in [0, 1].
        :type volume_fraction: float or array-like
        :returns: Dose value(s) [Gy], a float for scalar input, else an array of the input shape.
        :rtype: float or np.ndarray

        :raises ValueError: If ``extrapolation="raise"`` and any input is out of bounds.
        """
        x = np.asarray(volume_fraction, dtype=float)
        scalar = x.ndim == 0
        x = np.atleast_1d(x)

        low, high = self.knots[0], self.knots[-1]
        out_of_bounds = (x < low) | (x > high)
        if np.any(out_of_bounds):
            if self.extrapolation == "raise":
                raise ValueError(f"Volume fraction(s) {x[out_of_bounds]} are out of bounds: [{low}, {high}].")
            x = np.clip(x, low, high)

        if self._pchip is not None:
            dose = self._pchip(x)
        else:
            dose = np.interp(x, self.knots, self.values)

        return float(dose[0]) if scalar else dose


def interpolate_dose(
    curve: DoseVolumeCurve,
    volume_fraction: ArrayLike,
    method: Union[str, InterpolationMethod] = InterpolationMethod.PCHIP,
) -> Union[float, np.ndarray]:
    """
    One-shot evaluation of the inverted DVH.

    Builds a clamping :class:`Interpolator` and evaluates it. Prefer building the
    Interpolator once when evaluating repeatedly.
    """
    return Interpolator(curve, method=method)(volume_fraction)
