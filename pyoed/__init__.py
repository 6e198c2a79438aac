"""
pyOED: Organ Equivalent Dose from cumulative dose-volume histograms.

pyOED integrates dose-response models over the inverted cumulative DVH of an
organ to obtain a single risk-comparable dose. It supports:

- Linear-no-threshold (LNT), plateau (PlateauHall), linear-exponential (LinExp),
  competition (Competition) and linear-plateau (LinPlat) response models
- Shape-preserving cubic (pchip) and linear DVH interpolation
- QUADPACK, Gauss-Kronrod, Gauss-Lobatto and adaptive trapezoidal integration
- Multi-run reports with a numerical uncertainty estimate per organ and model

Main subpackages
----------------

- :mod:`pyoed.utils`: DVH curves, interpolation and worker sizing.
- :mod:`pyoed.biology`: Dose-response models and their parameters.
- :mod:`pyoed.integration`: Numerical integration schemes.
- :mod:`pyoed.dosimetry`: Single OED evaluation.
- :mod:`pyoed.oedtable`: Multi-organ, multi-run OED reports.
- :mod:`pyoed.io`: Bundled organ parameter table.

pyOED is intended for researchers comparing second cancer risk estimates
between radiotherapy treatment plans.
"""

from .utils import DoseVolumeCurve, Interpolator
from .biology import ResponseModel
from .integration import IntegrationMethod, integrate
from .dosimetry import IntegrationOptions, evaluate_oed
from .oedtable import OEDTable, OEDTableParameters, OrganParameterTable, calculate_oeds

__all__ = [
    "DoseVolumeCurve",
    "Interpolator",
    "ResponseModel",
    "IntegrationMethod",
    "integrate",
    "IntegrationOptions",
    "evaluate_oed",
    "OEDTable",
    "OEDTableParameters",
    "OrganParameterTable",
    "calculate_oeds",
]
