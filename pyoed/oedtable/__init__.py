"""
Multi-organ Organ Equivalent Dose (OED) reports.

This subpackage runs every response model on every organ under four
integration/interpolation configurations and aggregates them into a point
estimate and a numerical uncertainty.

After running `compute()`, the report is stored in `self.table`:

.. code-block:: python

    OEDTable.table = {
        "Liver": {
            "LNT": ModelResult(dose=..., dose_uncertainty=...),          # [Gy]
            "PlateauHall": ModelResult(dose=..., dose_uncertainty=...),
            "LinExp": ModelResult(dose=..., dose_uncertainty=...),
            "Competition": ModelResult(dose=..., dose_uncertainty=...),
        },
        ...
    }

Modules
-------

- :mod:`core`:
  Defines :class:`~pyoed.oedtable.core.OrganParameters`,
  :class:`~pyoed.oedtable.core.OrganParameterTable`,
  :class:`~pyoed.oedtable.core.OEDTableParameters` and
  :class:`~pyoed.oedtable.core.OEDTable`.

- :mod:`compute`:
  Provides :meth:`~pyoed.oedtable.compute.compute`, the multi-run engine, and
  :func:`~pyoed.oedtable.compute.calculate_oeds`.

- :mod:`plot`:
  Adds :meth:`~pyoed.oedtable.plot.plot`, a grouped error-bar chart of the report.

Usage
-----

.. code-block:: python

    from pyoed.oedtable import OEDTable, OEDTableParameters

    params = OEDTableParameters(integration_method="quad", tolerance=1e-3)
    oed_table = OEDTable(params)
    oed_table.compute(structures)
    oed_table.display()
    oed_table.plot()
"""

from .core import ModelResult, OEDTable, OEDTableParameters, OrganParameters, OrganParameterTable
from .compute import calculate_oeds
from . import compute  # noqa
from . import plot  # noqa

__all__ = [
    "ModelResult",
    "OEDTable",
    "OEDTableParameters",
    "OrganParameters",
    "OrganParameterTable",
    "calculate_oeds",
]
