"""
Plotting utilities for OED reports.

This module defines :meth:`OEDTable.plot`, a grouped bar chart of the OED of
each organ per response model, with the numerical uncertainty as error bars.
"""

from typing import List, Optional, Union
import matplotlib.pyplot as plt
plt.rcParams.update({
    "axes.linewidth": 1.2,
    "axes.labelsize": 16,
    "xtick.labelsize": 14,
    "ytick.labelsize": 14,
    "xtick.major.width": 1.2,
    "ytick.major.width": 1.2,
    "legend.fontsize": 14,
    "axes.titlesize": 16
})
import numpy as np

from pyoed.biology.response_models import ResponseModel

from .core import OEDTable


def plot(
    self: OEDTable,
    models: Optional[List[Union[str, ResponseModel]]] = None,
    *,
    organs: Optional[List[str]] = None,
    ax: Optional[plt.Axes] = None,
    show: Optional[bool] = True
):
    """
    Plot OEDs with uncertainties, grouped by organ.

    :param models: Models to show. If None, all computed models are used.
    :type models: list[str or ResponseModel], optional
    :param organs: Organs to show. If None, all computed organs are used.
    :type organs: list[str], optional
    :param ax: Matplotlib Axes object to draw on. If None, a new figure is created.
    :type ax: Optional[matplotlib.axes.Axes]
    :param show: If True, displays the plot. Set False when embedding or scripting.
    :type show: Optional[bool]

    :returns: The Axes drawn on.
    :rtype: matplotlib.axes.Axes

    :raises RuntimeError: If the table is empty.
    :raises ValueError: If a requested organ or model has no results.
    """
    if not self.table:
        raise RuntimeError("No computed results found. Run `compute()` before plotting.")

    organs = organs or list(self.table.keys())
    missing = [o for o in organs if o not in self.table]
    if missing:
        raise ValueError(f"Organs not found in computed table: {missing}")

    if models is None:
        model_names = [m.value for m in self.params.response_models]
    else:
        model_names = [ResponseModel.from_name(m).value for m in models]
    unknown = [m for m in model_names if m not in self.table[organs[0]]]
    if unknown:
        raise ValueError(f"Models not found in computed table: {unknown}")

    created_fig = False
    if ax is None:
        _, ax = plt.subplots(figsize=(max(6, 1.5 * len(organs)), 5))
        created_fig = True

    x = np.arange(len(organs))
    width = 0.8 / len(model_names)
    for i, model in enumerate(model_names):
        doses = [self.table[o][model].dose for o in organs]
        errors = [self.table[o][model].dose_uncertainty for o in organs]
        ax.bar(x + (i - (len(model_names) - 1) / 2) * width, doses, width,
               yerr=errors, capsize=4, label=model, alpha=0.8)

    ax.set_xticks(x)
    ax.set_xticklabels(organs, rotation=30, ha="right")
    ax.set_ylabel("OED [Gy]")
    ax.set_title(f"Organ Equivalent Dose | {self.params.integration_method.value}, tol={self.params.tolerance:g}")
    ax.grid(True, axis="y", linestyle="--", alpha=0.5)
    ax.legend()

    if show and created_fig:
        plt.tight_layout()
        plt.show()
    return ax


OEDTable.plot = plot
