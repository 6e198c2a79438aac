import matplotlib.pyplot as plt
import numpy as np
from scipy.special import erf

from pyoed.biology.response_models import PlateauHallParameters
from pyoed.dosimetry.oed import IntegrationOptions, evaluate_oed
from pyoed.oedtable.core import OEDTable, OEDTableParameters, OrganParameterTable, OrganParameters
from pyoed.utils.interpolation import DoseVolumeCurve

"""
Example usage of pyOED to compute Organ Equivalent Doses from cumulative DVHs.

This script demonstrates how to:
  - Compute the OED of a single organ for one response model.
  - Build an organ parameter table on top of the bundled defaults.
  - Compute a multi-organ report with four runs per model and numerical uncertainties.
  - Print, export and plot the report.
"""


def smooth_step_dvh(mean_dose, spread, max_dose=50.0, step=0.1):
    """Cumulative DVH (in percent) of an organ receiving about `mean_dose` everywhere."""
    dose = np.arange(0.0, max_dose + step, step)
    volume = 50.0 * (1.0 + erf((mean_dose - dose) / spread))
    return dose, volume


def main():

    ## Single organ, single model
    dose, volume = smooth_step_dvh(mean_dose=10.0, spread=1.0)
    curve = DoseVolumeCurve.from_samples(dose, volume)
    options = IntegrationOptions(integration_method="trapz", tolerance=1e-4)
    oed = evaluate_oed("PlateauHall", curve, options, PlateauHallParameters(threshold=35.0))
    print(f"\nPlateauHall OED (threshold 35 Gy): {oed:.4f} Gy")

    ## Organ parameters: bundled defaults plus competition constants for the liver
    organs = dict(OrganParameterTable.from_default())
    organs["Liver"] = OrganParameters(threshold=4.0, alpha=0.487, alpha1=0.487, beta1=0.0487,
                                      alpha2=0.1, beta2=0.01, num_fractions=20)
    params = OEDTableParameters(
        organ_table=OrganParameterTable(organs),
        integration_method="quad",
        tolerance=1e-3,
        response_models=["LNT", "PlateauHall", "LinExp", "Competition"],
    )

    ## Structures as exported from a treatment planning system
    structures = []
    for name, mean_dose in [("Liver", 8.0), ("Lungs", 4.0), ("Colon", 12.0), ("Heart", 6.0)]:
        dose, volume = smooth_step_dvh(mean_dose=mean_dose, spread=2.0)
        structures.append({"structName": name, "dose": dose, "ratioToTotalVolume": volume})
    structures.append({"structName": "Stomach", "dose": [], "ratioToTotalVolume": []})

    ## Multi-organ report
    oed_table = OEDTable(params)
    oed_table.summary()
    oed_table.compute(structures)
    oed_table.display()
    print(oed_table.to_dataframe())

    ## Plot the report using built-in method
    oed_table.plot(models=["LNT", "PlateauHall", "LinExp"], show=False)
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
