"""
Core classes for multi-organ OED reports.

This module defines:

- :class:`OrganParameters`: response model constants for one organ.
- :class:`OrganParameterTable`: immutable mapping of organ name to parameters.
- :class:`ModelResult`: point estimate and numerical uncertainty of one OED.
- :class:`OEDTableParameters`: configuration of a multi-run OED computation.
- :class:`OEDTable`: computation manager storing the report in ``self.table``.

The computation itself is attached by :mod:`pyoed.oedtable.compute` and the
plotting by :mod:`pyoed.oedtable.plot`.
"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union
import pandas as pd
from tabulate import tabulate

from pyoed.biology.response_models import (
    ResponseModel,
    ResponseModelParams,
    LNTParameters,
    PlateauHallParameters,
    LinExpParameters,
    CompetitionParameters,
    LinPlatParameters,
)
from pyoed.dosimetry.oed import IntegrationOptions
from pyoed.integration.integrators import IntegrationMethod
from pyoed.io.data_registry import load_default_organ_parameters
from pyoed.utils.interpolation import InterpolationMethod

DEFAULT_RESPONSE_MODELS: Tuple[ResponseModel, ...] = (
    ResponseModel.LNT,
    ResponseModel.PLATEAU_HALL,
    ResponseModel.LIN_EXP,
    ResponseModel.COMPETITION,
)

# bundle type and {bundle field: organ field} per model
_BUNDLE_FIELDS = {
    ResponseModel.LNT: (LNTParameters, {}),
    ResponseModel.PLATEAU_HALL: (PlateauHallParameters, {"threshold": "threshold"}),
    ResponseModel.LIN_EXP: (LinExpParameters, {"alpha": "alpha"}),
    ResponseModel.COMPETITION: (
        CompetitionParameters,
        {"alpha1": "alpha1", "beta1": "beta1", "alpha2": "alpha2", "beta2": "beta2",
         "num_fractions": "num_fractions"},
    ),
    ResponseModel.LIN_PLAT: (LinPlatParameters, {"delta": "delta"}),
}


@dataclass(frozen=True)
class OrganParameters:
    """
    Response model constants for one organ.

    :ivar threshold: PlateauHall threshold [Gy].
    :ivar alpha: LinExp cell sterilisation parameter [Gy⁻¹].
    :ivar alpha1: Competition linear induction coefficient [Gy⁻¹].
    :ivar beta1: Competition quadratic induction coefficient [Gy⁻²].
    :ivar alpha2: Competition linear cell-kill coefficient [Gy⁻¹].
    :ivar beta2: Competition quadratic cell-kill coefficient [Gy⁻²].
    :ivar num_fractions: Number of dose fractions for Competition.
    :ivar delta: LinPlat plateau parameter [Gy⁻¹].
    """

    threshold: float = 4.5
    alpha: Optional[float] = None
    alpha1: Optional[float] = None
    beta1: Optional[float] = None
    alpha2: Optional[float] = None
    beta2: Optional[float] = None
    num_fractions: float = 1
    delta: Optional[float] = None

    @classmethod
    def from_dict(cls, config: dict) -> "OrganParameters":
        """
        Create OrganParameters from a dictionary.

        :raises ValueError: If unknown keys are present.
        """
        extra_keys = set(config.keys()) - set(cls.__dataclass_fields__.keys())
        if extra_keys:
            raise ValueError(f"Unrecognized keys in OrganParameters config: {sorted(extra_keys)}")
        return cls(**config)

    def parameters_for(self, model: Union[str, ResponseModel]) -> ResponseModelParams:
        """
        Build the parameter bundle of a response model from this organ's constants.

        :param model: Response model or its name.
        :returns: Parameter bundle for `model`.

        :raises UnsupportedModelError: If the model is unknown.
        :raises ValueError: If a constant required by the model is not set.
        """
        model = ResponseModel.from_name(model)
        bundle, mapping = _BUNDLE_FIELDS[model]
        values = {name: getattr(self, source) for name, source in mapping.items()}
        missing = sorted(mapping[name] for name, value in values.items() if value is None)
        if missing:
            raise ValueError(f"Response model '{model.value}' requires organ parameters {missing}.")
        return bundle(**values)


class OrganParameterTable(Mapping):
    """
    Immutable mapping of organ name to :class:`OrganParameters`.

    Built once and passed explicitly to :class:`OEDTableParameters`.
    """

    def __init__(self, organs: Mapping[str, OrganParameters]):
        """
        :param organs: Organ name to parameters.
        :raises TypeError: If a value is not an OrganParameters instance.
        """
        for name, params in organs.items():
            if not isinstance(params, OrganParameters):
                raise TypeError(f"Parameters for organ '{name}' must be an OrganParameters instance.")
        self._organs = MappingProxyType(dict(organs))

    @classmethod
    def from_dict(cls, config: Mapping[str, Union[dict, OrganParameters]]) -> "OrganParameterTable":
        """Create a table from organ name to parameter dictionaries (or OrganParameters)."""
        return cls({
            name: params if isinstance(params, OrganParameters) else OrganParameters.from_dict(params)
            for name, params in config.items()
        })

    @classmethod
    def from_default(cls) -> "OrganParameterTable":
        """Load the table bundled with pyOED (see :mod:`pyoed.data`)."""
        return cls.from_dict(load_default_organ_parameters())

    def __getitem__(self, name: str) -> OrganParameters:
        return self._organs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._organs)

    def __len__(self) -> int:
        return len(self._organs)

    def __repr__(self):
        return f"<OrganParameterTable organs={list(self._organs)}>"

    def __getstate__(self):
        return dict(self._organs)

    def __setstate__(self, state):
        self._organs = MappingProxyType(dict(state))


@dataclass(frozen=True)
class ModelResult:
    """
    :ivar dose: Point estimate of the OED [Gy].
    :ivar dose_uncertainty: Numerical uncertainty of the OED [Gy].
    """

    dose: float
    dose_uncertainty: float

    def __str__(self):
        return f"{self.dose:g} +/- {self.dose_uncertainty:g}"


OrganResult = Dict[str, ModelResult]
OEDReport = Dict[str, OrganResult]


@dataclass(frozen=True)
class OEDTableParameters:
    """
    Configuration of a multi-organ OED computation.

    :ivar organ_table: Per-organ model constants. Organs absent from the table are ignored.
        Defaults to the bundled table.
    :ivar integration_method: Integration scheme used for every run. Defaults to 'quad'.
    :ivar tolerance: Nominal integration tolerance. Defaults to 1e-3.
    :ivar response_models: Models to evaluate. Defaults to LNT, PlateauHall, LinExp and Competition.

    Each model is evaluated under four configurations: pchip and linear
    interpolation, each at ``tolerance`` and ``10 * tolerance``.
    """

    organ_table: OrganParameterTable = field(default_factory=OrganParameterTable.from_default)
    integration_method: IntegrationMethod = IntegrationMethod.QUAD
    tolerance: float = 1e-3
    response_models: Tuple[ResponseModel, ...] = DEFAULT_RESPONSE_MODELS

    def __post_init__(self):
        """
        Normalize enum fields and validate the configuration.

        :raises TypeError: If `organ_table` is neither an OrganParameterTable nor a dict.
        :raises UnsupportedIntegrationMethodError: If the integration method is unknown.
        :raises UnsupportedModelError: If a response model is unknown.
        :raises ValueError: If the tolerance is not positive or the model list is empty or repeated.
        """
        organ_table = self.organ_table
        if isinstance(organ_table, dict):
            organ_table = OrganParameterTable.from_dict(organ_table)
        if not isinstance(organ_table, OrganParameterTable):
            raise TypeError("organ_table must be an OrganParameterTable or a dict.")
        object.__setattr__(self, "organ_table", organ_table)

        object.__setattr__(self, "integration_method", IntegrationMethod.from_name(self.integration_method))
        if not self.tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}.")

        models = tuple(ResponseModel.from_name(m) for m in self.response_models)
        if not models:
            raise ValueError("At least one response model must be selected.")
        if len(set(models)) != len(models):
            raise ValueError(f"Duplicate response models: {[m.value for m in models]}")
        object.__setattr__(self, "response_models", models)

    @classmethod
    def from_dict(cls, config: dict) -> "OEDTableParameters":
        """
        Create OEDTableParameters from a dictionary.

        :raises ValueError: If unknown keys are present.
        """
        extra_keys = set(config.keys()) - set(cls.__dataclass_fields__.keys())
        if extra_keys:
            raise ValueError(f"Unrecognized keys in OEDTableParameters config: {sorted(extra_keys)}")
        return cls(**config)

    def configurations(self) -> Tuple[IntegrationOptions, ...]:
        """
        The four runs per model, nominal configuration first.

        :returns: (pchip, tol), (linear, tol), (pchip, 10 tol), (linear, 10 tol).
        :rtype: tuple[IntegrationOptions, ...]
        """
        return tuple(
            IntegrationOptions(self.integration_method, tolerance, kernel)
            for tolerance in (self.tolerance, self.tolerance * 10)
            for kernel in (InterpolationMethod.PCHIP, InterpolationMethod.LINEAR)
        )


class OEDTable:
    def __init__(self, parameters: Optional[OEDTableParameters] = None):
        """
        Initialize the OEDTable.

        :param parameters: Computation settings. Defaults to ``OEDTableParameters()``.
        :type parameters: OEDTableParameters, optional
        """
        self.params = parameters or OEDTableParameters()
        self.table: OEDReport = {}
        self.skipped: Dict[str, str] = {}

    def __repr__(self):
        return (f"<OEDTable method={self.params.integration_method.value}, tol={self.params.tolerance:g}, "
                f"organs={len(self.table)}>")

    def summary(self):
        """Print the computation settings and the organ parameter table."""
        p = self.params
        print("\nOEDTable Configuration")
        settings = [
            ("Integration method", p.integration_method.value),
            ("Tolerance", f"{p.tolerance:g}"),
            ("Response models", ", ".join(m.value for m in p.response_models)),
            ("Runs per model", len(p.configurations())),
        ]
        print(tabulate(settings, headers=["Setting", "Value"], tablefmt="fancy_grid"))

        names = [f.name for f in fields(OrganParameters)]
        rows = [[organ] + [getattr(params, n) for n in names] for organ, params in p.organ_table.items()]
        print("\nOrgan parameters:")
        print(tabulate(rows, headers=["Organ"] + names, tablefmt="grid", missingval="-"))

    def get_organ(self, organ: str) -> OrganResult:
        """
        Retrieve the results of one organ.

        :param organ: Organ name as given by the structure's ``structName``.
        :returns: Model name to :class:`ModelResult`.

        :raises ValueError: If no results are available or the organ is not in the report.
        """
        if not self.table:
            raise ValueError("No computed results found. Run 'compute()' first.")
        if organ not in self.table:
            raise ValueError(f"Organ '{organ}' not found in computed table.")
        return self.table[organ]

    def to_dataframe(self) -> pd.DataFrame:
        """
        Flatten the report into a DataFrame.

        :returns: One row per (organ, model) with columns organ, model, dose, dose_uncertainty.
        :rtype: pandas.DataFrame

        :raises ValueError: If no results are available.
        """
        if not self.table:
            raise ValueError("No computed results found. Run 'compute()' first.")
        rows = [
            {"organ": organ, "model": model, "dose": r.dose, "dose_uncertainty": r.dose_uncertainty}
            for organ, results in self.table.items()
            for model, r in results.items()
        ]
        return pd.DataFrame(rows, columns=["organ", "model", "dose", "dose_uncertainty"])

    def display(self):
        """
        Print the computed OEDs, one table per organ, followed by skipped organs.

        :raises ValueError: If no results are available.
        """
        if not self.table:
            raise ValueError("No computed results found. Please run 'compute()' first.")

        print("\n📊 Organ Equivalent Doses:")
        for organ, results in self.table.items():
            print(f"\n🔹 Organ: {organ}")
            rows = [(model, r.dose, r.dose_uncertainty) for model, r in results.items()]
            print(tabulate(rows, headers=["Model", "OED [Gy]", "Uncertainty [Gy]"], tablefmt="fancy_grid"))

        if self.skipped:
            print("\nSkipped organs:")
            print(tabulate(self.skipped.items(), headers=["Organ", "Reason"], tablefmt="grid"))
