"""
Dose-response models for the Organ Equivalent Dose.

Each model converts a dose d [Gy] into a biologically weighted effect density:

- LNT: linear-no-threshold, ``d``
- PlateauHall: linear up to a threshold, then constant (Hall, 2006)
- LinExp: linear-exponential cell-kill, ``d * exp(-alpha * d)``
- Competition: induction and cell-kill competition over ``n`` fractions
- LinPlat: linear-plateau, ``(1 - exp(-delta * d)) / delta``

The functions are pure and vectorized: they accept floats or numpy arrays.
Bad parameters (e.g. ``alpha1 = 0`` in Competition) yield NaN or Inf, which are
propagated to the caller unchanged.

Each model has its own frozen parameter bundle, and :data:`RESPONSE_MODELS`
maps every :class:`ResponseModel` member to its function and bundle type.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Union
import numpy as np

from pyoed.exceptions import UnsupportedModelError

ArrayLike = Union[float, np.ndarray]


class ResponseModel(str, Enum):
    """Supported dose-response models."""

    LNT = "LNT"
    PLATEAU_HALL = "PlateauHall"
    LIN_EXP = "LinExp"
    COMPETITION = "Competition"
    LIN_PLAT = "LinPlat"

    @classmethod
    def from_name(cls, name: Union[str, "ResponseModel"]) -> "ResponseModel":
        """
        Resolve a model from its name (e.g. 'PlateauHall') or return the member unchanged.

        :raises UnsupportedModelError: If the name does not match any model.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedModelError(
                f"Unknown response model type '{name}'. Choose one of: {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True)
class LNTParameters:
    """LNT takes no parameters."""


@dataclass(frozen=True)
class PlateauHallParameters:
    """
    :ivar threshold: Dose [Gy] above which the effect stays constant.
    """

    threshold: float = 4.5


@dataclass(frozen=True)
class LinExpParameters:
    """
    :ivar alpha: Organ-specific cell sterilisation parameter [Gy⁻¹].
    """

    alpha: float


@dataclass(frozen=True)
class CompetitionParameters:
    """
    :ivar alpha1: Linear induction coefficient [Gy⁻¹].
    :ivar beta1: Quadratic induction coefficient [Gy⁻²].
    :ivar alpha2: Linear cell-kill coefficient [Gy⁻¹].
    :ivar beta2: Quadratic cell-kill coefficient [Gy⁻²].
    :ivar num_fractions: Number of dose fractions n.
    """

    alpha1: float
    beta1: float
    alpha2: float
    beta2: float
    num_fractions: float = 1

    def __post_init__(self):
        if self.num_fractions <= 0:
            raise ValueError("num_fractions must be positive.")


@dataclass(frozen=True)
class LinPlatParameters:
    """
    :ivar delta: Plateau parameter [Gy⁻¹]. The model reduces to LNT for delta = 0.
    """

    delta: float


ResponseModelParams = Union[
    LNTParameters, PlateauHallParameters, LinExpParameters, CompetitionParameters, LinPlatParameters
]


def lnt(dose: ArrayLike, params: Optional[LNTParameters] = None) -> ArrayLike:
    return dose


def plateau_hall(dose: ArrayLike, params: PlateauHallParameters) -> ArrayLike:
    """Dose below the threshold, the threshold itself above it."""
    threshold = params.threshold
    return np.where(dose < threshold, dose, threshold)


def lin_exp(dose: ArrayLike, params: LinExpParameters) -> ArrayLike:
    return dose * np.exp(-params.alpha * dose)


def competition(dose: ArrayLike, params: CompetitionParameters) -> ArrayLike:
    """
    Competition between induction (alpha1, beta1) and cell kill (alpha2, beta2)
    for a treatment delivered in ``num_fractions`` fractions.
    """
    p = params
    n = p.num_fractions
    with np.errstate(divide="ignore", invalid="ignore"):
        induction = dose + np.divide(p.beta1, p.alpha1) * dose**2 / n
    return induction * np.exp(-(p.alpha2 * dose + p.beta2 * dose**2 / n))


def lin_plat(dose: ArrayLike, params: LinPlatParameters) -> ArrayLike:
    delta = params.delta
    if delta == 0:
        return dose
    return -np.expm1(-delta * dose) / delta


@dataclass(frozen=True)
class ResponseModelSpec:
    """
    Registry entry binding a response function to its parameter bundle.

    :ivar function: Callable ``(dose, params) -> effect density``.
    :ivar parameters: Parameter bundle type expected by the function.
    :ivar default_parameters: Bundle used when none is given, or None when parameters are required.
    """

    function: Callable[[ArrayLike, ResponseModelParams], ArrayLike]
    parameters: type
    default_parameters: Optional[ResponseModelParams] = None


RESPONSE_MODELS: Dict[ResponseModel, ResponseModelSpec] = {
    ResponseModel.LNT: ResponseModelSpec(lnt, LNTParameters, LNTParameters()),
    ResponseModel.PLATEAU_HALL: ResponseModelSpec(plateau_hall, PlateauHallParameters, PlateauHallParameters()),
    ResponseModel.LIN_EXP: ResponseModelSpec(lin_exp, LinExpParameters),
    ResponseModel.COMPETITION: ResponseModelSpec(competition, CompetitionParameters),
    ResponseModel.LIN_PLAT: ResponseModelSpec(lin_plat, LinPlatParameters),
}


def resolve_parameters(
    model: Union[str, ResponseModel], params: Optional[ResponseModelParams] = None
) -> ResponseModelParams:
    """
    Check a parameter bundle against a model, falling back to the model defaults.

    :param model: Response model or its name.
    :param params: Parameter bundle, or None to use the default bundle.
    :returns: The bundle to use.

    :raises UnsupportedModelError: If the model is unknown.
    :raises ValueError: If the model requires parameters and none are given.
    :raises TypeError: If the bundle type does not match the model.
    """
    model = ResponseModel.from_name(model)
    spec = RESPONSE_MODELS[model]

    if params is None:
        if spec.default_parameters is None:
            raise ValueError(f"Response model '{model.value}' requires {spec.parameters.__name__}.")
        return spec.default_parameters

    if not isinstance(params, spec.parameters):
        raise TypeError(
            f"Response model '{model.value}' expects {spec.parameters.__name__}, got {type(params).__name__}."
        )
    return params


def response(
    model: Union[str, ResponseModel], dose: ArrayLike, params: Optional[ResponseModelParams] = None
) -> ArrayLike:
    """
    Evaluate a response model on dose values.

    :param model: Response model or its name.
    :param dose: Dose value(s) [Gy].
    :param params: Parameter bundle matching the model.
    :returns: Effect density, same shape as `dose`.
    """
    model = ResponseModel.from_name(model)
    params = resolve_parameters(model, params)
    return RESPONSE_MODELS[model].function(dose, params)


def build_integrand(
    model: Union[str, ResponseModel],
    interpolator: Callable[[ArrayLike], ArrayLike],
    params: Optional[ResponseModelParams] = None,
) -> Callable[[ArrayLike], ArrayLike]:
    """
    Compose an interpolated DVH with a response model.

    :param model: Response model or its name.
    :param interpolator: Callable mapping volume fraction to dose, typically an
        :class:`~pyoed.utils.interpolation.Interpolator`.
    :param params: Parameter bundle matching the model.
    :returns: Integrand ``f(volume_fraction) -> effect density``.
    """
    model = ResponseModel.from_name(model)
    params = resolve_parameters(model, params)
    function = RESPONSE_MODELS[model].function

    def integrand(volume_fraction: ArrayLike) -> ArrayLike:
        return function(interpolator(volume_fraction), params)

    return integrand
