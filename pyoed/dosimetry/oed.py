"""
Organ Equivalent Dose (OED) for a single organ, model and configuration.

This module defines:

- :class:`IntegrationOptions`: immutable integration and interpolation settings.
- :func:`evaluate_oed`: composes an :class:`~pyoed.utils.interpolation.Interpolator`,
  a response model and an integrator into a scalar dose.

The OED is the integral over the organ volume fraction v in [0, 1] of the
response model applied to the dose D(v) received by at least that fraction::

    OED = ∫₀¹ R(D(v)) dv

Example usage::

    from pyoed.dosimetry.oed import IntegrationOptions, evaluate_oed
    from pyoed.biology.response_models import PlateauHallParameters
    from pyoed.utils.interpolation import DoseVolumeCurve

    curve = DoseVolumeCurve.from_samples(dose, volume)
    options = IntegrationOptions(integration_method="trapz", tolerance=1e-4)
    oed = evaluate_oed("PlateauHall", curve, options, PlateauHallParameters(threshold=35.0))
"""

from dataclasses import dataclass
from typing import Optional, Union

from pyoed.biology.response_models import ResponseModel, ResponseModelParams, build_integrand
from pyoed.integration.integrators import IntegrationMethod, integrate
from pyoed.utils.interpolation import DoseVolumeCurve, InterpolationMethod, Interpolator


@dataclass(frozen=True)
class IntegrationOptions:
    """
    Settings for one OED evaluation.

    :ivar integration_method: Integration scheme. Defaults to 'quadv'.
    :ivar tolerance: Absolute integration tolerance. Defaults to 1e-6.
    :ivar interpolation_method: DVH interpolation kernel. Defaults to 'pchip'.

    String values are converted to the corresponding enums.
    """

    integration_method: IntegrationMethod = IntegrationMethod.QUADV
    tolerance: float = 1e-6
    interpolation_method: InterpolationMethod = InterpolationMethod.PCHIP

    def __post_init__(self):
        """
        :raises UnsupportedIntegrationMethodError: If the integration method is unknown.
        :raises ValueError: If the tolerance is not positive or the kernel is unknown.
        """
        object.__setattr__(self, "integration_method", IntegrationMethod.from_name(self.integration_method))
        object.__setattr__(self, "interpolation_method", InterpolationMethod.from_name(self.interpolation_method))
        if not self.tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}.")

    @classmethod
    def from_dict(cls, config: dict) -> "IntegrationOptions":
        """
        Create IntegrationOptions from a dictionary.

        :raises ValueError: If unknown keys are present.
        """
        extra_keys = set(config.keys()) - set(cls.__dataclass_fields__.keys())
        if extra_keys:
            raise ValueError(f"Unrecognized keys in IntegrationOptions config: {sorted(extra_keys)}")
        return cls(**config)


def evaluate_oed(
    model: Union[str, ResponseModel],
    curve: Union[DoseVolumeCurve, Interpolator],
    options: Optional[IntegrationOptions] = None,
    params: Optional[ResponseModelParams] = None,
) -> float:
    """
    Compute the OED of one organ for one response model.

    :param model: Response model or its name ('LNT', 'PlateauHall', 'LinExp', 'Competition', 'LinPlat').
    :type model: str or ResponseModel
    :param curve: Cumulative DVH, or an Interpolator already built on it. A prebuilt
        Interpolator is used as is and its kernel takes precedence over
        ``options.interpolation_method``.
    :type curve: DoseVolumeCurve or Interpolator
    :param options: Integration settings. Defaults to ``IntegrationOptions()``.
    :type options: IntegrationOptions, optional
    :param params: Parameter bundle for the model. Optional for LNT and PlateauHall.
    :type params: ResponseModelParams, optional

    :returns: OED [Gy].
    :rtype: float

    :raises UnsupportedModelError: If the model is unknown.
    :raises UnsupportedIntegrationMethodError: If the integration method is unknown.
    :raises TypeError: If `params` does not match the model or `curve` has the wrong type.
    :raises NonConvergenceError: If the 'trapz' scheme cannot meet the tolerance.
    """
    model = ResponseModel.from_name(model)
    options = options or IntegrationOptions()

    if isinstance(curve, Interpolator):
        interpolator = curve
    elif isinstance(curve, DoseVolumeCurve):
        interpolator = Interpolator(curve, method=options.interpolation_method)
    else:
        raise TypeError("curve must be a DoseVolumeCurve or an Interpolator.")

    integrand = build_integrand(model, interpolator, params)
    return integrate(integrand, 0.0, 1.0, options.integration_method, options.tolerance)
