import warnings
import numpy as np
import pytest
from scipy.integrate import IntegrationWarning
from scipy.special import erf
from pyoed.biology.response_models import (
    CompetitionParameters,
    LinExpParameters,
    LinPlatParameters,
    PlateauHallParameters,
)
from pyoed.dosimetry.oed import IntegrationOptions, evaluate_oed
from pyoed.exceptions import UnsupportedIntegrationMethodError, UnsupportedModelError
from pyoed.integration.integrators import IntegrationMethod
from pyoed.utils.interpolation import DoseVolumeCurve, InterpolationMethod, Interpolator


@pytest.fixture
def linear_dvh():
    """Uniformly decreasing DVH: D(v) = 10 * (1 - v)."""
    return DoseVolumeCurve([0.0, 10.0], [1.0, 0.0])


@pytest.fixture
def precise():
    return IntegrationOptions(integration_method="quad", tolerance=1e-9)


def test_options_defaults():
    options = IntegrationOptions()
    assert options.integration_method is IntegrationMethod.QUADV
    assert options.tolerance == 1e-6
    assert options.interpolation_method is InterpolationMethod.PCHIP


def test_options_from_dict():
    options = IntegrationOptions.from_dict({"integration_method": "TRAPZ", "interpolation_method": "linear"})
    assert options.integration_method is IntegrationMethod.TRAPZ
    assert options.interpolation_method is InterpolationMethod.LINEAR
    with pytest.raises(ValueError, match="Unrecognized keys"):
        IntegrationOptions.from_dict({"tol": 1e-3})


def test_options_validation():
    with pytest.raises(UnsupportedIntegrationMethodError):
        IntegrationOptions(integration_method="simpson")
    with pytest.raises(ValueError, match="tolerance must be positive"):
        IntegrationOptions(tolerance=0.0)
    with pytest.raises(ValueError, match="Unsupported interpolation method"):
        IntegrationOptions(interpolation_method="cubic")


@pytest.mark.parametrize("method", list(IntegrationMethod))
@pytest.mark.parametrize("kernel", ["pchip", "linear"])
def test_lnt_equals_mean_dose(linear_dvh, method, kernel):
    options = IntegrationOptions(integration_method=method, tolerance=1e-6, interpolation_method=kernel)
    assert evaluate_oed("LNT", linear_dvh, options) == pytest.approx(5.0, abs=1e-4)


def test_plateau_hall(linear_dvh, precise):
    # 0.6 * 4 below the threshold crossing, then 10 * 0.4**2 / 2
    oed = evaluate_oed("PlateauHall", linear_dvh, precise, PlateauHallParameters(threshold=4.0))
    assert oed == pytest.approx(3.2, abs=1e-7)


def test_plateau_hall_default_threshold(linear_dvh, precise):
    assert evaluate_oed("PlateauHall", linear_dvh, precise) == pytest.approx(3.4875, abs=1e-7)


def test_lin_exp(linear_dvh, precise):
    oed = evaluate_oed("LinExp", linear_dvh, precise, LinExpParameters(alpha=0.1))
    assert oed == pytest.approx(10.0 * (1.0 - 2.0 / np.e), rel=1e-7)


def test_lin_plat(linear_dvh, precise):
    oed = evaluate_oed("LinPlat", linear_dvh, precise, LinPlatParameters(delta=0.1))
    assert oed == pytest.approx(10.0 - 10.0 * (1.0 - np.exp(-1.0)), rel=1e-7)


def test_competition_without_cell_killing(linear_dvh, precise):
    params = CompetitionParameters(alpha1=0.1, beta1=0.01, alpha2=0.0, beta2=0.0, num_fractions=2)
    # mean dose plus (beta1 / alpha1) / n times the mean squared dose (100 / 3)
    assert evaluate_oed("Competition", linear_dvh, precise, params) == pytest.approx(5.0 + 0.05 * 100.0 / 3.0)


def test_models_below_lnt(linear_dvh, precise):
    lnt = evaluate_oed("LNT", linear_dvh, precise)
    assert evaluate_oed("PlateauHall", linear_dvh, precise) <= lnt
    assert evaluate_oed("LinExp", linear_dvh, precise, LinExpParameters(alpha=0.5)) <= lnt
    assert evaluate_oed("LinPlat", linear_dvh, precise, LinPlatParameters(delta=0.5)) <= lnt


def test_percent_and_fraction_agree():
    dose = np.linspace(0, 30, 31)
    volume = 1.0 - (dose / 30.0) ** 2
    fraction = DoseVolumeCurve.from_samples(dose, volume)
    percent = DoseVolumeCurve.from_samples(dose, 100.0 * volume)
    for model, params in [("LNT", None), ("LinExp", LinExpParameters(alpha=0.05))]:
        assert evaluate_oed(model, percent, params=params) == pytest.approx(
            evaluate_oed(model, fraction, params=params), abs=1e-6
        )


def test_smooth_step_dvh():
    # DVH of an organ receiving 10 Gy almost uniformly, with saturated tails
    dose = np.arange(0, 501) / 10.0
    volume = (1.0 + erf(10.0 - dose)) / 2.0
    curve = DoseVolumeCurve(dose, volume)
    options = IntegrationOptions(integration_method="trapz", tolerance=1e-3)
    oed = evaluate_oed("PlateauHall", curve, options, PlateauHallParameters(threshold=35.0))
    assert oed == pytest.approx(10.0, abs=0.05)


def test_smooth_step_dvh_lobatto_converges():
    dose = np.arange(0, 501) / 10.0
    curve = DoseVolumeCurve(dose, (1.0 + erf(10.0 - dose)) / 2.0)
    options = IntegrationOptions(integration_method="quadl", tolerance=1e-4)
    with warnings.catch_warnings():
        warnings.simplefilter("error", IntegrationWarning)
        oed = evaluate_oed("PlateauHall", curve, options, PlateauHallParameters(threshold=35.0))
    assert oed == pytest.approx(10.0, abs=0.05)


def test_prebuilt_interpolator_takes_precedence(precise):
    curve = DoseVolumeCurve([0.0, 10.0, 20.0], [1.0, 0.8, 0.0])
    linear = Interpolator(curve, method="linear")
    oed = evaluate_oed("LNT", linear, IntegrationOptions(integration_method="quad", interpolation_method="pchip"))
    # trapezoids under the piecewise linear inverse: 0.8 * (20 + 10) / 2 + 0.2 * 10 / 2
    assert oed == pytest.approx(13.0, abs=1e-5)


def test_unknown_model(linear_dvh):
    with pytest.raises(UnsupportedModelError):
        evaluate_oed("Logistic", linear_dvh)


def test_invalid_curve_type():
    with pytest.raises(TypeError, match="DoseVolumeCurve or an Interpolator"):
        evaluate_oed("LNT", ([0.0, 10.0], [1.0, 0.0]))


def test_mismatched_parameters(linear_dvh):
    with pytest.raises(TypeError):
        evaluate_oed("LinExp", linear_dvh, params=LinPlatParameters(delta=0.1))
    with pytest.raises(ValueError, match="requires LinExpParameters"):
        evaluate_oed("LinExp", linear_dvh)
