import numpy as np
import pytest
from pyoed.exceptions import UnsupportedModelError
from pyoed.biology.response_models import (
    ResponseModel,
    LNTParameters,
    PlateauHallParameters,
    LinExpParameters,
    CompetitionParameters,
    LinPlatParameters,
    RESPONSE_MODELS,
    lnt,
    plateau_hall,
    lin_exp,
    competition,
    lin_plat,
    resolve_parameters,
    response,
    build_integrand,
)

COMPETITION = CompetitionParameters(alpha1=0.1, beta1=0.01, alpha2=0.05, beta2=0.005, num_fractions=2)


@pytest.mark.parametrize("model, params", [
    ("LNT", None),
    ("PlateauHall", PlateauHallParameters(threshold=4.0)),
    ("LinExp", LinExpParameters(alpha=0.2)),
    ("Competition", COMPETITION),
    ("LinPlat", LinPlatParameters(delta=0.1)),
])
def test_zero_dose_gives_zero_effect(model, params):
    assert response(model, 0.0, params) == pytest.approx(0.0)


def test_registry_covers_every_model():
    assert set(RESPONSE_MODELS) == set(ResponseModel)


def test_lnt_identity():
    d = np.array([0.0, 1.5, 30.0])
    np.testing.assert_array_equal(lnt(d), d)


def test_plateau_hall_capped():
    d = np.array([0.0, 1.0, 4.49, 4.5, 10.0])
    result = plateau_hall(d, PlateauHallParameters())
    np.testing.assert_allclose(result, [0.0, 1.0, 4.49, 4.5, 4.5])


def test_plateau_hall_monotone():
    d = np.linspace(0, 20, 201)
    result = plateau_hall(d, PlateauHallParameters(threshold=7.0))
    assert np.all(np.diff(result) >= 0)
    assert result.max() == 7.0


def test_lin_exp_formula():
    d = np.array([1.0, 2.0, 5.0])
    np.testing.assert_allclose(lin_exp(d, LinExpParameters(alpha=0.3)), d * np.exp(-0.3 * d))


def test_competition_formula():
    d = np.array([0.5, 2.0, 8.0])
    p = COMPETITION
    expected = (d + p.beta1 / p.alpha1 * d**2 / 2) * np.exp(-(p.alpha2 * d + p.beta2 * d**2 / 2))
    np.testing.assert_allclose(competition(d, p), expected)


def test_competition_zero_coefficients_propagate_nan():
    result = competition(np.array([1.0, 2.0]), CompetitionParameters(0.0, 0.0, 0.0, 0.0, 1))
    assert np.all(np.isnan(result))


def test_competition_invalid_fractions():
    with pytest.raises(ValueError, match="num_fractions"):
        CompetitionParameters(0.1, 0.01, 0.05, 0.005, num_fractions=0)


def test_lin_plat_formula():
    d = np.array([1.0, 10.0])
    np.testing.assert_allclose(lin_plat(d, LinPlatParameters(delta=0.2)), (1 - np.exp(-0.2 * d)) / 0.2)


def test_lin_plat_small_delta_tends_to_lnt():
    assert lin_plat(3.0, LinPlatParameters(delta=0.0)) == 3.0
    assert lin_plat(3.0, LinPlatParameters(delta=1e-10)) == pytest.approx(3.0)


def test_from_name():
    assert ResponseModel.from_name("PlateauHall") is ResponseModel.PLATEAU_HALL
    with pytest.raises(UnsupportedModelError, match="Unknown response model"):
        ResponseModel.from_name("Logistic")
    with pytest.raises(ValueError):
        ResponseModel.from_name("lnt")


def test_resolve_parameters_defaults():
    assert resolve_parameters("LNT") == LNTParameters()
    assert resolve_parameters("PlateauHall").threshold == 4.5


def test_resolve_parameters_required():
    with pytest.raises(ValueError, match="requires LinExpParameters"):
        resolve_parameters("LinExp")


def test_resolve_parameters_wrong_type():
    with pytest.raises(TypeError, match="expects CompetitionParameters"):
        resolve_parameters("Competition", LinExpParameters(alpha=0.1))


def test_build_integrand_composes_interpolator():
    integrand = build_integrand("LinExp", lambda v: 2.0 * np.asarray(v), LinExpParameters(alpha=0.5))
    assert integrand(1.0) == pytest.approx(2.0 * np.exp(-1.0))
    np.testing.assert_allclose(integrand(np.array([0.0, 0.5])), [0.0, np.exp(-0.5)])
