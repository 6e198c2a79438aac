import numpy as np
import pytest
from pyoed.exceptions import ShapeMismatchError
from pyoed.utils.interpolation import DoseVolumeCurve, InterpolationMethod, Interpolator, interpolate_dose


@pytest.fixture
def curve():
    dose = np.array([0.0, 10.0, 20.0, 30.0, 40.0])
    volume = np.array([1.0, 0.9, 0.6, 0.2, 0.0])
    return DoseVolumeCurve(dose, volume)


@pytest.mark.parametrize("method", ["pchip", "linear"])
def test_round_trip_at_sample_knots(curve, method):
    interp = Interpolator(curve, method=method)
    np.testing.assert_allclose(interp(curve.volume_fraction), curve.dose, atol=1e-12)


def test_linear_midpoint(curve):
    interp = Interpolator(curve, method="linear")
    assert interp(0.4) == pytest.approx(25.0)


def test_scalar_input_returns_float(curve):
    result = Interpolator(curve)(0.5)
    assert isinstance(result, float)


def test_vector_input_keeps_shape(curve):
    x = np.linspace(0, 1, 12).reshape(3, 4)
    result = Interpolator(curve)(x)
    assert isinstance(result, np.ndarray)
    assert result.shape == (3, 4)


def test_pchip_is_shape_preserving(curve):
    x = np.linspace(0, 1, 2001)
    dose = Interpolator(curve, method="pchip")(x)
    assert np.all(np.diff(dose) <= 1e-12)
    assert dose.min() >= curve.dose.min() - 1e-12
    assert dose.max() <= curve.dose.max() + 1e-12


def test_from_samples_rescales_percent():
    dose = [0.0, 10.0, 20.0]
    fraction = DoseVolumeCurve.from_samples(dose, [1.0, 0.5, 0.0])
    percent = DoseVolumeCurve.from_samples(dose, [100.0, 50.0, 0.0])
    np.testing.assert_allclose(percent.volume_fraction, fraction.volume_fraction)


def test_from_samples_keeps_fractions():
    curve = DoseVolumeCurve.from_samples([0.0, 5.0], [1.0, 0.25])
    np.testing.assert_allclose(curve.volume_fraction, [1.0, 0.25])


def test_clamp_outside_sampled_volume():
    curve = DoseVolumeCurve([0.0, 10.0, 20.0], [1.0, 0.5, 0.1])
    interp = Interpolator(curve, method="linear")
    assert interp(0.05) == pytest.approx(20.0)
    assert interp(0.0) == pytest.approx(20.0)
    assert interp.domain == (0.1, 1.0)


def test_raise_outside_sampled_volume():
    curve = DoseVolumeCurve([0.0, 10.0, 20.0], [1.0, 0.5, 0.1])
    interp = Interpolator(curve, extrapolation="raise")
    with pytest.raises(ValueError, match="out of bounds"):
        interp([0.05, 0.5])


def test_tied_volumes_use_generalized_inverse():
    curve = DoseVolumeCurve([0.0, 5.0, 10.0, 20.0, 30.0], [1.0, 1.0, 0.5, 0.0, 0.0])
    interp = Interpolator(curve, method="linear")
    np.testing.assert_allclose(interp.knots, [0.0, 0.5, 1.0])
    # zero volume keeps the first dose reaching it, full volume the largest dose received by all
    np.testing.assert_allclose(interp.values, [20.0, 10.0, 5.0])


def test_single_volume_value_rejected():
    with pytest.raises(ValueError, match="two distinct"):
        DoseVolumeCurve([0.0, 1.0, 2.0], [1.0, 1.0, 1.0])


def test_invalid_extrapolation():
    curve = DoseVolumeCurve([0.0, 10.0], [1.0, 0.0])
    with pytest.raises(ValueError, match="Invalid extrapolation"):
        Interpolator(curve, extrapolation="extend")


def test_invalid_curve_type():
    with pytest.raises(TypeError):
        Interpolator(([0.0, 1.0], [1.0, 0.0]))


def test_curve_shape_mismatch():
    with pytest.raises(ShapeMismatchError):
        DoseVolumeCurve([0.0, 1.0, 2.0], [1.0, 0.0])


@pytest.mark.parametrize("dose, volume, message", [
    ([1.0], [1.0], "at least two"),
    ([0.0, np.nan], [1.0, 0.0], "NaN"),
    ([0.0, 10.0, 5.0], [1.0, 0.5, 0.0], "non-decreasing"),
    ([0.0, 10.0], [1.5, 0.0], r"\[0, 1\]"),
    ([0.0, 10.0], [1.0, -0.1], r"\[0, 1\]"),
])
def test_curve_validation(dose, volume, message):
    with pytest.raises(ValueError, match=message):
        DoseVolumeCurve(dose, volume)


def test_curve_is_read_only(curve):
    with pytest.raises(ValueError):
        curve.dose[0] = 5.0
    assert len(curve) == 5
    assert "DoseVolumeCurve" in repr(curve)


def test_interpolation_method_from_name():
    assert InterpolationMethod.from_name("PCHIP") is InterpolationMethod.PCHIP
    assert InterpolationMethod.from_name(InterpolationMethod.LINEAR) is InterpolationMethod.LINEAR
    with pytest.raises(ValueError, match="Unsupported interpolation method"):
        InterpolationMethod.from_name("spline")


def test_interpolate_dose_function(curve):
    assert interpolate_dose(curve, 0.6, method="linear") == pytest.approx(20.0)
