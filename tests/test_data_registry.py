import json
import pytest
from pyoed.io.data_registry import load_default_organ_parameters

EXPECTED_ORGANS = {"Stomach", "Colon", "Liver", "Lungs", "Bladder", "Thyroid", "Prostate"}


def test_default_organs():
    organs = load_default_organ_parameters()
    assert set(organs) == EXPECTED_ORGANS
    assert organs["Liver"]["alpha"] == pytest.approx(0.487)
    assert organs["Bladder"]["alpha"] == pytest.approx(1.592)


def test_every_organ_has_model_constants():
    keys = {"threshold", "alpha", "alpha1", "beta1", "alpha2", "beta2", "num_fractions"}
    for name, params in load_default_organ_parameters().items():
        assert keys <= set(params), name
        assert params["threshold"] == 4.0


def test_fallback_to_source_tree(monkeypatch):
    def missing(package):
        raise ModuleNotFoundError(package)
    monkeypatch.setattr("importlib.resources.files", missing)
    assert set(load_default_organ_parameters()) == EXPECTED_ORGANS


def test_invalid_json(monkeypatch, tmp_path):
    broken = tmp_path / "organ_parameters.json"
    broken.write_text("not json")

    class FakeFiles:
        def joinpath(self, name):
            return broken

    monkeypatch.setattr("importlib.resources.files", lambda package: FakeFiles())
    with pytest.raises(json.JSONDecodeError):
        load_default_organ_parameters()
