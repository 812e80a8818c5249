"""Tests for coefficient sets, the coefficient library and JSON storage."""

import json
import os
import tempfile

import pytest

from biocalc.data.libraries import CoefficientLibrary, load_coefficients_file
from biocalc.data.storage import load_request, save_request, save_response
from biocalc.models.coefficients import DEFAULT_COEFFICIENTS, CoefficientSet, FuelFactors
from biocalc.models.pipeline import CalculationRequest, run_calculation


# ---- Coefficient Set Tests ----

class TestCoefficientSet:
    def test_defaults(self):
        c = CoefficientSet()
        assert c.calorific_mj_per_kg == 16.5
        assert c.fuels.diesel_per_liter == 2.68
        assert c.fossil_reference_intensity == 0.0867
        assert c.market_value_per_cbio == 78.07
        assert c.fossil_references["petroleum_coke"] == 0.12

    def test_with_overrides_is_new_instance(self):
        c = DEFAULT_COEFFICIENTS.with_overrides(calorific_mj_per_kg=18.0)
        assert c.calorific_mj_per_kg == 18.0
        assert DEFAULT_COEFFICIENTS.calorific_mj_per_kg == 16.5

    def test_from_dict_ignores_unknown(self):
        c = CoefficientSet.from_dict({"calorific_mj_per_kg": "17", "unknown": 1})
        assert c.calorific_mj_per_kg == 17.0

    def test_dict_roundtrip(self):
        c = CoefficientSet(fuels=FuelFactors(diesel_per_liter=3.0))
        assert CoefficientSet.from_dict(c.to_dict()) == c

    def test_fossil_references_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_COEFFICIENTS.fossil_references["diesel"] = 999.0
        assert CoefficientSet().fossil_references["diesel"] == 0.0867

    def test_caller_dict_is_copied(self):
        refs = {"coal": 0.1}
        c = CoefficientSet(fossil_references=refs)
        refs["coal"] = 9.0
        assert c.fossil_references["coal"] == 0.1

    def test_hashable(self):
        assert hash(DEFAULT_COEFFICIENTS) == hash(CoefficientSet())
        assert len({DEFAULT_COEFFICIENTS, CoefficientSet()}) == 1

    def test_to_dict_is_plain(self):
        data = DEFAULT_COEFFICIENTS.to_dict()
        assert type(data["fossil_references"]) is dict
        assert json.loads(json.dumps(data))["fossil_references"]["fuel_oil"] == 0.094

    def test_validation(self):
        with pytest.raises(ValueError):
            CoefficientSet(calorific_mj_per_kg=-1)
        with pytest.raises(ValueError):
            CoefficientSet(water_liters_per_kg=0)
        with pytest.raises(ValueError):
            CoefficientSet(market_value_per_cbio=-5)


# ---- Library Tests ----

class TestLibraries:
    def test_library_loads(self):
        lib = CoefficientLibrary()
        names = lib.get_library_names()
        assert "default" in names
        assert "eucalyptus_residue" in names

    def test_default_matches_builtin(self):
        c = CoefficientLibrary().get_coefficients("default")
        assert c == DEFAULT_COEFFICIENTS

    def test_partial_set_keeps_defaults(self):
        c = CoefficientLibrary().get_coefficients("eucalyptus_residue")
        assert c.name == "eucalyptus_residue"
        assert c.calorific_mj_per_kg == 16.33
        assert c.transport_impact_per_tkm == 0.08

    def test_metadata(self):
        meta = CoefficientLibrary().get_library_metadata("default")
        assert set(meta) == {"source", "version", "date_published", "notes"}

    def test_unknown_name(self):
        with pytest.raises(KeyError, match="Available"):
            CoefficientLibrary().get_coefficients("nope")

    def test_skips_malformed_files(self, tmp_path):
        (tmp_path / "bad.json").write_text("{oops", encoding="utf-8")
        (tmp_path / "good.json").write_text(json.dumps({"name": "good", "coefficients": {}}), encoding="utf-8")
        lib = CoefficientLibrary(str(tmp_path))
        assert lib.get_library_names() == ["good"]

    def test_missing_directory(self, tmp_path):
        assert CoefficientLibrary(str(tmp_path / "none")).get_library_names() == []

    def test_load_file_merges_nested(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({
            "coefficients": {
                "fuels": {"diesel_per_liter": 3.1},
                "fossil_references": {"coal": 0.1},
            },
        }), encoding="utf-8")
        c = load_coefficients_file(str(path))
        assert c.name == "custom"
        assert c.fuels.diesel_per_liter == 3.1
        assert c.fuels.lpg_per_kg == 3.0
        assert c.fossil_references["coal"] == 0.1
        assert c.fossil_references["diesel"] == 0.0867


# ---- Save/Load Tests ----

class TestStorage:
    def test_request_roundtrip(self):
        """Save and reload a request, verify data integrity."""
        request = CalculationRequest.from_dict({
            "industrial": {"processedBiomassKgPerYear": "1.000", "hasCogeneration": "no"},
            "distribution": {"domesticRoadVehicleType": "Transporte caminhão leve"},
        })
        with tempfile.NamedTemporaryFile(suffix=".json", delete=False) as f:
            path = f.name

        try:
            save_request(request, path)
            loaded = load_request(path)
            assert loaded == request
        finally:
            os.unlink(path)

    def test_save_response(self, tmp_path):
        response = run_calculation({"industrial": {"processedBiomassKgPerYear": "10000000"}})
        path = tmp_path / "out" / "response.json"
        save_response(response, str(path))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["ok"] is True
        assert data["aggregate"]["cbio"]["eligible_cbios"] == response.aggregate.cbio.eligible_cbios

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_request(str(tmp_path / "missing.json"))

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_request(str(path))

    def test_load_malformed_phase(self, tmp_path):
        path = tmp_path / "bad_phase.json"
        path.write_text(json.dumps({"industrial": 5}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_request(str(path))
