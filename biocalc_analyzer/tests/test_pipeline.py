"""Tests for request/response orchestration."""

import json
import logging

import pytest

from biocalc.data.libraries import DEFAULT_SHEET_PATH
from biocalc.data.lookup import load_sheet_source
from biocalc.models.coefficients import DEFAULT_COEFFICIENTS
from biocalc.models.pipeline import CalculationRequest, run_calculation


@pytest.fixture
def request_body():
    return {
        "agricultural": {
            "biomassType": "Resíduo de Eucalipto",
            "biomassInputSpecific": "0,0612",
            "transportDistanceKm": "80",
        },
        "industrial": {
            "hasCogeneration": "no",
            "processedBiomassKgPerYear": "12.000.000",
            "gridMixMediumVoltage": "850.000",
            "fuelDieselLitersPerYear": "15.000",
        },
        "distribution": {
            "domesticBiomassQuantityTon": "8.000",
            "domesticTransportDistanceKm": "250",
            "domesticRoadPercent": "100",
            "domesticRoadVehicleType": "Transporte caminhão >32t",
        },
    }


# ---- Request Tests ----

class TestCalculationRequest:
    def test_from_dict(self, request_body):
        request = CalculationRequest.from_dict(request_body)
        assert request.industrial["processedBiomassKgPerYear"] == "12.000.000"
        assert request.processed_biomass_kg is None

    def test_missing_phases(self):
        request = CalculationRequest.from_dict({"industrial": {}})
        assert request.agricultural is None
        assert request.industrial == {}

    def test_roundtrip(self, request_body):
        request = CalculationRequest.from_dict(request_body)
        assert CalculationRequest.from_dict(request.to_dict()) == request

    @pytest.mark.parametrize("body", [[], "x", {"agricultural": "x"}, {"distribution": [1, 2]}])
    def test_malformed(self, body):
        with pytest.raises(ValueError):
            CalculationRequest.from_dict(body)


# ---- Orchestration Tests ----

class TestRunCalculation:
    def test_full_request(self, request_body):
        response = run_calculation(request_body)
        assert response.ok
        assert response.computed.industrial.biomass_mj == pytest.approx(12_000_000 * 16.5)
        assert response.aggregate.cbio.eligible_production_volume_ton == pytest.approx(12_000)
        assert response.is_valid, response.messages

    def test_parallel_matches_sequential(self, request_body):
        sequential = run_calculation(request_body, parallel=False)
        parallel = run_calculation(request_body, parallel=True)
        assert parallel.to_dict() == sequential.to_dict()

    def test_fresh_results_per_call(self, request_body):
        first = run_calculation(request_body)
        second = run_calculation(request_body)
        assert first.aggregate == second.aggregate
        assert first.aggregate is not second.aggregate

    def test_json_roundtrip(self, request_body):
        response = run_calculation(request_body)
        data = json.loads(json.dumps(response.to_dict()))
        assert data["ok"] is True
        assert data["aggregate"]["carbon_intensity"]["total"] == pytest.approx(
            response.aggregate.carbon_intensity.total)
        assert data["computed"]["agricultural"]["assumptions"]["defaulted_fields"] == list(
            response.computed.agricultural.assumptions.defaulted_fields)

    def test_malformed_body(self):
        response = run_calculation({"agricultural": "not an object"})
        assert not response.ok
        assert response.error == "Invalid request body"
        assert "agricultural" in response.details
        assert response.to_dict() == {
            "ok": False,
            "error": "Invalid request body",
            "details": response.details,
        }

    def test_empty_request(self):
        response = run_calculation({})
        assert response.ok
        assert response.aggregate.carbon_intensity.total == 0.0
        assert response.computed.agricultural is None

    def test_validation_is_advisory(self):
        """Invalid forms are reported but still computed."""
        response = run_calculation({"industrial": {"processedBiomassKgPerYear": "1000"}})
        assert response.ok
        assert not response.is_valid
        assert "Industrial: Select the cogeneration option." in response.messages
        assert response.computed.industrial.biomass_mj == pytest.approx(16500)

    def test_coefficients_passed_to_phases(self, request_body):
        coefficients = DEFAULT_COEFFICIENTS.with_overrides(transport_impact_per_tkm=0.1)
        response = run_calculation(request_body, coefficients=coefficients)
        # 8000 t * 250 km * 0.1
        assert response.computed.distribution.domestic_impact_year == pytest.approx(200_000)

    def test_raw_quantity_without_industrial(self):
        response = run_calculation({"processedBiomassKgPerYear": "1.000.000"})
        assert response.aggregate.cbio.eligible_production_volume_ton == pytest.approx(1000)


class TestAutofillOrchestration:
    def test_autofill_applied(self, request_body):
        sheet = load_sheet_source(DEFAULT_SHEET_PATH)
        response = run_calculation(request_body, sheet=sheet, autofill=True)
        agricultural = response.inputs["agricultural"]
        assert agricultural["biomassImpactFactor"] == "5,10E-2"
        assert "biomassProductionImpact" in agricultural
        assert response.aggregate.carbon_intensity.agricultural > 0
        industrial = response.inputs["industrial"]
        assert industrial["biomassCombustionEmissionFactorKgCO2PerKg"] == "5,80E-3"

    def test_autofill_passes_calorific_value(self, request_body):
        sheet = load_sheet_source(DEFAULT_SHEET_PATH)
        response = run_calculation(request_body, sheet=sheet, autofill=True)
        industrial = response.inputs["industrial"]
        assert industrial["electricityImpactFactorKgCO2PerKWh"] == "8,17E-2"
        # 15000 L diesel * 0.52
        assert industrial["fuelProductionImpactKgCO2PerYear"] == "7,80E+3"
        assert "fuelConsumptionImpactKgCO2PerMJ" in industrial
        distribution = response.inputs["distribution"]
        # 8000 t * 250 km * 0.0716 by road
        assert distribution["domesticDistributionImpactKgCO2EqPerYear"] == "1,43E+5"
        # 8000 t * 1000 * 16.3 MJ/kg (calorific value as autofilled)
        assert distribution["domesticMjTransportedPerYear"] == "1,30E+8"

    def test_autofill_off_by_default(self, request_body):
        sheet = load_sheet_source(DEFAULT_SHEET_PATH)
        response = run_calculation(request_body, sheet=sheet)
        assert "biomassImpactFactor" not in response.inputs["agricultural"]

    def test_missing_sheet_skips_autofill(self, request_body, caplog):
        with caplog.at_level(logging.WARNING, logger="biocalc.models.pipeline"):
            response = run_calculation(request_body, autofill=True)
        assert response.ok
        assert "biomassImpactFactor" not in response.inputs["agricultural"]
        assert any("Autofill" in r.message for r in caplog.records)

    def test_request_not_mutated(self, request_body):
        sheet = load_sheet_source(DEFAULT_SHEET_PATH)
        before = json.dumps(request_body, sort_keys=True)
        run_calculation(request_body, sheet=sheet, autofill=True)
        assert json.dumps(request_body, sort_keys=True) == before
