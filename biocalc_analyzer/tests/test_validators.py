"""Unit tests for the advisory form validators."""

from biocalc.data.validators import (
    validate_agricultural,
    validate_distribution,
    validate_industrial,
    validate_modal_split,
    validate_numeric,
    validate_percentage,
    validate_request,
    validate_selection,
)


class TestFieldValidators:
    def test_selection(self):
        assert validate_selection("Pinus Virgem", "biomass type") == (True, "")
        valid, msg = validate_selection("  ", "biomass type")
        assert not valid
        assert "biomass type" in msg

    def test_numeric_optional(self):
        assert validate_numeric("", "x") == (True, "")
        assert validate_numeric("1.234,5", "x") == (True, "")
        assert not validate_numeric("abc", "x")[0]

    def test_numeric_required(self):
        valid, msg = validate_numeric(None, "Processed biomass quantity", required=True)
        assert not valid
        assert msg == "Processed biomass quantity is required."

    def test_percentage_bounds(self):
        assert validate_percentage("0", "p")[0]
        assert validate_percentage("100", "p")[0]
        assert not validate_percentage("100,5", "p")[0]
        assert not validate_percentage("-1", "p")[0]

    def test_modal_split(self):
        assert validate_modal_split(["30", "20", "50"], "Domestic") == (True, "")
        assert validate_modal_split(["", "", "100"], "Domestic") == (True, "")
        valid, msg = validate_modal_split(["30", "20", "40"], "Domestic")
        assert not valid
        assert "100%" in msg

    def test_blank_road_is_remainder(self):
        assert validate_modal_split(["", "", ""], "Domestic") == (True, "")
        assert validate_modal_split(["30", "", ""], "Domestic") == (True, "")
        # 60 + 60 leaves no room for road; the remainder floors at 0
        assert not validate_modal_split(["60", "60", ""], "Domestic")[0]


class TestAgriculturalValidation:
    def test_valid(self):
        assert validate_agricultural({"biomassType": "Pinus Virgem"}) == (True, [])

    def test_missing_biomass_type(self):
        valid, messages = validate_agricultural({})
        assert not valid
        assert "Select the biomass type." in messages

    def test_specific_input_required_when_declared(self):
        valid, messages = validate_agricultural({"biomassType": "Pinus Virgem", "hasConsumptionInfo": "yes"})
        assert not valid
        assert "Specific biomass input is required." in messages

    def test_invalid_number(self):
        valid, messages = validate_agricultural({"biomassType": "Pinus Virgem", "transportDistanceKm": "far"})
        assert not valid
        assert any("transportDistanceKm" in m for m in messages)

    def test_allocation_out_of_range(self):
        valid, _ = validate_agricultural({"biomassType": "Pinus Virgem", "mutAllocationPercent": "150"})
        assert not valid


class TestIndustrialValidation:
    def test_valid(self):
        assert validate_industrial({"hasCogeneration": "no", "processedBiomassKgPerYear": "1.000"}) == (True, [])

    def test_required_fields(self):
        valid, messages = validate_industrial({})
        assert not valid
        assert "Select the cogeneration option." in messages
        assert "Processed biomass quantity is required." in messages

    def test_invalid_optional_number(self):
        valid, messages = validate_industrial({
            "hasCogeneration": "no",
            "processedBiomassKgPerYear": "1000",
            "gridMixMediumVoltage": "abc",
        })
        assert not valid
        assert messages == ["gridMixMediumVoltage: invalid numeric value."]


class TestDistributionValidation:
    def _domestic(self, **overrides):
        data = {
            "domesticBiomassQuantityTon": "10",
            "domesticTransportDistanceKm": "100",
            "domesticRoadPercent": "100",
            "domesticRoadVehicleType": "Transporte caminhão leve",
        }
        data.update(overrides)
        return data

    def test_valid_domestic_only(self):
        assert validate_distribution(self._domestic()) == (True, [])

    def test_default_route_without_shares(self):
        """No shares given: the calculator ships it all by road."""
        data = {"domesticBiomassQuantityTon": "10", "domesticTransportDistanceKm": "5"}
        assert validate_distribution(data) == (True, [])

    def test_vehicle_required_for_road(self):
        valid, messages = validate_distribution(self._domestic(domesticRoadVehicleType=""))
        assert not valid
        assert any("vehicle" in m for m in messages)

    def test_vehicle_not_required_without_road(self):
        data = self._domestic(domesticRoadPercent="0", domesticRailPercent="100", domesticRoadVehicleType="")
        assert validate_distribution(data) == (True, [])

    def test_shares_must_total_hundred(self):
        valid, _ = validate_distribution(self._domestic(domesticRoadPercent="90"))
        assert not valid

    def test_quantity_required(self):
        valid, messages = validate_distribution(self._domestic(domesticBiomassQuantityTon="0"))
        assert not valid
        assert "Enter the domestic quantity (t)." in messages

    def test_export_checked_when_present(self):
        valid, messages = validate_distribution(self._domestic(exportBiomassQuantityTon="5"))
        assert not valid
        assert any("port" in m for m in messages)

    def test_valid_export(self):
        data = self._domestic(
            exportBiomassQuantityTon="5",
            exportDistanceFactoryToNearestHydroPortKm="50",
            exportDistancePortToForeignMarketKm="9000",
            exportWaterwayPercentToPort="100",
        )
        assert validate_distribution(data) == (True, [])


class TestRequestValidation:
    def test_prefixes_phase(self):
        valid, messages = validate_request({"industrial": {}})
        assert not valid
        assert all(m.startswith("Industrial: ") for m in messages)

    def test_absent_phases_skipped(self):
        assert validate_request({"agricultural": None}) == (True, [])
        assert validate_request(None) == (True, [])
