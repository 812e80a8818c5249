"""Phase input records for BioCalc Analyzer.

Inputs arrive as flat, string-keyed mappings of form values (camelCase
keys, comma-decimal strings). Each phase record parses its numeric
fields exactly once into ``NumericEntry`` values; calculators then pick a
default for any entry that is missing or unparseable.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from biocalc.utils.numbers import parse_locale_number


@dataclass(frozen=True)
class NumericEntry:
    """A numeric form field: the raw text plus its parsed value.

    Attributes:
        raw: Text as submitted, or None when the field was absent.
        value: Parsed float, or None when raw is absent or invalid.
    """

    raw: Optional[str] = None
    value: Optional[float] = None

    @classmethod
    def parse(cls, raw) -> "NumericEntry":
        text = raw if isinstance(raw, str) else None
        return cls(raw=text, value=parse_locale_number(raw, None))

    @classmethod
    def of(cls, value: float) -> "NumericEntry":
        """Build an entry from an already-numeric value."""
        return cls(raw=None, value=float(value))

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def resolve(self, default: float) -> float:
        return default if self.value is None else self.value


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


class _PhaseInput:
    """Shared parsing for the phase input dataclasses.

    Subclasses declare ``NUMERIC_FIELDS`` and ``TEXT_FIELDS`` as
    {attribute: form key} maps.
    """

    NUMERIC_FIELDS: Dict[str, str] = {}
    TEXT_FIELDS: Dict[str, str] = {}

    @classmethod
    def from_dict(cls, data: Optional[dict]):
        data = dict(data or {})
        kwargs = {}
        for attr, key in cls.NUMERIC_FIELDS.items():
            kwargs[attr] = NumericEntry.parse(data.get(key))
        for attr, key in cls.TEXT_FIELDS.items():
            kwargs[attr] = _text(data, key)
        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = {}
        for attr, key in self.TEXT_FIELDS.items():
            value = getattr(self, attr)
            if value:
                data[key] = value
        for attr, key in self.NUMERIC_FIELDS.items():
            entry = getattr(self, attr)
            if entry.raw is not None:
                data[key] = entry.raw
        return data

    @classmethod
    def field_key(cls, attr: str) -> str:
        """Return the form key for an attribute name."""
        return cls.NUMERIC_FIELDS.get(attr) or cls.TEXT_FIELDS[attr]


@dataclass(frozen=True)
class AgriculturalInput(_PhaseInput):
    """Agricultural phase: biomass cultivation, land-use change, transport.

    Attributes:
        biomass_type: Selected biomass (e.g., "Resíduo de Pinus").
        biomass_production_state: State code of the biomass origin.
        cultivation_type: Cultivation practice selection.
        wood_residue_lifecycle_stage: Residue origin stage, for wood residues.
        transport_vehicle_type: Vehicle used to haul biomass to the plant.
        biomass_input_specific: Biomass consumed per MJ of pellet (kg/MJ).
        biomass_impact_factor: Override impact factor (kg CO2e/kg).
        biomass_calorific_value: Override calorific value (MJ/kg).
        corn_starch_input: Corn starch binder consumed (kg/MJ).
        corn_starch_impact: Corn starch contribution (kg CO2e/MJ).
        biomass_production_impact: Production impact result (kg CO2e/MJ).
        mut_impact_factor: Land-use-change factor (kg CO2e/kg).
        mut_allocation_percent: Share of land-use change allocated (%).
        mut_impact_result: Land-use-change result (kg CO2e/MJ).
        transport_distance_km: Distance from field to plant (km).
        average_biomass_per_vehicle_ton: Average load per trip (t).
        transport_impact_result: Transport result (kg CO2e/MJ).
    """

    NUMERIC_FIELDS = {
        "biomass_input_specific": "biomassInputSpecific",
        "biomass_impact_factor": "biomassImpactFactor",
        "biomass_calorific_value": "biomassCalorificValue",
        "corn_starch_input": "cornStarchInput",
        "corn_starch_impact": "cornStarchImpact",
        "biomass_production_impact": "biomassProductionImpact",
        "mut_impact_factor": "mutImpactFactor",
        "mut_allocation_percent": "mutAllocationPercent",
        "mut_impact_result": "mutImpactResult",
        "transport_distance_km": "transportDistanceKm",
        "average_biomass_per_vehicle_ton": "averageBiomassPerVehicleTon",
        "transport_impact_result": "transportImpactResult",
    }
    TEXT_FIELDS = {
        "biomass_type": "biomassType",
        "biomass_production_state": "biomassProductionState",
        "cultivation_type": "cultivationType",
        "wood_residue_lifecycle_stage": "woodResidueLifecycleStage",
        "transport_vehicle_type": "transportVehicleType",
    }

    biomass_type: str = ""
    biomass_production_state: str = ""
    cultivation_type: str = ""
    wood_residue_lifecycle_stage: str = ""
    transport_vehicle_type: str = ""
    biomass_input_specific: NumericEntry = field(default_factory=NumericEntry)
    biomass_impact_factor: NumericEntry = field(default_factory=NumericEntry)
    biomass_calorific_value: NumericEntry = field(default_factory=NumericEntry)
    corn_starch_input: NumericEntry = field(default_factory=NumericEntry)
    corn_starch_impact: NumericEntry = field(default_factory=NumericEntry)
    biomass_production_impact: NumericEntry = field(default_factory=NumericEntry)
    mut_impact_factor: NumericEntry = field(default_factory=NumericEntry)
    mut_allocation_percent: NumericEntry = field(default_factory=NumericEntry)
    mut_impact_result: NumericEntry = field(default_factory=NumericEntry)
    transport_distance_km: NumericEntry = field(default_factory=NumericEntry)
    average_biomass_per_vehicle_ton: NumericEntry = field(default_factory=NumericEntry)
    transport_impact_result: NumericEntry = field(default_factory=NumericEntry)


@dataclass(frozen=True)
class IndustrialInput(_PhaseInput):
    """Industrial phase: processing, drying and densification.

    Quantities are annual. Electricity sources are in kWh/year; fuels in
    their commercial units (liters, Nm3, kg).
    """

    NUMERIC_FIELDS = {
        "processed_biomass_kg_per_year": "processedBiomassKgPerYear",
        "cogeneration_biomass_kg_per_year": "biomassConsumedInCogenerationKgPerYear",
        "grid_medium_voltage_kwh": "gridMixMediumVoltage",
        "grid_high_voltage_kwh": "gridMixHighVoltage",
        "small_hydro_kwh": "electricityPCH",
        "biomass_electricity_kwh": "electricityBiomass",
        "diesel_electricity_kwh": "electricityDiesel",
        "solar_kwh": "electricitySolar",
        "electricity_impact_factor": "electricityImpactFactorKgCO2PerKWh",
        "diesel_liters": "fuelDieselLitersPerYear",
        "natural_gas_nm3": "fuelNaturalGasNm3PerYear",
        "lpg_kg": "fuelLPGKgPerYear",
        "gasoline_liters": "fuelGasolineALitersPerYear",
        "ethanol_anhydrous_liters": "fuelEthanolAnhydrousLitersPerYear",
        "ethanol_hydrated_liters": "fuelEthanolHydratedLitersPerYear",
        "wood_chips_kg": "fuelWoodChipsKgPerYear",
        "firewood_kg": "fuelFirewoodKgPerYear",
        "cogeneration_emission_factor": "biomassCombustionEmissionFactorKgCO2PerKg",
        "water_liters": "waterLitersPerYear",
        "lubricant_oil_kg": "lubricantOilKgPerYear",
        "silica_sand_kg": "silicaSandKgPerYear",
    }
    TEXT_FIELDS = {
        "has_cogeneration": "hasCogeneration",
    }

    has_cogeneration: str = ""
    processed_biomass_kg_per_year: NumericEntry = field(default_factory=NumericEntry)
    cogeneration_biomass_kg_per_year: NumericEntry = field(default_factory=NumericEntry)
    grid_medium_voltage_kwh: NumericEntry = field(default_factory=NumericEntry)
    grid_high_voltage_kwh: NumericEntry = field(default_factory=NumericEntry)
    small_hydro_kwh: NumericEntry = field(default_factory=NumericEntry)
    biomass_electricity_kwh: NumericEntry = field(default_factory=NumericEntry)
    diesel_electricity_kwh: NumericEntry = field(default_factory=NumericEntry)
    solar_kwh: NumericEntry = field(default_factory=NumericEntry)
    electricity_impact_factor: NumericEntry = field(default_factory=NumericEntry)
    diesel_liters: NumericEntry = field(default_factory=NumericEntry)
    natural_gas_nm3: NumericEntry = field(default_factory=NumericEntry)
    lpg_kg: NumericEntry = field(default_factory=NumericEntry)
    gasoline_liters: NumericEntry = field(default_factory=NumericEntry)
    ethanol_anhydrous_liters: NumericEntry = field(default_factory=NumericEntry)
    ethanol_hydrated_liters: NumericEntry = field(default_factory=NumericEntry)
    wood_chips_kg: NumericEntry = field(default_factory=NumericEntry)
    firewood_kg: NumericEntry = field(default_factory=NumericEntry)
    cogeneration_emission_factor: NumericEntry = field(default_factory=NumericEntry)
    water_liters: NumericEntry = field(default_factory=NumericEntry)
    lubricant_oil_kg: NumericEntry = field(default_factory=NumericEntry)
    silica_sand_kg: NumericEntry = field(default_factory=NumericEntry)

    @property
    def electricity_kwh_fields(self):
        return (
            self.grid_medium_voltage_kwh,
            self.grid_high_voltage_kwh,
            self.small_hydro_kwh,
            self.biomass_electricity_kwh,
            self.diesel_electricity_kwh,
            self.solar_kwh,
        )


@dataclass(frozen=True)
class DistributionInput(_PhaseInput):
    """Distribution phase: domestic shipping and export to a foreign market."""

    NUMERIC_FIELDS = {
        "domestic_quantity_ton": "domesticBiomassQuantityTon",
        "domestic_distance_km": "domesticTransportDistanceKm",
        "domestic_rail_percent": "domesticRailPercent",
        "domestic_waterway_percent": "domesticWaterwayPercent",
        "domestic_road_percent": "domesticRoadPercent",
        "export_quantity_ton": "exportBiomassQuantityTon",
        "export_factory_to_port_km": "exportDistanceFactoryToNearestHydroPortKm",
        "export_rail_percent_to_port": "exportRailPercentToPort",
        "export_waterway_percent_to_port": "exportWaterwayPercentToPort",
        "export_road_percent_to_port": "exportRoadPercentToPort",
        "export_port_to_market_km": "exportDistancePortToForeignMarketKm",
    }
    TEXT_FIELDS = {
        "domestic_road_vehicle_type": "domesticRoadVehicleType",
        "export_road_vehicle_type_to_port": "exportRoadVehicleTypeToPort",
    }

    domestic_road_vehicle_type: str = ""
    export_road_vehicle_type_to_port: str = ""
    domestic_quantity_ton: NumericEntry = field(default_factory=NumericEntry)
    domestic_distance_km: NumericEntry = field(default_factory=NumericEntry)
    domestic_rail_percent: NumericEntry = field(default_factory=NumericEntry)
    domestic_waterway_percent: NumericEntry = field(default_factory=NumericEntry)
    domestic_road_percent: NumericEntry = field(default_factory=NumericEntry)
    export_quantity_ton: NumericEntry = field(default_factory=NumericEntry)
    export_factory_to_port_km: NumericEntry = field(default_factory=NumericEntry)
    export_rail_percent_to_port: NumericEntry = field(default_factory=NumericEntry)
    export_waterway_percent_to_port: NumericEntry = field(default_factory=NumericEntry)
    export_road_percent_to_port: NumericEntry = field(default_factory=NumericEntry)
    export_port_to_market_km: NumericEntry = field(default_factory=NumericEntry)
