"""Phase calculators for BioCalc Analyzer.

Each calculator is a pure function of a parsed phase input and a
``CoefficientSet``. Missing or invalid numbers resolve to documented
defaults, every ratio is guarded against a zero denominator, and no
function raises for data-quality problems.

Units: impacts in kg CO2e, energy in MJ, transport demand in t.km.
"""

import logging
from typing import Dict, List, Union

from biocalc.models.coefficients import DEFAULT_COEFFICIENTS, CoefficientSet
from biocalc.models.inputs import (
    AgriculturalInput,
    DistributionInput,
    IndustrialInput,
    NumericEntry,
)
from biocalc.models.results import (
    AgriculturalResult,
    Assumptions,
    DistributionResult,
    IndustrialResult,
)
from biocalc.utils.numbers import finite_or_zero

logger = logging.getLogger(__name__)


class _Resolver:
    """Resolves numeric entries to values, remembering which fell back."""

    def __init__(self, phase_input):
        self._input = phase_input
        self.defaulted: List[str] = []

    def __call__(self, attr: str, default: float) -> float:
        entry: NumericEntry = getattr(self._input, attr)
        if not entry.is_set:
            self.defaulted.append(type(self._input).field_key(attr))
        return entry.resolve(default)

    def assumptions(self, coefficients: Dict[str, float]) -> Assumptions:
        if self.defaulted:
            logger.debug("%s defaults applied: %s",
                         type(self._input).__name__, ", ".join(self.defaulted))
        return Assumptions(coefficients=coefficients, defaulted_fields=tuple(self.defaulted))


def _as_input(data, cls):
    if isinstance(data, cls):
        return data
    return cls.from_dict(data)


def compute_agricultural(
    phase_input: Union[AgriculturalInput, dict],
    coefficients: CoefficientSet = DEFAULT_COEFFICIENTS,
) -> AgriculturalResult:
    r"""Calculate the agricultural phase impact per MJ of pellet.

    Formula:
        biomass = s \cdot f_{biomass}
        MUT = f_{MUT} \cdot s \cdot \frac{alloc}{100}
        transport = f_{tkm} \cdot \frac{s}{1000} \cdot d
        total = biomass + corn + MUT + transport

    where s is the specific biomass input (kg/MJ) and d the distance (km).

    The aggregate does not consume ``total_impact_per_mj``; it sums the
    echoed ``biomassProductionImpact``, ``mutImpactResult`` and
    ``transportImpactResult`` values (0 when absent).

    Args:
        phase_input: Parsed input or raw form mapping.
        coefficients: Default factors.

    Returns:
        AgriculturalResult.
    """
    data = _as_input(phase_input, AgriculturalInput)
    value = _Resolver(data)

    biomass_specific = value("biomass_input_specific", coefficients.default_biomass_input_specific)
    impact_factor = value("biomass_impact_factor", coefficients.biomass_impact_factor)
    calorific = value("biomass_calorific_value", coefficients.calorific_mj_per_kg)
    corn_starch = value("corn_starch_impact", 0.0)

    biomass_impact = biomass_specific * impact_factor

    mut_factor = value("mut_impact_factor", coefficients.mut_impact_factor_per_kg)
    mut_fraction = value("mut_allocation_percent", 0.0) / 100
    mut_impact = mut_factor * biomass_specific * mut_fraction

    distance_km = value("transport_distance_km", 0.0)
    load_ton = value("average_biomass_per_vehicle_ton", coefficients.default_vehicle_load_ton)
    demand_tkm = load_ton * distance_km
    transport_impact = coefficients.transport_impact_per_tkm * (biomass_specific / 1000) * distance_km

    total = biomass_impact + corn_starch + mut_impact + transport_impact

    return AgriculturalResult(
        biomass_impact_per_mj=finite_or_zero(biomass_impact),
        corn_starch_impact_per_mj=finite_or_zero(corn_starch),
        mut_impact_per_mj=finite_or_zero(mut_impact),
        transport_demand_tkm=finite_or_zero(demand_tkm),
        transport_impact_per_mj=finite_or_zero(transport_impact),
        total_impact_per_mj=finite_or_zero(total),
        biomass_production_impact=finite_or_zero(value("biomass_production_impact", 0.0)),
        mut_impact=finite_or_zero(value("mut_impact_result", 0.0)),
        biomass_transport_impact=finite_or_zero(value("transport_impact_result", 0.0)),
        biomass_type=data.biomass_type,
        biomass_production_state=data.biomass_production_state,
        cultivation_type=data.cultivation_type,
        transport_vehicle_type=data.transport_vehicle_type,
        assumptions=value.assumptions({
            "calorific_mj_per_kg": calorific,
            "biomass_impact_factor": impact_factor,
            "mut_impact_factor_per_kg": mut_factor,
            "transport_impact_per_tkm": coefficients.transport_impact_per_tkm,
        }),
    )


def compute_industrial(
    phase_input: Union[IndustrialInput, dict],
    coefficients: CoefficientSet = DEFAULT_COEFFICIENTS,
) -> IndustrialResult:
    r"""Calculate annual industrial impacts and their ratio per MJ produced.

    Formula:
        E_{el} = \sum kWh_i \cdot f_{el}
        E_{fuel} = \sum q_j \cdot f_j
        E_{mfg} = (oil + sand + \frac{water}{1000}) \cdot 0.5
        impact/MJ = \frac{E_{el} + E_{fuel} + E_{mfg}}{kg_{processed} \cdot LHV}

    The cogeneration combustion impact is reported separately and is not
    part of ``total_impact_year``. The three per-MJ line items all carry
    ``impact_per_mj``.

    Args:
        phase_input: Parsed input or raw form mapping.
        coefficients: Default factors.

    Returns:
        IndustrialResult.
    """
    data = _as_input(phase_input, IndustrialInput)
    value = _Resolver(data)
    fuels = coefficients.fuels

    processed_kg = value("processed_biomass_kg_per_year", 0.0)
    biomass_mj = processed_kg * coefficients.calorific_mj_per_kg

    electricity_kwh = sum(entry.resolve(0.0) for entry in data.electricity_kwh_fields)
    electricity_factor = value("electricity_impact_factor", coefficients.electricity_impact_factor)
    electricity_year = electricity_kwh * electricity_factor

    ethanol_liters = value("ethanol_anhydrous_liters", 0.0) + value("ethanol_hydrated_liters", 0.0)
    wood_kg = value("wood_chips_kg", 0.0) + value("firewood_kg", 0.0)
    fuel_year = (
        value("diesel_liters", 0.0) * fuels.diesel_per_liter
        + value("natural_gas_nm3", 0.0) * fuels.natural_gas_per_nm3
        + value("lpg_kg", 0.0) * fuels.lpg_per_kg
        + value("gasoline_liters", 0.0) * fuels.gasoline_per_liter
        + ethanol_liters * fuels.ethanol_per_liter
        + wood_kg * fuels.wood_per_kg
    )

    manufacturing_kg = (
        value("lubricant_oil_kg", 0.0)
        + value("silica_sand_kg", 0.0)
        + value("water_liters", 0.0) / coefficients.water_liters_per_kg
    )
    manufacturing_year = manufacturing_kg * coefficients.manufacturing_factor

    total_year = electricity_year + fuel_year + manufacturing_year
    impact_per_mj = finite_or_zero(total_year / biomass_mj) if biomass_mj > 0 else 0.0

    cogeneration_factor = value("cogeneration_emission_factor",
                                coefficients.default_cogeneration_emission_factor)
    cogeneration_kg = value("cogeneration_biomass_kg_per_year", 0.0)
    combustion_year = cogeneration_kg * cogeneration_factor

    return IndustrialResult(
        biomass_mj=finite_or_zero(biomass_mj),
        electricity_kwh=finite_or_zero(electricity_kwh),
        electricity_impact_year=finite_or_zero(electricity_year),
        fuel_impact_year=finite_or_zero(fuel_year),
        manufacturing_impact_year=finite_or_zero(manufacturing_year),
        total_impact_year=finite_or_zero(total_year),
        impact_per_mj=impact_per_mj,
        biomass_combustion_impact_year=finite_or_zero(combustion_year),
        processed_biomass_kg_per_year=finite_or_zero(processed_kg),
        cogeneration_biomass_kg_per_year=finite_or_zero(cogeneration_kg),
        electricity_impact_per_mj=impact_per_mj,
        fuel_impact_per_mj=impact_per_mj,
        manufacturing_impact_per_mj=impact_per_mj,
        has_cogeneration=data.has_cogeneration,
        assumptions=value.assumptions({
            "calorific_mj_per_kg": coefficients.calorific_mj_per_kg,
            "electricity_impact_factor": electricity_factor,
            "manufacturing_factor": coefficients.manufacturing_factor,
            "cogeneration_emission_factor": cogeneration_factor,
        }),
    )


def compute_distribution(
    phase_input: Union[DistributionInput, dict],
    coefficients: CoefficientSet = DEFAULT_COEFFICIENTS,
) -> DistributionResult:
    r"""Calculate annual distribution impacts, domestic and export.

    Formula:
        domestic = q_{dom} \cdot d_{dom} \cdot f_{tkm} \cdot (road + rail + water)
        export = q_{exp} \cdot (d_{port} + d_{market}) \cdot f_{tkm}

    The modal shares form a single weight on one transport factor; modes
    are not given separate factors.

    Args:
        phase_input: Parsed input or raw form mapping.
        coefficients: Default factors.

    Returns:
        DistributionResult.
    """
    data = _as_input(phase_input, DistributionInput)
    value = _Resolver(data)
    factor = coefficients.transport_impact_per_tkm

    domestic_ton = value("domestic_quantity_ton", 0.0)
    domestic_km = value("domestic_distance_km", 0.0)
    domestic_tkm = domestic_ton * domestic_km
    road_percent = value("domestic_road_percent", 100.0)
    rail_percent = value("domestic_rail_percent", 0.0)
    waterway_percent = value("domestic_waterway_percent", 0.0)
    modal_weight = (road_percent + rail_percent + waterway_percent) / 100
    domestic_year = domestic_tkm * factor * modal_weight

    export_ton = value("export_quantity_ton", 0.0)
    to_port_km = value("export_factory_to_port_km", 0.0)
    to_market_km = value("export_port_to_market_km", 0.0)
    to_port_tkm = export_ton * to_port_km
    to_market_tkm = export_ton * to_market_km
    to_port_year = to_port_tkm * factor
    to_market_year = to_market_tkm * factor

    total_year = domestic_year + to_port_year + to_market_year

    return DistributionResult(
        domestic_quantity_ton=finite_or_zero(domestic_ton),
        domestic_distance_km=finite_or_zero(domestic_km),
        domestic_rail_percent=finite_or_zero(rail_percent),
        domestic_waterway_percent=finite_or_zero(waterway_percent),
        domestic_road_percent=finite_or_zero(road_percent),
        domestic_tkm=finite_or_zero(domestic_tkm),
        domestic_modal_weight=finite_or_zero(modal_weight),
        domestic_impact_year=finite_or_zero(domestic_year),
        export_quantity_ton=finite_or_zero(export_ton),
        export_factory_to_port_km=finite_or_zero(to_port_km),
        export_port_to_market_km=finite_or_zero(to_market_km),
        export_factory_to_port_tkm=finite_or_zero(to_port_tkm),
        export_port_to_market_tkm=finite_or_zero(to_market_tkm),
        export_impact_factory_to_port_year=finite_or_zero(to_port_year),
        export_impact_port_to_market_year=finite_or_zero(to_market_year),
        total_impact_year=finite_or_zero(total_year),
        domestic_road_vehicle_type=data.domestic_road_vehicle_type,
        export_road_vehicle_type_to_port=data.export_road_vehicle_type_to_port,
        assumptions=value.assumptions({
            "transport_impact_per_tkm": factor,
        }),
    )
