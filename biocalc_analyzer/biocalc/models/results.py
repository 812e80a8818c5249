"""Result records for BioCalc Analyzer.

Phase results hold intermediate quantities (always finite floats), echoed
selections and an ``assumptions`` mapping. The aggregate result combines
them into the carbon-intensity breakdown and CBIO eligibility block. All
records are frozen and serialize to plain JSON-compatible dicts.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple


def _plain(value):
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Record:
    """Generic to_dict() for flat frozen result dataclasses."""

    def to_dict(self) -> dict:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class Assumptions(_Record):
    """Defaults actually applied while computing a phase.

    Attributes:
        coefficients: Coefficient name -> value used.
        defaulted_fields: Form keys that were absent or invalid and fell back
            to a default.
    """

    coefficients: Dict[str, float] = field(default_factory=dict)
    defaulted_fields: Tuple[str, ...] = ()

    @property
    def calorific_mj_per_kg(self) -> Optional[float]:
        return self.coefficients.get("calorific_mj_per_kg")


@dataclass(frozen=True)
class AgriculturalResult(_Record):
    """Computed agricultural phase values.

    The ``total_impact_per_mj`` chain is informational. The aggregator sums
    the three echoed result fields instead (``biomass_production_impact``,
    ``mut_impact``, ``biomass_transport_impact``), which carry the values the
    caller supplied or 0.
    """

    biomass_impact_per_mj: float = 0.0
    corn_starch_impact_per_mj: float = 0.0
    mut_impact_per_mj: float = 0.0
    transport_demand_tkm: float = 0.0
    transport_impact_per_mj: float = 0.0
    total_impact_per_mj: float = 0.0
    # for later calculations
    biomass_production_impact: float = 0.0
    mut_impact: float = 0.0
    biomass_transport_impact: float = 0.0
    # echoed selections
    biomass_type: str = ""
    biomass_production_state: str = ""
    cultivation_type: str = ""
    transport_vehicle_type: str = ""
    assumptions: Assumptions = field(default_factory=Assumptions)


@dataclass(frozen=True)
class IndustrialResult(_Record):
    """Computed industrial phase values (annual impacts in kg CO2e/year).

    ``electricity_impact_per_mj``, ``fuel_impact_per_mj`` and
    ``manufacturing_impact_per_mj`` all carry the same overall ratio
    ``impact_per_mj``; the per-category split per MJ is not modeled.
    """

    biomass_mj: float = 0.0
    electricity_kwh: float = 0.0
    electricity_impact_year: float = 0.0
    fuel_impact_year: float = 0.0
    manufacturing_impact_year: float = 0.0
    total_impact_year: float = 0.0
    impact_per_mj: float = 0.0
    biomass_combustion_impact_year: float = 0.0
    # for later calculations
    processed_biomass_kg_per_year: float = 0.0
    cogeneration_biomass_kg_per_year: float = 0.0
    electricity_impact_per_mj: float = 0.0
    fuel_impact_per_mj: float = 0.0
    manufacturing_impact_per_mj: float = 0.0
    has_cogeneration: str = ""
    assumptions: Assumptions = field(default_factory=Assumptions)


@dataclass(frozen=True)
class DistributionResult(_Record):
    """Computed distribution phase values (kg CO2e/year)."""

    domestic_quantity_ton: float = 0.0
    domestic_distance_km: float = 0.0
    domestic_rail_percent: float = 0.0
    domestic_waterway_percent: float = 0.0
    domestic_road_percent: float = 0.0
    domestic_tkm: float = 0.0
    domestic_modal_weight: float = 0.0
    domestic_impact_year: float = 0.0
    export_quantity_ton: float = 0.0
    export_factory_to_port_km: float = 0.0
    export_port_to_market_km: float = 0.0
    export_factory_to_port_tkm: float = 0.0
    export_port_to_market_tkm: float = 0.0
    export_impact_factory_to_port_year: float = 0.0
    export_impact_port_to_market_year: float = 0.0
    total_impact_year: float = 0.0
    domestic_road_vehicle_type: str = ""
    export_road_vehicle_type_to_port: str = ""
    assumptions: Assumptions = field(default_factory=Assumptions)


@dataclass(frozen=True)
class PhaseResults:
    """The phase results handed to the aggregator. Any may be absent."""

    agricultural: Optional[AgriculturalResult] = None
    industrial: Optional[IndustrialResult] = None
    distribution: Optional[DistributionResult] = None

    def to_dict(self) -> dict:
        return {
            name: (result.to_dict() if result is not None else None)
            for name, result in (
                ("agricultural", self.agricultural),
                ("industrial", self.industrial),
                ("distribution", self.distribution),
            )
        }


@dataclass(frozen=True)
class CarbonIntensity(_Record):
    """Carbon intensity per phase and in total (kg CO2e/MJ)."""

    agricultural: float = 0.0
    industrial: float = 0.0
    distribution: float = 0.0
    use: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class PercentageBreakdown(_Record):
    """Share of each phase in the total intensity, in percent."""

    agriculture: float = 0.0
    industrial: float = 0.0
    transport: float = 0.0
    use: float = 0.0

    @property
    def total(self) -> float:
        return self.agriculture + self.industrial + self.transport + self.use


@dataclass(frozen=True)
class FossilComparison(_Record):
    """Biofuel intensity compared with one fossil reference fuel."""

    fuel: str = ""
    reference_intensity: float = 0.0
    energy_efficiency_note: float = 0.0
    emission_reduction: float = 0.0


@dataclass(frozen=True)
class CBIOGeneration(_Record):
    """Decarbonization credit eligibility and revenue estimate.

    Attributes:
        fossil_reference_intensity: Reference fossil intensity (kg CO2e/MJ).
        eligible_production_volume_ton: Pellet production eligible (t/year).
        eligible_cbios: Whole credits eligible per year (truncated).
        market_value_per_cbio: Price of one credit (R$).
        approximate_revenue: eligible_cbios * market_value_per_cbio (R$/year).
    """

    fossil_reference_intensity: float = 0.0
    eligible_production_volume_ton: float = 0.0
    eligible_cbios: int = 0
    market_value_per_cbio: float = 0.0
    approximate_revenue: float = 0.0


@dataclass(frozen=True)
class DetailLine(_Record):
    """One echoed value, tagged with the worksheet cell it mirrors."""

    cell: str = ""
    label: str = ""
    value: object = None


@dataclass(frozen=True)
class AggregateResult(_Record):
    """Combined life-cycle result for one calculation request."""

    carbon_intensity: CarbonIntensity = field(default_factory=CarbonIntensity)
    percentages: PercentageBreakdown = field(default_factory=PercentageBreakdown)
    energy_efficiency_note: float = 0.0
    emission_reduction: float = 0.0
    fossil_comparisons: Tuple[FossilComparison, ...] = ()
    cbio: CBIOGeneration = field(default_factory=CBIOGeneration)
    phase_details: Dict[str, Tuple[DetailLine, ...]] = field(default_factory=dict)

    def detail(self, phase: str, cell: str) -> Optional[DetailLine]:
        """Return the detail line for a worksheet cell, or None."""
        for line in self.phase_details.get(phase, ()):
            if line.cell == cell:
                return line
        return None

    @property
    def detail_cells(self) -> List[str]:
        return [line.cell for lines in self.phase_details.values() for line in lines]
