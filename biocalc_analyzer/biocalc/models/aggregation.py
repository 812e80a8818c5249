"""Life-cycle aggregation for BioCalc Analyzer.

Combines the phase results into the total carbon intensity, its
percentage breakdown, the comparison with fossil references and the
CBIO (decarbonization credit) eligibility estimate.

A phase missing from the request contributes zero. Nothing in this
module raises for missing or degenerate data.
"""

import math
from typing import Dict, Optional, Tuple

from biocalc.models.coefficients import DEFAULT_COEFFICIENTS, CoefficientSet
from biocalc.models.results import (
    AgriculturalResult,
    AggregateResult,
    CarbonIntensity,
    CBIOGeneration,
    DetailLine,
    DistributionResult,
    FossilComparison,
    IndustrialResult,
    PercentageBreakdown,
    PhaseResults,
)
from biocalc.utils.numbers import finite_or_zero, parse_locale_number


def agricultural_contribution(result: Optional[AgriculturalResult]) -> float:
    """Agricultural intensity: the echoed production, MUT and transport results."""
    if result is None:
        return 0.0
    return result.biomass_production_impact + result.mut_impact + result.biomass_transport_impact


def cogeneration_contribution(result: Optional[IndustrialResult]) -> float:
    """Cogeneration intensity per MJ. Not yet modeled, always 0."""
    return 0.0


def industrial_contribution(result: Optional[IndustrialResult]) -> float:
    """Industrial intensity as the sum of the legacy per-MJ line items.

    Electricity and fuel line items both carry ``impact_per_mj`` and the
    manufacturing item does too, so the total equals
    ``2 * impact_per_mj + manufacturing_impact_per_mj``.
    """
    if result is None:
        return 0.0
    return (
        result.electricity_impact_per_mj
        + result.fuel_impact_per_mj
        + cogeneration_contribution(result)
        + result.manufacturing_impact_per_mj
    )


def _coerce_kg(raw) -> float:
    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        return finite_or_zero(float(raw))
    return parse_locale_number(raw, 0.0)


def distribution_energy_basis(
    industrial: Optional[IndustrialResult],
    raw_processed_biomass_kg,
    coefficients: CoefficientSet,
) -> float:
    """MJ of pellets per year over which distribution impacts are spread.

    Uses the industrial result when available, otherwise the raw processed
    biomass quantity times the default calorific value.
    """
    if industrial is not None and industrial.biomass_mj > 0:
        return industrial.biomass_mj
    return finite_or_zero(_coerce_kg(raw_processed_biomass_kg) * coefficients.calorific_mj_per_kg)


def distribution_contribution(result: Optional[DistributionResult], biomass_mj: float) -> float:
    """Distribution intensity: annual transport impacts per MJ produced."""
    if result is None or biomass_mj <= 0:
        return 0.0
    annual = (
        result.domestic_impact_year
        + result.export_impact_factory_to_port_year
        + result.export_impact_port_to_market_year
    )
    return finite_or_zero(annual / biomass_mj)


def use_contribution(coefficients: CoefficientSet) -> float:
    """Use-phase intensity. A fixed coefficient until a use model exists."""
    return coefficients.use_phase_intensity


def percentage_breakdown(intensity: CarbonIntensity) -> PercentageBreakdown:
    """Share of each phase in the total, all zero when the total is zero."""
    total = intensity.total
    if total == 0:
        return PercentageBreakdown()
    return PercentageBreakdown(
        agriculture=finite_or_zero(intensity.agricultural / total * 100),
        industrial=finite_or_zero(intensity.industrial / total * 100),
        transport=finite_or_zero(intensity.distribution / total * 100),
        use=finite_or_zero(intensity.use / total * 100),
    )


def compare_with_fossil(total: float, fuel: str, reference: float) -> FossilComparison:
    """Efficiency note and emission reduction against one fossil reference."""
    note = reference - total
    reduction = note / reference if reference else 0.0
    return FossilComparison(
        fuel=fuel,
        reference_intensity=reference,
        energy_efficiency_note=finite_or_zero(note),
        emission_reduction=finite_or_zero(reduction),
    )


def calculate_eligible_cbios(production_volume_ton: float, energy_efficiency_note: float) -> int:
    """Whole credits eligible: floor(volume * max(note, 0)), never negative."""
    eligible = production_volume_ton * max(energy_efficiency_note, 0.0)
    if not math.isfinite(eligible) or eligible <= 0:
        return 0
    return int(math.floor(eligible))


def _phase_details(results: PhaseResults) -> Dict[str, Tuple[DetailLine, ...]]:
    details = {}
    agri = results.agricultural
    if agri is not None:
        details["agricultural"] = (
            DetailLine("E33", "Biomass type", agri.biomass_type),
            DetailLine("E37", "Calorific value (MJ/kg)", agri.assumptions.calorific_mj_per_kg or 0.0),
        )
    ind = results.industrial
    if ind is not None:
        details["industrial"] = (
            DetailLine("E59", "Processed biomass (kg/year)", ind.processed_biomass_kg_per_year),
            DetailLine("E60", "Biomass consumed in cogeneration (kg/year)",
                       ind.cogeneration_biomass_kg_per_year),
            DetailLine("E68", "Electricity impact factor (kg CO2e/kWh)",
                       ind.assumptions.coefficients.get("electricity_impact_factor", 0.0)),
            DetailLine("E83", "Biomass combustion emission factor (kg CO2e/kg)",
                       ind.assumptions.coefficients.get("cogeneration_emission_factor", 0.0)),
            DetailLine("E84", "Biomass combustion impact (kg CO2e/year)",
                       ind.biomass_combustion_impact_year),
        )
    dist = results.distribution
    if dist is not None:
        details["distribution"] = (
            DetailLine("E96", "Domestic quantity (t/year)", dist.domestic_quantity_ton),
            DetailLine("E97", "Domestic distance (km)", dist.domestic_distance_km),
            DetailLine("E98", "Domestic rail share (%)", dist.domestic_rail_percent),
            DetailLine("E99", "Domestic waterway share (%)", dist.domestic_waterway_percent),
            DetailLine("E100", "Domestic road share (%)", dist.domestic_road_percent),
            DetailLine("E102", "Domestic impact (kg CO2e/year)", dist.domestic_impact_year),
            DetailLine("E107", "Export quantity (t/year)", dist.export_quantity_ton),
            DetailLine("E108", "Distance factory to port (km)", dist.export_factory_to_port_km),
            DetailLine("E113", "Distance port to market (km)", dist.export_port_to_market_km),
            DetailLine("E114", "Export impact factory to port (kg CO2e/year)",
                       dist.export_impact_factory_to_port_year),
            DetailLine("E115", "Export impact port to market (kg CO2e/year)",
                       dist.export_impact_port_to_market_year),
        )
    return details


def aggregate(
    results: PhaseResults,
    raw_processed_biomass_kg=None,
    coefficients: CoefficientSet = DEFAULT_COEFFICIENTS,
) -> AggregateResult:
    r"""Combine phase results into the life-cycle carbon intensity.

    Formula:
        CI = CI_{agr} + CI_{ind} + CI_{dist} + CI_{use}
        note = CI_{fossil} - CI
        reduction = \frac{note}{CI_{fossil}}
        CBIOs = \lfloor \frac{kg_{processed}}{1000} \cdot \max(note, 0) \rfloor

    Args:
        results: Phase results; any phase may be None.
        raw_processed_biomass_kg: Processed biomass (kg/year) as entered,
            used when the industrial phase is absent. Locale strings and
            numbers are accepted.
        coefficients: Reference values (fossil intensity, CBIO price).

    Returns:
        AggregateResult.
    """
    biomass_mj = distribution_energy_basis(results.industrial, raw_processed_biomass_kg, coefficients)

    agricultural = finite_or_zero(agricultural_contribution(results.agricultural))
    industrial = finite_or_zero(industrial_contribution(results.industrial))
    distribution = distribution_contribution(results.distribution, biomass_mj)
    use = finite_or_zero(use_contribution(coefficients))
    intensity = CarbonIntensity(
        agricultural=agricultural,
        industrial=industrial,
        distribution=distribution,
        use=use,
        total=agricultural + industrial + distribution + use,
    )

    reference = compare_with_fossil(intensity.total, "reference", coefficients.fossil_reference_intensity)
    comparisons = tuple(
        compare_with_fossil(intensity.total, fuel, ref)
        for fuel, ref in coefficients.fossil_references.items()
    )

    if results.industrial is not None:
        processed_kg = results.industrial.processed_biomass_kg_per_year
    else:
        processed_kg = _coerce_kg(raw_processed_biomass_kg)
    volume_ton = processed_kg / 1000
    eligible = calculate_eligible_cbios(volume_ton, reference.energy_efficiency_note)

    cbio = CBIOGeneration(
        fossil_reference_intensity=coefficients.fossil_reference_intensity,
        eligible_production_volume_ton=volume_ton,
        eligible_cbios=eligible,
        market_value_per_cbio=coefficients.market_value_per_cbio,
        approximate_revenue=eligible * coefficients.market_value_per_cbio,
    )

    return AggregateResult(
        carbon_intensity=intensity,
        percentages=percentage_breakdown(intensity),
        energy_efficiency_note=reference.energy_efficiency_note,
        emission_reduction=reference.emission_reduction,
        fossil_comparisons=comparisons,
        cbio=cbio,
        phase_details=_phase_details(results),
    )
