"""Lookup-driven field autofill for BioCalc Analyzer.

Fills derived form fields from the auxiliary worksheet before the phase
calculators run: biomass impact factor and calorific value, corn starch
impact, the biomass production impact, the industrial impacts per year
and per MJ, the modal road share and the distribution impacts.

Every function takes a raw form mapping and returns a new mapping. Fields
the caller already filled are never overwritten, and a lookup miss leaves
the field empty so the calculator default applies.
"""

import logging
from typing import List, Optional, Sequence

from biocalc.data.lookup import (
    NOT_FOUND,
    SheetSource,
    vertical_lookup,
    vertical_lookup_multiple,
)
from biocalc.utils.formatters import format_locale_number, format_scientific
from biocalc.utils.numbers import parse_locale_number, parse_scientific

logger = logging.getLogger(__name__)

AUXILIARY_SHEET = "Dados auxiliares"
BIOMASS_RANGE = "B26:D31"
CORN_STARCH_FACTOR_CELL = "D32"
COMBUSTION_RANGE = "B33:G39"
ELECTRICITY_FACTORS_RANGE = "G41:G46"
FUEL_PRODUCTION_RANGE = "G48:G55"
FUEL_COMBUSTION_RANGE = "G57:G64"
MANUFACTURING_RANGE = "G66:G68"
VEHICLE_RANGE = "B70:G76"
MARITIME_FACTOR_CELL = "G74"
WATERWAY_FACTOR_CELL = "G75"
RAIL_FACTOR_CELL = "G76"

# 0-based offsets within the ranges above
BIOMASS_IMPACT_FACTOR_OFFSET = 1
BIOMASS_CALORIFIC_OFFSET = 2
COMBUSTION_FACTOR_OFFSET = 5
VEHICLE_FACTOR_OFFSET = 5

# Form keys in worksheet row order
ELECTRICITY_KEYS = (
    "gridMixMediumVoltage",
    "gridMixHighVoltage",
    "electricityPCH",
    "electricityBiomass",
    "electricityDiesel",
    "electricitySolar",
)
FUEL_KEYS = (
    "fuelDieselLitersPerYear",
    "fuelNaturalGasNm3PerYear",
    "fuelLPGKgPerYear",
    "fuelGasolineALitersPerYear",
    "fuelEthanolAnhydrousLitersPerYear",
    "fuelEthanolHydratedLitersPerYear",
    "fuelWoodChipsKgPerYear",
    "fuelFirewoodKgPerYear",
)
MANUFACTURING_KEYS = (
    "waterLitersPerYear",
    "lubricantOilKgPerYear",
    "silicaSandKgPerYear",
)

KG_PER_TON = 1000


def _is_blank(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _number(value) -> Optional[float]:
    """Parse a form value, or None when blank or invalid."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return parse_locale_number(value, None)


def _cell_number(value) -> Optional[float]:
    """Parse a worksheet cell text, or None on a lookup miss."""
    if value is NOT_FOUND or _is_blank(value):
        return None
    return parse_scientific(str(value))


def _fill(data: dict, key: str, text: str) -> None:
    if _is_blank(data.get(key)):
        data[key] = text
        logger.debug("Autofilled %s = %s", key, text)


def _table(sheet: Optional[SheetSource], range_address: str):
    if sheet is None:
        return None
    return sheet.get_table(AUXILIARY_SHEET, range_address)


def _cell(sheet: Optional[SheetSource], address: str) -> Optional[float]:
    if sheet is None:
        return None
    cell = sheet.get_cell(AUXILIARY_SHEET, address)
    return _cell_number(cell.text) if cell is not None else None


def _column(sheet: Optional[SheetSource], range_address: str) -> Optional[List[Optional[float]]]:
    """Read a one-column range as numbers; None when unreachable."""
    table = _table(sheet, range_address)
    if table is None:
        return None
    return [_cell_number(row[0]) for row in table]


def _sum_product(data: dict, keys: Sequence[str], factors: Sequence[Optional[float]]) -> Optional[float]:
    """Worksheet SUMPRODUCT of form fields and factors.

    Blank or invalid fields and missing factors contribute nothing. Returns
    None when none of the fields was entered.
    """
    values = [data.get(key) for key in keys]
    if all(_is_blank(value) for value in values):
        return None
    total = 0.0
    for raw, factor in zip(values, factors):
        amount = _number(raw)
        if amount is not None and factor is not None:
            total += amount * factor
    return total


def _per_mj(year: Optional[float], processed_kg: Optional[float], calorific: Optional[float]) -> Optional[float]:
    if year is None or not processed_kg or not calorific:
        return None
    return year / (processed_kg * calorific)


def autofill_agricultural(raw: Optional[dict], sheet: Optional[SheetSource]) -> dict:
    r"""Fill the agricultural coefficients derived from the worksheet.

    Formula:
        corn = input_{corn} \cdot D32
        production = s \cdot LHV \cdot f_{biomass} + corn
        (or LHV \cdot f_{biomass} + corn when s is not given)

    Args:
        raw: Agricultural form mapping.
        sheet: Auxiliary worksheet source, or None when unreachable.

    Returns:
        New mapping with the derived fields filled.
    """
    data = dict(raw or {})

    biomass_type = data.get("biomassType")
    if isinstance(biomass_type, str) and biomass_type.strip():
        factor, calorific = vertical_lookup_multiple(
            _table(sheet, BIOMASS_RANGE),
            biomass_type,
            0,
            [BIOMASS_IMPACT_FACTOR_OFFSET, BIOMASS_CALORIFIC_OFFSET],
        )
        for key, cell in (("biomassImpactFactor", factor), ("biomassCalorificValue", calorific)):
            value = _cell_number(cell)
            if value is not None:
                _fill(data, key, format_scientific(value))

    corn_input = _number(data.get("cornStarchInput"))
    if corn_input is not None:
        corn_factor = _cell(sheet, CORN_STARCH_FACTOR_CELL)
        if corn_factor is not None:
            _fill(data, "cornStarchImpact", format_scientific(corn_input * corn_factor))

    impact_factor = _number(data.get("biomassImpactFactor"))
    calorific_value = _number(data.get("biomassCalorificValue"))
    if impact_factor is not None and calorific_value is not None:
        specific = _number(data.get("biomassInputSpecific"))
        production = calorific_value * impact_factor
        if specific is not None:
            production *= specific
        corn_impact = _number(data.get("cornStarchImpact"))
        if corn_impact is not None:
            production += corn_impact
        _fill(data, "biomassProductionImpact", format_scientific(production))

    return data


def _fill_electricity(data: dict, sheet: Optional[SheetSource]) -> None:
    factors = _column(sheet, ELECTRICITY_FACTORS_RANGE)
    if factors is None:
        return
    electricity_year = _sum_product(data, ELECTRICITY_KEYS, factors)
    kwh = sum(_number(data.get(key)) or 0.0 for key in ELECTRICITY_KEYS)
    # Blended per-kWh factor, so kWh times factor gives back the sum product
    if electricity_year is not None and kwh > 0:
        _fill(data, "electricityImpactFactorKgCO2PerKWh", format_scientific(electricity_year / kwh))


def _fill_sum_product(data: dict, sheet: Optional[SheetSource], key: str,
                      keys: Sequence[str], range_address: str) -> None:
    factors = _column(sheet, range_address)
    if factors is None:
        return
    total = _sum_product(data, keys, factors)
    if total is not None:
        _fill(data, key, format_scientific(total))


def _fill_combustion_factor(data: dict, sheet: Optional[SheetSource], biomass_type) -> None:
    if not isinstance(biomass_type, str) or not biomass_type.strip():
        return
    table = _table(sheet, COMBUSTION_RANGE)
    if table is None:
        logger.debug("Combustion table unavailable, factor left empty")
        return
    factor = _cell_number(vertical_lookup(table, biomass_type, 0, COMBUSTION_FACTOR_OFFSET))
    _fill(data, "biomassCombustionEmissionFactorKgCO2PerKg", format_scientific(factor or 0.0))


def autofill_industrial(
    raw: Optional[dict],
    sheet: Optional[SheetSource],
    biomass_type: str = "",
    calorific_value=None,
) -> dict:
    r"""Fill the industrial impacts derived from the worksheet.

    Formula:
        f_{el} = \frac{\sum kWh_i \cdot G41..G46}{\sum kWh_i}
        fuel_{prod} = \sum q_j \cdot G48..G55
        fuel_{comb} = \sum q_j \cdot G57..G64
        mfg = water \cdot G66 + oil \cdot G67 + sand \cdot G68
        combustion = kg_{cogeneration} \cdot f_{combustion}
        X/MJ = \frac{X}{kg_{processed} \cdot LHV}

    The combustion factor is looked up in ``B33:G39`` by the biomass type
    selected in the agricultural phase. A type missing from the table
    resolves to 0, as the worksheet's error fallback does; an unreachable
    worksheet leaves the field untouched. The per-MJ fields need the
    processed biomass and the calorific value and stay empty without them.

    Args:
        raw: Industrial form mapping.
        sheet: Auxiliary worksheet source, or None when unreachable.
        biomass_type: Agricultural biomass selection.
        calorific_value: Agricultural biomass calorific value (MJ/kg), as
            entered or autofilled.

    Returns:
        New mapping with the derived fields filled.
    """
    data = dict(raw or {})

    _fill_electricity(data, sheet)
    _fill_sum_product(data, sheet, "fuelProductionImpactKgCO2PerYear", FUEL_KEYS, FUEL_PRODUCTION_RANGE)
    _fill_sum_product(data, sheet, "fuelStationaryCombustionImpactKgCO2PerYear", FUEL_KEYS,
                      FUEL_COMBUSTION_RANGE)
    _fill_sum_product(data, sheet, "manufacturingImpactKgCO2eqPerYear", MANUFACTURING_KEYS,
                      MANUFACTURING_RANGE)
    _fill_combustion_factor(data, sheet, biomass_type)

    cogeneration_kg = _number(data.get("biomassConsumedInCogenerationKgPerYear"))
    combustion_factor = _number(data.get("biomassCombustionEmissionFactorKgCO2PerKg"))
    if cogeneration_kg is not None and combustion_factor is not None:
        _fill(data, "biomassCombustionImpactKgCO2PerYear", format_scientific(cogeneration_kg * combustion_factor))

    processed_kg = _number(data.get("processedBiomassKgPerYear"))
    calorific = _number(calorific_value)

    electricity_year = None
    electricity_factor = _number(data.get("electricityImpactFactorKgCO2PerKWh"))
    if electricity_factor is not None:
        kwh = sum(_number(data.get(key)) or 0.0 for key in ELECTRICITY_KEYS)
        electricity_year = kwh * electricity_factor

    fuel_production = _number(data.get("fuelProductionImpactKgCO2PerYear"))
    fuel_combustion = _number(data.get("fuelStationaryCombustionImpactKgCO2PerYear"))
    fuel_year = None
    if fuel_production is not None and fuel_combustion is not None:
        fuel_year = fuel_production + fuel_combustion

    per_mj_fields = (
        ("electricityImpactResultKgCO2PerMJ", electricity_year),
        ("fuelConsumptionImpactKgCO2PerMJ", fuel_year),
        ("biomassCombustionImpactKgCO2PerMJ", _number(data.get("biomassCombustionImpactKgCO2PerYear"))),
        ("manufacturingImpactKgCO2eqPerMJ", _number(data.get("manufacturingImpactKgCO2eqPerYear"))),
    )
    for key, year in per_mj_fields:
        per_mj = _per_mj(year, processed_kg, calorific)
        if per_mj is not None:
            _fill(data, key, format_scientific(per_mj))

    return data


def _road_share(data: dict, rail_key: str, waterway_key: str, road_key: str) -> None:
    rail_raw = data.get(rail_key)
    waterway_raw = data.get(waterway_key)
    if _is_blank(rail_raw) and _is_blank(waterway_raw):
        return
    rail = 0.0 if _is_blank(rail_raw) else _number(rail_raw)
    waterway = 0.0 if _is_blank(waterway_raw) else _number(waterway_raw)
    if rail is None or waterway is None:
        return
    road = max(0.0, min(100.0, 100 - (rail + waterway)))
    _fill(data, road_key, format_locale_number(road, 2))


def _route_impact(
    data: dict,
    sheet: Optional[SheetSource],
    quantity_key: str,
    distance_key: str,
    share_keys: Sequence[str],
    vehicle_key: str,
) -> Optional[float]:
    """Annual impact of a rail/waterway/road leg, or None when incomplete.

    Rail uses G76, waterway G75 and road the vehicle factor from
    ``B70:G76``; an unknown vehicle contributes 0. A blank road share is
    the remainder of the other two.
    """
    quantity = _number(data.get(quantity_key))
    distance = _number(data.get(distance_key))
    if quantity is None or distance is None:
        return None
    rail_factor = _cell(sheet, RAIL_FACTOR_CELL)
    waterway_factor = _cell(sheet, WATERWAY_FACTOR_CELL)
    if rail_factor is None or waterway_factor is None:
        logger.debug("Transport factors unavailable, %s impact left empty", quantity_key)
        return None

    rail_key, waterway_key, road_key = share_keys
    rail = _number(data.get(rail_key)) or 0.0
    waterway = _number(data.get(waterway_key)) or 0.0
    if _is_blank(data.get(road_key)):
        road = max(0.0, 100 - (rail + waterway))
    else:
        road = _number(data.get(road_key)) or 0.0
    road_factor = _cell_number(vertical_lookup(
        _table(sheet, VEHICLE_RANGE), data.get(vehicle_key), 0, VEHICLE_FACTOR_OFFSET)) or 0.0

    tkm = quantity * distance
    return tkm * (rail * rail_factor + waterway * waterway_factor + road * road_factor) / 100


def _fill_domestic(data: dict, sheet: Optional[SheetSource], calorific: Optional[float]) -> None:
    impact = _route_impact(
        data, sheet,
        "domesticBiomassQuantityTon",
        "domesticTransportDistanceKm",
        ("domesticRailPercent", "domesticWaterwayPercent", "domesticRoadPercent"),
        "domesticRoadVehicleType",
    )
    if impact is not None:
        _fill(data, "domesticDistributionImpactKgCO2EqPerYear", format_scientific(impact))

    quantity = _number(data.get("domesticBiomassQuantityTon"))
    if quantity is not None and calorific:
        _fill(data, "domesticMjTransportedPerYear", format_scientific(quantity * KG_PER_TON * calorific))

    impact_year = _number(data.get("domesticDistributionImpactKgCO2EqPerYear"))
    mj = _number(data.get("domesticMjTransportedPerYear"))
    if impact_year is not None and mj:
        _fill(data, "domesticImpactKgCO2EqPerMjTransported", format_scientific(impact_year / mj))


def _fill_export(data: dict, sheet: Optional[SheetSource], calorific: Optional[float]) -> None:
    to_port = _route_impact(
        data, sheet,
        "exportBiomassQuantityTon",
        "exportDistanceFactoryToNearestHydroPortKm",
        ("exportRailPercentToPort", "exportWaterwayPercentToPort", "exportRoadPercentToPort"),
        "exportRoadVehicleTypeToPort",
    )
    if to_port is not None:
        _fill(data, "exportDistributionImpactFactoryToPortKgCO2EqPerYear", format_scientific(to_port))

    quantity = _number(data.get("exportBiomassQuantityTon"))
    to_market_km = _number(data.get("exportDistancePortToForeignMarketKm"))
    maritime_factor = _cell(sheet, MARITIME_FACTOR_CELL)
    if quantity is not None and to_market_km is not None and maritime_factor is not None:
        _fill(data, "exportDistributionImpactPortToMarketKgCO2EqPerYear",
              format_scientific(quantity * to_market_km * maritime_factor))

    if quantity is not None and calorific:
        _fill(data, "exportMjTransportedPerYear", format_scientific(quantity * KG_PER_TON * calorific))

    to_port_year = _number(data.get("exportDistributionImpactFactoryToPortKgCO2EqPerYear"))
    to_market_year = _number(data.get("exportDistributionImpactPortToMarketKgCO2EqPerYear"))
    mj = _number(data.get("exportMjTransportedPerYear"))
    if to_port_year is not None and to_market_year is not None and mj:
        _fill(data, "exportImpactKgCO2EqPerMjTransported",
              format_scientific((to_port_year + to_market_year) / mj))


def autofill_distribution(
    raw: Optional[dict],
    sheet: Optional[SheetSource] = None,
    calorific_value=None,
) -> dict:
    r"""Fill the road shares and the distribution impacts.

    Formula:
        road = 100 - (rail + waterway), clamped to 0..100
        impact = q \cdot d \cdot (rail \cdot G76 + water \cdot G75 + road \cdot f_{vehicle}) / 100
        impact_{market} = q \cdot d_{market} \cdot G74
        MJ = q \cdot 1000 \cdot LHV
        impact/MJ = impact / MJ

    The road share is filled only when rail or waterway was given, and it
    needs no worksheet. The impacts need the worksheet; the MJ fields need
    the calorific value.

    Args:
        raw: Distribution form mapping.
        sheet: Auxiliary worksheet source, or None when unreachable.
        calorific_value: Agricultural biomass calorific value (MJ/kg).

    Returns:
        New mapping with the derived fields filled.
    """
    data = dict(raw or {})
    _road_share(data, "domesticRailPercent", "domesticWaterwayPercent", "domesticRoadPercent")
    _road_share(data, "exportRailPercentToPort", "exportWaterwayPercentToPort",
                "exportRoadPercentToPort")
    calorific = _number(calorific_value)
    _fill_domestic(data, sheet, calorific)
    _fill_export(data, sheet, calorific)
    return data
