"""Input validation functions for BioCalc Analyzer.

Field validators return a tuple of (is_valid: bool, message: str); phase
validators collect them into (is_valid, messages). Validation is advisory:
the calculators accept any input and fall back to defaults.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from biocalc.models.inputs import AgriculturalInput, IndustrialInput
from biocalc.utils.numbers import parse_locale_number

PERCENT_SUM_TOLERANCE = 1e-6

EXPORT_KEYS = (
    "exportBiomassQuantityTon",
    "exportDistanceFactoryToNearestHydroPortKm",
    "exportRailPercentToPort",
    "exportWaterwayPercentToPort",
    "exportRoadPercentToPort",
    "exportRoadVehicleTypeToPort",
    "exportDistancePortToForeignMarketKm",
)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return parse_locale_number(value, None)


def validate_selection(value, label: str) -> Tuple[bool, str]:
    """Validate that a selection field was chosen.

    Args:
        value: Submitted selection.
        label: Field description for the message.

    Returns:
        (is_valid, message) tuple.
    """
    if _is_blank(value) or not isinstance(value, str):
        return False, f"Select the {label}."
    return True, ""


def validate_numeric(value, label: str, required: bool = False) -> Tuple[bool, str]:
    """Validate a numeric field: empty is allowed unless required."""
    if _is_blank(value):
        if required:
            return False, f"{label} is required."
        return True, ""
    if _number(value) is None:
        return False, f"{label}: invalid numeric value."
    return True, ""


def validate_positive(value, label: str) -> Tuple[bool, str]:
    """Validate a required quantity that must be greater than 0."""
    number = _number(value)
    if number is None or number <= 0:
        return False, f"Enter the {label}."
    return True, ""


def validate_percentage(value, label: str) -> Tuple[bool, str]:
    """Validate a percentage between 0 and 100. Empty counts as 0."""
    if _is_blank(value):
        return True, ""
    number = _number(value)
    if number is None or number < 0 or number > 100:
        return False, f"{label}: percentage must be between 0 and 100."
    return True, ""


def validate_modal_split(shares: Sequence, label: str) -> Tuple[bool, str]:
    """Validate that the modal shares add up to 100%.

    A blank road share stands for the remainder, 100 minus rail and
    waterway floored at 0, which is what the road autofill writes. A route
    with every share blank is therefore valid (all by road).

    Args:
        shares: Rail, waterway and road percentages as submitted.
        label: Route description for the message.

    Returns:
        (is_valid, message) tuple.
    """
    rail, waterway, road = shares
    others = (_number(rail) or 0.0) + (_number(waterway) or 0.0)
    if _is_blank(road):
        road_share = max(0.0, 100 - others)
    else:
        road_share = _number(road) or 0.0
    total = others + road_share
    if abs(total - 100) > PERCENT_SUM_TOLERANCE:
        return False, f"{label}: modal shares must add up to 100% (got {total:g}%)."
    return True, ""


def _collect(checks: List[Tuple[bool, str]]) -> Tuple[bool, List[str]]:
    messages = []
    is_valid = True
    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)
    return is_valid, messages


def validate_agricultural(data: Optional[Dict]) -> Tuple[bool, List[str]]:
    """Validate the agricultural phase form.

    Args:
        data: Agricultural form mapping.

    Returns:
        (is_valid, messages).
    """
    data = data or {}
    checks = [validate_selection(data.get("biomassType"), "biomass type")]
    if data.get("hasConsumptionInfo") == "yes":
        checks.append(validate_numeric(data.get("biomassInputSpecific"),
                                       "Specific biomass input", required=True))
    for key in AgriculturalInput.NUMERIC_FIELDS.values():
        checks.append(validate_numeric(data.get(key), key))
    checks.append(validate_percentage(data.get("mutAllocationPercent"), "mutAllocationPercent"))
    return _collect(checks)


def validate_industrial(data: Optional[Dict]) -> Tuple[bool, List[str]]:
    """Validate the industrial phase form.

    The cogeneration selection and the processed biomass quantity are
    required; every other numeric field only has to parse when given.
    """
    data = data or {}
    checks = [
        validate_selection(data.get("hasCogeneration"), "cogeneration option"),
        validate_numeric(data.get("processedBiomassKgPerYear"),
                         "Processed biomass quantity", required=True),
    ]
    for key in IndustrialInput.NUMERIC_FIELDS.values():
        if key != "processedBiomassKgPerYear":
            checks.append(validate_numeric(data.get(key), key))
    return _collect(checks)


def _validate_route(data: Dict, keys: Sequence[str], vehicle_key: str, label: str) -> List[Tuple[bool, str]]:
    rail_key, waterway_key, road_key = keys
    checks = [validate_percentage(data.get(key), key) for key in keys]
    checks.append(validate_modal_split([data.get(key) for key in keys], label))
    road = _number(data.get(road_key)) or 0.0
    if road > 0:
        checks.append(validate_selection(data.get(vehicle_key), f"{label} road vehicle type"))
    return checks


def validate_distribution(data: Optional[Dict]) -> Tuple[bool, List[str]]:
    """Validate the distribution phase form.

    The domestic route is always checked. The export route is checked
    only when any export field was submitted.

    Args:
        data: Distribution form mapping.

    Returns:
        (is_valid, messages).
    """
    data = data or {}
    checks = [
        validate_positive(data.get("domesticBiomassQuantityTon"), "domestic quantity (t)"),
        validate_positive(data.get("domesticTransportDistanceKm"), "domestic distance (km)"),
    ]
    checks += _validate_route(
        data,
        ("domesticRailPercent", "domesticWaterwayPercent", "domesticRoadPercent"),
        "domesticRoadVehicleType",
        "Domestic",
    )

    if any(not _is_blank(data.get(key)) for key in EXPORT_KEYS):
        checks += [
            validate_positive(data.get("exportBiomassQuantityTon"), "exported quantity (t)"),
            validate_positive(data.get("exportDistanceFactoryToNearestHydroPortKm"),
                              "distance to the nearest waterway port (km)"),
            validate_positive(data.get("exportDistancePortToForeignMarketKm"),
                              "distance from the port to the final market (km)"),
        ]
        checks += _validate_route(
            data,
            ("exportRailPercentToPort", "exportWaterwayPercentToPort", "exportRoadPercentToPort"),
            "exportRoadVehicleTypeToPort",
            "Export",
        )
    return _collect(checks)


def validate_request(phases: Optional[Dict]) -> Tuple[bool, List[str]]:
    """Run the validators of every phase present in a request.

    Args:
        phases: Mapping of phase name ("agricultural", "industrial",
            "distribution") to its form mapping. Absent phases are skipped.

    Returns:
        (is_valid, messages) where each message is prefixed by its phase.
    """
    validators = (
        ("agricultural", validate_agricultural),
        ("industrial", validate_industrial),
        ("distribution", validate_distribution),
    )
    phases = phases or {}
    messages = []
    is_valid = True
    for name, validator in validators:
        if phases.get(name) is None:
            continue
        valid, phase_messages = validator(phases[name])
        if not valid:
            is_valid = False
        messages += [f"{name.capitalize()}: {msg}" for msg in phase_messages]
    return is_valid, messages
