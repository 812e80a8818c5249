"""Emission coefficients used by the phase calculators.

Every calculator receives a ``CoefficientSet`` explicitly; nothing reads
module state. The defaults below are placeholder factors pending
replacement by the auxiliary worksheet values and can be swapped for a
JSON coefficient library (see ``biocalc.data.libraries``).
"""

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Dict, Mapping


def _default_fossil_references() -> Dict[str, float]:
    return {
        "diesel": 0.0867,
        "fuel_oil": 0.094,
        "petroleum_coke": 0.12,
    }


@dataclass(frozen=True)
class FuelFactors:
    """Combustion CO2 factors per unit of fuel consumed.

    Attributes:
        diesel_per_liter: kg CO2e per liter of diesel.
        natural_gas_per_nm3: kg CO2e per Nm3 of natural gas.
        lpg_per_kg: kg CO2e per kg of LPG.
        gasoline_per_liter: kg CO2e per liter of gasoline A.
        ethanol_per_liter: kg CO2e per liter of ethanol (anhydrous or hydrated).
        wood_per_kg: kg CO2e per kg of wood chips or firewood. Biogenic, so 0.
    """

    diesel_per_liter: float = 2.68
    natural_gas_per_nm3: float = 2.0
    lpg_per_kg: float = 3.0
    gasoline_per_liter: float = 2.2
    ethanol_per_liter: float = 0.6
    wood_per_kg: float = 0.0

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "FuelFactors":
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


@dataclass(frozen=True)
class CoefficientSet:
    """Immutable set of default factors and reference values.

    Attributes:
        name: Identifier of the coefficient set.
        biomass_impact_factor: kg CO2e per kg of biomass produced.
        calorific_mj_per_kg: Lower heating value of the biomass (MJ/kg).
        mut_impact_factor_per_kg: Land-use-change emissions per kg biomass.
        transport_impact_per_tkm: kg CO2e per tonne-kilometer transported.
        electricity_impact_factor: Blended grid factor (kg CO2e/kWh).
        fuels: Per-fuel combustion factors.
        manufacturing_factor: Linear factor for lubricant, sand and water (kg CO2e/kg).
        water_liters_per_kg: Liters of water counted as one manufacturing kg.
        default_biomass_input_specific: Biomass consumed per MJ (kg/MJ).
        default_vehicle_load_ton: Average biomass per vehicle trip (t).
        default_cogeneration_emission_factor: Cogeneration combustion factor (kg CO2e/kg).
        use_phase_intensity: Use-phase contribution (kg CO2e/MJ).
        fossil_reference_intensity: Fossil fuel the credit rules compare against.
        market_value_per_cbio: Market price of one CBIO (R$).
        fossil_references: Reference intensities of substitutable fossil fuels.
    """

    name: str = "default"
    biomass_impact_factor: float = 0.05
    calorific_mj_per_kg: float = 16.5
    mut_impact_factor_per_kg: float = 0.02
    transport_impact_per_tkm: float = 0.08
    electricity_impact_factor: float = 0.06
    fuels: FuelFactors = field(default_factory=FuelFactors)
    manufacturing_factor: float = 0.5
    water_liters_per_kg: float = 1000.0
    default_biomass_input_specific: float = 1.0
    default_vehicle_load_ton: float = 20.0
    default_cogeneration_emission_factor: float = 0.0
    use_phase_intensity: float = 0.0
    fossil_reference_intensity: float = 0.0867
    market_value_per_cbio: float = 78.07
    fossil_references: Mapping[str, float] = field(default_factory=_default_fossil_references, hash=False)

    def __post_init__(self):
        # Read-only view: one set is shared by every request.
        object.__setattr__(self, "fossil_references", MappingProxyType(dict(self.fossil_references)))
        if self.calorific_mj_per_kg < 0:
            raise ValueError(f"calorific_mj_per_kg must be >= 0, got {self.calorific_mj_per_kg}")
        if self.water_liters_per_kg <= 0:
            raise ValueError(f"water_liters_per_kg must be > 0, got {self.water_liters_per_kg}")
        if self.market_value_per_cbio < 0:
            raise ValueError(f"market_value_per_cbio must be >= 0, got {self.market_value_per_cbio}")

    def with_overrides(self, **changes) -> "CoefficientSet":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, FuelFactors):
                value = value.to_dict()
            elif isinstance(value, Mapping):
                value = dict(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CoefficientSet":
        data = dict(data)
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "fuels":
                kwargs[key] = FuelFactors.from_dict(value)
            elif key == "fossil_references":
                kwargs[key] = {str(k): float(v) for k, v in value.items()}
            elif key == "name":
                kwargs[key] = str(value)
            else:
                kwargs[key] = float(value)
        return cls(**kwargs)


DEFAULT_COEFFICIENTS = CoefficientSet()
