"""Request/response orchestration for BioCalc Analyzer.

A request carries the raw form mapping of each phase. ``run_calculation``
optionally autofills derived fields from the auxiliary worksheet, runs
the advisory validators, computes each phase (sequentially or on a
thread pool) and aggregates the results.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, Union

from biocalc.data.lookup import SheetSource
from biocalc.data.validators import validate_request
from biocalc.models.aggregation import aggregate
from biocalc.models.autofill import (
    autofill_agricultural,
    autofill_distribution,
    autofill_industrial,
)
from biocalc.models.calculations import (
    compute_agricultural,
    compute_distribution,
    compute_industrial,
)
from biocalc.models.coefficients import DEFAULT_COEFFICIENTS, CoefficientSet
from biocalc.models.results import AggregateResult, PhaseResults

logger = logging.getLogger(__name__)

PHASES = ("agricultural", "industrial", "distribution")

_CALCULATORS: Dict[str, Callable] = {
    "agricultural": compute_agricultural,
    "industrial": compute_industrial,
    "distribution": compute_distribution,
}


@dataclass(frozen=True)
class CalculationRequest:
    """Raw phase inputs for one calculation.

    Attributes:
        agricultural: Agricultural form mapping, or None.
        industrial: Industrial form mapping, or None.
        distribution: Distribution form mapping, or None.
        processed_biomass_kg: Processed biomass (kg/year) as entered, used
            for the CBIO volume and distribution basis when the industrial
            phase is absent.
    """

    agricultural: Optional[dict] = None
    industrial: Optional[dict] = None
    distribution: Optional[dict] = None
    processed_biomass_kg: Optional[Union[str, float]] = None

    def phases(self) -> Dict[str, Optional[dict]]:
        return {name: getattr(self, name) for name in PHASES}

    def to_dict(self) -> dict:
        data = {name: value for name, value in self.phases().items() if value is not None}
        if self.processed_biomass_kg is not None:
            data["processedBiomassKgPerYear"] = self.processed_biomass_kg
        return data

    @classmethod
    def from_dict(cls, data) -> "CalculationRequest":
        """Build a request from a decoded JSON body.

        Raises:
            ValueError: If the body or a phase payload is not an object.
        """
        if not isinstance(data, dict):
            raise ValueError("Request body must be an object")
        phases = {}
        for name in PHASES:
            payload = data.get(name)
            if payload is not None and not isinstance(payload, dict):
                raise ValueError(f"Phase '{name}' must be an object, got {type(payload).__name__}")
            phases[name] = dict(payload) if payload is not None else None
        return cls(processed_biomass_kg=data.get("processedBiomassKgPerYear"), **phases)


@dataclass(frozen=True)
class CalculationResponse:
    """Outcome of ``run_calculation``.

    Attributes:
        ok: False only when the request body was malformed.
        computed: Per-phase results.
        aggregate: Combined life-cycle result.
        messages: Validation errors and warnings (advisory).
        is_valid: Whether every validator passed.
        error: Short error description when ok is False.
        details: Error detail when ok is False.
        inputs: Phase form mappings as computed, after autofill.
    """

    ok: bool = True
    computed: Optional[PhaseResults] = None
    aggregate: Optional[AggregateResult] = None
    messages: Tuple[str, ...] = ()
    is_valid: bool = True
    error: str = ""
    details: str = ""
    inputs: Dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {"ok": self.ok}
        if not self.ok:
            data["error"] = self.error
            data["details"] = self.details
            return data
        data["computed"] = self.computed.to_dict() if self.computed else None
        data["aggregate"] = self.aggregate.to_dict() if self.aggregate else None
        data["inputs"] = self.inputs
        data["validation"] = {"is_valid": self.is_valid, "messages": list(self.messages)}
        return data


def apply_autofill(request: CalculationRequest, sheet: SheetSource) -> CalculationRequest:
    """Return a new request with worksheet-derived fields filled in."""
    phases = request.phases()
    if phases["agricultural"] is not None:
        phases["agricultural"] = autofill_agricultural(phases["agricultural"], sheet)
    # Later phases read the biomass selection and calorific value as filled
    agricultural = phases["agricultural"] or {}
    biomass_type = agricultural.get("biomassType", "")
    calorific_value = agricultural.get("biomassCalorificValue")
    if phases["industrial"] is not None:
        phases["industrial"] = autofill_industrial(phases["industrial"], sheet, biomass_type, calorific_value)
    if phases["distribution"] is not None:
        phases["distribution"] = autofill_distribution(phases["distribution"], sheet, calorific_value)
    return CalculationRequest(processed_biomass_kg=request.processed_biomass_kg, **phases)


def _compute_phases(
    phases: Dict[str, Optional[dict]],
    coefficients: CoefficientSet,
    parallel: bool,
) -> PhaseResults:
    present = {name: data for name, data in phases.items() if data is not None}
    if parallel and present:
        with ThreadPoolExecutor(max_workers=len(present)) as executor:
            futures = {
                name: executor.submit(_CALCULATORS[name], data, coefficients)
                for name, data in present.items()
            }
            results = {name: future.result() for name, future in futures.items()}
    else:
        results = {name: _CALCULATORS[name](data, coefficients) for name, data in present.items()}
    return PhaseResults(**results)


def run_calculation(
    request: Union[CalculationRequest, dict],
    coefficients: CoefficientSet = DEFAULT_COEFFICIENTS,
    sheet: Optional[SheetSource] = None,
    autofill: bool = False,
    parallel: bool = False,
) -> CalculationResponse:
    """Compute every phase present in the request and aggregate them.

    Args:
        request: CalculationRequest or decoded JSON body.
        coefficients: Coefficient set passed to every calculator.
        sheet: Auxiliary worksheet used by autofill.
        autofill: Fill derived fields from the worksheet before computing.
        parallel: Run the phase calculators on a thread pool.

    Returns:
        CalculationResponse. Only a malformed body yields ok=False.
    """
    if not isinstance(request, CalculationRequest):
        try:
            request = CalculationRequest.from_dict(request)
        except ValueError as e:
            logger.error("Invalid request body: %s", e)
            return CalculationResponse(ok=False, error="Invalid request body", details=str(e))

    if autofill:
        if sheet is None:
            logger.warning("Autofill requested but no worksheet data is available, skipping")
        else:
            request = apply_autofill(request, sheet)

    is_valid, messages = validate_request(request.phases())
    if messages:
        logger.info("%d validation message(s), valid=%s", len(messages), is_valid)
    for msg in messages:
        logger.debug("Validation: %s", msg)

    computed = _compute_phases(request.phases(), coefficients, parallel)
    raw_kg = request.processed_biomass_kg
    if raw_kg is None and request.industrial is not None:
        raw_kg = request.industrial.get("processedBiomassKgPerYear")
    result = aggregate(computed, raw_processed_biomass_kg=raw_kg, coefficients=coefficients)
    logger.debug("Total carbon intensity: %.6f kg CO2e/MJ", result.carbon_intensity.total)

    return CalculationResponse(
        ok=True,
        computed=computed,
        aggregate=result,
        messages=tuple(messages),
        is_valid=is_valid,
        inputs={name: data for name, data in request.phases().items() if data is not None},
    )
