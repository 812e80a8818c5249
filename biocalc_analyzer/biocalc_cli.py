#!/usr/bin/env python3
"""
BioCalc Analyzer CLI - Carbon Intensity Calculator for Solid Biofuels

A command-line interface over the BioCalc calculation engine:
- Load a calculation request (agricultural, industrial, distribution forms)
- Select a coefficient set from the bundled library or a JSON file
- Autofill derived fields from the auxiliary worksheet
- Print the carbon-intensity breakdown, fossil comparisons and CBIO estimate
- Sensitivity table of eligible CBIOs (carbon intensity vs production volume)
- Save the full response as JSON

Usage:
    python biocalc_cli.py                              # Run the built-in example
    python biocalc_cli.py --input request.json         # Calculate a saved request
    python biocalc_cli.py --input request.json --autofill --json
    python biocalc_cli.py --help                       # Show all options
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

# Add the package root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from biocalc.data.libraries import (
    DEFAULT_SHEET_PATH,
    CoefficientLibrary,
    load_coefficients_file,
)
from biocalc.data.lookup import load_sheet_source
from biocalc.data.storage import load_request, save_response
from biocalc.models.coefficients import CoefficientSet
from biocalc.models.pipeline import (
    CalculationRequest,
    CalculationResponse,
    run_calculation,
)
from biocalc.utils.formatters import (
    format_currency_brl,
    format_intensity,
    format_locale_number,
    format_number,
    format_percent,
)

logger = logging.getLogger("biocalc_cli")


# ============================================================================
# FORMATTING UTILITIES
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# SENSITIVITY ANALYSIS
# ============================================================================

def calculate_cbio_sensitivity(
    coefficients: CoefficientSet,
    intensity_levels: List[float],
    volume_levels: List[float],
) -> Dict[str, np.ndarray]:
    r"""
    Calculate eligible CBIOs and revenue over an intensity x volume grid.

    Formula:
        CBIOs_{ij} = \lfloor V_i \cdot \max(CI_{fossil} - CI_j, 0) \rfloor

    Args:
        coefficients: Supplies the fossil reference and CBIO price
        intensity_levels: Carbon intensities to test (kg CO2e/MJ)
        volume_levels: Production volumes to test (t/year)

    Returns:
        Dictionary with 'cbios' and 'revenue' matrices (rows = volumes)
    """
    notes = np.maximum(coefficients.fossil_reference_intensity - np.asarray(intensity_levels, dtype=float), 0.0)
    volumes = np.maximum(np.asarray(volume_levels, dtype=float), 0.0)
    cbios = np.floor(np.outer(volumes, notes))
    cbios = np.nan_to_num(cbios, nan=0.0, posinf=0.0, neginf=0.0).astype(int)
    return {'cbios': cbios, 'revenue': cbios * coefficients.market_value_per_cbio}


def print_sensitivity_tables(response: CalculationResponse, coefficients: CoefficientSet) -> None:
    """Print the CBIO sensitivity table around the calculated result."""

    print_header("SENSITIVITY ANALYSIS", "=")

    base_intensity = response.aggregate.carbon_intensity.total
    base_volume = response.aggregate.cbio.eligible_production_volume_ton
    if base_volume <= 0:
        base_volume = 1000.0
        print("\n  No production volume informed; using 1.000 t/year as base.")

    intensity_levels = list(np.linspace(0.0, coefficients.fossil_reference_intensity, 7))
    if base_intensity not in intensity_levels:
        intensity_levels = sorted(intensity_levels + [base_intensity])
    volume_multipliers = [0.5, 0.75, 1.0, 1.25, 1.5]
    volume_levels = [base_volume * m for m in volume_multipliers]

    sensitivity = calculate_cbio_sensitivity(coefficients, intensity_levels, volume_levels)

    print_subheader("ELIGIBLE CBIOs (volume t/year x carbon intensity kg CO2e/MJ)")
    print(f"\n{'Volume':>12}", end="")
    for ci in intensity_levels:
        print(f" {format_locale_number(ci, 4):>10}", end="")
    print()
    print("-" * (13 + 11 * len(intensity_levels)))

    for i, volume in enumerate(volume_levels):
        print(f"{format_number(volume, 0):>12}", end="")
        for cbios in sensitivity['cbios'][i]:
            print(f" {format_number(float(cbios), 0):>10}", end="")
        print()

    print_subheader("APPROXIMATE REVENUE AT BASE VOLUME")
    base_row = volume_multipliers.index(1.0)
    rows = [
        [format_intensity(ci), format_number(float(cbios), 0), format_currency_brl(revenue)]
        for ci, cbios, revenue in zip(intensity_levels,
                                      sensitivity['cbios'][base_row],
                                      sensitivity['revenue'][base_row])
    ]
    print_table(["Carbon intensity", "CBIOs", "Revenue"], rows)


# ============================================================================
# DISPLAY FUNCTIONS
# ============================================================================

def print_results(response: CalculationResponse, coefficients: CoefficientSet) -> None:
    """Display the carbon-intensity breakdown and CBIO estimate."""

    result = response.aggregate
    intensity = result.carbon_intensity
    pct = result.percentages

    print_header("CARBON INTENSITY", "=")
    print(f"\n  Coefficient set: {coefficients.name}")
    print_table(
        ["Phase", "kg CO2e/MJ", "Share"],
        [
            ["Agricultural", format_locale_number(intensity.agricultural, 6), format_percent(pct.agriculture)],
            ["Industrial", format_locale_number(intensity.industrial, 6), format_percent(pct.industrial)],
            ["Distribution", format_locale_number(intensity.distribution, 6), format_percent(pct.transport)],
            ["Use", format_locale_number(intensity.use, 6), format_percent(pct.use)],
            ["Total", format_locale_number(intensity.total, 6), format_percent(pct.total)],
        ],
    )

    print_subheader("FOSSIL COMPARISON")
    rows = [["Reference", format_intensity(coefficients.fossil_reference_intensity),
             format_locale_number(result.energy_efficiency_note, 6),
             format_percent(result.emission_reduction * 100)]]
    for comparison in result.fossil_comparisons:
        rows.append([
            comparison.fuel.replace("_", " ").title(),
            format_intensity(comparison.reference_intensity),
            format_locale_number(comparison.energy_efficiency_note, 6),
            format_percent(comparison.emission_reduction * 100),
        ])
    print_table(["Fuel", "Intensity", "Efficiency note", "Reduction"], rows)

    cbio = result.cbio
    print_subheader("CBIO GENERATION")
    print(f"  {'Fossil reference:':<35} {format_intensity(cbio.fossil_reference_intensity)}")
    print(f"  {'Eligible production volume:':<35} {format_number(cbio.eligible_production_volume_ton, 2)} t/year")
    print(f"  {'Eligible CBIOs:':<35} {format_number(float(cbio.eligible_cbios), 0)}")
    print(f"  {'Market value per CBIO:':<35} {format_currency_brl(cbio.market_value_per_cbio)}")
    print(f"  {'Approximate revenue:':<35} {format_currency_brl(cbio.approximate_revenue)}/year")

    if result.phase_details:
        print_subheader("PHASE DETAILS")
        rows = []
        for phase, lines in result.phase_details.items():
            for line in lines:
                value = line.value
                text = format_locale_number(value, 4) if isinstance(value, float) else str(value)
                rows.append([phase, line.cell, line.label, text])
        print_table(["Phase", "Cell", "Item", "Value"], rows)

    if response.messages:
        print_subheader("VALIDATION")
        for msg in response.messages:
            print(f"  - {msg}")


def print_methodology() -> None:
    """Print the calculation methodology."""

    print_header("CALCULATION METHODOLOGY", "=")
    print("""
  AGRICULTURAL PHASE (kg CO2e/MJ)
    Production impact  = biomass input (kg/MJ) x calorific value x impact factor
                         + corn starch impact
    Land-use change    = MUT factor x biomass input x allocation %
    Transport          = t.km factor x (biomass input / 1000) x distance

  INDUSTRIAL PHASE (kg CO2e/year, then per MJ)
    Electricity        = sum of kWh by source x electricity factor
    Fuels              = sum of fuel quantities x fuel factors
    Manufacturing      = (lubricant + silica sand + water / 1000) x 0,5
    Per MJ             = total / (processed biomass kg x calorific value)

  DISTRIBUTION PHASE (kg CO2e/year, then per MJ)
    Domestic           = t x km x t.km factor x modal weight
    Export             = t x (km to port + km to market) x t.km factor

  AGGREGATION
    Carbon intensity   = agricultural + industrial + distribution + use
    Efficiency note    = fossil reference - carbon intensity
    Eligible CBIOs     = floor(production t/year x max(efficiency note, 0))
    Revenue            = eligible CBIOs x market value per CBIO
""")


# ============================================================================
# SETUP
# ============================================================================

def create_example_request() -> CalculationRequest:
    """Build a representative request for a eucalyptus residue pellet plant."""
    return CalculationRequest.from_dict({
        "agricultural": {
            "biomassType": "Resíduo de Eucalipto",
            "biomassInputSpecific": "0,0612",
            "mutAllocationPercent": "0",
            "transportDistanceKm": "80",
            "transportVehicleType": "Transporte caminhão 16-32t",
        },
        "industrial": {
            "hasCogeneration": "no",
            "processedBiomassKgPerYear": "12.000.000",
            "gridMixMediumVoltage": "850.000",
            "fuelDieselLitersPerYear": "15.000",
            "waterLitersPerYear": "200.000",
            "lubricantOilKgPerYear": "300",
        },
        "distribution": {
            "domesticBiomassQuantityTon": "8.000",
            "domesticTransportDistanceKm": "250",
            "domesticRoadPercent": "100",
            "domesticRoadVehicleType": "Transporte caminhão >32t",
        },
    })


def resolve_coefficients(name_or_path: Optional[str]) -> CoefficientSet:
    """Load a coefficient set by library name or from a JSON file.

    Raises:
        KeyError: If the name is not in the library.
    """
    library = CoefficientLibrary()
    if not name_or_path:
        return library.get_coefficients("default")
    path = Path(name_or_path)
    if path.suffix == ".json" and path.exists():
        return load_coefficients_file(str(path))
    return library.get_coefficients(name_or_path)


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BioCalc Analyzer - carbon intensity of solid biofuels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python biocalc_cli.py                                  # Built-in example
  python biocalc_cli.py --input request.json             # Calculate a request
  python biocalc_cli.py --coefficients eucalyptus_residue
  python biocalc_cli.py --input request.json --autofill  # Fill from worksheet
  python biocalc_cli.py --json --save response.json      # JSON output
  python biocalc_cli.py --sensitivity                    # CBIO sensitivity table
  python biocalc_cli.py --methodology                    # Show methodology
        """
    )

    # Inputs
    parser.add_argument("--input", "-i", type=str,
                        help="Calculation request JSON file")
    parser.add_argument("--coefficients", "-c", type=str,
                        help="Coefficient set name or JSON file (default: default)")
    parser.add_argument("--list-coefficients", action="store_true",
                        help="List bundled coefficient sets and exit")
    parser.add_argument("--sheet", type=str,
                        help="Auxiliary worksheet JSON (default: bundled)")
    parser.add_argument("--autofill", "-a", action="store_true",
                        help="Fill derived fields from the auxiliary worksheet")
    parser.add_argument("--parallel", action="store_true",
                        help="Compute phases on a thread pool")

    # Outputs
    parser.add_argument("--json", action="store_true",
                        help="Print the response as JSON")
    parser.add_argument("--save", type=str,
                        help="Save the response to a JSON file")
    parser.add_argument("--sensitivity", "-s", action="store_true",
                        help="Show CBIO sensitivity table")
    parser.add_argument("--methodology", "-m", action="store_true",
                        help="Show calculation methodology")
    parser.add_argument("--strict", action="store_true",
                        help="Exit with status 2 when validation fails")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log warnings and errors")

    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    if args.methodology:
        print_methodology()
        return 0

    if args.list_coefficients:
        library = CoefficientLibrary()
        for name in library.get_library_names():
            meta = library.get_library_metadata(name)
            print(f"{name:<25} {meta['source']} (v{meta['version']})")
        return 0

    try:
        coefficients = resolve_coefficients(args.coefficients)
    except (KeyError, ValueError, OSError) as e:
        print(f"Error loading coefficients: {e}", file=sys.stderr)
        return 1

    if args.input:
        try:
            request = load_request(args.input)
        except (OSError, ValueError) as e:
            print(f"Error loading request {args.input}: {e}", file=sys.stderr)
            return 1
    else:
        logger.info("No input file given, using the built-in example request")
        request = create_example_request()

    sheet = None
    if args.autofill or args.sheet:
        sheet = load_sheet_source(args.sheet or DEFAULT_SHEET_PATH)

    response = run_calculation(
        request,
        coefficients=coefficients,
        sheet=sheet,
        autofill=args.autofill,
        parallel=args.parallel,
    )

    if not response.ok:
        print(f"Error: {response.error}: {response.details}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_results(response, coefficients)
        if args.sensitivity:
            print_sensitivity_tables(response, coefficients)

    if args.save:
        save_response(response, args.save)
        logger.info("Response saved to %s", args.save)

    if args.strict and not response.is_valid:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
