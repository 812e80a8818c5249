"""Number formatting utilities for BioCalc Analyzer.

Values are displayed the way the source worksheet shows them: decimal
comma, no thousands grouping, and scientific notation for auto-filled
coefficients.
"""

from biocalc.utils.numbers import finite_or_zero


def format_locale_number(value: float, decimals: int = 2) -> str:
    """Format a number in fixed point with a decimal comma.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.

    Returns:
        Formatted string without grouping (e.g., "1234,56").
    """
    return f"{value:.{decimals}f}".replace(".", ",")


def format_scientific(value: float) -> str:
    """Format a number as the worksheet renders auto-filled cells.

    Two fraction digits in exponential notation, decimal comma and an
    upper-case exponent marker.

    Args:
        value: The numeric value to format.

    Returns:
        Formatted string (e.g., "1,23E-2" for 0.0123). Non-finite values
        are rendered as zero.
    """
    mantissa, exponent = f"{finite_or_zero(value):.2e}".split("e")
    sign = "-" if exponent.startswith("-") else "+"
    # JavaScript-style exponent: no zero padding ("E+5", "E-2")
    digits = str(int(exponent.lstrip("+-")))
    return f"{mantissa.replace('.', ',')}E{sign}{digits}"


def format_number(value: float, decimals: int = 1) -> str:
    """Format a number with a decimal comma and dot thousands grouping.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.

    Returns:
        Formatted number string (e.g., "1.234,5").
    """
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_percent(value: float, decimals: int = 1) -> str:
    """Format a value already expressed in percent (e.g., 42.0 -> "42,0%")."""
    return f"{format_locale_number(value, decimals)}%"


def format_intensity(value: float, decimals: int = 4) -> str:
    """Format a carbon intensity in kg CO2e/MJ."""
    return f"{format_locale_number(value, decimals)} kg CO2e/MJ"


def format_currency_brl(value: float, decimals: int = 2) -> str:
    """Format a value in Brazilian reais (e.g., "R$ 1.561,40")."""
    return f"R$ {format_number(value, decimals)}"
