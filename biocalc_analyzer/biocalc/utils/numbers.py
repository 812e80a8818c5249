"""Locale-aware number parsing for BioCalc Analyzer.

Form values arrive as Brazilian-style decimal strings: ``.`` groups
thousands and ``,`` separates decimals (e.g. "1.234,56"). These helpers
turn them into floats without ever raising on bad input.
"""

import math
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")


def parse_locale_number(raw, default: Optional[float] = 0.0) -> Optional[float]:
    """Parse a comma-decimal string into a float.

    Thousands separators are removed, the decimal comma becomes a point,
    and the remainder is parsed. Anything that does not produce a finite
    number resolves to ``default``.

    Args:
        raw: Value entered by the user. Only ``str`` values are parsed.
        default: Value returned for missing, empty or invalid input.
            Pass ``None`` to detect whether parsing succeeded.

    Returns:
        Parsed float, or ``default``.

    Example:
        >>> parse_locale_number("1.234,56")
        1234.56
        >>> parse_locale_number("abc", 7.0)
        7.0
    """
    if not isinstance(raw, str):
        return default
    cleaned = _WHITESPACE.sub("", raw)
    if not cleaned:
        return default
    normalized = cleaned.replace(".", "").replace(",", ".", 1)
    # float() also accepts "1_000", "inf" and "nan"; none are valid entries
    if "_" in normalized:
        return default
    try:
        value = float(normalized)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return value


def parse_scientific(raw) -> float:
    """Parse a value rendered by ``format_scientific`` (e.g. "1,23E-02").

    Unlike ``parse_locale_number`` the dot is not treated as a thousands
    separator, so plain "0.5" also parses. Invalid input yields 0.0.
    """
    if not isinstance(raw, str):
        return 0.0
    normalized = raw.strip().replace(",", ".", 1).replace("E", "e")
    if not normalized or "_" in normalized:
        return 0.0
    try:
        value = float(normalized)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def finite_or_zero(value: float) -> float:
    """Return ``value`` unchanged when finite, otherwise 0.0."""
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)
