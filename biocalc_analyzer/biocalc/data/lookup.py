"""Worksheet-backed lookup tables for BioCalc Analyzer.

The auxiliary coefficients (biomass properties, combustion factors,
transport factors) live in a worksheet dump. This module reads that dump
into a ``SheetSource`` and provides VLOOKUP-style accessors over
rectangular tables extracted from it.

A lookup never raises for missing data: an unreachable table, a bad
range or an unmatched key all produce ``NOT_FOUND``, which callers treat
as "use the default coefficient".
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl.utils.cell import (
    column_index_from_string,
    coordinate_from_string,
    get_column_letter,
    range_boundaries,
)
from openpyxl.utils.exceptions import CellCoordinatesException

logger = logging.getLogger(__name__)


class _NotFound:
    """Sentinel type for a lookup miss."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


@dataclass(frozen=True)
class CellValue:
    """A single worksheet cell as returned by the lookup service.

    Attributes:
        raw_value: Underlying value (number, text, bool or None).
        formula: Cell formula, if any. Never evaluated here.
        formatted_value: Text as displayed by the worksheet, if known.
    """

    raw_value: Any = None
    formula: Optional[str] = None
    formatted_value: Optional[str] = None

    @property
    def text(self) -> str:
        """Displayed text, preferring the formatted value."""
        if self.formatted_value is not None:
            return self.formatted_value.strip()
        if self.raw_value is None:
            return ""
        return str(self.raw_value).strip()

    def to_dict(self) -> dict:
        return {
            "v": self.raw_value,
            "f": self.formula,
            "w": self.formatted_value,
        }

    @classmethod
    def from_dict(cls, data) -> "CellValue":
        if not isinstance(data, dict):
            return cls(raw_value=data)
        return cls(
            raw_value=data.get("v"),
            formula=data.get("f"),
            formatted_value=data.get("w"),
        )


def column_to_index(letters: str) -> int:
    """Convert column letters to a 0-based index ("A" -> 0, "AA" -> 26)."""
    return column_index_from_string(letters) - 1


def index_to_column(index: int) -> str:
    """Convert a 0-based column index back to letters."""
    return get_column_letter(index + 1)


def parse_address(address: str) -> Optional[Tuple[int, int]]:
    """Parse an A1 address into 0-based (row, column), or None if malformed."""
    if not isinstance(address, str):
        return None
    try:
        letters, row = coordinate_from_string(address.strip().upper())
        return row - 1, column_to_index(letters)
    except (CellCoordinatesException, ValueError):
        return None


def parse_range(range_address: str) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """Parse "B33:G39" (or a single "G74") into start/end (row, column) pairs.

    Returns None for malformed ranges, whole-row or whole-column ranges and
    ranges whose end precedes the start.
    """
    if not isinstance(range_address, str):
        return None
    try:
        min_col, min_row, max_col, max_row = range_boundaries(range_address.strip().upper())
    except ValueError:
        return None
    if None in (min_col, min_row, max_col, max_row):
        return None
    if max_row < min_row or max_col < min_col or min_row < 1:
        return None
    return (min_row - 1, min_col - 1), (max_row - 1, max_col - 1)


def encode_address(row: int, col: int) -> str:
    """Encode 0-based (row, column) as an A1 address."""
    return f"{index_to_column(col)}{row + 1}"


class SheetSource:
    """Read-only collection of worksheets keyed by cell address.

    Args:
        sheets: Mapping of sheet name to {address: CellValue}.
    """

    def __init__(self, sheets: Optional[Dict[str, Dict[str, CellValue]]] = None):
        self._sheets: Dict[str, Dict[str, CellValue]] = {}
        for name, cells in (sheets or {}).items():
            self._sheets[name] = {addr.upper(): cell for addr, cell in cells.items()}

    @property
    def sheet_names(self) -> List[str]:
        return sorted(self._sheets)

    def get_cell(self, sheet: str, address: str) -> Optional[CellValue]:
        """Return one cell, or None when the sheet or cell is missing."""
        cells = self._sheets.get(sheet)
        if cells is None or parse_address(address) is None:
            return None
        return cells.get(address.strip().upper())

    def get_range(self, sheet: str, range_address: str) -> Optional[Dict[str, CellValue]]:
        """Return the populated cells of a range keyed by address.

        Returns None when the sheet does not exist or the range is malformed.
        Empty cells are omitted, as the lookup service does.
        """
        cells = self._sheets.get(sheet)
        if cells is None:
            logger.debug("Worksheet not found: %s", sheet)
            return None
        bounds = parse_range(range_address)
        if bounds is None:
            logger.debug("Invalid range: %s", range_address)
            return None
        (r0, c0), (r1, c1) = bounds
        found = {}
        for r in range(r0, r1 + 1):
            for c in range(c0, c1 + 1):
                addr = encode_address(r, c)
                if addr in cells:
                    found[addr] = cells[addr]
        return found

    def get_table(self, sheet: str, range_address: str) -> Optional[List[List[str]]]:
        """Return a range as a row-major grid of cell texts.

        Missing cells become empty strings so every row has the same width.
        """
        cells = self.get_range(sheet, range_address)
        if cells is None:
            return None
        (r0, c0), (r1, c1) = parse_range(range_address)
        table = []
        for r in range(r0, r1 + 1):
            row = []
            for c in range(c0, c1 + 1):
                cell = cells.get(encode_address(r, c))
                row.append(cell.text if cell is not None else "")
            table.append(row)
        return table

    def to_dict(self) -> dict:
        return {
            "sheets": {
                name: {addr: cell.to_dict() for addr, cell in cells.items()}
                for name, cells in self._sheets.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SheetSource":
        sheets = {}
        for name, cells in data.get("sheets", {}).items():
            sheets[name] = {addr: CellValue.from_dict(cell) for addr, cell in cells.items()}
        return cls(sheets)


def load_sheet_source(filepath) -> SheetSource:
    """Load a worksheet dump from JSON.

    A missing or unreadable file yields an empty source, so every lookup
    against it reports NOT_FOUND and the default coefficients apply.

    Args:
        filepath: Path to a JSON file of the form
            {"sheets": {name: {address: {"v": ..., "f": ..., "w": ...}}}}.

    Returns:
        SheetSource instance.
    """
    path = Path(filepath)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Worksheet data unavailable at %s: %s", path, e)
        return SheetSource()
    if not isinstance(data, dict):
        logger.warning("Worksheet data at %s is not an object", path)
        return SheetSource()
    return SheetSource.from_dict(data)


def _normalize_key(value) -> str:
    if value is None:
        return ""
    if isinstance(value, CellValue):
        return value.text
    return str(value).strip()


def vertical_lookup(
    table: Optional[Sequence[Sequence[Any]]],
    lookup_value,
    lookup_column_offset: int,
    return_column_offset: int,
    exact_match: bool = True,
):
    """Find the first row whose key matches and return one of its columns.

    Equivalent to a worksheet VLOOKUP in exact-match mode. Keys are compared
    as trimmed, case-sensitive text. Offsets are 0-based within each row, so
    VLOOKUP column 6 corresponds to ``return_column_offset=5``. A blank or
    None lookup value never matches, not even a row whose key cell is empty.

    Args:
        table: Row-major grid, or None when the source was unreachable.
        lookup_value: Key to search for.
        lookup_column_offset: Column holding the key.
        return_column_offset: Column holding the value to return.
        exact_match: Must be True. Approximate (sorted range) matching is
            not supported.

    Returns:
        The matching cell value, or NOT_FOUND.

    Raises:
        NotImplementedError: If ``exact_match`` is False.

    Example:
        >>> vertical_lookup([["a", 1], ["a", 2]], "a", 0, 1)
        1
    """
    if not exact_match:
        raise NotImplementedError("Approximate-match lookup is not supported")
    if table is None or lookup_column_offset < 0 or return_column_offset < 0:
        return NOT_FOUND
    key = _normalize_key(lookup_value)
    if not key:
        logger.debug("Blank lookup value")
        return NOT_FOUND
    for row in table:
        if len(row) <= lookup_column_offset:
            continue
        if _normalize_key(row[lookup_column_offset]) != key:
            continue
        if len(row) <= return_column_offset:
            logger.debug("Row for %r has no column %d", key, return_column_offset)
            return NOT_FOUND
        return row[return_column_offset]
    logger.debug("No row matches %r", key)
    return NOT_FOUND


def vertical_lookup_multiple(
    table: Optional[Sequence[Sequence[Any]]],
    lookup_value,
    lookup_column_offset: int,
    return_column_offsets: Sequence[int],
) -> list:
    """Run one independent ``vertical_lookup`` per requested column."""
    return [
        vertical_lookup(table, lookup_value, lookup_column_offset, offset)
        for offset in return_column_offsets
    ]
