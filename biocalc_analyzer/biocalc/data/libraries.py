"""Coefficient library loader for BioCalc Analyzer.

Loads coefficient sets (emission factors, calorific values, CBIO market
references) from JSON files and builds immutable ``CoefficientSet``
objects from them. Bundled sets live in ``biocalc/resources/coefficients``.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from biocalc.models.coefficients import DEFAULT_COEFFICIENTS, CoefficientSet

logger = logging.getLogger(__name__)


def _get_resource_path(relative_path: str) -> Path:
    """Get absolute path to resource, works for dev and for PyInstaller."""
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        # Running as PyInstaller bundle
        base_path = Path(sys._MEIPASS) / "biocalc"
    else:
        base_path = Path(__file__).resolve().parent.parent
    return base_path / relative_path


def _build_coefficients(name: str, lib: dict) -> CoefficientSet:
    """Merge a library entry over the built-in defaults."""
    merged = DEFAULT_COEFFICIENTS.to_dict()
    values = lib.get("coefficients", {})
    for key in ("fuels", "fossil_references"):
        if key in values:
            merged[key] = {**merged[key], **values[key]}
    merged.update({k: v for k, v in values.items() if k not in ("fuels", "fossil_references")})
    merged["name"] = name
    return CoefficientSet.from_dict(merged)


_DEFAULT_LIBRARY_DIR = _get_resource_path("resources/coefficients")
DEFAULT_SHEET_PATH = _get_resource_path("resources/auxiliary_sheet.json")


class CoefficientLibrary:
    """Manages loading coefficient sets.

    Scans a directory for JSON files, each describing one coefficient set
    with a ``name`` plus metadata and a ``coefficients`` object.

    Args:
        library_dir: Path to directory containing coefficient JSON files.
            Defaults to biocalc/resources/coefficients/.
    """

    def __init__(self, library_dir: str = ""):
        self.library_dir = Path(library_dir) if library_dir else _DEFAULT_LIBRARY_DIR
        self._libraries: Dict[str, dict] = {}
        self._load_all()

    def _load_all(self) -> None:
        """Load all JSON files from the library directory."""
        if not self.library_dir.exists():
            logger.warning("Coefficient library directory not found: %s", self.library_dir)
            return
        for path in sorted(self.library_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                key = data.get("name", path.stem)
                self._libraries[key] = data
            except (json.JSONDecodeError, AttributeError) as e:
                logger.warning("Skipping malformed coefficient file %s: %s", path.name, e)
                continue

    def get_library_names(self) -> List[str]:
        """Return sorted list of available coefficient set names."""
        return sorted(self._libraries.keys())

    def get_library_metadata(self, name: str) -> Dict[str, str]:
        """Return metadata for a coefficient set (source, version, date, notes).

        Args:
            name: Set name as returned by get_library_names().

        Returns:
            Dict with keys: source, version, date_published, notes.
        """
        lib = self._libraries.get(name, {})
        return {
            "source": lib.get("source", ""),
            "version": lib.get("version", ""),
            "date_published": lib.get("date_published", ""),
            "notes": lib.get("notes", ""),
        }

    def get_coefficients(self, name: str) -> CoefficientSet:
        """Build the CoefficientSet for a named library.

        Values missing from the file keep the built-in defaults.

        Args:
            name: Set name.

        Returns:
            CoefficientSet.

        Raises:
            KeyError: If name is not found.
        """
        if name not in self._libraries:
            raise KeyError(f"Coefficient set '{name}' not found. Available: {self.get_library_names()}")
        return _build_coefficients(name, self._libraries[name])


def load_coefficients_file(filepath: str) -> CoefficientSet:
    """Load a single coefficient set from a JSON file.

    Args:
        filepath: File with the same layout as a library entry.

    Returns:
        CoefficientSet.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
    """
    path = Path(filepath)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return _build_coefficients(data.get("name", path.stem), data)
