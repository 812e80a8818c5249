"""Request/response save/load functionality using JSON serialization."""

import json
from pathlib import Path

from biocalc.models.pipeline import CalculationRequest, CalculationResponse


def load_request(filepath: str) -> CalculationRequest:
    """Load a calculation request from a JSON file.

    Args:
        filepath: Path to a JSON file with "agricultural", "industrial"
            and "distribution" objects.

    Returns:
        CalculationRequest.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
        ValueError: If the body or a phase is not an object.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    return CalculationRequest.from_dict(data)


def save_request(request: CalculationRequest, filepath: str) -> None:
    """Save a calculation request to a JSON file.

    Raises:
        OSError: If file cannot be written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(request.to_dict(), f, indent=2, ensure_ascii=False)


def save_response(response: CalculationResponse, filepath: str) -> None:
    """Save a calculation response to a JSON file.

    Args:
        response: Response to save.
        filepath: Output file path (should end in .json).

    Raises:
        OSError: If file cannot be written.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(response.to_dict(), f, indent=2, ensure_ascii=False, default=str)
