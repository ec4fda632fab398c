"""
Analysis payload loader.

Reads a JSON analysis payload, validates it against the pydantic schema and
returns the immutable RideRequest the pipeline consumes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from rideweather.pipeline import RideRequest
from rideweather.schemas import AnalyzeRequest

logger = logging.getLogger(__name__)


class AnalysisConfigError(ValueError):
    """Raised when an analysis payload is missing required fields or invalid."""


def build_ride_request(payload: Dict[str, Any]) -> RideRequest:
    """Validate a decoded payload and convert it into a RideRequest."""
    if not isinstance(payload, dict):
        raise AnalysisConfigError(f"Analysis payload must be a JSON object, got {type(payload).__name__}")
    try:
        model = AnalyzeRequest.model_validate(payload)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in e.errors()
        )
        raise AnalysisConfigError(f"Invalid analysis payload: {problems}") from e
    request = model.to_request()
    logger.info(
        f"Loaded analysis payload: {len(request.samples)} samples, "
        f"{len(request.power_segments)} power segments, units {request.settings.unit_system}"
    )
    return request


def load_ride_request(path: Path) -> RideRequest:
    """Load a JSON payload from disk."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Analysis payload not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as e:
            raise AnalysisConfigError(f"{path} is not valid JSON: {e}") from e
    return build_ride_request(payload)
