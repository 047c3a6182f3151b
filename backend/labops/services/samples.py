from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models
from . import DuplicateReference, ServiceError

# purpose: keep air-monitoring sample IDs unique and analysis results numeric
# status: active

BELOW_DETECTION = "<0.01"
NOT_APPLICABLE = "N/A"


class InvalidAnalysis(ServiceError):
    """Raised when an analysis result cannot be read as a number."""


def ensure_unique_sample_id(db: Session, full_sample_id: str, exclude_id: UUID | None = None) -> None:
    query = db.query(models.AirMonitoringSample).filter(
        models.AirMonitoringSample.full_sample_id == full_sample_id
    )
    if exclude_id is not None:
        query = query.filter(models.AirMonitoringSample.id != exclude_id)
    if query.first():
        raise DuplicateReference(f"Sample ID {full_sample_id} already exists")


def average_flowrate(initial: float | None, final: float | None) -> float | None:
    if initial is None or final is None:
        return None
    return (initial + final) / 2


def normalize_analysis(analysis: dict[str, Any]) -> dict[str, Any]:
    """Coerce counted fields to ints and the reported concentration to a float.

    ``<0.01`` is stored as the detection limit and ``N/A`` as no result.
    """

    result = {k: v for k, v in analysis.items() if k != "fibre_counts"}
    concentration = result.get("reported_concentration")
    try:
        if concentration == BELOW_DETECTION:
            result["reported_concentration"] = 0.01
        elif concentration in (NOT_APPLICABLE, None, ""):
            result["reported_concentration"] = None
        else:
            result["reported_concentration"] = float(concentration)
        for key in ("fibres_counted", "fields_counted"):
            result[key] = int(result.get(key) or 0)
    except (TypeError, ValueError) as exc:
        raise InvalidAnalysis(f"Error processing analysis data: {exc}") from exc
    return result
