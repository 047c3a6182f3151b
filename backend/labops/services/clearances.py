from datetime import date
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models


def next_sequence_number(db: Session, project_id: UUID, clearance_date: date) -> int:
    """One more than the highest sequence used for the project on that day."""

    highest = (
        db.query(func.max(models.LeadClearance.sequence_number))
        .filter(
            models.LeadClearance.project_id == project_id,
            models.LeadClearance.clearance_date == clearance_date,
        )
        .scalar()
    )
    return (highest or 0) + 1
