from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..services.clearances import next_sequence_number

router = APIRouter(prefix="/api/lead-clearances", tags=["lead-clearances"])


def _get_clearance(db: Session, clearance_id: UUID) -> models.LeadClearance:
    clearance = db.get(models.LeadClearance, clearance_id)
    if not clearance:
        raise HTTPException(status_code=404, detail="Lead clearance not found")
    return clearance


@router.get("", response_model=list[schemas.LeadClearanceOut])
def list_clearances(
    project_id: UUID | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = db.query(models.LeadClearance)
    if project_id:
        query = query.filter(models.LeadClearance.project_id == project_id)
    return query.order_by(
        models.LeadClearance.clearance_date.desc(),
        models.LeadClearance.sequence_number.desc(),
    ).all()


@router.get("/{clearance_id}", response_model=schemas.LeadClearanceOut)
def get_clearance(
    clearance_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return _get_clearance(db, clearance_id)


@router.post("", response_model=schemas.LeadClearanceOut, status_code=201)
def create_clearance(
    data: schemas.LeadClearanceCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    if not db.get(models.Project, data.project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    clearance = models.LeadClearance(
        **data.model_dump(exclude_none=True),
        sequence_number=next_sequence_number(db, data.project_id, data.clearance_date),
        created_by=user.id,
    )
    db.add(clearance)
    db.commit()
    db.refresh(clearance)
    return clearance


@router.patch("/{clearance_id}", response_model=schemas.LeadClearanceOut)
def update_clearance(
    clearance_id: UUID,
    data: schemas.LeadClearanceUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    clearance = _get_clearance(db, clearance_id)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(clearance, k, v)
    db.commit()
    db.refresh(clearance)
    return clearance


@router.delete("/{clearance_id}", response_model=schemas.MessageOut)
def delete_clearance(
    clearance_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    clearance = _get_clearance(db, clearance_id)
    db.delete(clearance)
    db.commit()
    return {"message": "Lead clearance deleted"}
