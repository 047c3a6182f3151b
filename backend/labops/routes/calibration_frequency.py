from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..database import get_db
from ..rbac import require_permissions
from ..services import DuplicateReference
from ..services import calibrations as service

router = APIRouter(prefix="/api/calibration-frequency", tags=["calibration-frequency"])

admin_only = require_permissions("admin.access")


def _get_row(db: Session, row_id: UUID) -> models.CalibrationFrequency:
    row = db.get(models.CalibrationFrequency, row_id)
    if not row:
        raise HTTPException(status_code=404, detail="Calibration frequency not found")
    return row


@router.get("/fixed", response_model=list[schemas.CalibrationFrequencyOut])
def list_frequencies(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return db.query(models.CalibrationFrequency).order_by(models.CalibrationFrequency.equipment_type).all()


@router.get("/fixed/{row_id}", response_model=schemas.CalibrationFrequencyOut)
def get_frequency(
    row_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_row(db, row_id)


@router.post("/fixed", response_model=schemas.CalibrationFrequencyOut, status_code=201)
def create_frequency(
    data: schemas.CalibrationFrequencyCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(admin_only),
):
    try:
        service.ensure_unique_frequency(db, data.equipment_type)
    except DuplicateReference as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    row = models.CalibrationFrequency(**data.model_dump(), created_by=user.id, updated_by=user.id)
    db.add(row)
    db.commit()
    db.refresh(row)
    service.apply_frequency(db, row)
    audit.log_action(db, user.id, "create_calibration_frequency", "calibration_frequency", row.id)
    db.refresh(row)
    return row


@router.put("/fixed/{row_id}", response_model=schemas.CalibrationFrequencyOut)
def update_frequency(
    row_id: UUID,
    data: schemas.CalibrationFrequencyUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(admin_only),
):
    row = _get_row(db, row_id)
    old_type = row.equipment_type
    changes = data.model_dump(exclude_unset=True)
    if changes.get("equipment_type"):
        try:
            service.ensure_unique_frequency(db, changes["equipment_type"], row.id)
        except DuplicateReference as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    for k, v in changes.items():
        setattr(row, k, v)
    row.updated_by = user.id
    db.commit()
    db.refresh(row)
    service.apply_frequency(db, row)
    if row.equipment_type != old_type:
        service.restore_default_frequency(db, old_type)
    db.refresh(row)
    return row


@router.delete("/fixed/{row_id}", response_model=schemas.MessageOut)
def delete_frequency(
    row_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(admin_only),
):
    row = _get_row(db, row_id)
    equipment_type = row.equipment_type
    db.delete(row)
    db.commit()
    service.restore_default_frequency(db, equipment_type)
    return {"message": "Calibration frequency deleted"}
