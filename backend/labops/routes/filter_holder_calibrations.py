from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import calibrations as service

router = APIRouter(prefix="/api/filter-holder-calibrations", tags=["calibrations"])

Record = models.FilterHolderCalibration


def _get_record(db: Session, record_id: UUID) -> models.FilterHolderCalibration:
    record = db.get(Record, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Filter holder calibration not found")
    return record


def _filtered(query, filter_holder_model, status, technician):
    if filter_holder_model:
        query = query.filter(Record.filter_holder_model.ilike(f"%{filter_holder_model}%"))
    if status:
        query = query.filter(Record.status == status)
    if technician:
        query = query.filter(Record.technician.ilike(f"%{technician}%"))
    return query


@router.get("", response_model=schemas.Page[schemas.FilterHolderCalibrationOut])
def list_calibrations(
    filter_holder_model: str | None = None,
    status: str | None = None,
    technician: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(Record).filter(Record.archived_at.is_(None))
    query = _filtered(query, filter_holder_model, status, technician)
    return paginate(query.order_by(Record.date.desc()), page, limit)


@router.get("/archived", response_model=schemas.Page[schemas.FilterHolderCalibrationOut])
def list_archived(
    filter_holder_model: str | None = None,
    status: str | None = None,
    technician: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(Record).filter(Record.archived_at.is_not(None))
    query = _filtered(query, filter_holder_model, status, technician)
    return paginate(query.order_by(Record.archived_at.desc(), Record.date.desc()), page, limit)


@router.get("/stats", response_model=schemas.FilterHolderCalibrationStats)
def filter_holder_stats(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    records = db.query(Record).order_by(Record.date.desc()).all()
    stats = service.calibration_stats(records, "date")
    stats["recent_calibrations"] = records[:5]
    return stats


@router.get("/model/{filter_holder_model}", response_model=list[schemas.FilterHolderCalibrationOut])
def list_by_model(
    filter_holder_model: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return (
        db.query(Record)
        .filter(Record.filter_holder_model == filter_holder_model)
        .order_by(Record.date.desc())
        .all()
    )


@router.get("/{record_id}", response_model=schemas.FilterHolderCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.FilterHolderCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.FilterHolderCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_filter_holder_calibration(db, data, user)
    except calibration.CalibrationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.FilterHolderCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.FilterHolderCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    try:
        return service.update_filter_holder_calibration(db, record, data, user)
    except calibration.CalibrationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{record_id}", response_model=schemas.MessageOut)
def delete_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.delete")),
):
    record = _get_record(db, record_id)
    db.delete(record)
    db.commit()
    return {"message": "Filter holder calibration deleted successfully"}
