from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import RecordNotFound
from ..services import calibrations as service

router = APIRouter(prefix="/api/graticule-calibrations", tags=["calibrations"])


def _get_record(db: Session, record_id: UUID) -> models.GraticuleCalibration:
    record = db.get(models.GraticuleCalibration, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Graticule calibration not found")
    return record


@router.get("", response_model=schemas.Page[schemas.GraticuleCalibrationOut])
def list_calibrations(
    graticule_id: str | None = None,
    status: str | None = None,
    technician: str | None = None,
    microscope_id: UUID | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(models.GraticuleCalibration)
    if graticule_id:
        query = query.filter(models.GraticuleCalibration.graticule_id.ilike(f"%{graticule_id}%"))
    if status:
        query = query.filter(models.GraticuleCalibration.status == status)
    if technician:
        query = query.filter(models.GraticuleCalibration.technician.ilike(f"%{technician}%"))
    if microscope_id:
        query = query.filter(models.GraticuleCalibration.microscope_id == microscope_id)
    return paginate(query.order_by(models.GraticuleCalibration.date.desc()), page, limit)


@router.get("/stats", response_model=schemas.CalibrationStats)
def graticule_stats(
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    records = db.query(models.GraticuleCalibration).all()
    return service.calibration_stats(records, "date", "next_calibration")


@router.get("/microscope/{microscope_id}", response_model=list[schemas.GraticuleCalibrationOut])
def list_by_microscope(
    microscope_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return (
        db.query(models.GraticuleCalibration)
        .filter(models.GraticuleCalibration.microscope_id == microscope_id)
        .order_by(models.GraticuleCalibration.date.desc())
        .all()
    )


@router.get("/{record_id}", response_model=schemas.GraticuleCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.GraticuleCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.GraticuleCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_graticule_calibration(db, data, user)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.GraticuleCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.GraticuleCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    try:
        return service.update_graticule_calibration(db, record, data)
    except RecordNotFound as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{record_id}", response_model=schemas.MessageOut)
def delete_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.delete")),
):
    record = _get_record(db, record_id)
    db.delete(record)
    db.commit()
    return {"message": "Graticule calibration deleted successfully"}
