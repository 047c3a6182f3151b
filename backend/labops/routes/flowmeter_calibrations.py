from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import calibrations as service

router = APIRouter(prefix="/api/flowmeter-calibrations", tags=["calibrations"])


def _get_record(db: Session, record_id: UUID) -> models.FlowmeterCalibration:
    record = db.get(models.FlowmeterCalibration, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Flowmeter calibration not found")
    return record


@router.get("", response_model=schemas.Page[schemas.FlowmeterCalibrationOut])
def list_calibrations(
    flowmeter_id: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(models.FlowmeterCalibration)
    if flowmeter_id:
        query = query.filter(models.FlowmeterCalibration.flowmeter_id == flowmeter_id)
    if status:
        query = query.filter(models.FlowmeterCalibration.status == status)
    return paginate(query.order_by(models.FlowmeterCalibration.date.desc()), page, limit)


@router.get("/{record_id}", response_model=schemas.FlowmeterCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.FlowmeterCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.FlowmeterCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_flowmeter_calibration(db, data, user)
    except calibration.CalibrationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.FlowmeterCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.FlowmeterCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    try:
        return service.update_flowmeter_calibration(db, record, data)
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
    return {"message": "Flowmeter calibration deleted successfully"}
