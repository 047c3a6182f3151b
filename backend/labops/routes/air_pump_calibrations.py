from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import RecordNotFound
from ..services import calibrations as service

router = APIRouter(prefix="/api/air-pump-calibrations", tags=["calibrations"])


def _get_record(db: Session, record_id: UUID) -> models.AirPumpCalibration:
    record = db.get(models.AirPumpCalibration, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Calibration not found")
    return record


@router.get("/pump/{pump_id}", response_model=schemas.Page[schemas.AirPumpCalibrationOut])
def list_pump_calibrations(
    pump_id: UUID,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = (
        db.query(models.AirPumpCalibration)
        .filter(models.AirPumpCalibration.pump_id == pump_id)
        .order_by(models.AirPumpCalibration.calibration_date.desc())
    )
    return paginate(query, page, limit)


@router.get("/pump/{pump_id}/stats", response_model=schemas.AirPumpCalibrationStats)
def pump_stats(
    pump_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return service.air_pump_stats(db, pump_id)


@router.get("/{record_id}", response_model=schemas.AirPumpCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.AirPumpCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.AirPumpCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_air_pump_calibration(db, data, user)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except calibration.CalibrationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.AirPumpCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.AirPumpCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    try:
        return service.update_air_pump_calibration(db, record, data)
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
    return {"message": "Calibration deleted successfully"}
