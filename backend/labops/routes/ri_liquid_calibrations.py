import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import calibrations as service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ri-liquid-calibrations", tags=["calibrations"])


def _get_record(db: Session, record_id: UUID) -> models.RiLiquidCalibration:
    record = db.get(models.RiLiquidCalibration, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Calibration not found")
    return record


@router.get("", response_model=schemas.Page[schemas.RiLiquidCalibrationOut])
def list_calibrations(
    bottle_id: str | None = None,
    status: str | None = None,
    include_empty: bool = False,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(models.RiLiquidCalibration)
    if bottle_id:
        query = query.filter(models.RiLiquidCalibration.bottle_id == bottle_id)
    if status:
        query = query.filter(models.RiLiquidCalibration.status == status)
    if not include_empty:
        query = query.filter(models.RiLiquidCalibration.is_empty.is_(False))
    return paginate(query.order_by(models.RiLiquidCalibration.date.desc()), page, limit)


@router.get("/bottle/{bottle_id}", response_model=list[schemas.RiLiquidCalibrationOut])
def list_by_bottle(
    bottle_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return (
        db.query(models.RiLiquidCalibration)
        .filter(models.RiLiquidCalibration.bottle_id == bottle_id)
        .order_by(models.RiLiquidCalibration.date.desc())
        .all()
    )


@router.put("/bottle/{bottle_id}/empty", response_model=schemas.BulkUpdateOut)
def mark_bottle_empty(
    bottle_id: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    updated = service.mark_bottle_empty(db, bottle_id)
    logger.info("Marked %d calibrations empty for bottle %s", updated, bottle_id)
    return {"message": f"Marked {updated} calibration(s) as empty", "updated_count": updated}


@router.get("/{record_id}", response_model=schemas.RiLiquidCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.RiLiquidCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.RiLiquidCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_ri_liquid_calibration(db, data, user)
    except calibration.CalibrationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.RiLiquidCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.RiLiquidCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    try:
        return service.update_ri_liquid_calibration(db, record, data)
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
