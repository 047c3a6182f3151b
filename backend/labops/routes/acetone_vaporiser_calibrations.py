from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import calibration, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import RecordNotFound
from ..services import calibrations as service

router = APIRouter(prefix="/api/acetone-vaporiser-calibrations", tags=["calibrations"])


def _get_record(db: Session, record_id: UUID) -> models.AcetoneVaporiserCalibration:
    record = db.get(models.AcetoneVaporiserCalibration, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Calibration record not found")
    return record


@router.get("", response_model=schemas.Page[schemas.AcetoneVaporiserCalibrationOut])
def list_calibrations(
    vaporiser_id: UUID | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    query = db.query(models.AcetoneVaporiserCalibration)
    if vaporiser_id:
        query = query.filter(models.AcetoneVaporiserCalibration.vaporiser_id == vaporiser_id)
    if status:
        query = query.filter(models.AcetoneVaporiserCalibration.status == status)
    return paginate(query.order_by(models.AcetoneVaporiserCalibration.date.desc()), page, limit)


@router.get("/equipment/{vaporiser_id}", response_model=list[schemas.AcetoneVaporiserCalibrationOut])
def list_for_vaporiser(
    vaporiser_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return (
        db.query(models.AcetoneVaporiserCalibration)
        .filter(models.AcetoneVaporiserCalibration.vaporiser_id == vaporiser_id)
        .order_by(models.AcetoneVaporiserCalibration.date.desc())
        .all()
    )


@router.get("/{record_id}", response_model=schemas.AcetoneVaporiserCalibrationOut)
def get_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.view")),
):
    return _get_record(db, record_id)


@router.post("", response_model=schemas.AcetoneVaporiserCalibrationOut, status_code=201)
def create_calibration(
    data: schemas.AcetoneVaporiserCalibrationCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.create")),
):
    try:
        return service.create_acetone_vaporiser_calibration(db, data, user)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except calibration.CalibrationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{record_id}", response_model=schemas.AcetoneVaporiserCalibrationOut)
def update_calibration(
    record_id: UUID,
    data: schemas.AcetoneVaporiserCalibrationUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.edit")),
):
    record = _get_record(db, record_id)
    return service.update_acetone_vaporiser_calibration(db, record, data)


@router.delete("/{record_id}", response_model=schemas.MessageOut)
def delete_calibration(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("calibrations.delete")),
):
    record = _get_record(db, record_id)
    db.delete(record)
    db.commit()
    return {"message": "Calibration record deleted successfully"}
