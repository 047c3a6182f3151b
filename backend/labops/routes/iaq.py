import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, notify, schemas
from ..auth import get_current_user
from ..config import Settings, get_settings
from ..database import get_db
from ..services import RecordNotFound
from ..services import iaq as service

logger = logging.getLogger(__name__)

records_router = APIRouter(prefix="/api/iaq-records", tags=["iaq"])
samples_router = APIRouter(prefix="/api/iaq-samples", tags=["iaq"])


def _get_record(db: Session, record_id: UUID) -> models.IAQRecord:
    record = db.get(models.IAQRecord, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="IAQ record not found")
    return record


def _get_sample(db: Session, sample_id: UUID) -> models.IAQSample:
    sample = db.get(models.IAQSample, sample_id)
    if not sample:
        raise HTTPException(status_code=404, detail="IAQ sample not found")
    return sample


def _samples_for(db: Session, record_id: UUID) -> list[models.IAQSample]:
    return (
        db.query(models.IAQSample)
        .filter(models.IAQSample.iaq_record_id == record_id)
        .order_by(models.IAQSample.created_at)
        .all()
    )


@records_router.get("", response_model=list[schemas.IAQRecordOut])
def list_records(
    status: str | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = db.query(models.IAQRecord)
    if status:
        query = query.filter(models.IAQRecord.status == status)
    return query.order_by(models.IAQRecord.monitoring_date.desc()).all()


@records_router.get("/{record_id}", response_model=schemas.IAQRecordDetail)
def get_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    record = _get_record(db, record_id)
    detail = schemas.IAQRecordDetail.model_validate(record)
    detail.samples = [schemas.IAQSampleOut.model_validate(s) for s in _samples_for(db, record.id)]
    return detail


@records_router.post("", response_model=schemas.IAQRecordOut, status_code=201)
def create_record(
    data: schemas.IAQRecordCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    record = models.IAQRecord(**data.model_dump(), sample_ids=[])
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@records_router.patch("/{record_id}", response_model=schemas.IAQRecordOut)
def update_record(
    record_id: UUID,
    data: schemas.IAQRecordUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    record = _get_record(db, record_id)
    changes = data.model_dump(exclude_unset=True)
    newly_approved = bool(changes.get("report_approved_by")) and not record.report_approved_by
    for k, v in changes.items():
        setattr(record, k, v)
    db.commit()
    db.refresh(record)
    if newly_approved:
        notify.send_email(
            settings,
            user.email,
            "IAQ report approved",
            f"The IAQ report for {record.monitoring_date} was approved by {record.report_approved_by}.",
        )
    return record


@records_router.delete("/{record_id}", response_model=schemas.MessageOut)
def delete_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    record = _get_record(db, record_id)
    removed = (
        db.query(models.IAQSample)
        .filter(models.IAQSample.iaq_record_id == record.id)
        .delete(synchronize_session=False)
    )
    db.delete(record)
    db.commit()
    logger.info("Deleted IAQ record %s with %d samples", record_id, removed)
    return {"message": "IAQ record deleted"}


@samples_router.get("", response_model=list[schemas.IAQSampleOut])
def list_samples(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return db.query(models.IAQSample).order_by(models.IAQSample.created_at.desc()).all()


@samples_router.get("/record/{record_id}", response_model=list[schemas.IAQSampleOut])
def list_samples_for_record(
    record_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    _get_record(db, record_id)
    return _samples_for(db, record_id)


@samples_router.get("/{sample_id}", response_model=schemas.IAQSampleOut)
def get_sample(
    sample_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return _get_sample(db, sample_id)


@samples_router.post("", response_model=schemas.IAQSampleOut, status_code=201)
def create_sample(
    data: schemas.IAQSampleCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    sample = models.IAQSample(**data.model_dump())
    sample.cowl_no = service.normalize_cowl(sample.cowl_no)
    db.add(sample)
    db.flush()
    try:
        service.attach_sample(db, sample)
    except RecordNotFound as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc))
    db.commit()
    db.refresh(sample)
    return sample


@samples_router.patch("/{sample_id}", response_model=schemas.IAQSampleOut)
def update_sample(
    sample_id: UUID,
    data: schemas.IAQSampleUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    sample = _get_sample(db, sample_id)
    changes = data.model_dump(exclude_unset=True)
    if "cowl_no" in changes:
        changes["cowl_no"] = service.normalize_cowl(changes["cowl_no"])
    for k, v in changes.items():
        setattr(sample, k, v)
    db.commit()
    db.refresh(sample)
    return sample


@samples_router.delete("/{sample_id}", response_model=schemas.MessageOut)
def delete_sample(
    sample_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    sample = _get_sample(db, sample_id)
    service.detach_sample(db, sample)
    db.delete(sample)
    db.commit()
    return {"message": "IAQ sample deleted"}
