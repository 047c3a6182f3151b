from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions
from ..services import DuplicateReference
from ..services import samples as service

router = APIRouter(prefix="/api/air-monitoring-samples", tags=["samples"])

Sample = models.AirMonitoringSample


def _get_sample(db: Session, sample_id: UUID) -> models.AirMonitoringSample:
    sample = db.get(Sample, sample_id)
    if not sample:
        raise HTTPException(status_code=404, detail="Sample not found")
    return sample


def _check_project(db: Session, project_id: UUID | None) -> None:
    if project_id and not db.get(models.Project, project_id):
        raise HTTPException(status_code=404, detail="Project not found")


@router.get("", response_model=schemas.Page[schemas.AirMonitoringSampleOut])
def list_samples(
    project_id: UUID | None = None,
    status: str | None = None,
    type: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.view")),
):
    query = db.query(Sample)
    if project_id:
        query = query.filter(Sample.project_id == project_id)
    if status:
        query = query.filter(Sample.status == status)
    if type:
        query = query.filter(Sample.type == type)
    return paginate(query.order_by(Sample.created_at.desc()), page, limit)


@router.get("/project/{project_id}", response_model=list[schemas.AirMonitoringSampleOut])
def list_for_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.view")),
):
    return (
        db.query(Sample)
        .filter(Sample.project_id == project_id)
        .order_by(Sample.sample_number)
        .all()
    )


@router.get("/{sample_id}", response_model=schemas.AirMonitoringSampleOut)
def get_sample(
    sample_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.view")),
):
    return _get_sample(db, sample_id)


@router.post("", response_model=schemas.AirMonitoringSampleOut, status_code=201)
def create_sample(
    data: schemas.AirMonitoringSampleCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.create")),
):
    _check_project(db, data.project_id)
    try:
        service.ensure_unique_sample_id(db, data.full_sample_id)
    except DuplicateReference as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    values = data.model_dump()
    if values["average_flowrate"] is None:
        values["average_flowrate"] = service.average_flowrate(data.initial_flowrate, data.final_flowrate)
    if values["collected_by"] is None:
        values["collected_by"] = user.id
    sample = Sample(**values)
    db.add(sample)
    db.commit()
    db.refresh(sample)
    return sample


@router.patch("/{sample_id}", response_model=schemas.AirMonitoringSampleOut)
def update_sample(
    sample_id: UUID,
    data: schemas.AirMonitoringSampleUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.edit")),
):
    sample = _get_sample(db, sample_id)
    changes = data.model_dump(exclude_unset=True)
    if "project_id" in changes:
        _check_project(db, changes["project_id"])
    try:
        if changes.get("full_sample_id"):
            service.ensure_unique_sample_id(db, changes["full_sample_id"], exclude_id=sample.id)
        if changes.get("analysis") is not None:
            changes["analysis"] = service.normalize_analysis(changes["analysis"])
            sample.analyzed_by = user.id
    except (DuplicateReference, service.InvalidAnalysis) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    for k, v in changes.items():
        setattr(sample, k, v)
    if "average_flowrate" not in changes and ("initial_flowrate" in changes or "final_flowrate" in changes):
        sample.average_flowrate = service.average_flowrate(sample.initial_flowrate, sample.final_flowrate)
    db.commit()
    db.refresh(sample)
    return sample


@router.delete("/{sample_id}", response_model=schemas.MessageOut)
def delete_sample(
    sample_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("jobs.delete")),
):
    sample = _get_sample(db, sample_id)
    db.delete(sample)
    db.commit()
    return {"message": "Sample deleted successfully"}
