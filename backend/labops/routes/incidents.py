from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..rbac import require_permissions

router = APIRouter(prefix="/api/incidents", tags=["incidents"])


def _get_incident(db: Session, incident_id: UUID) -> models.Incident:
    incident = db.get(models.Incident, incident_id)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


@router.get("", response_model=list[schemas.IncidentOut])
def list_incidents(
    type: str | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = db.query(models.Incident)
    if type:
        query = query.filter(models.Incident.type == type)
    return query.order_by(models.Incident.date.desc()).all()


@router.get("/{incident_id}", response_model=schemas.IncidentOut)
def get_incident(
    incident_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return _get_incident(db, incident_id)


@router.post("", response_model=schemas.IncidentOut, status_code=201)
def create_incident(
    data: schemas.IncidentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    incident = models.Incident(**data.model_dump())
    if not incident.reported_by:
        incident.reported_by = user.full_name
    db.add(incident)
    db.commit()
    db.refresh(incident)
    return incident


@router.patch("/{incident_id}", response_model=schemas.IncidentOut)
def update_incident(
    incident_id: UUID,
    data: schemas.IncidentUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    incident = _get_incident(db, incident_id)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(incident, k, v)
    db.commit()
    db.refresh(incident)
    return incident


@router.patch("/{incident_id}/sign-off", response_model=schemas.IncidentOut)
def sign_off_incident(
    incident_id: UUID,
    data: schemas.IncidentSignOff,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    incident = _get_incident(db, incident_id)
    signer = db.get(models.User, data.signed_off_by)
    if not signer:
        raise HTTPException(status_code=400, detail="Sign-off user not found")
    incident.signed_off_by = signer.id
    incident.signed_off_by_name = data.signed_off_by_name or signer.full_name
    incident.signed_off_at = data.signed_off_at
    incident.sign_off_evidence = data.sign_off_evidence
    db.commit()
    db.refresh(incident)
    audit.log_action(db, user.id, "sign_off_incident", "incident", incident.id)
    return incident


@router.delete("/{incident_id}", response_model=schemas.MessageOut)
def delete_incident(
    incident_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("admin.delete")),
):
    incident = _get_incident(db, incident_id)
    db.delete(incident)
    db.commit()
    audit.log_action(db, user.id, "delete_incident", "incident", incident_id)
    return {"message": "Incident deleted"}
