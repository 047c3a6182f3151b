from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import check_permissions, require_permissions

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _get_project(db: Session, project_id: UUID) -> models.Project:
    project = db.get(models.Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("", response_model=schemas.Page[schemas.ProjectOut])
def list_projects(
    search: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.view")),
):
    query = db.query(models.Project)
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(
                models.Project.project_id.ilike(term),
                models.Project.name.ilike(term),
                models.Project.client.ilike(term),
            )
        )
    if status:
        query = query.filter(models.Project.status == status)
    return paginate(query.order_by(models.Project.created_at.desc()), page, limit)


@router.post("", response_model=schemas.ProjectOut, status_code=201)
def create_project(
    data: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.create")),
):
    if db.query(models.Project).filter(models.Project.project_id == data.project_id).first():
        raise HTTPException(status_code=400, detail="Project ID already exists")
    project = models.Project(**data.model_dump(), created_by=user.id)
    db.add(project)
    db.flush()
    audit.record_project_change(db, project.id, "created", user.id, notes="Project created")
    db.commit()
    db.refresh(project)
    return project


@router.get("/{project_id}", response_model=schemas.ProjectOut)
def get_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.view")),
):
    return _get_project(db, project_id)


@router.get("/{project_id}/audit", response_model=list[schemas.ProjectAuditOut])
def get_project_audit(
    project_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.view")),
):
    _get_project(db, project_id)
    return (
        db.query(models.ProjectAudit)
        .filter(models.ProjectAudit.project_id == project_id)
        .order_by(models.ProjectAudit.timestamp.desc())
        .all()
    )


@router.api_route("/{project_id}", methods=["PUT", "PATCH"], response_model=schemas.ProjectOut)
def update_project(
    project_id: UUID,
    data: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.edit")),
):
    project = _get_project(db, project_id)
    changes = data.model_dump(exclude_unset=True)
    if "status" in changes and changes["status"] != project.status:
        decision = check_permissions(user.role, ["projects.change_status"])
        if not decision.allowed:
            raise HTTPException(status_code=403, detail=decision.detail())
    audit.record_field_changes(db, project, changes, user.id)
    for k, v in changes.items():
        setattr(project, k, v)
    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", response_model=schemas.MessageOut)
def delete_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("projects.delete")),
):
    project = _get_project(db, project_id)
    db.query(models.ProjectAudit).filter(models.ProjectAudit.project_id == project.id).delete(
        synchronize_session=False
    )
    db.delete(project)
    db.commit()
    audit.log_action(db, user.id, "delete_project", "project", project_id)
    return {"message": "Project deleted"}
