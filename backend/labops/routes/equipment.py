import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..database import get_db
from ..pagination import paginate
from ..rbac import require_permissions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/equipment", tags=["equipment"])


def _get_equipment(db: Session, equipment_id: UUID) -> models.Equipment:
    eq = db.get(models.Equipment, equipment_id)
    if not eq:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return eq


def _ensure_unique_reference(db: Session, reference: str, exclude_id: UUID | None = None) -> None:
    query = db.query(models.Equipment).filter(models.Equipment.equipment_reference == reference)
    if exclude_id is not None:
        query = query.filter(models.Equipment.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Equipment reference already exists")


@router.get("", response_model=schemas.Page[schemas.EquipmentOut])
def list_equipment(
    search: str | None = None,
    equipment_type: str | None = None,
    section: str | None = None,
    status: str | None = None,
    archived: bool = False,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("equipment.view")),
):
    query = db.query(models.Equipment).filter(models.Equipment.archived.is_(archived))
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(
                models.Equipment.equipment_reference.ilike(term),
                models.Equipment.brand_model.ilike(term),
            )
        )
    if equipment_type:
        query = query.filter(models.Equipment.equipment_type == equipment_type)
    if section:
        query = query.filter(models.Equipment.section == section)
    if status:
        query = query.filter(models.Equipment.status == status)
    return paginate(query.order_by(models.Equipment.equipment_reference), page, limit)


@router.post("", response_model=schemas.EquipmentOut, status_code=201)
def create_equipment(
    equipment: schemas.EquipmentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("equipment.create")),
):
    _ensure_unique_reference(db, equipment.equipment_reference)
    db_eq = models.Equipment(**equipment.model_dump(), created_by=user.id)
    db.add(db_eq)
    db.commit()
    db.refresh(db_eq)
    audit.log_action(db, user.id, "create_equipment", "equipment", db_eq.id)
    return db_eq


@router.get("/{equipment_id}", response_model=schemas.EquipmentOut)
def get_equipment(
    equipment_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("equipment.view")),
):
    return _get_equipment(db, equipment_id)


@router.put("/{equipment_id}", response_model=schemas.EquipmentOut)
def update_equipment(
    equipment_id: UUID,
    data: schemas.EquipmentUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("equipment.edit")),
):
    eq = _get_equipment(db, equipment_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("equipment_reference"):
        _ensure_unique_reference(db, changes["equipment_reference"], eq.id)
    if "archived" in changes:
        eq.archived_at = datetime.now(timezone.utc) if changes["archived"] else None
    for k, v in changes.items():
        setattr(eq, k, v)
    db.commit()
    db.refresh(eq)
    return eq


@router.delete("/{equipment_id}", response_model=schemas.MessageOut)
def archive_equipment(
    equipment_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_permissions("equipment.delete")),
):
    eq = _get_equipment(db, equipment_id)
    eq.archived = True
    eq.archived_at = datetime.now(timezone.utc)
    db.commit()
    audit.log_action(db, user.id, "archive_equipment", "equipment", eq.id)
    logger.info("Archived equipment %s", eq.equipment_reference)
    return {"message": "Equipment archived"}
