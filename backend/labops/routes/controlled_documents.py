from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..database import get_db
from ..services import DuplicateReference
from ..services import documents as service

router = APIRouter(prefix="/api/controlled-documents", tags=["controlled-documents"])


def _get_document(db: Session, document_id: UUID) -> models.ControlledDocument:
    document = db.get(models.ControlledDocument, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.get("", response_model=list[schemas.ControlledDocumentOut])
def list_documents(
    type: str | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = service.active_documents(db)
    if type:
        query = query.filter(models.ControlledDocument.type == type)
    return query.order_by(models.ControlledDocument.document_ref).all()


@router.get("/obsolete", response_model=list[schemas.ControlledDocumentOut])
def list_obsolete_documents(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return (
        db.query(models.ControlledDocument)
        .filter(models.ControlledDocument.deleted_at.is_not(None))
        .order_by(models.ControlledDocument.deleted_at.desc())
        .all()
    )


@router.get("/{document_id}", response_model=schemas.ControlledDocumentOut)
def get_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return _get_document(db, document_id)


@router.post("", response_model=schemas.ControlledDocumentOut, status_code=201)
def create_document(
    data: schemas.ControlledDocumentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        service.ensure_unique_ref(db, data.document_ref)
    except DuplicateReference as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    document = models.ControlledDocument(**data.model_dump(), history=[])
    service.append_history(document, user)
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


@router.patch("/{document_id}", response_model=schemas.ControlledDocumentOut)
def update_document(
    document_id: UUID,
    data: schemas.ControlledDocumentUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    document = _get_document(db, document_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("document_ref"):
        try:
            service.ensure_unique_ref(db, changes["document_ref"], document.id)
        except DuplicateReference as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    for k, v in changes.items():
        setattr(document, k, v)
    service.append_history(document, user)
    db.commit()
    db.refresh(document)
    return document


@router.delete("/{document_id}", response_model=schemas.MessageOut)
def delete_document(
    document_id: UUID,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    document = _get_document(db, document_id)
    try:
        service.mark_obsolete(db, document, user)
    except service.AlreadyObsolete as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"message": "Document marked as obsolete"}
