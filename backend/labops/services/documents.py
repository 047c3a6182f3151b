from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from . import DuplicateReference, ServiceError

# purpose: controlled-document register with revision history and obsolete (soft-deleted) entries
# status: active


class AlreadyObsolete(ServiceError):
    """Raised when deleting a document that is already obsolete."""


def active_documents(db: Session):
    return db.query(models.ControlledDocument).filter(models.ControlledDocument.deleted_at.is_(None))


def ensure_unique_ref(db: Session, document_ref: str, exclude_id: UUID | None = None) -> None:
    """Document references are unique, ignoring case, among documents still in force."""

    query = active_documents(db).filter(
        func.lower(models.ControlledDocument.document_ref) == document_ref.lower()
    )
    if exclude_id is not None:
        query = query.filter(models.ControlledDocument.id != exclude_id)
    if query.first():
        raise DuplicateReference("Document reference already exists")


def append_history(document: models.ControlledDocument, user: models.User) -> None:
    entry = {
        "revision": document.current_revision,
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "updated_by": user.full_name,
    }
    # reassign so the JSON column registers the change
    document.history = [*(document.history or []), entry]


def mark_obsolete(db: Session, document: models.ControlledDocument, user: models.User) -> None:
    if document.deleted_at is not None:
        raise AlreadyObsolete("Document is already obsolete")
    document.deleted_at = datetime.now(timezone.utc)
    document.deleted_by = user.full_name
    document.file_name = None
    document.file_data = None
    db.commit()
