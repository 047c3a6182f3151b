import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import func
from . import models

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    user_id: str | UUID,
    action: str,
    target_type: str | None = None,
    target_id: str | UUID | None = None,
    details: dict | None = None,
):
    log = models.AuditLog(
        user_id=UUID(str(user_id)),
        action=action,
        target_type=target_type,
        target_id=UUID(str(target_id)) if target_id else None,
        details=details or {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def generate_report(
    db: Session,
    start: datetime,
    end: datetime,
    user_id: UUID | None = None,
):
    query = db.query(models.AuditLog).filter(
        models.AuditLog.created_at >= start,
        models.AuditLog.created_at <= end,
    )
    if user_id:
        query = query.filter(models.AuditLog.user_id == user_id)
    rows = (
        query.with_entities(models.AuditLog.action, func.count(models.AuditLog.id))
        .group_by(models.AuditLog.action)
        .all()
    )
    return [{"action": r[0], "count": r[1]} for r in rows]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def record_project_change(
    db: Session,
    project_id: UUID,
    action: str,
    changed_by: UUID,
    field: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
    notes: str | None = None,
) -> models.ProjectAudit:
    """Stage an append-only audit row; the caller's commit persists it."""

    entry = models.ProjectAudit(
        project_id=project_id,
        action=action,
        field=field,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        changed_by=changed_by,
        notes=notes or (f"{field} updated" if field else action),
        timestamp=datetime.now(timezone.utc),
    )
    db.add(entry)
    return entry


def record_field_changes(
    db: Session,
    project: models.Project,
    changes: dict[str, Any],
    changed_by: UUID,
) -> list[models.ProjectAudit]:
    """Compare ``changes`` to the project's current values and stage one row per changed field.

    Must run before the new values are applied.
    """

    entries = []
    for field, new_value in changes.items():
        old_value = getattr(project, field, None)
        if old_value == new_value:
            continue
        action = "status_changed" if field == "status" else "updated"
        notes = (
            f'Status changed from "{old_value}" to "{new_value}"' if field == "status" else None
        )
        entries.append(
            record_project_change(
                db,
                project.id,
                action,
                changed_by,
                field=field,
                old_value=old_value,
                new_value=new_value,
                notes=notes,
            )
        )
    logger.debug("Staged %d audit entries for project %s", len(entries), project.id)
    return entries
