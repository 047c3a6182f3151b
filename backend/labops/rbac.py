from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from fastapi import Depends, HTTPException

from . import models
from .auth import get_current_user

# purpose: role -> permission catalogue and the guard that enforces it on routes
# status: active

PERMISSIONS: dict[str, str] = {
    "projects.view": "View projects",
    "projects.create": "Create projects",
    "projects.edit": "Edit projects",
    "projects.delete": "Delete projects",
    "projects.change_status": "Change project status",
    "users.view": "View users",
    "users.create": "Create new users",
    "users.delete": "Delete users",
    "users.manage": "Manage user accounts",
    "jobs.view": "View jobs",
    "jobs.create": "Create jobs",
    "jobs.edit": "Edit jobs",
    "jobs.delete": "Delete jobs",
    "jobs.authorize_reports": "Authorize job reports",
    "calibrations.view": "View calibrations",
    "calibrations.create": "Create calibrations",
    "calibrations.edit": "Edit calibrations",
    "calibrations.delete": "Delete calibrations",
    "equipment.view": "View equipment",
    "equipment.create": "Create equipment",
    "equipment.edit": "Edit equipment",
    "equipment.delete": "Delete equipment",
    "admin.access": "Access administration settings",
    "admin.delete": "Delete records reserved for administrators",
    "invoices.approve": "Approve invoices",
    "timesheets.approve": "Approve timesheets",
}

ROLES = ("admin", "manager", "employee")

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset(PERMISSIONS),
    "manager": frozenset(
        {
            "projects.view",
            "projects.create",
            "projects.edit",
            "projects.change_status",
            "users.view",
            "jobs.view",
            "jobs.create",
            "jobs.edit",
            "jobs.authorize_reports",
            "calibrations.view",
            "calibrations.create",
            "calibrations.edit",
            "calibrations.delete",
            "equipment.view",
            "equipment.create",
            "equipment.edit",
            "equipment.delete",
            "invoices.approve",
            "timesheets.approve",
        }
    ),
    "employee": frozenset(
        {
            "projects.view",
            "projects.create",
            "projects.edit",
            "users.view",
            "jobs.view",
            "jobs.create",
            "jobs.edit",
            "calibrations.view",
            "calibrations.create",
            "calibrations.edit",
            "equipment.view",
            "equipment.create",
            "equipment.edit",
        }
    ),
}


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    role: str | None
    required: tuple[str, ...]
    granted: frozenset[str] = field(default_factory=frozenset)

    def detail(self) -> dict:
        return {
            "message": "Permission denied",
            "required_permissions": list(self.required),
            "user_role": self.role,
            "user_permissions": sorted(self.granted),
        }


def permissions_for(role: str | None) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role or "", frozenset())


def has_permission(role: str | None, permission: str) -> bool:
    """Permissions outside the restricted catalogue are open to every role."""

    if permission not in PERMISSIONS:
        return True
    return permission in permissions_for(role)


def check_permissions(
    role: str | None,
    required: Iterable[str],
    require_all: bool = False,
) -> PermissionDecision:
    required = tuple(required)
    granted = permissions_for(role)
    checks = [has_permission(role, p) for p in required]
    if not checks:
        allowed = True
    elif require_all:
        allowed = all(checks)
    else:
        allowed = any(checks)
    return PermissionDecision(allowed=allowed, role=role, required=required, granted=granted)


def require_permissions(*required: str, require_all: bool = False):
    """Build a dependency that admits the current user only if their role grants ``required``."""

    def dependency(user: models.User = Depends(get_current_user)) -> models.User:
        decision = check_permissions(user.role, required, require_all)
        if not decision.allowed:
            raise HTTPException(status_code=403, detail=decision.detail())
        return user

    return dependency


def ensure_admin(user: models.User) -> None:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Not authorized")
