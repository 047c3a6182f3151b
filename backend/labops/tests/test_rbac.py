from labops import rbac

from .conftest import auth_headers, client


def test_admin_holds_every_restricted_permission():
    decision = rbac.check_permissions("admin", list(rbac.PERMISSIONS), require_all=True)
    assert decision.allowed


def test_any_versus_all():
    assert rbac.check_permissions("employee", ["users.delete", "projects.view"]).allowed
    assert not rbac.check_permissions(
        "employee", ["users.delete", "projects.view"], require_all=True
    ).allowed


def test_unrestricted_names_are_granted():
    assert rbac.has_permission("employee", "reports.export")
    assert rbac.check_permissions(None, ["reports.export"]).allowed
    assert rbac.check_permissions("employee", []).allowed


def test_unknown_role_has_no_restricted_permissions():
    decision = rbac.check_permissions("contractor", ["projects.view"])
    assert not decision.allowed
    assert decision.granted == frozenset()


def test_manager_cannot_manage_users():
    assert not rbac.has_permission("manager", "users.delete")
    assert rbac.has_permission("manager", "calibrations.delete")
    assert not rbac.has_permission("employee", "calibrations.delete")


def test_denial_detail(client):
    headers, _ = auth_headers("employee")
    resp = client.delete("/api/incidents/00000000-0000-0000-0000-000000000000", headers=headers)
    assert resp.status_code == 403
    detail = resp.json()["detail"]
    assert detail["required_permissions"] == ["admin.delete"]
    assert detail["user_role"] == "employee"
    assert "projects.view" in detail["user_permissions"]
