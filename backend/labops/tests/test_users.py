from .conftest import auth_headers, client


def test_list_and_get_users(client):
    headers, user = auth_headers()
    lst = client.get("/api/users", headers=headers)
    assert lst.status_code == 200
    assert any(u["id"] == str(user.id) for u in lst.json())
    one = client.get(f"/api/users/{user.id}", headers=headers)
    assert one.json()["email"] == user.email


def test_admin_changes_role_and_deactivates(client):
    admin, _ = auth_headers("admin")
    employee_headers, employee = auth_headers()

    denied = client.put(f"/api/users/{employee.id}", json={"role": "manager"}, headers=employee_headers)
    assert denied.status_code == 403

    promoted = client.put(f"/api/users/{employee.id}", json={"role": "manager"}, headers=admin)
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "manager"

    resp = client.delete(f"/api/users/{employee.id}", headers=admin)
    assert resp.status_code == 200
    # deactivated accounts can no longer authenticate
    assert client.get("/api/auth/me", headers=employee_headers).status_code == 401

    active = client.get("/api/users", headers=admin).json()
    assert all(u["id"] != str(employee.id) for u in active)
    everyone = client.get("/api/users", params={"include_inactive": True}, headers=admin).json()
    assert any(u["id"] == str(employee.id) for u in everyone)


def test_admin_cannot_deactivate_self(client):
    admin, user = auth_headers("admin")
    resp = client.delete(f"/api/users/{user.id}", headers=admin)
    assert resp.status_code == 400
