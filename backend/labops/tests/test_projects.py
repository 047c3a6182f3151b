from .conftest import auth_headers, client


def test_project_flow_with_audit_trail(client):
    headers, user = auth_headers("manager")
    proj = client.post(
        "/api/projects",
        json={"project_id": "LDJ00001", "name": "Site survey", "client": "ACME"},
        headers=headers,
    )
    assert proj.status_code == 201, proj.text
    proj = proj.json()
    assert proj["status"] == "In progress"

    dup = client.post("/api/projects", json={"project_id": "LDJ00001", "name": "Copy"}, headers=headers)
    assert dup.status_code == 400

    upd = client.patch(
        f"/api/projects/{proj['id']}",
        json={"status": "Report sent", "name": "Site survey", "address": "1 Main St"},
        headers=headers,
    )
    assert upd.status_code == 200
    assert upd.json()["status"] == "Report sent"

    trail = client.get(f"/api/projects/{proj['id']}/audit", headers=headers).json()
    by_field = {row["field"]: row for row in trail if row["field"]}
    assert set(by_field) == {"status", "address"}
    assert by_field["status"]["action"] == "status_changed"
    assert by_field["status"]["old_value"] == "In progress"
    assert by_field["status"]["new_value"] == "Report sent"
    assert by_field["address"]["old_value"] == ""
    assert by_field["address"]["changed_by"] == str(user.id)
    assert any(row["action"] == "created" for row in trail)


def test_list_search_and_pagination(client):
    headers, _ = auth_headers()
    for i in range(3):
        client.post(
            "/api/projects",
            json={"project_id": f"LDJ0000{i}", "name": f"Job {i}", "client": "Harbour Co" if i else "Other"},
            headers=headers,
        )
    found = client.get("/api/projects", params={"search": "harbour"}, headers=headers).json()
    assert found["pagination"]["total"] == 2
    paged = client.get("/api/projects", params={"limit": 1}, headers=headers).json()
    assert paged["pagination"]["pages"] == 3


def test_employee_cannot_change_status_or_delete(client):
    headers, _ = auth_headers()
    proj = client.post("/api/projects", json={"project_id": "LDJ9", "name": "Job"}, headers=headers).json()
    resp = client.put(f"/api/projects/{proj['id']}", json={"status": "Cancelled"}, headers=headers)
    assert resp.status_code == 403
    assert client.delete(f"/api/projects/{proj['id']}", headers=headers).status_code == 403

    admin, _ = auth_headers("admin")
    assert client.delete(f"/api/projects/{proj['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/projects/{proj['id']}", headers=admin).status_code == 404
