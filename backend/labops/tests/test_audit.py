from datetime import datetime, timedelta, timezone

from labops import audit

from .conftest import auth_headers, client, TestingSessionLocal


def test_audit_log_and_report(client):
    headers, user = auth_headers()
    db = TestingSessionLocal()
    try:
        audit.log_action(db, user.id, "create_equipment", "equipment", None, {"ref": "AP-1"})
        audit.log_action(db, user.id, "create_equipment")
        audit.log_action(db, user.id, "archive_equipment")
    finally:
        db.close()

    logs = client.get("/api/audit", headers=headers)
    assert logs.status_code == 200
    assert len(logs.json()) == 3

    now = datetime.now(timezone.utc)
    report = client.get(
        "/api/audit/report",
        params={
            "start": (now - timedelta(hours=1)).isoformat(),
            "end": (now + timedelta(hours=1)).isoformat(),
        },
        headers=headers,
    )
    assert report.status_code == 200
    counts = {r["action"]: r["count"] for r in report.json()}
    assert counts == {"create_equipment": 2, "archive_equipment": 1}


def test_only_admins_read_other_users_logs(client):
    headers, _ = auth_headers()
    _, other = auth_headers()
    assert client.get("/api/audit", params={"user_id": str(other.id)}, headers=headers).status_code == 403
    admin, _ = auth_headers("admin")
    assert client.get("/api/audit", params={"user_id": str(other.id)}, headers=admin).status_code == 200
