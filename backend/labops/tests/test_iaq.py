from labops import notify
from labops.services.iaq import normalize_cowl

from .conftest import auth_headers, client


def test_normalize_cowl():
    assert normalize_cowl("12") == "C12"
    assert normalize_cowl("c12") == "C12"
    assert normalize_cowl("C12") == "C12"
    assert normalize_cowl(None) is None


def test_record_tracks_its_samples(client):
    headers, _ = auth_headers()
    record = client.post("/api/iaq-records", json={"monitoring_date": "2024-05-01"}, headers=headers)
    assert record.status_code == 201
    record = record.json()
    assert record["status"] == "In Progress"
    assert record["sample_ids"] == []

    first = client.post(
        "/api/iaq-samples",
        json={"iaq_record_id": record["id"], "sample_number": "IAQ-1", "cowl_no": "45"},
        headers=headers,
    ).json()
    assert first["cowl_no"] == "C45"
    second = client.post(
        "/api/iaq-samples",
        json={"iaq_record_id": record["id"], "sample_number": "IAQ-2", "is_field_blank": True},
        headers=headers,
    ).json()

    detail = client.get(f"/api/iaq-records/{record['id']}", headers=headers).json()
    assert detail["sample_ids"] == [first["id"], second["id"]]
    assert [s["sample_number"] for s in detail["samples"]] == ["IAQ-1", "IAQ-2"]

    client.delete(f"/api/iaq-samples/{first['id']}", headers=headers)
    detail = client.get(f"/api/iaq-records/{record['id']}", headers=headers).json()
    assert detail["sample_ids"] == [second["id"]]

    by_record = client.get(f"/api/iaq-samples/record/{record['id']}", headers=headers).json()
    assert [s["id"] for s in by_record] == [second["id"]]


def test_sample_needs_existing_record(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/iaq-samples",
        json={"iaq_record_id": "00000000-0000-0000-0000-000000000000", "sample_number": "X"},
        headers=headers,
    )
    assert resp.status_code == 404


def test_status_approval_and_delete(client):
    headers, user = auth_headers()
    record = client.post("/api/iaq-records", json={"monitoring_date": "2024-05-01"}, headers=headers).json()
    sample = client.post(
        "/api/iaq-samples",
        json={"iaq_record_id": record["id"], "sample_number": "IAQ-1"},
        headers=headers,
    ).json()

    bad = client.patch(f"/api/iaq-records/{record['id']}", json={"status": "Done"}, headers=headers)
    assert bad.status_code == 400

    done = client.patch(
        f"/api/iaq-records/{record['id']}",
        json={"status": "Complete", "report_approved_by": "L. Manager"},
        headers=headers,
    )
    assert done.json()["status"] == "Complete"
    assert notify.EMAIL_OUTBOX[-1][0] == user.email

    assert client.delete(f"/api/iaq-records/{record['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/iaq-samples/{sample['id']}", headers=headers).status_code == 404
