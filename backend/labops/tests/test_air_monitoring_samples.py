import uuid

import pytest

from labops.services import samples

from .conftest import auth_headers, client


def sample_payload(**overrides):
    payload = {
        "sample_number": "1",
        "full_sample_id": "LAB-0001-1",
        "type": "Clearance",
        "location": "Level 2 plant room",
        "pump_no": "P-04",
        "initial_flowrate": 2.0,
        "final_flowrate": 2.2,
    }
    payload.update(overrides)
    return payload


def make_project(client, headers):
    resp = client.post(
        "/api/projects",
        json={"project_id": "LAB-0001", "name": "Plant room clearance"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_defaults_and_unique_sample_id(client):
    headers, user = auth_headers()
    project = make_project(client, headers)
    resp = client.post("/api/air-monitoring-samples", json=sample_payload(project_id=project["id"]), headers=headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["average_flowrate"] == pytest.approx(2.1)
    assert body["collected_by"] == str(user.id)

    dup = client.post("/api/air-monitoring-samples", json=sample_payload(sample_number="2"), headers=headers)
    assert dup.status_code == 400
    assert dup.json()["detail"] == "Sample ID LAB-0001-1 already exists"

    listed = client.get(f"/api/air-monitoring-samples/project/{project['id']}", headers=headers).json()
    assert [s["full_sample_id"] for s in listed] == ["LAB-0001-1"]


def test_unknown_project_is_rejected(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/air-monitoring-samples",
        json=sample_payload(project_id=str(uuid.uuid4())),
        headers=headers,
    )
    assert resp.status_code == 404


def test_update_checks_sample_id_and_normalises_analysis(client):
    headers, user = auth_headers()
    first = client.post("/api/air-monitoring-samples", json=sample_payload(), headers=headers).json()
    client.post(
        "/api/air-monitoring-samples",
        json=sample_payload(sample_number="2", full_sample_id="LAB-0001-2"),
        headers=headers,
    )

    clash = client.patch(
        f"/api/air-monitoring-samples/{first['id']}",
        json={"full_sample_id": "LAB-0001-2"},
        headers=headers,
    )
    assert clash.status_code == 400

    same = client.patch(
        f"/api/air-monitoring-samples/{first['id']}",
        json={"full_sample_id": "LAB-0001-1", "final_flowrate": 2.4},
        headers=headers,
    )
    assert same.status_code == 200
    assert same.json()["average_flowrate"] == pytest.approx(2.2)

    analysed = client.patch(
        f"/api/air-monitoring-samples/{first['id']}",
        json={
            "status": "analyzed",
            "analysis": {"reported_concentration": "<0.01", "fibres_counted": "12", "fields_counted": None},
        },
        headers=headers,
    )
    assert analysed.status_code == 200, analysed.text
    body = analysed.json()
    assert body["analysis"] == {"reported_concentration": 0.01, "fibres_counted": 12, "fields_counted": 0}
    assert body["analyzed_by"] == str(user.id)

    status = client.get("/api/air-monitoring-samples", params={"status": "analyzed"}, headers=headers).json()
    assert status["pagination"]["total"] == 1


def test_delete_needs_jobs_delete(client):
    headers, _ = auth_headers()
    made = client.post("/api/air-monitoring-samples", json=sample_payload(), headers=headers).json()
    assert client.delete(f"/api/air-monitoring-samples/{made['id']}", headers=headers).status_code == 403

    admin, _ = auth_headers("admin")
    assert client.delete(f"/api/air-monitoring-samples/{made['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/air-monitoring-samples/{made['id']}", headers=admin).status_code == 404


def test_normalize_analysis():
    assert samples.normalize_analysis({"reported_concentration": "N/A", "fibre_counts": [1, 2]}) == {
        "reported_concentration": None,
        "fibres_counted": 0,
        "fields_counted": 0,
    }
    assert samples.normalize_analysis({"reported_concentration": "0.05", "fields_counted": 100})[
        "reported_concentration"
    ] == pytest.approx(0.05)
    with pytest.raises(samples.InvalidAnalysis):
        samples.normalize_analysis({"reported_concentration": "high"})
