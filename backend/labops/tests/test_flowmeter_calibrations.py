import pytest

from .conftest import auth_headers, client, make_equipment


def flowmeter_payload(**overrides):
    payload = {
        "flowmeter_id": "FM-01",
        "date": "2024-01-10",
        "flow_rate": 1.0,
        "bubbleflow_volume": "500",
        "technician": "J. Smith",
        "runtime1": 30.0,
        "runtime2": 29.5,
        "runtime3": 30.5,
    }
    payload.update(overrides)
    return payload


def test_derived_values_and_write_back(client):
    headers, _ = auth_headers()
    meter = make_equipment(client, headers, equipment_reference="FM-01", equipment_type="Site flowmeter")
    resp = client.post("/api/flowmeter-calibrations", json=flowmeter_payload(), headers=headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["average_runtime"] == pytest.approx(30.0)
    assert body["equivalent_flowrate"] == pytest.approx(1000.0)
    assert body["difference"] == pytest.approx(0.0)
    assert body["status"] == "Pass"
    assert body["next_calibration"] == "2025-01-10"

    eq = client.get(f"/api/equipment/{meter['id']}", headers=headers).json()
    assert eq["last_calibration"] == "2024-01-10"
    assert eq["calibration_due"] == "2025-01-10"


def test_slow_runs_fail(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/flowmeter-calibrations",
        json=flowmeter_payload(runtime1=34, runtime2=34, runtime3=34),
        headers=headers,
    )
    assert resp.json()["status"] == "Fail"
    assert resp.json()["difference"] > 5


def test_without_runtimes_submitted_status_is_kept(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/flowmeter-calibrations",
        json=flowmeter_payload(runtime1=None, runtime2=None, runtime3=None, status="Fail"),
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "Fail"
    assert resp.json()["difference"] is None


def test_rejects_unknown_volume(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/flowmeter-calibrations",
        json=flowmeter_payload(bubbleflow_volume="750"),
        headers=headers,
    )
    assert resp.status_code == 400


def test_filters_and_update(client):
    headers, _ = auth_headers()
    first = client.post("/api/flowmeter-calibrations", json=flowmeter_payload(), headers=headers).json()
    client.post("/api/flowmeter-calibrations", json=flowmeter_payload(flowmeter_id="FM-02"), headers=headers)

    filtered = client.get("/api/flowmeter-calibrations", params={"flowmeter_id": "FM-02"}, headers=headers).json()
    assert filtered["pagination"]["total"] == 1

    upd = client.put(
        f"/api/flowmeter-calibrations/{first['id']}",
        json={"runtime1": 40, "runtime2": 40, "runtime3": 40, "date": "2024-03-01"},
        headers=headers,
    )
    assert upd.status_code == 200
    assert upd.json()["status"] == "Fail"
    assert upd.json()["next_calibration"] == "2025-03-01"

    failed = client.get("/api/flowmeter-calibrations", params={"status": "Fail"}, headers=headers).json()
    assert [c["id"] for c in failed["data"]] == [first["id"]]


def test_update_writes_back_to_flowmeter(client):
    headers, _ = auth_headers()
    meter = make_equipment(client, headers, equipment_reference="FM-01", equipment_type="Site flowmeter")
    created = client.post("/api/flowmeter-calibrations", json=flowmeter_payload(), headers=headers).json()

    upd = client.put(
        f"/api/flowmeter-calibrations/{created['id']}",
        json={"date": "2024-04-15"},
        headers=headers,
    )
    assert upd.status_code == 200, upd.text
    assert upd.json()["next_calibration"] == "2025-04-15"

    eq = client.get(f"/api/equipment/{meter['id']}", headers=headers).json()
    assert eq["last_calibration"] == "2024-04-15"
    assert eq["calibration_due"] == "2025-04-15"
