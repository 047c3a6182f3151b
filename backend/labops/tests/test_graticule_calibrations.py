from .conftest import auth_headers, client, make_equipment


def graticule_payload(**overrides):
    payload = {
        "graticule_id": "GRAT-A",
        "date": "2024-01-05",
        "scale": "Walton-Beckett",
        "technician": "A. Analyst",
    }
    payload.update(overrides)
    return payload


def test_ids_checks_and_write_back(client):
    headers, _ = auth_headers()
    graticule = make_equipment(client, headers, equipment_reference="GRAT-A", equipment_type="Graticule")
    microscope = make_equipment(client, headers, equipment_reference="MIC-1", equipment_type="Phase contrast microscope")

    first = client.post(
        "/api/graticule-calibrations",
        json=graticule_payload(microscope_id=microscope["id"], diameters=[99.5, 100.2]),
        headers=headers,
    )
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["calibration_id"] == "GRAT-0001"
    assert body["status"] == "Pass"
    assert body["next_calibration"] is None
    assert body["microscope_reference"] == "MIC-1"
    assert len(body["diameter_checks"]) == 2

    eq = client.get(f"/api/equipment/{graticule['id']}", headers=headers).json()
    assert eq["status"] == "active"
    assert eq["calibration_due"] is None

    second = client.post(
        "/api/graticule-calibrations",
        json=graticule_payload(date="2024-06-01", diameters=[99.5, 103.0]),
        headers=headers,
    )
    assert second.json()["calibration_id"] == "GRAT-0002"
    assert second.json()["status"] == "Fail"
    eq = client.get(f"/api/equipment/{graticule['id']}", headers=headers).json()
    assert eq["status"] == "out-of-service"

    by_microscope = client.get(f"/api/graticule-calibrations/microscope/{microscope['id']}", headers=headers)
    assert [c["id"] for c in by_microscope.json()] == [body["id"]]

    stats = client.get("/api/graticule-calibrations/stats", headers=headers).json()
    assert stats["total_calibrations"] == 2
    assert stats["failed_calibrations"] == 1
    assert stats["last_calibration_date"] == "2024-06-01"
    assert stats["next_calibration_due"] is None


def test_submitted_status_without_checks(client):
    headers, _ = auth_headers()
    resp = client.post("/api/graticule-calibrations", json=graticule_payload(status="Fail"), headers=headers)
    assert resp.json()["status"] == "Fail"
    assert resp.json()["diameter_checks"] == []


def test_filters_and_update(client):
    headers, _ = auth_headers()
    made = client.post("/api/graticule-calibrations", json=graticule_payload(), headers=headers).json()
    client.post(
        "/api/graticule-calibrations",
        json=graticule_payload(graticule_id="GRAT-B", technician="B. Other"),
        headers=headers,
    )
    found = client.get("/api/graticule-calibrations", params={"technician": "analyst"}, headers=headers).json()
    assert found["pagination"]["total"] == 1

    upd = client.put(
        f"/api/graticule-calibrations/{made['id']}",
        json={"diameters": [95.0]},
        headers=headers,
    )
    assert upd.json()["status"] == "Fail"

    missing_scope = client.put(
        f"/api/graticule-calibrations/{made['id']}",
        json={"microscope_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers,
    )
    assert missing_scope.status_code == 404
