from .conftest import auth_headers, client, make_equipment


def filter_holder_payload(**overrides):
    payload = {
        "filter_holder_model": "FH-01",
        "date": "2024-01-01",
        "technician": "A. Analyst",
        "filter1_diameter1": 25.0,
        "filter1_diameter2": 25.2,
        "filter2_diameter1": 25.1,
        "filter2_diameter2": 25.3,
        "filter3_diameter1": 25.0,
        "filter3_diameter2": 25.0,
    }
    payload.update(overrides)
    return payload


def test_status_from_filter_averages(client):
    headers, user = auth_headers()
    resp = client.post("/api/filter-holder-calibrations", json=filter_holder_payload(), headers=headers)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "Pass"
    assert body["next_calibration"] is None
    assert body["calibrated_by"] == str(user.id)

    spread = client.post(
        "/api/filter-holder-calibrations",
        json=filter_holder_payload(filter_holder_model="FH-02", filter3_diameter1=24.5, filter3_diameter2=24.5),
        headers=headers,
    )
    assert spread.json()["status"] == "Fail"


def test_incomplete_filters_keep_submitted_status(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/filter-holder-calibrations",
        json=filter_holder_payload(filter3_diameter1=None, filter3_diameter2=None, status="Fail"),
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "Fail"


def test_unsuitable_filter_is_rejected(client):
    headers, _ = auth_headers()
    resp = client.post(
        "/api/filter-holder-calibrations",
        json=filter_holder_payload(filter2_diameter1=25.0, filter2_diameter2=25.8),
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Filter 2: Filter Unsuitable")
    listed = client.get("/api/filter-holder-calibrations", headers=headers).json()
    assert listed["pagination"]["total"] == 0


def test_new_calibration_archives_older_ones(client):
    headers, _ = auth_headers()
    holder = make_equipment(client, headers, equipment_reference="FH-01", equipment_type="Filter holder")
    old = client.post("/api/filter-holder-calibrations", json=filter_holder_payload(), headers=headers).json()
    client.post(
        "/api/filter-holder-calibrations",
        json=filter_holder_payload(filter_holder_model="FH-02"),
        headers=headers,
    )
    new = client.post(
        "/api/filter-holder-calibrations",
        json=filter_holder_payload(date="2024-06-01"),
        headers=headers,
    ).json()

    active = client.get(
        "/api/filter-holder-calibrations", params={"filter_holder_model": "FH-01"}, headers=headers
    ).json()
    assert [c["id"] for c in active["data"]] == [new["id"]]

    archived = client.get("/api/filter-holder-calibrations/archived", headers=headers).json()
    assert [c["id"] for c in archived["data"]] == [old["id"]]
    assert archived["data"][0]["archived_at"] is not None

    history = client.get("/api/filter-holder-calibrations/model/FH-01", headers=headers).json()
    assert [c["date"] for c in history] == ["2024-06-01", "2024-01-01"]

    eq = client.get(f"/api/equipment/{holder['id']}", headers=headers).json()
    assert eq["last_calibration"] == "2024-06-01"
    assert eq["calibration_due"] is None

    stats = client.get("/api/filter-holder-calibrations/stats", headers=headers).json()
    assert stats["total_calibrations"] == 3
    assert len(stats["recent_calibrations"]) == 3


def test_update_and_delete(client):
    headers, _ = auth_headers()
    made = client.post("/api/filter-holder-calibrations", json=filter_holder_payload(), headers=headers).json()

    upd = client.put(
        f"/api/filter-holder-calibrations/{made['id']}",
        json={"filter1_diameter1": 26.0, "filter1_diameter2": 26.0},
        headers=headers,
    )
    assert upd.status_code == 200
    assert upd.json()["status"] == "Fail"

    bad = client.put(
        f"/api/filter-holder-calibrations/{made['id']}",
        json={"filter1_diameter2": 27.0},
        headers=headers,
    )
    assert bad.status_code == 400
    assert client.get(f"/api/filter-holder-calibrations/{made['id']}", headers=headers).json()[
        "filter1_diameter2"
    ] == 26.0

    employee, _ = auth_headers("employee", email="tech@example.com")
    assert client.delete(f"/api/filter-holder-calibrations/{made['id']}", headers=employee).status_code == 403

    admin, _ = auth_headers("admin", email="boss@example.com")
    assert client.delete(f"/api/filter-holder-calibrations/{made['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/filter-holder-calibrations/{made['id']}", headers=admin).status_code == 404


def test_update_writes_back_and_archives_on_date_change(client):
    headers, _ = auth_headers()
    holder = make_equipment(client, headers, equipment_reference="FH-01", equipment_type="Filter holder")
    later = client.post(
        "/api/filter-holder-calibrations", json=filter_holder_payload(date="2024-03-01"), headers=headers
    ).json()
    earlier = client.post("/api/filter-holder-calibrations", json=filter_holder_payload(), headers=headers).json()

    eq = client.get(f"/api/equipment/{holder['id']}", headers=headers).json()
    assert eq["last_calibration"] == "2024-03-01"

    upd = client.put(
        f"/api/filter-holder-calibrations/{earlier['id']}",
        json={"date": "2024-06-01"},
        headers=headers,
    )
    assert upd.status_code == 200, upd.text
    assert upd.json()["archived_at"] is None

    eq = client.get(f"/api/equipment/{holder['id']}", headers=headers).json()
    assert eq["last_calibration"] == "2024-06-01"
    assert eq["calibration_due"] is None

    archived = client.get("/api/filter-holder-calibrations/archived", headers=headers).json()
    assert [c["id"] for c in archived["data"]] == [later["id"]]
