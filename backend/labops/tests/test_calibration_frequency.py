from .conftest import auth_headers, client, make_equipment


def test_configured_frequency_drives_due_date(client):
    admin, _ = auth_headers("admin")
    row = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "Air pump", "frequency_value": 6, "frequency_unit": "months"},
        headers=admin,
    )
    assert row.status_code == 201, row.text

    pump = make_equipment(client, admin)
    cal = client.post(
        "/api/air-pump-calibrations",
        json={
            "pump_id": pump["id"],
            "calibration_date": "2024-01-01",
            "test_results": [{"set_flowrate": 2000, "actual_flowrate": 2000}],
        },
        headers=admin,
    )
    assert cal.json()["next_calibration_due"] == "2024-07-01"


def test_frequency_change_updates_equipment(client):
    admin, _ = auth_headers("admin")
    pump = make_equipment(client, admin)
    client.post(
        "/api/air-pump-calibrations",
        json={
            "pump_id": pump["id"],
            "calibration_date": "2024-01-01",
            "test_results": [{"set_flowrate": 2000, "actual_flowrate": 2000}],
        },
        headers=admin,
    )
    row = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "Air pump", "frequency_value": 2, "frequency_unit": "years"},
        headers=admin,
    ).json()
    eq = client.get(f"/api/equipment/{pump['id']}", headers=admin).json()
    assert eq["calibration_frequency"] == 24
    assert eq["calibration_due"] == "2026-01-01"

    upd = client.put(
        f"/api/calibration-frequency/fixed/{row['id']}",
        json={"frequency_value": 3, "frequency_unit": "months"},
        headers=admin,
    )
    assert upd.status_code == 200
    eq = client.get(f"/api/equipment/{pump['id']}", headers=admin).json()
    assert eq["calibration_frequency"] == 3
    assert eq["calibration_due"] == "2024-04-01"
    # a due date in the past flags the pump
    assert eq["status"] == "calibration due"

    cals = client.get(f"/api/air-pump-calibrations/pump/{pump['id']}", headers=admin).json()
    assert cals["data"][0]["next_calibration_due"] == "2024-04-01"


def test_frequency_rows_are_admin_only_and_unique(client):
    employee, _ = auth_headers()
    resp = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "RI Liquids", "frequency_value": 6},
        headers=employee,
    )
    assert resp.status_code == 403
    assert "admin.access" in resp.json()["detail"]["required_permissions"]

    admin, _ = auth_headers("admin")
    first = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "RI Liquids", "frequency_value": 6},
        headers=admin,
    )
    assert first.status_code == 201
    dup = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "RI Liquids", "frequency_value": 3},
        headers=admin,
    )
    assert dup.status_code == 400

    listing = client.get("/api/calibration-frequency/fixed", headers=employee)
    assert [r["equipment_type"] for r in listing.json()] == ["RI Liquids"]

    bad_unit = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "Graticule", "frequency_value": 6, "frequency_unit": "weeks"},
        headers=admin,
    )
    assert bad_unit.status_code == 400

    removed = client.delete(f"/api/calibration-frequency/fixed/{first.json()['id']}", headers=admin)
    assert removed.status_code == 200


def test_undated_types_keep_no_due_date(client):
    admin, _ = auth_headers("admin")
    graticule = make_equipment(
        client, admin, equipment_reference="GRAT-A", equipment_type="Graticule", last_calibration="2020-01-01"
    )
    holder = make_equipment(
        client, admin, equipment_reference="FH-01", equipment_type="Filter holder", last_calibration="2020-01-01"
    )
    for equipment_type in ("Graticule", "Filter holder"):
        resp = client.post(
            "/api/calibration-frequency/fixed",
            json={"equipment_type": equipment_type, "frequency_value": 6, "frequency_unit": "months"},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text

    for item in (graticule, holder):
        eq = client.get(f"/api/equipment/{item['id']}", headers=admin).json()
        assert eq["calibration_due"] is None
        assert eq["status"] == "active"
        assert eq["last_calibration"] == "2020-01-01"


def test_repeated_update_is_idempotent(client):
    admin, _ = auth_headers("admin")
    pump = make_equipment(client, admin, last_calibration="2024-01-01")
    row = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "Air pump", "frequency_value": 6, "frequency_unit": "months"},
        headers=admin,
    ).json()

    dues = []
    for _ in range(2):
        resp = client.put(
            f"/api/calibration-frequency/fixed/{row['id']}",
            json={"frequency_value": 9, "frequency_unit": "months"},
            headers=admin,
        )
        assert resp.status_code == 200
        dues.append(client.get(f"/api/equipment/{pump['id']}", headers=admin).json()["calibration_due"])
    assert dues == ["2024-10-01", "2024-10-01"]


def test_type_change_and_delete_restore_defaults(client):
    admin, _ = auth_headers("admin")
    pump = make_equipment(client, admin, last_calibration="2024-01-01")
    meter = make_equipment(
        client, admin, equipment_reference="FM-01", equipment_type="Site flowmeter", last_calibration="2024-02-01"
    )

    row = client.post(
        "/api/calibration-frequency/fixed",
        json={"equipment_type": "Air pump", "frequency_value": 3, "frequency_unit": "months"},
        headers=admin,
    ).json()
    assert client.get(f"/api/equipment/{pump['id']}", headers=admin).json()["calibration_due"] == "2024-04-01"

    moved = client.put(
        f"/api/calibration-frequency/fixed/{row['id']}",
        json={"equipment_type": "Site flowmeter", "frequency_value": 2},
        headers=admin,
    )
    assert moved.status_code == 200
    eq = client.get(f"/api/equipment/{pump['id']}", headers=admin).json()
    assert eq["calibration_due"] == "2025-01-01"
    assert eq["calibration_frequency"] == 12
    assert client.get(f"/api/equipment/{meter['id']}", headers=admin).json()["calibration_due"] == "2024-04-01"

    removed = client.delete(f"/api/calibration-frequency/fixed/{row['id']}", headers=admin)
    assert removed.status_code == 200
    eq = client.get(f"/api/equipment/{meter['id']}", headers=admin).json()
    assert eq["calibration_due"] == "2025-02-01"
    assert eq["calibration_frequency"] == 12
