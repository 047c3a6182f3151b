from .conftest import auth_headers, client, make_equipment


def test_equipment_flow(client):
    headers, _ = auth_headers()
    eq = make_equipment(client, headers, equipment_reference="AP-001", brand_model="SKC 224")
    assert eq["status"] == "active"
    assert eq["archived"] is False

    dup = client.post(
        "/api/equipment",
        json={"equipment_reference": "AP-001", "equipment_type": "Air pump"},
        headers=headers,
    )
    assert dup.status_code == 400

    upd = client.put(f"/api/equipment/{eq['id']}", json={"status": "out-of-service"}, headers=headers)
    assert upd.status_code == 200
    assert upd.json()["status"] == "out-of-service"

    bad = client.put(f"/api/equipment/{eq['id']}", json={"status": "broken"}, headers=headers)
    assert bad.status_code == 400


def test_equipment_filters(client):
    headers, _ = auth_headers()
    make_equipment(client, headers, equipment_reference="AP-001", section="Air Monitoring")
    make_equipment(client, headers, equipment_reference="FM-001", equipment_type="Site flowmeter", brand_model="Dwyer")
    make_equipment(client, headers, equipment_reference="MIC-001", equipment_type="Microscope", section="Fibre ID")

    by_type = client.get("/api/equipment", params={"equipment_type": "Site flowmeter"}, headers=headers).json()
    assert [e["equipment_reference"] for e in by_type["data"]] == ["FM-001"]

    by_search = client.get("/api/equipment", params={"search": "dwy"}, headers=headers).json()
    assert by_search["pagination"]["total"] == 1

    by_section = client.get("/api/equipment", params={"section": "Fibre ID"}, headers=headers).json()
    assert by_section["data"][0]["equipment_reference"] == "MIC-001"

    page = client.get("/api/equipment", params={"limit": 2, "page": 2}, headers=headers).json()
    assert page["pagination"] == {"total": 3, "pages": 2, "page": 2, "limit": 2}
    assert len(page["data"]) == 1


def test_archive_is_soft(client):
    headers, _ = auth_headers()
    eq = make_equipment(client, headers)
    denied = client.delete(f"/api/equipment/{eq['id']}", headers=headers)
    assert denied.status_code == 403

    manager, _ = auth_headers("manager")
    resp = client.delete(f"/api/equipment/{eq['id']}", headers=manager)
    assert resp.status_code == 200

    active = client.get("/api/equipment", headers=manager).json()
    assert active["pagination"]["total"] == 0
    archived = client.get("/api/equipment", params={"archived": True}, headers=manager).json()
    assert archived["data"][0]["archived_at"] is not None

    missing = client.get("/api/equipment/00000000-0000-0000-0000-000000000000", headers=manager)
    assert missing.status_code == 404
