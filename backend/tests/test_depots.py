from conftest import API


def test_create_generates_code_from_name(api, company):
    first = api("post", "/depots", json={"parent_id": company["id"], "name": "North Depot"})
    second = api("post", "/depots", json={"parent_id": company["id"], "name": "Northern Hub"})

    assert first.status_code == 201
    body = first.json()
    assert body["message"] == "Depot created successfully"
    assert body["data"]["code"] == "NOR001"
    assert body["data"]["company"] == {"id": company["id"], "name": "Acme Beverages", "code": company["code"]}
    assert second.json()["data"]["code"] == "NOR002"


def test_missing_required_field_creates_nothing(api, company):
    response = api("post", "/depots", json={"parent_id": company["id"]})
    assert response.status_code == 400
    assert response.json()["message"] == "name is required"
    assert api("get", "/depots").json()["pagination"]["total_count"] == 0


def test_unknown_company_is_rejected(api):
    response = api("post", "/depots", json={"parent_id": 999, "name": "Ghost Depot"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Company not found"}


def test_duplicate_code_conflicts(api, company, depot):
    response = api("post", "/depots", json={"parent_id": company["id"], "name": "Other", "code": depot["code"]})
    assert response.status_code == 409


def test_get_missing_depot(api):
    response = api("get", "/depots/12345")
    assert response.status_code == 404
    assert response.json()["message"] == "Depot not found"


def test_update_bumps_revision_and_rejects_stale_copies(api, depot):
    response = api("put", f"/depots/{depot['id']}", json={"city": "Nakuru", "log_inst": 1})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["city"] == "Nakuru"
    assert data["log_inst"] == 2
    assert data["updatedby"] == 1

    stale = api("put", f"/depots/{depot['id']}", json={"city": "Eldoret", "log_inst": 1})
    assert stale.status_code == 409
    assert api("get", f"/depots/{depot['id']}").json()["data"]["city"] == "Nakuru"


def test_delete_detaches_zones(api, company, depot):
    zone = api("post", "/zones", json={"parent_id": company["id"], "depot_id": depot["id"], "name": "Zone A"})
    assert zone.status_code == 201
    zone_id = zone.json()["data"]["id"]

    response = api("delete", f"/depots/{depot['id']}")
    assert response.status_code == 200
    assert response.json()["warnings"] == ["1 zone(s) were unlinked from this depot"]
    assert api("get", f"/depots/{depot['id']}").status_code == 404
    assert api("get", f"/zones/{zone_id}").json()["data"]["depot_id"] is None


def test_delete_referenced_depot_fails(api, company, depot):
    warehouse = api("post", "/warehouses", json={"name": "Main Store", "depot_id": depot["id"]})
    assert warehouse.status_code == 201

    response = api("delete", f"/depots/{depot['id']}")
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert api("get", f"/depots/{depot['id']}").status_code == 200


def test_changes_are_audited(api, depot):
    response = api("get", "/audit-logs", params={"resource_type": "depot"})
    assert response.status_code == 200
    logs = response.json()["data"]
    assert [log["action"] for log in logs] == ["create"]
    assert logs[0]["resource_id"] == depot["id"]


def test_list_filters_and_stats(api, company, depot):
    api("post", "/depots", json={"parent_id": company["id"], "name": "Coastal Depot", "city": "Mombasa"})

    response = api("get", "/depots", params={"search": "coast"})
    body = response.json()
    assert body["success"] is True
    assert [d["name"] for d in body["data"]] == ["Coastal Depot"]
    assert body["stats"]["total_depots"] == 2
    assert body["stats"]["active_depots"] == 2
