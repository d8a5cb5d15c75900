import math


def make_vehicle(api, number, **extra):
    response = api("post", "/vehicles", json={"vehicle_number": number, "type": "van", **extra})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_vehicle_number_is_normalised_and_unique(api):
    vehicle = make_vehicle(api, " kda 123a ")
    assert vehicle["vehicle_number"] == "KDA 123A"
    assert vehicle["status"] == "available"

    duplicate = api("post", "/vehicles", json={"vehicle_number": "KDA 123A", "type": "truck"})
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Vehicle number already exists"


def test_type_is_required(api):
    response = api("post", "/vehicles", json={"vehicle_number": "KDA 1"})
    assert response.status_code == 400
    assert response.json()["message"] == "type is required"
    assert api("get", "/vehicles").json()["pagination"]["total_count"] == 0


def test_unknown_driver_is_rejected(api):
    response = api("post", "/vehicles", json={"vehicle_number": "KDA 1", "type": "van", "assigned_to": 404})
    assert response.status_code == 400


def test_second_page(api):
    for n in range(12):
        make_vehicle(api, f"KDX {n:03d}")

    body = api("get", "/vehicles", params={"page": 2, "limit": 10}).json()
    assert len(body["data"]) == 2
    assert body["pagination"]["total_count"] == 12
    assert body["pagination"]["total_pages"] == math.ceil(12 / 10)
    assert body["pagination"]["has_previous"] is True
    assert body["pagination"]["has_next"] is False


def test_soft_delete_keeps_the_row(api):
    kept = make_vehicle(api, "KDA 100A")
    removed = make_vehicle(api, "KDA 200B")

    response = api("delete", f"/vehicles/{removed['id']}")
    assert response.status_code == 200

    active = api("get", "/vehicles", params={"isActive": "Y"}).json()["data"]
    assert [v["id"] for v in active] == [kept["id"]]
    detail = api("get", f"/vehicles/{removed['id']}").json()["data"]
    assert detail["is_active"] == "N"
    assert detail["log_inst"] == 2


def test_numeric_columns_render_as_numbers(api):
    vehicle = make_vehicle(api, "KDA 300C", capacity=1250.5, mileage=1000)
    assert vehicle["capacity"] == 1250.5
    assert vehicle["mileage"] == 1000.0


def test_stale_update_conflicts(api):
    vehicle = make_vehicle(api, "KDA 400D")
    assert api("put", f"/vehicles/{vehicle['id']}", json={"status": "in_use"}).status_code == 200

    response = api("put", f"/vehicles/{vehicle['id']}", json={"status": "maintenance", "log_inst": 1})
    assert response.status_code == 409
    assert response.json()["message"].startswith("Record was modified by another user")
