"""
Behaviour every CRUD resource shares: unknown ids, rejected empty bodies and
the soft / hard delete rules.
"""
import pytest

SOFT_DELETE = [
    "companies", "zones", "users", "roles", "customers", "products", "price-lists",
    "vehicles", "warehouses", "asset-types", "asset-master", "asset-warranty-claims",
    "asset-maintenance", "asset-movements", "payments",
]
HARD_DELETE = ["depots", "customer-groups", "orders", "invoices", "credit-notes", "return-requests"]
RESOURCES = SOFT_DELETE + HARD_DELETE


def create(api, prefix, payload):
    response = api("post", f"/{prefix}", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def total_count(api, prefix):
    return api("get", f"/{prefix}").json()["pagination"]["total_count"]


def listed_ids(api, prefix, is_active):
    response = api("get", f"/{prefix}", params={"isActive": is_active, "limit": 100})
    return [row["id"] for row in response.json()["data"]]


def new_asset(api):
    asset_type = create(api, "asset-types", {"name": "Freezer"})
    return create(api, "asset-master", {"asset_type_id": asset_type["id"], "serial_number": "FRZ-0001"})


def maintenance_payload(api, records):
    asset = new_asset(api)
    create(api, "asset-warranty-claims", {"asset_id": asset["id"], "issue_description": "Noisy compressor"})
    return {"asset_id": asset["id"], "maintenance_date": "2024-06-01T09:00:00", "technician_id": 1}


def movement_payload(api, records):
    depots = [create(api, "depots", {"parent_id": records["company"]["id"], "name": name})
              for name in ("East Depot", "West Depot")]
    return {
        "asset_id": new_asset(api)["id"], "performed_by": 1, "movement_type": "transfer",
        "from_depot_id": depots[0]["id"], "to_depot_id": depots[1]["id"],
    }


def line(records):
    return {"product_id": records["product"]["id"], "quantity": 2, "unit_price": 1.5}


PAYLOADS = {
    "companies": lambda api, r: {"name": "Beta Bottlers"},
    "zones": lambda api, r: {"parent_id": r["company"]["id"], "name": "Central"},
    "users": lambda api, r: {"email": "rep@example.com", "name": "Field Rep", "role_id": 1},
    "roles": lambda api, r: {"name": "Auditor"},
    "customers": lambda api, r: {"name": "Roadside Kiosk"},
    "products": lambda api, r: {"name": "Orange Juice", "code": "OJ1L"},
    "price-lists": lambda api, r: {"name": "Promo", "items": [{"product_id": r["product"]["id"], "unit_price": 1}]},
    "vehicles": lambda api, r: {"vehicle_number": "KDE 222E", "type": "van"},
    "warehouses": lambda api, r: {"name": "Main Store"},
    "asset-types": lambda api, r: {"name": "Cooler"},
    "asset-master": lambda api, r: {
        "asset_type_id": create(api, "asset-types", {"name": "Cooler"})["id"], "serial_number": "COOL-0099",
    },
    "asset-warranty-claims": lambda api, r: {"asset_id": new_asset(api)["id"]},
    "asset-maintenance": maintenance_payload,
    "asset-movements": movement_payload,
    "payments": lambda api, r: {
        "customer_id": r["customer"]["id"], "payment_date": "2024-05-02T00:00:00",
        "collected_by": 1, "method": "cash", "total_amount": 5,
    },
    "depots": lambda api, r: {"parent_id": r["company"]["id"], "name": "East Depot"},
    "customer-groups": lambda api, r: {"name": "Key Accounts", "customer_ids": [r["customer"]["id"]]},
    "orders": lambda api, r: {"customer_id": r["customer"]["id"], "items": [line(r)]},
    "invoices": lambda api, r: {
        "customer_id": r["customer"]["id"], "invoice_date": "2024-05-01T00:00:00",
        "status": "draft", "payment_method": "cash", "items": [line(r)],
    },
    "credit-notes": lambda api, r: {
        "parent_id": r["order"]["id"], "customer_id": r["customer"]["id"], "items": [line(r)],
    },
    "return-requests": lambda api, r: {"customer_id": r["customer"]["id"], "product_id": r["product"]["id"]},
}


@pytest.fixture
def records(company, customer, product, order):
    return {"company": company, "customer": customer, "product": product, "order": order}


@pytest.mark.parametrize("prefix", RESOURCES)
def test_unknown_id_is_not_found(api, prefix):
    for method in ("get", "delete"):
        response = api(method, f"/{prefix}/999999")
        assert response.status_code == 404, f"{method.upper()} /{prefix}"
        body = response.json()
        assert body["success"] is False
        assert body["message"].lower().endswith("not found")


@pytest.mark.parametrize("prefix", RESOURCES)
def test_empty_create_is_rejected(api, prefix):
    before = total_count(api, prefix)
    response = api("post", f"/{prefix}", json={})

    assert response.status_code == 400
    assert response.json()["message"].endswith("is required")
    assert total_count(api, prefix) == before


@pytest.mark.parametrize("prefix", SOFT_DELETE)
def test_soft_delete_keeps_row_readable(api, records, prefix):
    row = create(api, prefix, PAYLOADS[prefix](api, records))
    path = f"/{prefix}/{row['id']}"

    assert api("delete", path).status_code == 200
    response = api("get", path)
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] == "N"
    assert row["id"] not in listed_ids(api, prefix, "Y")
    assert row["id"] in listed_ids(api, prefix, "N")


@pytest.mark.parametrize("prefix", HARD_DELETE)
def test_hard_delete_removes_row(api, records, prefix):
    row = create(api, prefix, PAYLOADS[prefix](api, records))
    before = total_count(api, prefix)

    assert api("delete", f"/{prefix}/{row['id']}").status_code == 200
    assert api("get", f"/{prefix}/{row['id']}").status_code == 404
    assert total_count(api, prefix) == before - 1


def test_audit_log_lists_recorded_actions(api, client, viewer_headers, depot):
    assert api("delete", f"/depots/{depot['id']}").status_code == 200

    response = api("get", "/audit-logs", params={"resource_type": "depot", "action": "delete"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    [entry] = body["data"]
    assert entry["resource_id"] == depot["id"]
    assert entry["resource_name"] == "North Depot"
    assert entry["user"]["id"] == 1

    assert client.get("/api/v1/audit-logs", headers=viewer_headers).status_code == 403
