import pytest


@pytest.fixture
def invoice_payload(customer, product, order):
    return {
        "customer_id": customer["id"],
        "parent_id": order["id"],
        "invoice_date": "2024-05-01T00:00:00",
        "status": "draft",
        "payment_method": "cash",
        "shipping_amount": 5,
        "amount_paid": 10,
        "items": [
            {"product_id": product["id"], "quantity": 2, "unit_price": 10, "discount_amount": 1, "tax_amount": 0.5},
        ],
    }


def test_create_derives_totals_from_items(api, invoice_payload, order):
    response = api("post", "/invoices", json=invoice_payload)
    assert response.status_code == 201, response.text
    invoice = response.json()["data"]

    assert invoice["invoice_number"].startswith("INV-")
    assert invoice["subtotal"] == 20
    assert invoice["discount_amount"] == 1
    assert invoice["tax_amount"] == 0.5
    assert invoice["total_amount"] == 24.5
    assert invoice["balance_due"] == 14.5
    assert invoice["order"]["code"] == order["order_number"]

    [item] = invoice["items"]
    assert item["product_name"] == "Cola 500ml"
    assert item["unit"] == "btl"
    assert item["total_amount"] == 19.5


def test_unknown_product_rolls_back_the_invoice(api, invoice_payload):
    invoice_payload["items"].append({"product_id": 999, "quantity": 1, "unit_price": 1})
    response = api("post", "/invoices", json=invoice_payload)

    assert response.status_code == 404
    assert response.json()["message"] == "Product with ID 999 not found"
    assert api("get", "/invoices").json()["pagination"]["total_count"] == 0


def test_missing_invoice_date(api, invoice_payload):
    del invoice_payload["invoice_date"]
    response = api("post", "/invoices", json=invoice_payload)
    assert response.status_code == 400
    assert response.json()["message"] == "invoice_date is required"


def test_duplicate_number_conflicts(api, invoice_payload):
    invoice_payload["invoice_number"] = "INV-1"
    assert api("post", "/invoices", json=invoice_payload).status_code == 201
    assert api("post", "/invoices", json=invoice_payload).status_code == 409


def test_item_endpoints_recompute_totals(api, invoice_payload, product):
    invoice = api("post", "/invoices", json=invoice_payload).json()["data"]
    invoice_id = invoice["id"]

    added = api("post", f"/invoices/{invoice_id}/items", json={
        "product_id": product["id"], "quantity": 1, "unit_price": 4,
    })
    assert added.status_code == 201
    assert added.json()["data"]["total_amount"] == 28.5

    items = api("get", f"/invoices/{invoice_id}/items").json()["data"]
    assert len(items) == 2
    first_id = next(i["id"] for i in items if i["unit_price"] == 10)

    updated = api("put", f"/invoices/{invoice_id}/items/{first_id}", json={"quantity": 3})
    body = updated.json()["data"]
    assert body["subtotal"] == 34
    assert body["total_amount"] == 38.5
    assert body["balance_due"] == 28.5

    for item in items:
        response = api("delete", f"/invoices/{invoice_id}/items/{item['id']}")
        assert response.status_code == 200
    emptied = api("get", f"/invoices/{invoice_id}").json()["data"]
    assert emptied["items"] == []
    assert emptied["subtotal"] == 0
    assert emptied["total_amount"] == 5


def test_update_replaces_items(api, invoice_payload, product):
    invoice = api("post", "/invoices", json=invoice_payload).json()["data"]

    response = api("put", f"/invoices/{invoice['id']}", json={
        "status": "sent",
        "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 50}],
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "sent"
    assert len(data["items"]) == 1
    assert data["total_amount"] == 55
    assert data["log_inst"] == 2


def test_list_stats_and_delete(api, invoice_payload):
    first = api("post", "/invoices", json=invoice_payload).json()["data"]
    api("post", "/invoices", json=invoice_payload)

    stats = api("get", "/invoices").json()["stats"]
    assert stats == {"total_invoices": 2, "total_amount": 49.0, "amount_paid": 20.0, "balance_due": 29.0}

    assert api("delete", f"/invoices/{first['id']}").status_code == 200
    assert api("get", f"/invoices/{first['id']}").status_code == 404
    assert api("get", "/invoices").json()["stats"]["total_invoices"] == 1

    actions = [log["action"] for log in api("get", "/audit-logs", params={"resource_type": "invoice"}).json()["data"]]
    assert sorted(actions) == ["create", "create", "delete"]
