import pytest


@pytest.fixture
def note_payload(order, customer, product):
    return {
        "parent_id": order["id"],
        "customer_id": customer["id"],
        "reason": "Damaged bottles",
        "items": [
            {"product_id": product["id"], "quantity": 4, "unit_price": 1.5},
            {"product_id": product["id"], "quantity": 2, "unit_price": 1.5, "tax_amount": 0.3},
        ],
    }


def test_numbers_follow_a_sequence(api, note_payload):
    first = api("post", "/credit-notes", json=note_payload)
    second = api("post", "/credit-notes", json=note_payload)

    assert first.status_code == 201, first.text
    assert first.json()["data"]["credit_note_number"] == "CN-00001"
    assert second.json()["data"]["credit_note_number"] == "CN-00002"

    note = first.json()["data"]
    assert note["subtotal"] == 9
    assert note["tax_amount"] == 0.3
    assert note["total_amount"] == 9.3
    assert note["balance_due"] == 9.3
    assert note["status"] == "draft"


def test_order_is_required_and_must_exist(api, note_payload):
    del note_payload["parent_id"]
    assert api("post", "/credit-notes", json=note_payload).status_code == 400

    note_payload["parent_id"] = 999
    response = api("post", "/credit-notes", json=note_payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Order not found"


def test_upsert_without_id_creates(api, note_payload):
    response = api("post", "/credit-notes/upsert", json=note_payload)
    assert response.status_code == 200
    assert response.json()["message"] == "Credit note created successfully"
    assert len(response.json()["data"]["items"]) == 2


def test_upsert_reconciles_items_by_id(api, note_payload, product):
    note = api("post", "/credit-notes", json=note_payload).json()["data"]
    keep, drop = note["items"]

    payload = {
        **note_payload,
        "id": note["id"],
        "status": "issued",
        "items": [
            {"id": keep["id"], "product_id": product["id"], "quantity": 10, "unit_price": 1.5},
            {"product_id": product["id"], "quantity": 1, "unit_price": 2},
        ],
    }
    response = api("post", "/credit-notes/upsert", json=payload)
    assert response.status_code == 200, response.text
    data = response.json()["data"]

    assert data["status"] == "issued"
    assert data["credit_note_number"] == note["credit_note_number"]
    ids = [i["id"] for i in data["items"]]
    assert keep["id"] in ids
    assert drop["id"] not in ids
    assert len(ids) == 2
    assert data["subtotal"] == 17
    assert data["total_amount"] == 17
    assert data["log_inst"] == 2


def test_upsert_rejects_foreign_item_ids(api, note_payload, product):
    note = api("post", "/credit-notes", json=note_payload).json()["data"]
    payload = {
        **note_payload,
        "id": note["id"],
        "items": [{"id": 9999, "product_id": product["id"], "quantity": 1, "unit_price": 1}],
    }
    response = api("post", "/credit-notes/upsert", json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Credit note item not found: 9999"
    assert len(api("get", f"/credit-notes/{note['id']}/items").json()["data"]) == 2


def test_upsert_unknown_note(api, note_payload):
    response = api("post", "/credit-notes/upsert", json={**note_payload, "id": 4242})
    assert response.status_code == 404


def test_header_update_keeps_lines(api, note_payload):
    note = api("post", "/credit-notes", json=note_payload).json()["data"]
    response = api("put", f"/credit-notes/{note['id']}", json={"amount_applied": 4, "log_inst": 1})
    data = response.json()["data"]
    assert data["balance_due"] == 5.3
    assert len(data["items"]) == 2


def test_delete_and_stats(api, note_payload):
    note = api("post", "/credit-notes", json=note_payload).json()["data"]
    stats = api("get", "/credit-notes").json()["stats"]
    assert stats["total_credit_notes"] == 1
    assert stats["total_amount"] == 9.3

    assert api("delete", f"/credit-notes/{note['id']}").status_code == 200
    assert api("get", f"/credit-notes/{note['id']}").status_code == 404
