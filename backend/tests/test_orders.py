def test_create_derives_totals_from_items(api, customer, product):
    response = api("post", "/orders", json={
        "customer_id": customer["id"],
        "shipping_amount": 3,
        "items": [
            {"product_id": product["id"], "quantity": 4, "unit_price": 2.5, "discount_amount": 1, "tax_amount": 0.5},
            {"product_id": product["id"], "quantity": 2, "unit_price": 1.5},
        ],
    })
    assert response.status_code == 201, response.text
    order = response.json()["data"]

    assert order["order_number"].startswith("ORD-")
    assert order["status"] == "draft"
    assert order["subtotal"] == 13
    assert order["discount_amount"] == 1
    assert order["tax_amount"] == 0.5
    assert order["total_amount"] == 15.5
    assert order["customer"]["name"] == "Corner Shop"
    assert sorted(i["total_amount"] for i in order["items"]) == [3, 9.5]
    assert order["items"][0]["product_name"] == "Cola 500ml"


def test_numbers_follow_a_daily_sequence(api, order, customer, product):
    response = api("post", "/orders", json={
        "customer_id": customer["id"], "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 1}],
    })
    first, second = order["order_number"], response.json()["data"]["order_number"]
    assert first[:-4] == second[:-4]
    assert int(second[-4:]) == int(first[-4:]) + 1


def test_update_replaces_items_and_totals(api, order, product):
    response = api("put", f"/orders/{order['id']}", json={
        "status": "confirmed",
        "items": [{"product_id": product["id"], "quantity": 3, "unit_price": 2, "tax_amount": 0.6}],
    })
    assert response.status_code == 200, response.text
    updated = response.json()["data"]

    assert updated["status"] == "confirmed"
    [item] = updated["items"]
    assert item["quantity"] == 3
    assert updated["subtotal"] == 6
    assert updated["total_amount"] == 6.6


def test_header_update_keeps_items(api, order):
    response = api("put", f"/orders/{order['id']}", json={"shipping_amount": 2})
    updated = response.json()["data"]

    assert len(updated["items"]) == 1
    assert updated["subtotal"] == 15
    assert updated["total_amount"] == 17


def test_unknown_customer(api, product):
    response = api("post", "/orders", json={
        "customer_id": 999, "items": [{"product_id": product["id"], "quantity": 1, "unit_price": 1}],
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Customer not found"


def test_order_needs_items(api, customer):
    response = api("post", "/orders", json={"customer_id": customer["id"], "items": []})
    assert response.status_code == 400
    assert api("get", "/orders").json()["pagination"]["total_count"] == 0
