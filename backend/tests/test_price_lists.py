import pytest


@pytest.fixture
def price_list(api, product):
    response = api("post", "/price-lists", json={
        "name": "Retail 2024",
        "valid_from": "2024-01-01T00:00:00",
        "items": [{"product_id": product["id"], "unit_price": 1.4}],
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_fills_item_defaults(price_list, product):
    assert price_list["currency_code"] == "USD"
    [item] = price_list["items"]
    assert item["product_id"] == product["id"]
    assert item["uom"] == "btl"
    assert item["discount_percent"] == 0
    assert item["product"]["name"] == "Cola 500ml"


def test_mixed_timezone_validity_window(api):
    response = api("post", "/price-lists", json={
        "name": "Wholesale", "valid_from": "2024-01-01T00:00:00Z", "valid_to": "2024-12-31T00:00:00",
    })
    assert response.status_code == 201, response.text
    assert response.json()["data"]["valid_from"].startswith("2024-01-01T00:00:00")

    response = api("post", "/price-lists", json={
        "name": "Backwards", "valid_from": "2024-06-01T03:00:00+03:00", "valid_to": "2024-05-31T23:00:00",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "valid_to must not be before valid_from"


def test_update_checks_window_against_stored_dates(api, price_list):
    response = api("put", f"/price-lists/{price_list['id']}", json={"valid_to": "2023-12-31T00:00:00Z"})
    assert response.status_code == 400


def test_update_replaces_items(api, price_list, product):
    other = api("post", "/products", json={"name": "Water 1L", "code": "WATER1", "base_price": 0.8}).json()["data"]
    response = api("put", f"/price-lists/{price_list['id']}", json={
        "name": "Retail 2024 H2",
        "items": [
            {"product_id": other["id"], "unit_price": 0.75, "uom": "case"},
            {"product_id": product["id"], "unit_price": 1.3, "discount_percent": 5},
        ],
    })
    assert response.status_code == 200, response.text
    updated = response.json()["data"]

    assert updated["name"] == "Retail 2024 H2"
    assert sorted((i["product_id"], i["unit_price"]) for i in updated["items"]) == sorted(
        [(other["id"], 0.75), (product["id"], 1.3)])
    assert len(api("get", f"/price-lists/{price_list['id']}/items").json()["data"]) == 2


def test_update_without_items_keeps_them(api, price_list):
    response = api("put", f"/price-lists/{price_list['id']}", json={"description": "Shops"})
    assert [i["id"] for i in response.json()["data"]["items"]] == [i["id"] for i in price_list["items"]]


def test_unknown_product_in_items(api):
    response = api("post", "/price-lists", json={
        "name": "Broken", "items": [{"product_id": 999, "unit_price": 1}],
    })
    assert response.status_code == 404
    assert response.json()["message"] == "Product with ID 999 not found"
    assert api("get", "/price-lists").json()["pagination"]["total_count"] == 0
