import pytest


@pytest.fixture
def zone(api, company, depot):
    response = api("post", "/zones", json={"parent_id": company["id"], "depot_id": depot["id"], "name": "Zone A"})
    assert response.status_code == 201
    return response.json()["data"]


def test_create_writes_links(api, customer, depot, zone):
    response = api("post", "/customer-groups", json={
        "name": "Key Accounts",
        "discount_percentage": 5,
        "customer_ids": [customer["id"]],
        "depot_ids": [depot["id"]],
        "zone_ids": [zone["id"]],
    })
    assert response.status_code == 201, response.text
    group = response.json()["data"]
    assert group["code"] == "CG0001"
    assert group["member_count"] == 1
    assert group["customers"][0]["id"] == customer["id"]
    assert [d["id"] for d in group["depots"]] == [depot["id"]]
    assert [z["id"] for z in group["zones"]] == [zone["id"]]


def test_unknown_member_creates_nothing(api, customer):
    response = api("post", "/customer-groups", json={"name": "Ghosts", "customer_ids": [customer["id"], 77, 78]})
    assert response.status_code == 400
    assert response.json()["message"] == "Customer not found: 77, 78"
    assert api("get", "/customer-groups").json()["pagination"]["total_count"] == 0


def test_update_replaces_only_sent_link_sets(api, customer, depot):
    other = api("post", "/customers", json={"name": "Kiosk 2"}).json()["data"]
    group = api("post", "/customer-groups", json={
        "name": "Route 7", "customer_ids": [customer["id"]], "depot_ids": [depot["id"]],
    }).json()["data"]

    response = api("put", f"/customer-groups/{group['id']}", json={"customer_ids": [other["id"]]})
    assert response.status_code == 200
    data = response.json()["data"]
    assert [c["id"] for c in data["customers"]] == [other["id"]]
    assert [d["id"] for d in data["depots"]] == [depot["id"]]

    cleared = api("put", f"/customer-groups/{group['id']}", json={"depot_ids": []}).json()["data"]
    assert cleared["depots"] == []
    assert cleared["member_count"] == 1


def test_delete_removes_group_and_links(api, customer, run_db):
    from sqlalchemy import func, select

    from dcc_sfa.models import CustomerGroupMember

    group = api("post", "/customer-groups", json={"name": "Temp", "customer_ids": [customer["id"]]}).json()["data"]
    assert api("delete", f"/customer-groups/{group['id']}").status_code == 200
    assert api("get", f"/customer-groups/{group['id']}").status_code == 404

    async def count_links(db):
        return (await db.execute(select(func.count(CustomerGroupMember.id)))).scalar()

    assert run_db(count_links) == 0
    assert api("get", f"/customers/{customer['id']}").status_code == 200
