def make_role(api, name="Field Agent", permissions=("outlet_read", "order_create")):
    response = api("post", "/roles", json={"name": name, "permissions": list(permissions)})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_role_permissions_are_replaced_on_update(api):
    role = make_role(api)
    assert sorted(role["permissions"]) == ["order_create", "outlet_read"]

    response = api("put", f"/roles/{role['id']}", json={"permissions": ["vehicle_read"]})
    assert response.status_code == 200
    assert response.json()["data"]["permissions"] == ["vehicle_read"]

    response = api("put", f"/roles/{role['id']}", json={"description": "Route sales"})
    assert response.json()["data"]["permissions"] == ["vehicle_read"]


def test_unknown_permission(api):
    response = api("post", "/roles", json={"name": "Broken", "permissions": ["depot_read", "moon_read"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown permissions: moon_read"


def test_role_names_are_unique(api):
    make_role(api)
    assert api("post", "/roles", json={"name": "Field Agent"}).status_code == 409


def test_role_in_use_cannot_be_deleted(api):
    role = make_role(api)
    user = api("post", "/users", json={"email": "agent@example.com", "name": "Agent", "role_id": role["id"]})
    assert user.status_code == 201

    response = api("delete", f"/roles/{role['id']}")
    assert response.status_code == 400
    assert response.json()["message"] == "Role is assigned to 1 active user(s)"

    assert api("delete", f"/users/{user.json()['data']['id']}").status_code == 200
    assert api("delete", f"/roles/{role['id']}").status_code == 200


def test_permission_catalogue(api):
    permissions = api("get", "/permissions", params={"module": "depot"}).json()["data"]
    assert {p["action"] for p in permissions} == {"create", "read", "update", "delete"}
    modules = api("get", "/permissions/modules").json()["data"]
    assert {"module": "depot", "name": "Depot"} in modules


def test_user_rules(api, depot):
    payload = {"email": "rep@example.com", "name": "Rep", "role_id": 1, "depot_id": depot["id"]}
    created = api("post", "/users", json=payload)
    assert created.status_code == 201
    assert created.json()["data"]["depot"]["name"] == "North Depot"

    assert api("post", "/users", json=payload).status_code == 409
    response = api("post", "/users", json={**payload, "email": "other@example.com", "role_id": 99})
    assert response.status_code == 400
    assert response.json()["message"] == "Role not found"

    response = api("delete", "/users/1")
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"
