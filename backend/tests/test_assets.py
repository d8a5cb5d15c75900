import pytest


@pytest.fixture
def asset(api):
    asset_type = api("post", "/asset-types", json={"name": "Cooler", "brand": "Frigo"})
    assert asset_type.status_code == 201, asset_type.text
    response = api("post", "/asset-master", json={
        "asset_type_id": asset_type.json()["data"]["id"], "serial_number": "COOL-0001",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def second_depot(api, company):
    response = api("post", "/depots", json={"parent_id": company["id"], "name": "South Depot"})
    return response.json()["data"]


def test_serial_numbers_are_unique(api, asset):
    response = api("post", "/asset-master", json={"asset_type_id": asset["asset_type_id"], "serial_number": "COOL-0001"})
    assert response.status_code == 409


def test_asset_type_counts_assets(api, asset):
    asset_type = api("get", f"/asset-types/{asset['asset_type_id']}").json()["data"]
    assert asset_type["asset_count"] == 1


def test_maintenance_needs_an_active_warranty_claim(api, asset):
    payload = {"asset_id": asset["id"], "maintenance_date": "2024-06-01T09:00:00", "technician_id": 1}
    response = api("post", "/asset-maintenance", json=payload)
    assert response.status_code == 400
    assert response.json()["message"].startswith("No active warranty claim found for this asset")

    claim = api("post", "/asset-warranty-claims", json={"asset_id": asset["id"], "issue_description": "Not cooling"})
    assert claim.status_code == 201
    assert api("post", "/asset-maintenance", json=payload).status_code == 201


def test_maintenance_for_missing_asset(api):
    payload = {"asset_id": 321, "maintenance_date": "2024-06-01T09:00:00", "technician_id": 1}
    assert api("post", "/asset-maintenance", json=payload).status_code == 404


def test_transfer_moves_the_asset(api, asset, depot, second_depot):
    response = api("post", "/asset-movements", json={
        "asset_id": asset["id"], "performed_by": 1, "movement_type": "Transfer",
        "from_depot_id": depot["id"], "to_depot_id": second_depot["id"],
    })
    assert response.status_code == 201, response.text
    movement = response.json()["data"]
    assert movement["movement_type"] == "transfer"
    assert movement["asset"]["code"] == "COOL-0001"

    moved = api("get", f"/asset-master/{asset['id']}").json()["data"]
    assert moved["current_location"] == "South Depot"
    assert moved["current_status"] == "Available"


@pytest.mark.parametrize("body, message", [
    ({"movement_type": "teleport"}, "Invalid movement type. Valid types are: transfer, maintenance, repair, disposal, return"),
    ({"movement_type": "transfer", "from_depot_id": 1}, "Transfer requires both from_depot_id and to_depot_id"),
    ({"movement_type": "repair", "from_depot_id": 1, "to_depot_id": 1},
     "Repair must move an asset from a depot to a customer or from a customer to a depot"),
    ({"movement_type": "disposal", "from_depot_id": 1},
     "Disposal and return movements must be from depot to customer or customer to depot"),
    ({"movement_type": "disposal", "from_depot_id": 1, "to_depot_id": 1},
     "Disposal and return movements must be from depot to customer or customer to depot"),
    ({"movement_type": "return", "from_depot_id": 1, "to_depot_id": 1, "to_customer_id": 1},
     "Disposal and return movements must be from depot to customer or customer to depot"),
    ({"movement_type": "return", "from_depot_id": 1, "to_customer_id": 55}, "Customer with ID 55 not found"),
])
def test_movement_rules(api, asset, depot, body, message):
    response = api("post", "/asset-movements", json={"asset_id": asset["id"], "performed_by": 1, **body})
    assert response.status_code == 400
    assert response.json()["message"] == message


def test_movement_for_missing_asset(api):
    response = api("post", "/asset-movements", json={"asset_id": 999, "performed_by": 1, "movement_type": "transfer"})
    assert response.status_code == 404


def test_repair_records_maintenance(api, asset, depot, customer):
    response = api("post", "/asset-movements", json={
        "asset_id": asset["id"], "performed_by": 1, "movement_type": "repair",
        "from_depot_id": depot["id"], "to_customer_id": customer["id"], "notes": "Compressor noise",
    })
    assert response.status_code == 201
    moved = api("get", f"/asset-master/{asset['id']}").json()["data"]
    assert moved["current_status"] == "Under Maintenance"
    assert moved["current_location"] == "Corner Shop"

    records = api("get", "/asset-maintenance").json()["data"]
    assert len(records) == 1
    assert records[0]["issue_reported"] == "Compressor noise"
    assert records[0]["asset_movement_id"] == response.json()["data"]["id"]


def test_approval_generates_a_contract(api, asset, depot, second_depot):
    movement = api("post", "/asset-movements", json={
        "asset_id": asset["id"], "performed_by": 1, "movement_type": "transfer",
        "from_depot_id": depot["id"], "to_depot_id": second_depot["id"],
    }).json()["data"]
    assert api("get", f"/asset-movements/{movement['id']}/contract").status_code == 404

    approved = api("post", f"/asset-movements/{movement['id']}/approve", json={"approval_status": "approved"})
    assert approved.status_code == 200
    data = approved.json()["data"]
    assert data["approval_status"] == "approved"
    assert data["contract"]["contract_number"] == f"COOL-{movement['id']:06d}"
    assert data["contract"]["contract_url"].startswith("/uploads/contracts/")

    preview = api("get", f"/asset-movements/{movement['id']}/contract/preview")
    assert preview.status_code == 200
    assert preview.headers["content-type"] == "application/pdf"
    assert preview.content.startswith(b"%PDF")


def test_regenerating_keeps_one_contract(api, asset, depot, second_depot, run_db, tmp_path):
    from sqlalchemy import func, select

    from dcc_sfa.models import AssetMovementContract
    from dcc_sfa.services.contract_generation import generate_contract_on_approval
    from dcc_sfa.services.storage import LocalFileStorage

    movement = api("post", "/asset-movements", json={
        "asset_id": asset["id"], "performed_by": 1, "movement_type": "transfer",
        "from_depot_id": depot["id"], "to_depot_id": second_depot["id"],
    }).json()["data"]
    storage = LocalFileStorage(str(tmp_path / "store"), "/uploads")

    first = run_db(lambda db: generate_contract_on_approval(db, movement["id"], storage=storage))
    second = run_db(lambda db: generate_contract_on_approval(db, movement["id"], storage=storage))

    async def contract_rows(db):
        result = await db.execute(
            select(func.count(AssetMovementContract.id)).where(AssetMovementContract.asset_movement_id == movement["id"])
        )
        return result.scalar()

    assert run_db(contract_rows) == 1
    files = list((tmp_path / "store" / "contracts").iterdir())
    assert [f.name for f in files] == [second.file_name]
    assert first.contract_url != second.contract_url


def test_contract_for_missing_movement(api):
    assert api("post", "/asset-movements/999/contract").status_code == 404
    assert api("get", "/asset-movements/999/contract/preview").status_code == 404


def test_return_from_customer_retires_asset(api, asset, depot, customer):
    response = api("post", "/asset-movements", json={
        "asset_id": asset["id"], "performed_by": 1, "movement_type": "return",
        "from_customer_id": customer["id"], "to_depot_id": depot["id"],
    })
    assert response.status_code == 201
    moved = api("get", f"/asset-master/{asset['id']}").json()["data"]
    assert moved["current_status"] == "Retired"
    assert moved["current_location"] == "North Depot"
