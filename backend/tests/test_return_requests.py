import pytest


@pytest.fixture
def return_request(api, customer, product):
    response = api("post", "/return-requests", json={
        "customer_id": customer["id"], "product_id": product["id"], "reason": "Damaged crate",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_new_request_opens_workflow(return_request):
    assert return_request["status"] == "pending"
    steps = return_request["workflow_steps"]
    assert [s["step_name"] for s in steps] == [
        "Request Submitted", "Initial Review", "Approval Decision", "Processing", "Completion",
    ]
    assert [s["status"] for s in steps] == ["completed", "in_progress", "pending", "pending", "pending"]
    assert steps[0]["completed_by"] == 1
    assert steps[1]["completed_at"] is None


def test_missing_references(api, customer):
    response = api("post", "/return-requests", json={"customer_id": customer["id"], "product_id": 404})
    assert response.status_code == 400
    assert response.json()["message"] == "Product not found"


def test_update_step(api, return_request):
    step = return_request["workflow_steps"][1]
    url = f"/return-requests/{return_request['id']}/workflow/{step['id']}"

    response = api("put", url, json={"status": "completed", "action_taken": "Checked photos"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"
    assert response.json()["data"]["completed_by"] == 1

    response = api("put", url, json={"status": "done"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid status. Must be one of: pending, in_progress, completed, rejected"

    assert api("put", f"/return-requests/{return_request['id']}/workflow/999", json={}).status_code == 404


def test_execute_template(api, return_request):
    response = api("post", f"/return-requests/{return_request['id']}/workflow/execute",
                   json={"template_id": "urgent_return"})
    assert response.status_code == 200
    steps = response.json()["data"]
    assert [s["step_name"] for s in steps] == [
        "Request Submitted", "Priority Review", "Approval Decision", "Expedited Processing", "Completion",
    ]
    assert {s["status"] for s in steps} == {"completed"}

    request = api("get", f"/return-requests/{return_request['id']}").json()["data"]
    assert request["status"] == "completed"
    assert request["approved_by"] == 1
    assert request["resolution_notes"] == "Processed using urgent return workflow"


def test_unknown_template_falls_back_to_standard(api, return_request):
    response = api("post", f"/return-requests/{return_request['id']}/workflow/execute",
                   json={"template_id": "express", "resolution_notes": "Credited"})
    steps = response.json()["data"]
    assert len(steps) == 5
    assert steps[1]["step_name"] == "Initial Review"


def test_reject(api, return_request):
    response = api("post", f"/return-requests/{return_request['id']}/reject", json={"reason": "Out of policy"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "rejected"
    assert data["resolution_notes"] == "Out of policy"

    steps = data["workflow_steps"]
    assert steps[1]["status"] == "rejected"
    assert steps[-1]["step_name"] == "Request Rejected"
    assert steps[-1]["step_number"] == 6

    again = api("post", f"/return-requests/{return_request['id']}/reject", json={"reason": "Again"})
    assert again.status_code == 400
    assert again.json()["message"] == "Return request is already rejected"


def test_reject_needs_reason(api, return_request):
    response = api("post", f"/return-requests/{return_request['id']}/reject", json={})
    assert response.status_code == 400


def test_delete_removes_workflow(api, return_request):
    assert api("delete", f"/return-requests/{return_request['id']}").status_code == 200
    assert api("get", f"/return-requests/{return_request['id']}").status_code == 404
    assert api("get", f"/return-requests/{return_request['id']}/workflow").status_code == 404
