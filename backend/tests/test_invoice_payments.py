import pytest


@pytest.fixture
def invoice(api, customer, product):
    response = api("post", "/invoices", json={
        "customer_id": customer["id"],
        "invoice_date": "2024-05-01T00:00:00",
        "status": "sent",
        "payment_method": "cash",
        "items": [{"product_id": product["id"], "quantity": 2, "unit_price": 10}],
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def payment(api, customer):
    response = api("post", "/payments", json={
        "customer_id": customer["id"], "payment_date": "2024-05-02T10:00:00+03:00",
        "collected_by": 1, "method": "mpesa", "reference_number": "QWE123", "total_amount": 15,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


def apply(api, invoice, payment, amount):
    return api("post", f"/invoices/{invoice['id']}/payments",
               json={"payment_id": payment["id"], "amount_applied": amount})


def test_new_payment(payment):
    assert payment["payment_number"].startswith("PAY-")
    assert payment["payment_date"].startswith("2024-05-02T07:00:00")
    assert payment["unapplied_amount"] == 15
    assert payment["collector"]["code"] == "admin@example.com"


def test_payment_lines_move_amount_paid(api, invoice, payment):
    response = apply(api, invoice, payment, 12)
    assert response.status_code == 201, response.text
    assert response.json()["message"] == "Payment line created successfully"
    paid = response.json()["data"]
    assert paid["amount_paid"] == 12
    assert paid["balance_due"] == 8

    [line] = api("get", f"/invoices/{invoice['id']}/payments").json()["data"]
    assert line["invoice_number"] == invoice["invoice_number"]
    assert line["payment_number"] == payment["payment_number"]
    assert line["method"] == "mpesa"

    path = f"/invoices/{invoice['id']}/payments/{line['id']}"
    updated = api("put", path, json={"amount_applied": 5}).json()["data"]
    assert updated["amount_paid"] == 5
    assert updated["balance_due"] == 15

    removed = api("delete", path).json()["data"]
    assert removed["amount_paid"] == 0
    assert removed["balance_due"] == 20
    assert api("get", f"/invoices/{invoice['id']}/payments").json()["data"] == []


def test_payment_cannot_be_over_applied(api, invoice, payment):
    response = apply(api, invoice, payment, 16)
    assert response.status_code == 400
    assert response.json()["message"] == "Amount applied exceeds the unapplied payment amount (15.00)"

    assert apply(api, invoice, payment, 10).status_code == 201
    assert apply(api, invoice, payment, 6).json()["message"].endswith("(5.00)")

    [line] = api("get", f"/invoices/{invoice['id']}/payments").json()["data"]
    response = api("put", f"/invoices/{invoice['id']}/payments/{line['id']}", json={"amount_applied": 15})
    assert response.status_code == 200
    assert api("get", f"/payments/{payment['id']}").json()["data"]["unapplied_amount"] == 0


def test_payment_must_belong_to_invoice_customer(api, invoice):
    other = api("post", "/customers", json={"name": "Hilltop Bar"}).json()["data"]
    payment = api("post", "/payments", json={
        "customer_id": other["id"], "payment_date": "2024-05-02T00:00:00",
        "collected_by": 1, "method": "cash", "total_amount": 5,
    }).json()["data"]

    response = apply(api, invoice, payment, 5)
    assert response.status_code == 400
    assert response.json()["message"] == "Payment belongs to a different customer"


def test_unknown_payment_or_line(api, invoice):
    response = api("post", f"/invoices/{invoice['id']}/payments", json={"payment_id": 999, "amount_applied": 1})
    assert response.status_code == 404
    assert response.json()["message"] == "Payment not found"

    response = api("put", f"/invoices/{invoice['id']}/payments/999", json={"amount_applied": 1})
    assert response.status_code == 404
    assert response.json()["message"] == "Payment line not found"


def test_applied_payment_cannot_be_deleted(api, invoice, payment):
    apply(api, invoice, payment, 10)
    response = api("delete", f"/payments/{payment['id']}")
    assert response.status_code == 400

    detail = api("get", f"/payments/{payment['id']}").json()["data"]
    assert detail["amount_applied"] == 10
    assert detail["lines"][0]["invoice_id"] == invoice["id"]


def test_deleting_invoice_releases_payment(api, invoice, payment):
    apply(api, invoice, payment, 10)
    assert api("delete", f"/invoices/{invoice['id']}").status_code == 200

    detail = api("get", f"/payments/{payment['id']}").json()["data"]
    assert detail["unapplied_amount"] == 15
    assert detail["lines"] == []
    assert api("delete", f"/payments/{payment['id']}").status_code == 200


def test_invoice_cannot_be_overpaid(api, invoice, customer):
    payment = api("post", "/payments", json={
        "customer_id": customer["id"], "payment_date": "2024-05-02T00:00:00",
        "collected_by": 1, "method": "bank", "total_amount": 30,
    }).json()["data"]

    response = apply(api, invoice, payment, 25)
    assert response.status_code == 400
    assert response.json()["message"] == "Amount applied exceeds the invoice balance due (20.00)"
    assert apply(api, invoice, payment, 20).json()["data"]["balance_due"] == 0
