"""HTTP surface: auth, status codes, error bodies and franchise scoping."""
import json
import logging
from datetime import date, timedelta

import pytest

from app.models import Inventory, Order


@pytest.fixture
def branch(make_franchise, make_customer, make_product, make_user):
    franchise_id = make_franchise()
    _, headers = make_user(franchise_id)
    return {
        "franchise_id": franchise_id,
        "customer_id": make_customer(franchise_id),
        "product_id": make_product(franchise_id, stock=10, mrp="100.00", gst="12"),
        "headers": headers,
    }


def order_payload(branch, quantity=1, **order_fields):
    return {
        "order": {"customer_id": branch["customer_id"], **order_fields},
        "items": [{"product_id": branch["product_id"], "quantity": quantity}],
    }


def product_payload(**overrides):
    payload = {
        "category": "Antibiotic",
        "manufacturer": "Cipla",
        "name": "Azithromycin 500mg",
        "packing": "3 tablets",
        "mrp": "120.00",
        "gst": "12",
        "expiry_date": (date.today() + timedelta(days=400)).isoformat(),
        "prescription_required": True,
        "supplier": "Cipla",
    }
    payload.update(overrides)
    return payload


def test_health_needs_no_auth(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("path", ["/api/orders", "/api/products", "/api/customers", "/api/dashboard/stats", "/api/user"])
def test_business_endpoints_require_auth(client, path):
    response = client.get(path)
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


def test_bad_token_is_rejected(client):
    response = client.get("/api/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_register_login_and_current_user(client, make_franchise):
    franchise_id = make_franchise()
    response = client.post("/api/register", json={
        "first_name": "Meera",
        "last_name": "Iyer",
        "username": "meera",
        "email": "meera@demo-pharmacy.in",
        "password": "Pharma2024",
        "franchise_id": franchise_id,
    })
    assert response.status_code == 201
    assert response.json()["role"] == "staff"

    response = client.post("/api/login", json={"username": "meera", "password": "Pharma2024"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["username"] == "meera"
    assert response.json()["franchise_id"] == franchise_id


def test_login_sets_session_cookie_and_logout_clears_it(client, make_user):
    make_user()
    response = client.post("/api/login", json={"username": "staff1", "password": "Secret123"})
    assert response.status_code == 200
    assert "pharmacy_session" in response.cookies

    # Cookie alone authenticates
    assert client.get("/api/user").status_code == 200
    assert client.post("/api/logout").status_code == 200


def test_weak_password_is_rejected(client):
    response = client.post("/api/register", json={
        "first_name": "Tom",
        "last_name": "K",
        "username": "tomk",
        "email": "tomk@demo-pharmacy.in",
        "password": "short",
    })
    assert response.status_code == 400
    assert {e["field"] for e in response.json()["errors"]} == {"password"}


def test_wrong_password_gets_generic_401(client, make_user):
    make_user()
    response = client.post("/api/login", json={"username": "staff1", "password": "nope12345"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid username or password"


def test_product_crud(client, branch):
    headers = branch["headers"]

    response = client.post("/api/products", json=product_payload(stock_quantity=30), headers=headers)
    assert response.status_code == 201
    product = response.json()
    assert product["stock_quantity"] == 30
    assert product["mrp"] == 120.0

    response = client.put(f"/api/products/{product['pr_code']}", json={"mrp": "135.50"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["mrp"] == 135.5
    assert response.json()["stock_quantity"] == 30

    response = client.delete(f"/api/products/{product['pr_code']}", headers=headers)
    assert response.status_code == 204
    assert client.get(f"/api/products/{product['pr_code']}", headers=headers).status_code == 404


def test_product_with_orders_cannot_be_deleted(client, branch):
    client.post("/api/orders", json=order_payload(branch), headers=branch["headers"])
    response = client.delete(f"/api/products/{branch['product_id']}", headers=branch["headers"])
    assert response.status_code == 409


def test_low_stock_products_route(client, branch, make_product):
    make_product(branch["franchise_id"], stock=3, name="Insulin Pen")
    response = client.get("/api/products/low-stock?limit=5", headers=branch["headers"])
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Insulin Pen", "Paracetamol 500mg"]


def test_validation_errors_use_message_and_field_list(client, branch):
    response = client.post("/api/customers", json={"first_name": "Ravi"}, headers=branch["headers"])

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request data"
    fields = {e["field"] for e in body["errors"]}
    assert {"last_name", "address", "contact_number"} <= fields


def test_customer_crud_and_recent(client, branch):
    headers = branch["headers"]
    response = client.post("/api/customers", json={
        "first_name": "Ravi",
        "last_name": "Kumar",
        "address": "22 Station Road, Pune",
        "contact_number": "98100-00000",
        "email": "ravi@demo-pharmacy.in",
    }, headers=headers)
    assert response.status_code == 201
    customer = response.json()
    assert customer["franchise_id"] == branch["franchise_id"]

    recent = client.get("/api/customers/recent?limit=1", headers=headers).json()
    assert [c["id"] for c in recent] == [customer["id"]]

    response = client.put(f"/api/customers/{customer['id']}", json={"address": "5 Hill Road"}, headers=headers)
    assert response.json()["address"] == "5 Hill Road"

    assert client.delete(f"/api/customers/{customer['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/customers/{customer['id']}", headers=headers).status_code == 404


def test_create_order_and_replay_with_idempotency_key(client, branch, session_factory):
    headers = {**branch["headers"], "Idempotency-Key": "counter-2-000017"}

    first = client.post("/api/orders", json=order_payload(branch, quantity=4), headers=headers)
    again = client.post("/api/orders", json=order_payload(branch, quantity=4), headers=headers)

    assert first.status_code == 201
    assert first.json()["final_amount"] == 448.0
    assert again.json()["id"] == first.json()["id"]
    with session_factory() as s:
        assert s.query(Order).count() == 1
        row = s.query(Inventory).filter_by(franchise_id=branch["franchise_id"], product_id=branch["product_id"]).one()
        assert row.stock_quantity == 6


def test_insufficient_stock_is_400_with_details(client, branch):
    response = client.post("/api/orders", json=order_payload(branch, quantity=11), headers=branch["headers"])

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Insufficient stock"
    assert body["errors"][0]["available"] == 10


def test_order_with_zero_quantity_is_400(client, branch):
    response = client.post("/api/orders", json=order_payload(branch, quantity=0), headers=branch["headers"])
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "items.0.quantity"


def test_order_detail_list_and_status(client, branch):
    headers = branch["headers"]
    order_id = client.post("/api/orders", json=order_payload(branch, quantity=2), headers=headers).json()["id"]

    detail = client.get(f"/api/orders/{order_id}", headers=headers).json()
    assert detail["customer"]["name"] == "Asha Rao"
    assert detail["items"][0]["quantity"] == 2

    assert [o["id"] for o in client.get("/api/orders/recent", headers=headers).json()] == [order_id]

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=headers)
    assert response.status_code == 400

    response = client.patch(f"/api/orders/{order_id}/status", json={"status": "processing"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "processing"

    assert client.patch("/api/orders/99999/status", json={"status": "processing"}, headers=headers).status_code == 404


def test_other_franchise_cannot_see_orders(client, branch, make_franchise, make_user):
    order_id = client.post("/api/orders", json=order_payload(branch), headers=branch["headers"]).json()["id"]
    _, outsider = make_user(make_franchise())

    assert client.get(f"/api/orders/{order_id}", headers=outsider).status_code == 404
    assert client.get("/api/orders", headers=outsider).json() == []
    response = client.get(f"/api/dashboard/stats?franchise_id={branch['franchise_id']}", headers=outsider)
    assert response.status_code == 403


def test_dashboard_for_staff_and_admin(client, branch, make_user):
    client.post("/api/orders", json=order_payload(branch, quantity=1), headers=branch["headers"])
    _, admin = make_user(role="admin")

    stats = client.get("/api/dashboard/stats", headers=branch["headers"]).json()
    assert stats == {"total_orders": 1, "revenue": 112.0, "customers": 1, "low_stock_items": 1}

    scoped = client.get(f"/api/dashboard/stats?franchise_id={branch['franchise_id']}", headers=admin).json()
    assert scoped == stats


def test_only_admins_create_franchises(client, branch, make_user):
    payload = {
        "name": "Kothrud Branch",
        "address": "3 Paud Road, Pune",
        "contact_number": "020-2500-0000",
        "email": "kothrud@demo-pharmacy.in",
    }
    assert client.post("/api/franchises", json=payload, headers=branch["headers"]).status_code == 403

    _, admin = make_user(role="admin")
    response = client.post("/api/franchises", json=payload, headers=admin)
    assert response.status_code == 201
    names = [f["name"] for f in client.get("/api/franchises", headers=admin).json()]
    assert "Kothrud Branch" in names


def test_inventory_set_and_low_stock(client, branch):
    headers = branch["headers"]
    response = client.put("/api/inventory", json={"product_id": branch["product_id"], "stock_quantity": 4}, headers=headers)
    assert response.status_code == 200
    assert response.json()["stock_quantity"] == 4

    low = client.get("/api/inventory/low-stock", headers=headers).json()
    assert [(r["product_id"], r["stock_quantity"]) for r in low] == [(branch["product_id"], 4)]

    response = client.put("/api/inventory", json={
        "franchise_id": branch["franchise_id"] + 1, "product_id": branch["product_id"], "stock_quantity": 4,
    }, headers=headers)
    assert response.status_code == 403


def test_bill_snapshot_and_pdf(client, branch):
    headers = branch["headers"]
    order_id = client.post("/api/orders", json=order_payload(branch, quantity=2), headers=headers).json()["id"]

    response = client.post(f"/api/orders/{order_id}/bill", headers=headers)
    assert response.status_code == 200
    bill = response.json()["bill"]
    assert bill["totals"]["final_amount"] == "224.00"
    assert bill["customer"]["name"] == "Asha Rao"

    response = client.get(f"/api/orders/{order_id}/bill.pdf", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_cancelled_order_cannot_be_billed(client, branch):
    headers = branch["headers"]
    order_id = client.post("/api/orders", json=order_payload(branch), headers=headers).json()["id"]
    client.patch(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=headers)

    assert client.post(f"/api/orders/{order_id}/bill", headers=headers).status_code == 400


def test_replayed_order_is_audited_once(client, branch, caplog):
    headers = {**branch["headers"], "Idempotency-Key": "counter-2-000018"}

    with caplog.at_level(logging.INFO, logger="audit"):
        client.post("/api/orders", json=order_payload(branch), headers=headers)
        client.post("/api/orders", json=order_payload(branch), headers=headers)

    events = [json.loads(r.getMessage())["event_type"] for r in caplog.records if r.name == "audit"]
    assert events.count("order.create") == 1
