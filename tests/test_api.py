import pytest
from fastapi.testclient import TestClient

from conftest import stock_of
from storefront.api import create_app


def _order_body(*lines, method="cod", shipping="standard"):
    return {
        "items": [{"product_id": p.id, "quantity": q} for p, q in lines],
        "payment": {"method": method},
        "shipping": {"method": shipping},
    }


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_public_settings(client):
    body = client.get("/settings").json()

    assert body["company_name"] == "Ambika International"
    assert body["currency"] == "INR"
    assert set(body["shipping_fees"]) == {"standard", "express", "priority"}
    assert "redis_url" not in body


def test_unknown_user_is_401(client):
    response = client.get("/orders", params={"user_id": 999})
    assert response.status_code == 401


def test_admin_routes_need_admin(client, customer, admin):
    assert client.get("/admin/dashboard", params={"user_id": customer.id}).status_code == 403
    assert client.get("/notifications", params={"user_id": customer.id}).status_code == 403
    assert client.get("/admin/dashboard", params={"user_id": admin.id}).status_code == 200


# -----------------------------------------------------
# orders
# -----------------------------------------------------
def test_create_order(db, client, customer, make_product):
    a = make_product(price="100.00", stock=10)
    b = make_product(price="50.00", stock=10)

    response = client.post(
        "/orders", params={"user_id": customer.id}, json=_order_body((a, 2), (b, 1), shipping="priority")
    )

    assert response.status_code == 201
    body = response.json()
    assert body["order_number"].startswith("AMB")
    assert float(body["pricing"]["total"]) == 550.0
    assert stock_of(db, a.id) == 8


def test_create_order_unknown_product_is_404(client, customer, make_product):
    body = _order_body((make_product(), 1))
    body["items"].append({"product_id": 9999, "quantity": 1})

    response = client.post("/orders", params={"user_id": customer.id}, json=body)

    assert response.status_code == 404
    assert response.json() == {"detail": "Product 9999 not found"}


def test_create_order_out_of_stock_is_400(client, customer, make_product):
    response = client.post(
        "/orders", params={"user_id": customer.id}, json=_order_body((make_product(stock=1), 2))
    )

    assert response.status_code == 400
    assert "Insufficient stock" in response.json()["detail"]


def test_validation_errors_are_400_with_fields(client, customer):
    response = client.post(
        "/orders", params={"user_id": customer.id}, json={"items": [], "payment": {"method": "cheque"}}
    )

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed"
    fields = {e["field"] for e in body["errors"]}
    assert "body.items" in fields
    assert "body.payment.method" in fields


def test_cancel_foreign_order_is_403(client, customer, make_user, make_product):
    order = client.post("/orders", params={"user_id": customer.id}, json=_order_body((make_product(), 1))).json()

    response = client.put(f"/orders/{order['id']}/cancel", params={"user_id": make_user().id})

    assert response.status_code == 403


def test_cancel_own_order(db, client, customer, make_product):
    product = make_product(stock=5)
    order = client.post("/orders", params={"user_id": customer.id}, json=_order_body((product, 2))).json()

    response = client.put(f"/orders/{order['id']}/cancel", params={"user_id": customer.id})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert stock_of(db, product.id) == 5


def test_track_is_public(client, customer, make_product):
    order = client.post("/orders", params={"user_id": customer.id}, json=_order_body((make_product(), 1))).json()

    response = client.get(f"/orders/track/{order['order_number']}")

    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert "pricing" not in response.json()


def test_verify_is_idempotent_over_http(client, customer, make_product, lock_service):
    order = client.post(
        "/orders", params={"user_id": customer.id}, json=_order_body((make_product(), 1), method="upi")
    ).json()
    body = {"order_id": order["id"], "transaction_id": "TXN_1", "upi_transaction_id": "UPI1"}

    first = client.post("/upi-payments/verify", params={"user_id": customer.id}, json=body)
    second = client.post("/upi-payments/verify", params={"user_id": customer.id}, json=body)

    assert first.status_code == 200
    assert first.json()["already_verified"] is False
    assert second.json()["already_verified"] is True
    assert lock_service.held == {}


def test_admin_status_update(client, customer, admin, make_product):
    order = client.post("/orders", params={"user_id": customer.id}, json=_order_body((make_product(), 1))).json()

    response = client.put(
        f"/admin/orders/{order['id']}/status",
        params={"user_id": admin.id},
        json={"status": "delivered", "admin_notes": "left at gate"},
    )

    assert response.status_code == 200
    assert response.json()["payment"]["status"] == "completed"
    assert len(response.json()["status_history"]) == 2


def test_admin_customer_approval_and_role(client, admin, make_user):
    pending = make_user(customer_type="B2B", company="Acme", approval_status="pending")
    other = make_user(customer_type="B2B", company="Zenith", approval_status="pending")
    params = {"user_id": admin.id}

    approved = client.put(f"/admin/customers/{pending.id}/approve", params=params)
    rejected = client.put(f"/admin/customers/{other.id}/reject", params=params, json={"reason": "No GSTIN"})
    promoted = client.put(f"/admin/users/{pending.id}/role", params=params, json={"role": "admin"})

    assert approved.status_code == 200
    assert approved.json()["id"] == pending.id != admin.id
    assert approved.json()["approval_status"] == "approved"
    assert rejected.status_code == 200
    assert rejected.json()["approval_status"] == "rejected"
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"


def test_admin_cannot_demote_self_over_http(client, admin):
    response = client.put(f"/admin/users/{admin.id}/role", params={"user_id": admin.id}, json={"role": "user"})
    assert response.status_code == 400


# -----------------------------------------------------
# catalog and cart
# -----------------------------------------------------
def test_duplicate_category_is_409(client, admin, category):
    response = client.post("/categories", params={"user_id": admin.id}, json={"name": "VALVES"})
    assert response.status_code == 409


def test_cart_flow(client, customer, make_product):
    product = make_product(price="25.00", stock=4)
    params = {"user_id": customer.id}

    added = client.post("/cart/items", params=params, json={"product_id": product.id, "quantity": 3})
    too_many = client.post("/cart/items", params=params, json={"product_id": product.id, "quantity": 2})

    assert added.status_code == 200
    assert float(added.json()["subtotal"]) == 75.0
    assert too_many.status_code == 400
    assert client.delete("/cart", params=params).json()["items"] == []


def test_notification_inbox(client, admin):
    client.post("/users", json={"username": "acme", "email": "ops@acme.in", "customer_type": "B2B"})
    params = {"user_id": admin.id}

    listing = client.get("/notifications", params=params).json()
    (notification,) = listing["notifications"]
    read = client.put(f"/notifications/{notification['id']}/read", params=params)

    assert notification["type"] == "b2b_registration"
    assert read.json()["is_read"] is True
    assert client.delete(f"/notifications/{notification['id']}", params=params).status_code == 204


def test_unhandled_errors_are_500(db, settings, lock_service):
    app = create_app(settings, lock_service=lock_service)

    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    with TestClient(app, raise_server_exceptions=False) as c:
        response = c.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


@pytest.mark.parametrize("path", ["/orders/stats", "/cart", "/wishlist", "/users/me"])
def test_user_routes_need_user_id(client, path):
    assert client.get(path).status_code == 400


def test_wishlist_errors_map_to_status_codes(client, customer, make_product):
    product = make_product()
    params = {"user_id": customer.id}

    assert client.post(f"/wishlist/{product.id}", params=params).status_code == 201
    duplicate = client.post(f"/wishlist/{product.id}", params=params)
    missing = client.delete("/wishlist/999", params=params)

    assert duplicate.status_code == 400
    assert duplicate.json() == {"detail": "Product already in wishlist"}
    assert missing.status_code == 404
    assert missing.json() == {"detail": "Product not in wishlist"}
