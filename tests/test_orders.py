import random
import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import FailingSink, order_payload, stock_of
from storefront.data.models import OrderModel
from storefront.domain.errors import (
    ForbiddenError,
    InsufficientStock,
    NotFoundError,
    OrderNumberTaken,
    ValidationFailed,
)
from storefront.services.cart_service import CartService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService, generate_order_number


@pytest.fixture
def service(db, settings, notifier):
    return OrderService(db, settings, notifier)


def test_priority_order_totals(service, customer, make_product):
    a = make_product(price="100.00")
    b = make_product(price="50.00")

    order = service.create_order(customer, order_payload((a, 2), (b, 1), shipping="priority"))

    assert order["pricing"]["subtotal"] == Decimal("250.00")
    assert order["pricing"]["shipping"] == Decimal("300.00")
    assert order["pricing"]["tax"] == Decimal("0.00")
    assert order["pricing"]["total"] == Decimal("550.00")
    assert order["status"] == "pending"
    assert order["payment"]["status"] == "pending"


@pytest.mark.parametrize("shipping", ["standard", "express", "priority"])
@pytest.mark.parametrize("method", ["cod", "upi"])
def test_total_always_balances(service, customer, make_product, shipping, method):
    a = make_product(price="199.99", discount_price="149.50")
    b = make_product(price="10.00")

    order = service.create_order(customer, order_payload((a, 3), (b, 7), method=method, shipping=shipping))
    p = order["pricing"]

    assert p["total"] == p["subtotal"] + p["shipping"] - p["discount"]
    assert p["tax"] == 0


def test_supplied_pricing_block_is_kept(service, customer, make_product):
    a = make_product(price="100.00")
    payload = order_payload(
        (a, 1),
        pricing={"subtotal": "100", "tax": "0", "shipping": "150", "discount": "20", "total": "230"},
    )

    order = service.create_order(customer, payload)

    assert order["pricing"]["discount"] == Decimal("20.00")
    assert order["pricing"]["total"] == Decimal("230.00")


def test_line_snapshots_product_and_unit_price(service, customer, make_product):
    a = make_product(price="100.00", discount_price="90.00", title="Gate Valve", images=["v.jpg"])
    payload = order_payload((a, 1))
    payload.items[0].size = "2in"

    item = service.create_order(customer, payload)["items"][0]

    assert item["price"] == Decimal("90.00")
    assert item["product_info"] == {"title": "Gate Valve", "price": Decimal("90.00"), "image": "v.jpg"}
    assert item["product"]["id"] == a.id
    assert item["size"] == "2in"


def test_snapshot_price_is_the_charged_price(service, customer, make_product):
    a = make_product(price="100.00")
    payload = order_payload((a, 2))
    payload.items[0].price = Decimal("80")

    item = service.create_order(customer, payload)["items"][0]

    assert item["price"] == Decimal("80.00")
    assert item["product_info"]["price"] == Decimal("80.00")


def test_zero_discount_prices_like_the_cart(db, service, customer, make_product):
    a = make_product(price="100.00", discount_price="0.00")
    cart_line = CartService(db).add_item(customer.id, a.id, 1)["items"][0]

    order = service.create_order(customer, order_payload((a, 1)))

    assert order["items"][0]["price"] == Decimal("100.00")
    assert Decimal(cart_line["price"]) == order["items"][0]["price"]
    assert order["pricing"]["subtotal"] == Decimal("100.00")


def test_cod_reserves_stock_at_creation(db, service, customer, make_product):
    a = make_product(stock=10)
    b = make_product(stock=5)

    order = service.create_order(customer, order_payload((a, 3), (b, 5), method="cod"))

    assert stock_of(db, a.id) == 7
    assert stock_of(db, b.id) == 0
    assert order["stock_reserved"] is True


def test_bank_transfer_reserves_stock(db, service, customer, make_product):
    a = make_product(stock=10)
    service.create_order(customer, order_payload((a, 4), method="bank_transfer"))
    assert stock_of(db, a.id) == 6


def test_upi_leaves_stock_alone(db, service, customer, make_product):
    a = make_product(stock=10)

    order = service.create_order(customer, order_payload((a, 3), method="upi"))

    assert stock_of(db, a.id) == 10
    assert order["stock_reserved"] is False


def test_unknown_product_fails_whole_order(db, service, customer, make_product):
    a = make_product(stock=10)
    payload = order_payload((a, 1))
    payload.items.append(payload.items[0].model_copy(update={"product_id": 9999}))

    with pytest.raises(NotFoundError):
        service.create_order(customer, payload)

    assert db.query(OrderModel).count() == 0
    assert stock_of(db, a.id) == 10


def test_insufficient_stock_fails_whole_order(db, service, customer, make_product):
    a = make_product(stock=10)
    b = make_product(stock=1)

    with pytest.raises(InsufficientStock):
        service.create_order(customer, order_payload((a, 2), (b, 2)))

    assert db.query(OrderModel).count() == 0
    assert stock_of(db, a.id) == 10


def test_same_product_on_two_lines_cannot_oversell(db, service, customer, make_product):
    a = make_product(stock=3)

    with pytest.raises(InsufficientStock):
        service.create_order(customer, order_payload((a, 2), (a, 2)))

    assert db.query(OrderModel).count() == 0
    assert stock_of(db, a.id) == 3


def test_first_history_entry_is_order_placed(service, customer, make_product):
    order = service.create_order(customer, order_payload((make_product(), 1)))

    assert [(h["status"], h["note"]) for h in order["status_history"]] == [("pending", "Order placed")]


def test_customer_snapshot_defaults_to_profile(service, customer, make_product):
    order = service.create_order(customer, order_payload((make_product(), 1)))

    assert order["customer_info"]["email"] == customer.email
    assert order["customer"]["id"] == customer.id


def test_order_number_format():
    number = generate_order_number("AMB", datetime(2025, 3, 9, tzinfo=timezone.utc), random.Random(1))
    assert re.fullmatch(r"AMB2503\d{4}", number)


def test_order_number_collision_is_redrawn(db, settings, notifier, customer, make_product):
    product = make_product()
    numbers = iter(["AMB25010001", "AMB25010001", "AMB25010001", "AMB25010002"])
    service = OrderService(db, settings, notifier, order_number_factory=lambda: next(numbers))

    first = service.create_order(customer, order_payload((product, 1)))
    second = service.create_order(customer, order_payload((product, 1)))

    assert first["order_number"] == "AMB25010001"
    assert second["order_number"] == "AMB25010002"


def test_order_number_retry_gives_up(db, settings, notifier, customer, make_product):
    product = make_product(stock=10)
    service = OrderService(db, settings, notifier, order_number_factory=lambda: "AMB25010001")
    service.create_order(customer, order_payload((product, 1)))

    with pytest.raises(OrderNumberTaken):
        service.create_order(customer, order_payload((product, 1)))

    assert db.query(OrderModel).count() == 1
    assert stock_of(db, product.id) == 9


def test_order_created_notification(service, sink, customer, make_product):
    service.create_order(customer, order_payload((make_product(price="100.00"), 1)))

    (event,) = sink.of_type("new_order")
    assert event["priority"] == "medium"
    assert event["related_model"] == "Order"


def test_high_value_order_notification_priority(service, sink, customer, make_product):
    service.create_order(customer, order_payload((make_product(price="60000.00"), 1)))
    assert sink.of_type("new_order")[0]["priority"] == "high"


def test_low_stock_notification_after_cod_reservation(service, sink, customer, make_product):
    low = make_product(stock=12, title="Low")
    plenty = make_product(stock=100, title="Plenty")

    service.create_order(customer, order_payload((low, 2), (plenty, 2)))

    alerts = sink.of_type("low_stock")
    assert [a["data"]["product_id"] for a in alerts] == [low.id]
    assert alerts[0]["data"]["current_stock"] == 10


def test_notification_failure_does_not_fail_order(db, settings, customer, make_product):
    failing = FailingSink()
    service = OrderService(db, settings, NotificationService(failing, settings))

    order = service.create_order(customer, order_payload((make_product(stock=5), 1)))

    assert order["id"]
    assert failing.calls >= 1
    assert db.query(OrderModel).count() == 1


# -----------------------------------------------------
# cancellation
# -----------------------------------------------------
@pytest.mark.parametrize("status", ["pending", "confirmed"])
def test_cancel_restores_reserved_stock(db, service, customer, make_product, status):
    a = make_product(stock=10)
    order = service.create_order(customer, order_payload((a, 4)))
    db.query(OrderModel).filter_by(id=order["id"]).update({"status": status})
    db.commit()

    cancelled = service.cancel_order(order["id"], customer)

    assert cancelled["status"] == "cancelled"
    assert cancelled["stock_reserved"] is False
    assert stock_of(db, a.id) == 10
    assert cancelled["status_history"][-1]["status"] == "cancelled"
    assert cancelled["status_history"][-1]["note"] == "Cancelled by customer"


def test_cancel_unreserved_online_order_keeps_stock(db, service, customer, make_product):
    a = make_product(stock=10)
    order = service.create_order(customer, order_payload((a, 4), method="upi"))

    service.cancel_order(order["id"], customer)

    assert stock_of(db, a.id) == 10


@pytest.mark.parametrize("status", ["processing", "shipped", "delivered", "cancelled", "returned"])
def test_cancel_rejected_outside_pending_confirmed(db, service, customer, make_product, status):
    a = make_product(stock=10)
    order = service.create_order(customer, order_payload((a, 4)))
    db.query(OrderModel).filter_by(id=order["id"]).update({"status": status})
    db.commit()

    with pytest.raises(ValidationFailed):
        service.cancel_order(order["id"], customer)

    after = service.get_order(order["id"], customer)
    assert stock_of(db, a.id) == 6
    assert after["status"] == status
    assert len(after["status_history"]) == 1


def test_only_owner_can_cancel(service, customer, make_user, make_product):
    order = service.create_order(customer, order_payload((make_product(), 1)))
    other = make_user()

    with pytest.raises(ForbiddenError):
        service.cancel_order(order["id"], other)


def test_cancel_unknown_order(service, customer):
    with pytest.raises(NotFoundError):
        service.cancel_order(404, customer)


# -----------------------------------------------------
# queries
# -----------------------------------------------------
def test_get_order_owner_or_admin(service, customer, admin, make_user, make_product):
    order = service.create_order(customer, order_payload((make_product(), 1)))

    assert service.get_order(order["id"], admin)["id"] == order["id"]
    with pytest.raises(ForbiddenError):
        service.get_order(order["id"], make_user())


def test_list_and_stats(service, customer, make_product):
    product = make_product(price="10.00", stock=50)
    for _ in range(3):
        service.create_order(customer, order_payload((product, 1)))

    listing = service.list_orders(customer, status="all", page=1, limit=2)
    stats = service.stats(customer)

    assert len(listing["orders"]) == 2
    assert listing["pagination"]["total"] == 3
    assert listing["pagination"]["pages"] == 2
    assert stats["total_orders"] == 3
    assert Decimal(stats["total_spent"]) == Decimal("30.00")
    assert stats["pending_orders"] == 3


def test_track_returns_status_and_history_only(service, customer, make_product):
    order = service.create_order(customer, order_payload((make_product(), 1)))

    tracked = service.track(order["order_number"])

    assert set(tracked) == {"order_number", "status", "shipping", "status_history", "created_at"}
    with pytest.raises(NotFoundError):
        service.track("AMB00000000")
