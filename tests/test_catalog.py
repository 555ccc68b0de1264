from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import order_payload, stock_of
from storefront.data.models import CartItemModel, NotificationModel, ProductModel
from storefront.domain.errors import ConflictError, InsufficientStock, NotFoundError, ValidationFailed
from storefront.domain.schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import DatabaseEventSink, NotificationService
from storefront.services.order_service import OrderService
from storefront.utils.time import utc_now


@pytest.fixture
def catalog(db, settings):
    return CatalogService(db, settings)


def _product_in(category_id, **kwargs):
    data = {"title": "Ball Valve", "category_id": category_id, "price": "100.00", "stock": 10}
    data.update(kwargs)
    return ProductCreate(**data)


# -----------------------------------------------------
# derived product fields
# -----------------------------------------------------
@pytest.mark.parametrize(
    "stock, status",
    [(0, "out_of_stock"), (1, "low_stock"), (9, "low_stock"), (10, "in_stock"), (500, "in_stock")],
)
def test_stock_status(stock, status):
    assert ProductModel(price=Decimal("1"), stock=stock).stock_status == status


def test_sale_fields():
    on_sale = ProductModel(price=Decimal("200"), discount_price=Decimal("150"), stock=1)
    regular = ProductModel(price=Decimal("200"), discount_price=None, stock=1)

    assert on_sale.is_on_sale is True
    assert on_sale.discount_percentage == 25
    assert on_sale.final_price == Decimal("150")
    assert regular.is_on_sale is False
    assert regular.discount_percentage == 0
    assert regular.final_price == Decimal("200")


# -----------------------------------------------------
# categories
# -----------------------------------------------------
def test_category_name_is_unique_case_insensitive(catalog, category):
    with pytest.raises(ConflictError):
        catalog.create_category(CategoryCreate(name="valves"))


def test_category_rename_conflict(catalog, category):
    other = catalog.create_category(CategoryCreate(name="Fittings"))

    with pytest.raises(ConflictError):
        catalog.update_category(other.id, CategoryUpdate(name="VALVES"))
    assert catalog.update_category(other.id, CategoryUpdate(name="Pipe Fittings")).name == "Pipe Fittings"


def test_category_with_products_cannot_be_deleted(catalog, category, make_product):
    make_product()
    with pytest.raises(ValidationFailed):
        catalog.delete_category(category.id)


def test_empty_category_is_deleted(catalog, category):
    catalog.delete_category(category.id)
    with pytest.raises(NotFoundError):
        catalog.get_category(category.id)


# -----------------------------------------------------
# products
# -----------------------------------------------------
def test_create_product(catalog, category):
    product = catalog.create_product(
        _product_in(category.id, discount_price="80.00", specifications=[{"key": "Size", "value": "1in"}])
    )

    assert product.id
    assert product.final_price == Decimal("80.00")
    assert product.specifications == [{"key": "Size", "value": "1in"}]


def test_discount_must_be_below_price(catalog, category, make_product):
    with pytest.raises(ValidationFailed):
        catalog.create_product(_product_in(category.id, discount_price="100.00"))

    product = make_product(price="100.00")
    with pytest.raises(ValidationFailed):
        catalog.update_product(product.id, ProductUpdate(price="50.00", discount_price="60.00"))
    with pytest.raises(ValidationFailed):
        catalog.update_product(product.id, ProductUpdate(discount_price="120.00"))


def test_unknown_category_rejected(catalog, category, make_product):
    with pytest.raises(NotFoundError):
        catalog.create_product(_product_in(999))
    with pytest.raises(NotFoundError):
        catalog.update_product(make_product().id, ProductUpdate(category_id=999))


def test_update_bumps_version(catalog, make_product):
    product = make_product()
    updated = catalog.update_product(product.id, ProductUpdate(title="Renamed", featured=True))

    assert updated.title == "Renamed"
    assert updated.featured is True
    assert updated.version == 2


def test_list_products_filters(catalog, make_product):
    make_product(price="10.00", stock=0, title="Empty")
    make_product(price="20.00", stock=5, title="Few")
    make_product(price="30.00", stock=50, title="Many", featured=True)

    assert [p.title for p in catalog.list_products(stock_status="low_stock")["products"]] == ["Few"]
    assert [p.title for p in catalog.list_products(featured=True)["products"]] == ["Many"]
    priced = catalog.list_products(min_price=Decimal("15"), sort="price", order="asc")
    assert [p.title for p in priced["products"]] == ["Few", "Many"]
    assert priced["pagination"]["total"] == 2


@pytest.mark.parametrize("stock", [0, 9, 10, 11])
def test_stock_status_filter_matches_derived_field(catalog, make_product, stock):
    product = make_product(stock=stock)

    for status in ("out_of_stock", "low_stock", "in_stock"):
        ids = [p.id for p in catalog.list_products(stock_status=status)["products"]]
        assert (product.id in ids) == (product.stock_status == status)


def test_delete_ordered_product_archives_it(db, catalog, settings, notifier, customer, make_product):
    product = make_product(title="Snapshot me")
    order = OrderService(db, settings, notifier).create_order(customer, order_payload((product, 1)))

    result = catalog.delete_product(product.id)

    assert result["archived"] is True
    assert catalog.get_product(product.id).status == "inactive"
    reread = OrderService(db, settings, notifier).get_order(order["id"], customer)
    assert reread["items"][0]["product_info"]["title"] == "Snapshot me"


def test_delete_unreferenced_product_prunes_carts(db, catalog, customer, make_product):
    product = make_product()
    CartService(db).add_item(customer.id, product.id, 1)

    result = catalog.delete_product(product.id)

    assert result["archived"] is False
    assert db.query(ProductModel).filter_by(id=product.id).count() == 0
    assert db.query(CartItemModel).count() == 0


# -----------------------------------------------------
# inventory
# -----------------------------------------------------
@pytest.fixture
def inventory(db, settings, notifier):
    return InventoryService(db, settings, notifier)


def test_reserve_merges_lines_and_is_atomic(db, inventory, make_product):
    a = make_product(stock=5)
    b = make_product(stock=1)

    with pytest.raises(InsufficientStock):
        inventory.reserve([(a.id, 2), (a.id, 2), (b.id, 2)])
    db.rollback()

    assert stock_of(db, a.id) == 5
    assert stock_of(db, b.id) == 1


def test_reserve_unknown_product(db, inventory):
    with pytest.raises(NotFoundError):
        inventory.reserve([(12345, 1)])
    db.rollback()


def test_adjust_never_goes_negative(db, inventory, make_product):
    product = make_product(stock=3)

    assert inventory.adjust(product.id, 7).stock == 10
    assert inventory.adjust(product.id, -10).stock == 0
    with pytest.raises(InsufficientStock):
        inventory.adjust(product.id, -1)
    assert stock_of(db, product.id) == 0


def test_adjust_to_low_stock_notifies(inventory, sink, make_product):
    product = make_product(stock=30)

    inventory.adjust(product.id, -25)

    (event,) = sink.of_type("low_stock")
    assert event["priority"] == "high"
    assert event["data"]["current_stock"] == 5


def test_low_stock_sweep_deduplicates_within_window(db, settings, make_product):
    notifier = NotificationService(DatabaseEventSink(db), settings)
    inventory = InventoryService(db, settings, notifier)
    low = make_product(stock=2)
    make_product(stock=100)
    make_product(stock=1, status="inactive")

    assert inventory.sweep_low_stock() == 1
    assert inventory.sweep_low_stock() == 0

    later = utc_now() + timedelta(hours=settings.low_stock_alert_window_hours + 1)
    assert inventory.sweep_low_stock(now=later) == 1

    alerts = db.query(NotificationModel).filter_by(type="low_stock").all()
    assert [a.related_id for a in alerts] == [low.id, low.id]
