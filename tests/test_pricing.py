from decimal import Decimal

import pytest

from storefront.data.models import ProductModel
from storefront.domain.errors import ValidationFailed
from storefront.domain.schemas import PricingIn
from storefront.services.pricing import build_pricing, shipping_fee, unit_price


def _product(price, discount=None):
    return ProductModel(
        title="p",
        price=Decimal(price),
        discount_price=Decimal(discount) if discount is not None else None,
        stock=5,
    )


def test_unit_price_prefers_override_then_discount_then_list():
    product = _product("100", "80")
    assert unit_price(product, Decimal("70")) == Decimal("70.00")
    assert unit_price(product) == Decimal("80.00")
    assert unit_price(_product("100")) == Decimal("100.00")


def test_zero_discount_price_means_no_discount():
    product = _product("100", "0")

    assert unit_price(product) == Decimal("100.00")
    assert unit_price(product) == product.final_price
    assert product.is_on_sale is False
    assert product.discount_percentage == 0


def test_zero_override_is_still_an_override():
    assert unit_price(_product("100", "80"), Decimal("0")) == Decimal("0.00")


@pytest.mark.parametrize(
    "method, fee",
    [("standard", "0.00"), ("express", "150.00"), ("priority", "300.00")],
)
def test_shipping_fees(settings, method, fee):
    assert shipping_fee(method, settings) == Decimal(fee)


def test_unknown_shipping_method_rejected(settings):
    with pytest.raises(ValidationFailed):
        shipping_fee("drone", settings)


def test_two_lines_with_priority_shipping(settings):
    pricing = build_pricing([(Decimal("100"), 2), (Decimal("50"), 1)], "priority", settings)

    assert pricing["subtotal"] == Decimal("250.00")
    assert pricing["shipping"] == Decimal("300.00")
    assert pricing["tax"] == Decimal("0.00")
    assert pricing["total"] == Decimal("550.00")


def test_pricing_block_must_balance():
    PricingIn(subtotal=250, shipping=300, discount=50, total=500)

    with pytest.raises(ValueError):
        PricingIn(subtotal=250, shipping=300, total=600)
    with pytest.raises(ValueError):
        PricingIn(subtotal=250, tax=10, shipping=300, total=560)
