# storefront/services/pricing.py
from decimal import Decimal, ROUND_HALF_UP

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ValidationFailed
from storefront.utils.settings import StoreSettings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def shipping_fee(method: str, settings: StoreSettings) -> Decimal:
    if method not in settings.shipping_fees:
        raise ValidationFailed(f"Unknown shipping method: {method}")
    return money(settings.shipping_fees[method])


def unit_price(product: ProductModel, override: Decimal | None = None) -> Decimal:
    #explicit override > discount price > list price
    if override is not None:
        return money(override)
    #a zero discount price means no discount, same as final_price
    return money(product.final_price)


def build_pricing(lines, shipping_method: str, settings: StoreSettings) -> dict:
    """
    lines: iterable of (unit_price, quantity).
    Tax is always 0, discount is 0 unless a pricing block is supplied by the client.
    """
    subtotal = sum((money(price) * qty for price, qty in lines), ZERO)
    shipping = shipping_fee(shipping_method, settings)
    return {
        "subtotal": money(subtotal),
        "tax": ZERO,
        "shipping": shipping,
        "discount": ZERO,
        "total": money(subtotal + shipping),
    }
