# storefront/services/inventory_service.py
from collections import defaultdict
from datetime import timedelta

from sqlalchemy.orm import Session

from storefront.domain.errors import NotFoundError, InsufficientStock, ValidationFailed
from storefront.repos.notification_repo import NotificationRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger
from storefront.utils.time import utc_now

logger = get_logger(__name__)


def _merge(lines) -> dict[int, int]:
    merged = defaultdict(int)
    for product_id, quantity in lines:
        if quantity <= 0:
            raise ValidationFailed("Quantity must be greater than 0")
        merged[product_id] += quantity
    return merged


class InventoryService:
    """
    Sole owner of Product.stock.
    reserve/release do not commit: they run inside the caller's transaction,
    so an order insert and its stock decrements succeed or fail together.
    """

    def __init__(self, db: Session, settings, notifier=None):
        self.products = ProductRepo(db)
        self.notifications = NotificationRepo(db)
        self.settings = settings
        self.notifier = notifier

    def reserve(self, lines) -> list[int]:
        merged = _merge(lines)
        #fixed order so concurrent reservations lock rows the same way
        for product_id in sorted(merged):
            quantity = merged[product_id]
            if self.products.decrement_stock(product_id, quantity) == 0:
                product = self.products.reload(product_id)
                if product is None:
                    raise NotFoundError(f"Product {product_id} not found")
                logger.warning(
                    f"Reservation of {quantity} x product {product_id} rejected, stock {product.stock}"
                )
                raise InsufficientStock(
                    f"Insufficient stock for {product.title}. Available: {product.stock}"
                )
            logger.info(f"Reserved {quantity} x product {product_id}")
        return sorted(merged)

    def release(self, lines) -> list[int]:
        merged = _merge(lines)
        released = []
        for product_id in sorted(merged):
            # product may be gone since the order was placed
            if self.products.increment_stock(product_id, merged[product_id]):
                released.append(product_id)
                logger.info(f"Released {merged[product_id]} x product {product_id}")
        return released

    def adjust(self, product_id: int, delta: int):
        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        if delta > 0:
            self.products.increment_stock(product_id, delta)
        elif self.products.decrement_stock(product_id, -delta) == 0:
            self.products.rollback()
            raise InsufficientStock(f"Stock cannot go below 0 (current: {product.stock})")

        self.products.commit()
        product = self.products.reload(product_id)
        logger.info(f"Stock of product {product_id} adjusted by {delta}, now {product.stock}")

        self.notify_low_stock([product_id])
        return product

    def notify_low_stock(self, product_ids) -> int:
        """Call after commit: emits one low-stock event per product at or under the threshold."""
        if self.notifier is None:
            return 0
        sent = 0
        for product_id in product_ids:
            product = self.products.reload(product_id)
            if product is not None and product.stock <= self.settings.low_stock_threshold:
                if self.notifier.low_stock(product):
                    sent += 1
        return sent

    def sweep_low_stock(self, now=None) -> int:
        """Periodic check; skips products already alerted inside the alert window."""
        now = now or utc_now()
        since = now - timedelta(hours=self.settings.low_stock_alert_window_hours)
        sent = 0
        for product in self.products.low_stock_products(self.settings.low_stock_threshold):
            if self.notifications.exists_since("low_stock", "Product", product.id, since):
                continue
            if self.notifier is not None and self.notifier.low_stock(product):
                sent += 1
        logger.info(f"Low stock sweep raised {sent} alerts")
        return sent
