# storefront/services/order_service.py
import random
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import (
    NotFoundError,
    InsufficientStock,
    ValidationFailed,
    ForbiddenError,
    ConcurrencyConflict,
    OrderNumberTaken,
)
from storefront.domain.schemas import OrderCreate
from storefront.domain.views import serialize_order, shipping_view, history_view
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.pricing import build_pricing, unit_price, money
from storefront.utils.logging import get_logger
from storefront.utils.pagination import pagination
from storefront.utils.retry import order_number_retry
from storefront.utils.time import utc_now

logger = get_logger(__name__)

CANCELLABLE = ("pending", "confirmed")


def generate_order_number(prefix: str, now: datetime | None = None, rng=random) -> str:
    """AMB + YY + MM + 4-digit zero-padded random, e.g. AMB25030042."""
    now = now or utc_now()
    return f"{prefix}{now:%y%m}{rng.randint(0, 9999):04d}"


def order_lines(order: OrderModel) -> list[tuple[int, int]]:
    #lines whose product was deleted have nothing to give back
    return [(i.product_id, i.quantity) for i in order.items if i.product_id is not None]


def apply_order_update(repo: OrderRepo, order: OrderModel, values: dict, history: OrderStatusHistoryModel | None = None):
    """
    Versioned write of order fields plus at most one history row.
    Does not commit; raises ConcurrencyConflict when the version moved.
    """
    old_version = order.version
    rowcount = repo.update_order_version(
        order_id=order.id,
        old_version=old_version,
        new_data={**values, "version": old_version + 1, "updated_at": utc_now()},
    )
    if rowcount == 0:
        raise ConcurrencyConflict("Order was modified by another request, retry")
    if history is not None:
        repo.add_history(history)


class OrderService:
    """
    Order domain: creation, customer queries, customer cancellation.
    Payment and admin transitions live in their own services.
    """

    def __init__(self, db: Session, settings, notifier=None, order_number_factory=None):
        self.db = db
        self.settings = settings
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.inventory = InventoryService(db, settings, notifier)
        self.notifier = notifier
        self.order_number_factory = order_number_factory or (
            lambda: generate_order_number(settings.order_number_prefix)
        )

    # -----------------------------------------------------
    # commands
    # -----------------------------------------------------
    def create_order(self, user: UserModel, data: OrderCreate):
        """
        Use Case: place an order.

        1. Resolve products, check stock at read time
        2. Price lines (override > discount > list) and build the pricing snapshot
        3. Insert order + lines + first history entry
        4. Offline payment methods reserve stock in the same transaction
        5. Notify (failures never reach the caller)
        """
        products = self.products.get_products([i.product_id for i in data.items])

        lines = []
        for item in data.items:
            product = products.get(item.product_id)
            if not product:
                raise NotFoundError(f"Product {item.product_id} not found")
            if item.quantity > product.stock:
                raise InsufficientStock(
                    f"Insufficient stock for {product.title}. Available: {product.stock}"
                )
            lines.append((item, product, unit_price(product, item.price)))

        shipping_method = data.shipping.method if data.shipping else "standard"
        payment_method = data.payment.method if data.payment else "cod"

        if data.pricing is not None:
            pricing = {
                "subtotal": money(data.pricing.subtotal),
                "tax": money(data.pricing.tax),
                "shipping": money(data.pricing.shipping),
                "discount": money(data.pricing.discount),
                "total": money(data.pricing.total),
            }
        else:
            pricing = build_pricing(
                [(price, item.quantity) for item, _, price in lines],
                shipping_method,
                self.settings,
            )

        reserve_now = payment_method in self.settings.offline_payment_methods

        order = self._place(user, data, lines, pricing, shipping_method, payment_method, reserve_now)

        logger.info(
            f"Order {order.order_number} (id {order.id}) created for user {user.id}, "
            f"total {order.total}, payment {payment_method}, stock reserved: {reserve_now}"
        )

        order = self.repo.get_order_fresh(order.id)
        if self.notifier is not None:
            self.notifier.order_created(order, user)
        if reserve_now:
            self.inventory.notify_low_stock([p.id for _, p, _ in lines])

        return serialize_order(order)

    @order_number_retry()
    def _place(self, user, data, lines, pricing, shipping_method, payment_method, reserve_now) -> OrderModel:
        order_number = self.order_number_factory()
        if self.repo.order_number_exists(order_number):
            logger.warning(f"Order number {order_number} already taken, drawing again")
            raise OrderNumberTaken(f"Order number {order_number} already taken")

        info = data.customer_info
        order = OrderModel(
            order_number=order_number,
            customer_id=user.id,
            customer_name=info.name if info else (user.name or user.username),
            customer_email=info.email if info else user.email,
            customer_phone=info.phone if info else (user.phone or ""),
            customer_company=info.company if info else user.company,
            customer_address=info.address if info else None,
            subtotal=pricing["subtotal"],
            tax=pricing["tax"],
            shipping_fee=pricing["shipping"],
            discount=pricing["discount"],
            total=pricing["total"],
            payment_method=payment_method,
            payment_status="pending",
            status="pending",
            shipping_method=shipping_method,
            shipping_address=data.shipping.address if data.shipping else None,
            notes=data.notes,
            stock_reserved=reserve_now,
            version=1,
        )
        for item, product, price in lines:
            order.items.append(
                OrderItemModel(
                    product_id=product.id,
                    product_title=product.title,
                    product_price=price,
                    product_image=product.primary_image,
                    quantity=item.quantity,
                    price=price,
                    size=item.size,
                    variants=[v.model_dump() for v in item.variants],
                )
            )
        order.status_history.append(
            OrderStatusHistoryModel(status="pending", updated_by=user.id, note="Order placed")
        )

        try:
            self.repo.create_order(order)
            if reserve_now:
                self.inventory.reserve((p.id, item.quantity) for item, p, _ in lines)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            #unique index caught a concurrent insert of the same number
            if self.repo.order_number_exists(order_number):
                raise OrderNumberTaken(f"Order number {order_number} already taken")
            raise
        except Exception:
            self.repo.rollback()
            raise

        return order

    def cancel_order(self, order_id: int, user: UserModel):
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if order.customer_id != user.id:
            raise ForbiddenError("Not authorized to cancel this order")

        if order.status not in CANCELLABLE:
            raise ValidationFailed(f"Order cannot be cancelled in status '{order.status}'")

        old_status = order.status
        try:
            if order.stock_reserved:
                self.inventory.release(order_lines(order))
            apply_order_update(
                self.repo,
                order,
                {"status": "cancelled", "stock_reserved": False},
                OrderStatusHistoryModel(
                    order_id=order.id,
                    status="cancelled",
                    updated_by=user.id,
                    updated_at=utc_now(),
                    note="Cancelled by customer",
                ),
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        order = self.repo.get_order_fresh(order_id)
        logger.info(f"Order {order.order_number} cancelled by customer {user.id}")

        if self.notifier is not None:
            self.notifier.order_status_changed(order, old_status, "cancelled", user)

        return serialize_order(order)

    # -----------------------------------------------------
    # queries
    # -----------------------------------------------------
    def list_orders(self, user: UserModel, status: str | None = None, page: int = 1, limit: int = 10):
        if status == "all":
            status = None
        orders, total = self.repo.list_for_customer(user.id, status, page, limit)
        return {
            "orders": [serialize_order(o) for o in orders],
            "pagination": pagination(page, limit, total),
        }

    def get_order(self, order_id: int, user: UserModel):
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.customer_id != user.id and not user.is_admin:
            raise ForbiddenError("Not authorized to view this order")
        return serialize_order(order)

    def stats(self, user: UserModel):
        stats = self.repo.customer_stats(user.id)
        return {
            "total_orders": stats["total_orders"],
            "total_spent": stats["total_spent"],
            "pending_orders": stats["pending_orders"],
            "delivered_orders": stats["delivered_orders"],
        }

    def track(self, order_number: str):
        order = self.repo.get_by_number(order_number)
        if not order:
            raise NotFoundError("Order not found")
        return {
            "order_number": order.order_number,
            "status": order.status,
            "shipping": shipping_view(order),
            "status_history": history_view(order),
            "created_at": order.created_at,
        }
