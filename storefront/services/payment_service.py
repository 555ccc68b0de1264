# storefront/services/payment_service.py
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFoundError, ForbiddenError, ValidationFailed
from storefront.domain.schemas import PaymentWebhookIn, UpiVerifyIn, UpiCollectIn, UpiStatusIn
from storefront.domain.views import order_brief, payment_view
from storefront.repos.order_repo import OrderRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.lock_service import order_payment_lock
from storefront.services.order_service import apply_order_update, order_lines
from storefront.services.upi_service import UpiService, transaction_id_for
from storefront.utils.logging import get_logger
from storefront.utils.time import utc_now

logger = get_logger(__name__)

CLOSED = ("cancelled", "returned")


class PaymentService:
    """
    Payment reconciliation for orders.
    verify and webhook both write order.payment_*; each runs under the order's
    redis lock and a versioned update, so they never interleave.
    """

    def __init__(self, db: Session, settings, lock_service, notifier=None):
        self.repo = OrderRepo(db)
        self.settings = settings
        self.lock_service = lock_service
        self.inventory = InventoryService(db, settings, notifier)
        self.notifier = notifier
        self.upi = UpiService(settings)

    def _load(self, order_id: int, user: UserModel, allow_admin: bool = True) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.customer_id != user.id and not (allow_admin and user.is_admin):
            raise ForbiddenError("Not authorized to access this order")
        return order

    def _lock(self, order_id: int):
        return order_payment_lock(self.lock_service, order_id, self.settings.payment_lock_ttl_seconds)

    def _after_payment(self, order_id: int, reserved: list[int]) -> OrderModel:
        order = self.repo.get_order_fresh(order_id)
        if self.notifier is not None:
            self.notifier.payment_received(order)
        self.inventory.notify_low_stock(reserved)
        return order

    # -----------------------------------------------------
    # manual UPI verification
    # -----------------------------------------------------
    def verify_upi(self, user: UserModel, data: UpiVerifyIn):
        self._load(data.order_id, user)

        with self._lock(data.order_id):
            #re-read under the lock, the webhook may have just completed it
            order = self.repo.get_order_fresh(data.order_id)

            if order.payment_status == "completed":
                logger.info(f"Order {order.order_number} already paid, verify is a no-op")
                return {
                    "message": "Payment already verified",
                    "already_verified": True,
                    "order": order_brief(order),
                    "payment": payment_view(order),
                }

            if order.status in CLOSED:
                raise ValidationFailed(f"Cannot verify payment for a {order.status} order")

            now = utc_now()
            values = {
                "payment_status": "completed",
                "payment_method": "upi",
                "transaction_id": data.transaction_id,
                "upi_transaction_id": data.upi_transaction_id or "AUTO_VERIFIED",
                "upi_id": data.upi_id,
                "paid_at": now,
                "status": "confirmed",
            }
            reserved = []
            try:
                if not order.stock_reserved:
                    reserved = self.inventory.reserve(order_lines(order))
                    values["stock_reserved"] = True
                apply_order_update(
                    self.repo,
                    order,
                    values,
                    OrderStatusHistoryModel(
                        order_id=order.id,
                        status="confirmed",
                        updated_by=user.id,
                        updated_at=now,
                        note=f"UPI payment verified (transaction {data.transaction_id})",
                    ),
                )
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"UPI payment verified for order {data.order_id}, transaction {data.transaction_id}")
        order = self._after_payment(data.order_id, reserved)
        return {
            "message": "Payment verified successfully",
            "already_verified": False,
            "order": order_brief(order),
            "payment": payment_view(order),
        }

    # -----------------------------------------------------
    # generic gateway webhook (no signature verification)
    # -----------------------------------------------------
    def handle_webhook(self, data: PaymentWebhookIn):
        if not self.repo.get_order(data.order_id):
            raise NotFoundError("Order not found")

        with self._lock(data.order_id):
            order = self.repo.get_order_fresh(data.order_id)
            now = utc_now()

            values = {"payment_status": data.status, "transaction_id": data.payment_id}
            history = None
            reserved = []
            release = False

            if data.status == "completed" and order.status not in CLOSED:
                values["paid_at"] = now
                values["status"] = "confirmed"
                history = OrderStatusHistoryModel(
                    order_id=order.id,
                    status="confirmed",
                    updated_at=now,
                    note=f"Payment completed (payment {data.payment_id})",
                )
            elif (
                data.status == "failed"
                and order.stock_reserved
                and order.payment_method not in self.settings.offline_payment_methods
            ):
                release = True
                values["stock_reserved"] = False

            try:
                if history is not None and not order.stock_reserved:
                    reserved = self.inventory.reserve(order_lines(order))
                    values["stock_reserved"] = True
                if release:
                    self.inventory.release(order_lines(order))
                apply_order_update(self.repo, order, values, history)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"Webhook for order {data.order_id}: payment {data.status}")

        if history is not None:
            order = self._after_payment(data.order_id, reserved)
        else:
            order = self.repo.get_order_fresh(data.order_id)

        return {
            "message": "Webhook processed",
            "order_id": order.id,
            "payment_status": order.payment_status,
            "status": order.status,
        }

    # -----------------------------------------------------
    # UPI helpers
    # -----------------------------------------------------
    def generate_payment_request(self, user: UserModel, order_id: int, description: str | None = None):
        order = self._load(order_id, user, allow_admin=False)

        if order.payment_status == "completed":
            raise ValidationFailed("Order is already paid")
        if order.status in CLOSED:
            raise ValidationFailed(f"Cannot pay for a {order.status} order")
        if order.total is None or order.total <= 0:
            raise ValidationFailed("Invalid amount for UPI payment")

        transaction_id = transaction_id_for(order.id)
        request = self.upi.payment_request(order, transaction_id, description)

        with self._lock(order_id):
            order = self.repo.get_order_fresh(order_id)
            try:
                apply_order_update(
                    self.repo,
                    order,
                    {
                        "payment_method": "upi",
                        "payment_status": "pending",
                        "transaction_id": transaction_id,
                        "upi_transaction_id": None,
                        "upi_id": None,
                        "paid_at": None,
                    },
                )
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"UPI payment request {transaction_id} generated for order {order_id}")
        return request

    def collect_qr(self, user: UserModel, data: UpiCollectIn):
        order = self._load(data.order_id, user, allow_admin=False)
        if order.transaction_id != data.transaction_id:
            raise ValidationFailed("Transaction id does not match this order")
        return self.upi.collect(order, data.upi_id)

    def check_status(self, user: UserModel, data: UpiStatusIn):
        order = self._load(data.order_id, user)

        if order.payment_status == "completed" and order.transaction_id == data.transaction_id:
            status = "SUCCESS"
        elif order.payment_status == "failed":
            status = "FAILED"
        else:
            status = "PENDING"

        return {"status": status, "order": order_brief(order), "payment": payment_view(order)}
