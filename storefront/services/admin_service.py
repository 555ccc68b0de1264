# storefront/services/admin_service.py
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import NotFoundError, ValidationFailed
from storefront.domain.schemas import OrderStatusUpdateIn
from storefront.domain.views import serialize_order, line_summary
from storefront.repos.order_repo import OrderRepo
from storefront.repos.report_repo import ReportRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.inventory_service import InventoryService
from storefront.services.order_service import apply_order_update, order_lines
from storefront.services.pricing import money
from storefront.utils.logging import get_logger
from storefront.utils.pagination import pagination
from storefront.utils.time import utc_now

logger = get_logger(__name__)

_USER_FIELDS = (
    "id",
    "username",
    "email",
    "name",
    "phone",
    "company",
    "role",
    "customer_type",
    "approval_status",
    "created_at",
)


class AdminService:
    """
    Admin console use cases.
    The status endpoint is a force-set: any value of the enum is accepted from any state.
    """

    def __init__(self, db: Session, settings, notifier=None):
        self.repo = OrderRepo(db)
        self.users = UserRepo(db)
        self.reports = ReportRepo(db)
        self.inventory = InventoryService(db, settings, notifier)
        self.notifier = notifier

    # -----------------------------------------------------
    # orders
    # -----------------------------------------------------
    def update_order_status(self, order_id: int, admin: UserModel, data: OrderStatusUpdateIn):
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        old_status = order.status
        new_status = data.status
        now = utc_now()

        values = {"status": new_status}
        if data.tracking_number:
            values["tracking_number"] = data.tracking_number
        if data.admin_notes is not None:
            values["admin_notes"] = data.admin_notes

        if new_status == "shipped":
            values["shipped_at"] = now
        elif new_status == "delivered":
            #delivery settles the payment (cod collected at the door)
            values["delivered_at"] = now
            values["payment_status"] = "completed"
            if order.paid_at is None:
                values["paid_at"] = now
        elif new_status == "cancelled" and order.stock_reserved:
            values["stock_reserved"] = False

        try:
            if values.get("stock_reserved") is False:
                self.inventory.release(order_lines(order))
            apply_order_update(
                self.repo,
                order,
                values,
                OrderStatusHistoryModel(
                    order_id=order.id,
                    status=new_status,
                    updated_by=admin.id,
                    updated_at=now,
                    note=data.admin_notes,
                ),
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        order = self.repo.get_order_fresh(order_id)
        logger.info(f"Order {order.order_number}: {old_status} -> {new_status} by admin {admin.id}")

        if self.notifier is not None:
            self.notifier.order_status_changed(order, old_status, new_status, admin)

        return serialize_order(order)

    def list_orders(self, page: int = 1, limit: int = 10, **filters):
        if filters.get("status") == "all":
            filters["status"] = None
        orders, total = self.repo.list_orders(page=page, limit=limit, **filters)
        return {
            "orders": [serialize_order(o) for o in orders],
            "pagination": pagination(page, limit, total),
        }

    def order_detail(self, order_id: int):
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return {"order": serialize_order(order), "summary": line_summary(order)}

    # -----------------------------------------------------
    # customers
    # -----------------------------------------------------
    def list_customers(self, search=None, page: int = 1, limit: int = 10, sort: str = "created_at", order: str = "desc"):
        users, total = self.users.list_customers(search, page, limit, sort, order)
        stats = self.reports.customer_order_stats([u.id for u in users])

        customers = []
        for user in users:
            s = stats.get(user.id, {"total_orders": 0, "total_spent": 0, "last_order_date": None})
            spent = money(s["total_spent"])
            avg = money(spent / s["total_orders"]) if s["total_orders"] else Decimal("0.00")
            customers.append(
                {
                    **{field: getattr(user, field) for field in _USER_FIELDS},
                    "stats": {
                        "total_orders": s["total_orders"],
                        "total_spent": spent,
                        "last_order_date": s["last_order_date"],
                        "avg_order_value": avg,
                    },
                }
            )
        return {"customers": customers, "pagination": pagination(page, limit, total)}

    def _get_user(self, user_id: int) -> UserModel:
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def approve_customer(self, user_id: int, admin: UserModel) -> UserModel:
        user = self._get_user(user_id)
        if user.customer_type != "B2B":
            raise ValidationFailed("Only B2B customers need approval")
        user.approval_status = "approved"
        user.approved_by = admin.id
        user.approved_at = utc_now()
        user.rejected_at = None
        user.rejection_reason = None
        self.users.commit()
        logger.info(f"B2B customer {user_id} approved by admin {admin.id}")
        return user

    def reject_customer(self, user_id: int, admin: UserModel, reason: str | None = None) -> UserModel:
        user = self._get_user(user_id)
        if user.customer_type != "B2B":
            raise ValidationFailed("Only B2B customers need approval")
        user.approval_status = "rejected"
        user.rejected_at = utc_now()
        user.rejection_reason = reason
        self.users.commit()
        logger.info(f"B2B customer {user_id} rejected by admin {admin.id}")
        return user

    def set_role(self, user_id: int, role: str, admin: UserModel) -> UserModel:
        user = self._get_user(user_id)
        if user.id == admin.id and role != "admin":
            raise ValidationFailed("Admins cannot remove their own admin role")
        user.role = role
        self.users.commit()
        logger.info(f"User {user_id} role set to {role} by admin {admin.id}")
        return user
