# storefront/services/notification_service.py
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.notification import NotificationModel
from storefront.domain.errors import NotFoundError
from storefront.repos.notification_repo import NotificationRepo
from storefront.utils.logging import get_logger
from storefront.utils.pagination import pagination
from storefront.utils.time import utc_now

logger = get_logger(__name__)

STATUS_MESSAGES = {
    "confirmed": "has been confirmed",
    "processing": "is being processed",
    "shipped": "has been shipped",
    "delivered": "has been delivered",
    "cancelled": "has been cancelled",
}


class EventSink:
    """Where admin-facing events end up. emit() may raise; callers isolate failures."""

    def emit(self, event: dict) -> None:
        raise NotImplementedError


class DatabaseEventSink(EventSink):
    """Writes every event as a notification row in its own commit."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepo(db)

    def emit(self, event: dict) -> None:
        try:
            self.repo.add(NotificationModel(**event))
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise


class NotificationService:
    """
    Formats store events and hands them to the sink.
    Every notify_* call is fire-and-forget: a failing sink is logged, never raised.
    """

    def __init__(self, sink: EventSink, settings):
        self.sink = sink
        self.settings = settings

    def _emit(self, event: dict) -> bool:
        try:
            self.sink.emit(event)
            return True
        except Exception:
            logger.exception(f"Failed to emit {event.get('type')} notification")
            return False

    def order_created(self, order, user) -> bool:
        who = user.display_name
        return self._emit(
            {
                "type": "new_order",
                "title": "New Order Placed",
                "message": f"Order #{order.order_number} worth ₹{order.total:,} placed by {who}",
                "user": who,
                "priority": "high" if order.total > self.settings.high_value_order_threshold else "medium",
                "data": {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "customer_id": user.id,
                    "customer_name": who,
                    "amount": str(order.total),
                    "item_count": len(order.items),
                    "payment_method": order.payment_method,
                },
                "related_model": "Order",
                "related_id": order.id,
            }
        )

    def quote_request(self, quotation, user) -> bool:
        company = user.company or "Business"
        return self._emit(
            {
                "type": "quote_request",
                "title": "New Quotation Request",
                "message": f"{user.display_name} from {company} requested quotation for {quotation.quantity} units",
                "user": user.display_name,
                "priority": "high",
                "data": {
                    "quotation_id": quotation.id,
                    "product_id": quotation.product_id,
                    "customer_phone": user.phone,
                    "customer_email": user.email,
                    "business_name": user.company,
                    "quantity": quotation.quantity,
                    "specifications": quotation.specifications or "Not specified",
                },
                "related_model": "QuotationRequest",
                "related_id": quotation.id,
            }
        )

    def b2b_registration(self, user) -> bool:
        return self._emit(
            {
                "type": "b2b_registration",
                "title": "New B2B Registration",
                "message": f"{user.display_name} has registered for B2B account and needs approval",
                "user": user.display_name,
                "priority": "medium",
                "data": {
                    "user_id": user.id,
                    "company_name": user.company,
                    "contact_person": user.name,
                    "email": user.email,
                    "phone": user.phone,
                },
                "related_model": "User",
                "related_id": user.id,
            }
        )

    def low_stock(self, product) -> bool:
        threshold = self.settings.low_stock_threshold
        return self._emit(
            {
                "type": "low_stock",
                "title": "Low Stock Alert",
                "message": f"{product.title} is running low on stock (only {product.stock} units left)",
                "user": "System",
                "priority": "high" if product.stock <= 5 else "medium",
                "data": {
                    "product_id": product.id,
                    "product_name": product.title,
                    "current_stock": product.stock,
                    "min_threshold": threshold,
                    "category_id": product.category_id,
                },
                "related_model": "Product",
                "related_id": product.id,
            }
        )

    def payment_received(self, order) -> bool:
        return self._emit(
            {
                "type": "payment_received",
                "title": "Payment Received",
                "message": f"Payment of ₹{order.total:,} received for Order #{order.order_number}",
                "user": order.customer_name,
                "priority": "low",
                "data": {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "amount": str(order.total),
                    "payment_method": order.payment_method,
                    "transaction_id": order.transaction_id,
                    "customer_name": order.customer_name,
                },
                "related_model": "Order",
                "related_id": order.id,
            }
        )

    def order_status_changed(self, order, old_status: str, new_status: str, updated_by=None) -> bool:
        actor = updated_by.display_name if updated_by is not None else "System"
        message = STATUS_MESSAGES.get(new_status, f"status updated to {new_status}")
        return self._emit(
            {
                "type": "order_status_update",
                "title": "Order Status Update",
                "message": f"Order #{order.order_number} {message}",
                "user": actor,
                "priority": "medium" if new_status == "cancelled" else "low",
                "data": {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "old_status": old_status,
                    "new_status": new_status,
                    "customer_name": order.customer_name,
                    "updated_by": actor,
                },
                "related_model": "Order",
                "related_id": order.id,
            }
        )


class NotificationAdminService:
    """Admin inbox over the notification table."""

    def __init__(self, db: Session):
        self.repo = NotificationRepo(db)

    def list_notifications(self, type_=None, is_read=None, priority=None, page: int = 1, limit: int = 20):
        items, total = self.repo.list_notifications(type_, is_read, priority, page, limit)
        return {
            "notifications": items,
            "unread_count": self.repo.count_unread(),
            "pagination": pagination(page, limit, total),
        }

    def stats(self):
        return {
            "total": self.repo.count_all(),
            "unread": self.repo.count_unread(),
            "by_type": self.repo.count_by_type(),
        }

    def _get(self, notification_id: int) -> NotificationModel:
        notification = self.repo.get(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    def mark_read(self, notification_id: int, reader_id: int) -> NotificationModel:
        notification = self._get(notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            notification.read_by = reader_id
            self.repo.commit()
        return notification

    def mark_all_read(self, reader_id: int) -> int:
        updated = self.repo.mark_all_read(reader_id, utc_now())
        self.repo.commit()
        logger.info(f"User {reader_id} marked {updated} notifications as read")
        return updated

    def delete(self, notification_id: int) -> None:
        notification = self._get(notification_id)
        self.repo.delete(notification)
        self.repo.commit()

    def purge_read(self, retention_days: int, now=None) -> int:
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        deleted = self.repo.delete_read_before(cutoff)
        self.repo.commit()
        logger.info(f"Deleted {deleted} read notifications older than {cutoff.isoformat()}")
        return deleted
