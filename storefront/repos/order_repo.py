# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select, update, func, or_, case, exists
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_status_history import OrderStatusHistoryModel
from storefront.utils.pagination import page_offset

_SORTABLE = {"created_at", "updated_at", "total", "order_number", "status"}


def _with_relations(query):
    return query.options(
        selectinload(OrderModel.items).selectinload(OrderItemModel.product),
        selectinload(OrderModel.status_history),
        selectinload(OrderModel.customer),
    )


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            _with_relations(select(OrderModel).where(OrderModel.id == order_id))
        ).scalar_one_or_none()

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            _with_relations(select(OrderModel).where(OrderModel.order_number == order_number))
        ).scalar_one_or_none()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(exists().where(OrderModel.order_number == order_number))
        ).scalar()

    def list_for_customer(self, customer_id: int, status: str | None, page: int, limit: int):
        query = select(OrderModel).where(OrderModel.customer_id == customer_id)
        if status:
            query = query.where(OrderModel.status == status)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        orders = self.db.execute(
            _with_relations(query)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        ).scalars().all()
        return list(orders), total

    def list_orders(
        self,
        search: str | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        sort: str = "created_at",
        order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ):
        query = select(OrderModel)
        if search:
            like = f"%{search}%"
            query = query.where(
                or_(
                    OrderModel.order_number.ilike(like),
                    OrderModel.customer_name.ilike(like),
                    OrderModel.customer_email.ilike(like),
                )
            )
        if status:
            query = query.where(OrderModel.status == status)
        if payment_status:
            query = query.where(OrderModel.payment_status == payment_status)
        if date_from:
            query = query.where(OrderModel.created_at >= date_from)
        if date_to:
            query = query.where(OrderModel.created_at <= date_to)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()

        column = getattr(OrderModel, sort if sort in _SORTABLE else "created_at")
        orders = self.db.execute(
            _with_relations(query)
            .order_by(column.desc() if order == "desc" else column.asc(), OrderModel.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        ).scalars().all()
        return list(orders), total

    def recent_orders(self, limit: int = 5) -> list[OrderModel]:
        return list(
            self.db.execute(
                _with_relations(select(OrderModel))
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                .limit(limit)
            ).scalars()
        )

    def customer_stats(self, customer_id: int) -> dict:
        row = self.db.execute(
            select(
                func.count(OrderModel.id),
                func.coalesce(func.sum(OrderModel.total), 0),
                func.coalesce(func.sum(case((OrderModel.status == "pending", 1), else_=0)), 0),
                func.coalesce(func.sum(case((OrderModel.status == "delivered", 1), else_=0)), 0),
                func.max(OrderModel.created_at),
            ).where(OrderModel.customer_id == customer_id)
        ).one()
        return {
            "total_orders": row[0],
            "total_spent": row[1],
            "pending_orders": row[2],
            "delivered_orders": row[3],
            "last_order_date": row[4],
        }

    def update_order_version(self, order_id: int, old_version: int, new_data: dict) -> int:
        # optimistic lock on the order row
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def add_history(self, entry: OrderStatusHistoryModel) -> OrderStatusHistoryModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def get_order_fresh(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            _with_relations(select(OrderModel).where(OrderModel.id == order_id))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
