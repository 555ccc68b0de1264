# storefront/repos/report_repo.py
from datetime import datetime

from sqlalchemy import select, func, distinct
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.product import ProductModel
from storefront.data.models.category import CategoryModel


def _window(query, column, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.where(column >= start)
    if end is not None:
        query = query.where(column < end)
    return query


class ReportRepo:
    """Read-only projections over orders and products; nothing here writes."""

    def __init__(self, db: Session):
        self.db = db

    def revenue(self, start: datetime | None, end: datetime | None):
        query = select(func.coalesce(func.sum(OrderModel.total), 0)).where(
            OrderModel.payment_status == "completed"
        )
        return self.db.execute(_window(query, OrderModel.created_at, start, end)).scalar_one()

    def order_count(self, start: datetime | None, end: datetime | None) -> int:
        query = select(func.count(OrderModel.id))
        return self.db.execute(_window(query, OrderModel.created_at, start, end)).scalar_one()

    def product_performance(self, start: datetime | None, end: datetime | None, limit: int):
        line_revenue = func.sum(OrderItemModel.quantity * OrderItemModel.price)
        total_quantity = func.sum(OrderItemModel.quantity)
        query = (
            select(
                ProductModel.id,
                ProductModel.title,
                total_quantity.label("total_quantity"),
                line_revenue.label("total_revenue"),
            )
            .select_from(OrderItemModel)
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .join(ProductModel, ProductModel.id == OrderItemModel.product_id)
        )
        query = _window(query, OrderModel.created_at, start, end)
        query = (
            query.group_by(ProductModel.id, ProductModel.title)
            .order_by(total_quantity.desc(), ProductModel.id)
            .limit(limit)
        )
        return self.db.execute(query).all()

    def daily_sales(self, start: datetime):
        day = func.date(OrderModel.created_at)
        query = (
            select(
                day.label("day"),
                func.sum(OrderModel.total).label("revenue"),
                func.count(OrderModel.id).label("orders"),
            )
            .where(OrderModel.payment_status == "completed", OrderModel.created_at >= start)
            .group_by(day)
            .order_by(day)
        )
        return self.db.execute(query).all()

    def category_performance(self, start: datetime | None, end: datetime | None):
        revenue = func.sum(OrderItemModel.quantity * OrderItemModel.price)
        query = (
            select(
                CategoryModel.id,
                CategoryModel.name,
                revenue.label("revenue"),
                func.count(distinct(OrderModel.id)).label("orders"),
            )
            .select_from(OrderItemModel)
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .join(ProductModel, ProductModel.id == OrderItemModel.product_id)
            .join(CategoryModel, CategoryModel.id == ProductModel.category_id)
        )
        query = _window(query, OrderModel.created_at, start, end)
        query = query.group_by(CategoryModel.id, CategoryModel.name).order_by(revenue.desc())
        return self.db.execute(query).all()

    def customer_order_stats(self, customer_ids):
        if not customer_ids:
            return {}
        rows = self.db.execute(
            select(
                OrderModel.customer_id,
                func.count(OrderModel.id),
                func.coalesce(func.sum(OrderModel.total), 0),
                func.max(OrderModel.created_at),
            )
            .where(OrderModel.customer_id.in_(customer_ids))
            .group_by(OrderModel.customer_id)
        ).all()
        return {r[0]: {"total_orders": r[1], "total_spent": r[2], "last_order_date": r[3]} for r in rows}
