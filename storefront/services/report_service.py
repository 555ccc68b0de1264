# storefront/services/report_service.py
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.domain.views import serialize_order
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.report_repo import ReportRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.time import utc_now


def month_windows(now: datetime) -> tuple[datetime, datetime, datetime]:
    """(start of previous month, start of this month, now), UTC calendar months."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    previous = (start - timedelta(days=1)).replace(day=1)
    return previous, start, now


def growth(current, previous) -> float:
    if not previous:
        return 100.0
    return round(float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100), 2)


class ReportService:
    """Admin dashboard and reports; pure reads, recomputed on every call."""

    def __init__(self, db: Session):
        self.reports = ReportRepo(db)
        self.orders = OrderRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    def dashboard(self, now: datetime | None = None):
        now = now or utc_now()
        prev_start, month_start, _ = month_windows(now)

        revenue = Decimal(self.reports.revenue(month_start, None))
        prev_revenue = Decimal(self.reports.revenue(prev_start, month_start))
        orders = self.reports.order_count(month_start, None)
        prev_orders = self.reports.order_count(prev_start, month_start)

        return {
            "stats": {
                "revenue": {"current": revenue, "growth": growth(revenue, prev_revenue)},
                "orders": {"current": Decimal(orders), "growth": growth(orders, prev_orders)},
                "products": self.products.count_active(),
                "users": self.users.count_customers(),
            },
            "recent_orders": [serialize_order(o) for o in self.orders.recent_orders(5)],
            "top_products": self.product_performance(limit=5, date_from=month_start),
            "daily_sales": self.daily_sales(days=30, now=now),
            "category_performance": self.category_performance(date_from=month_start),
        }

    def daily_sales(self, days: int = 30, now: datetime | None = None):
        since = (now or utc_now()) - timedelta(days=days)
        return [
            {"date": str(row.day), "revenue": row.revenue, "orders": row.orders}
            for row in self.reports.daily_sales(since)
        ]

    def category_performance(self, date_from=None, date_to=None):
        return [
            {"category_id": row.id, "name": row.name, "revenue": row.revenue, "orders": row.orders}
            for row in self.reports.category_performance(date_from, date_to)
        ]

    def product_performance(self, limit: int = 10, date_from=None, date_to=None):
        return [
            {
                "product_id": row.id,
                "title": row.title,
                "total_quantity": row.total_quantity,
                "total_revenue": row.total_revenue,
            }
            for row in self.reports.product_performance(date_from, date_to, limit)
        ]
