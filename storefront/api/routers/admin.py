# storefront/api/routers/admin.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin, get_settings, get_notifier, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    OrderStatusUpdateIn,
    OrderOut,
    OrderListOut,
    AdminOrderDetailOut,
    DashboardOut,
    DailySalesRow,
    CategoryPerformanceRow,
    ProductPerformanceRow,
    CustomerListOut,
    RejectCustomerIn,
    RoleUpdateIn,
    UserRead,
)
from storefront.services.admin_service import AdminService
from storefront.services.report_service import ReportService

router = APIRouter(prefix="/admin", tags=["admin"])


def get_service(
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    notifier=Depends(get_notifier),
) -> AdminService:
    return AdminService(db, settings, notifier)


def get_reports(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


# dashboard + reports
@router.get("/dashboard", response_model=DashboardOut, dependencies=[Depends(require_admin)])
def dashboard(reports: ReportService = Depends(get_reports)):
    return reports.dashboard()


@router.get("/reports/daily-sales", response_model=List[DailySalesRow], dependencies=[Depends(require_admin)])
def daily_sales(days: int = Query(30, ge=1, le=365), reports: ReportService = Depends(get_reports)):
    return reports.daily_sales(days)


@router.get(
    "/reports/categories",
    response_model=List[CategoryPerformanceRow],
    dependencies=[Depends(require_admin)],
)
def category_performance(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    reports: ReportService = Depends(get_reports),
):
    return reports.category_performance(date_from, date_to)


@router.get(
    "/reports/products",
    response_model=List[ProductPerformanceRow],
    dependencies=[Depends(require_admin)],
)
def product_performance(
    limit: int = Query(10, ge=1, le=100),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    reports: ReportService = Depends(get_reports),
):
    return reports.product_performance(limit, date_from, date_to)


# orders
@router.get("/orders", response_model=OrderListOut, dependencies=[Depends(require_admin)])
def list_orders(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    payment_status: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: AdminService = Depends(get_service),
):
    return svc.list_orders(
        page=page,
        limit=limit,
        search=search,
        status=status,
        payment_status=payment_status,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        order=order,
    )


@router.get("/orders/{order_id}", response_model=AdminOrderDetailOut, dependencies=[Depends(require_admin)])
def order_detail(order_id: int, svc: AdminService = Depends(get_service)):
    try:
        return svc.order_detail(order_id)
    except StoreError as e:
        raise http_error(e)


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdateIn,
    admin: UserModel = Depends(require_admin),
    svc: AdminService = Depends(get_service),
):
    """Force-set; every call appends one history entry with the admin id."""
    try:
        return svc.update_order_status(order_id, admin, payload)
    except StoreError as e:
        raise http_error(e)


# customers
@router.get("/customers", response_model=CustomerListOut, dependencies=[Depends(require_admin)])
def list_customers(
    search: Optional[str] = Query(None),
    sort: str = Query("created_at"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: AdminService = Depends(get_service),
):
    return svc.list_customers(search, page, limit, sort, order)


@router.put("/customers/{customer_id}/approve", response_model=UserRead)
def approve_customer(
    customer_id: int,
    admin: UserModel = Depends(require_admin),
    svc: AdminService = Depends(get_service),
):
    try:
        return svc.approve_customer(customer_id, admin)
    except StoreError as e:
        raise http_error(e)


@router.put("/customers/{customer_id}/reject", response_model=UserRead)
def reject_customer(
    customer_id: int,
    payload: RejectCustomerIn,
    admin: UserModel = Depends(require_admin),
    svc: AdminService = Depends(get_service),
):
    try:
        return svc.reject_customer(customer_id, admin, payload.reason)
    except StoreError as e:
        raise http_error(e)


@router.put("/users/{target_user_id}/role", response_model=UserRead)
def set_role(
    target_user_id: int,
    payload: RoleUpdateIn,
    admin: UserModel = Depends(require_admin),
    svc: AdminService = Depends(get_service),
):
    try:
        return svc.set_role(target_user_id, payload.role, admin)
    except StoreError as e:
        raise http_error(e)
