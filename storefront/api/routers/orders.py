# storefront/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_settings, get_notifier, get_lock_service, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    OrderCreate,
    OrderOut,
    OrderListOut,
    OrderStatsOut,
    OrderTrackOut,
    PaymentWebhookIn,
    WebhookAckOut,
)
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    notifier=Depends(get_notifier),
) -> OrderService:
    return OrderService(db, settings, notifier)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Places an order. Stock is reserved right away for cod / bank_transfer,
    online methods reserve when the payment is confirmed.
    """
    try:
        return svc.create_order(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.get("", response_model=OrderListOut)
def list_my_orders(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.list_orders(user, status, page, limit)
    except StoreError as e:
        raise http_error(e)


@router.get("/stats", response_model=OrderStatsOut)
def my_order_stats(
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.stats(user)


@router.get("/track/{order_number}", response_model=OrderTrackOut)
def track_order(order_number: str, svc: OrderService = Depends(get_service)):
    """Public: status and history only."""
    try:
        return svc.track(order_number)
    except StoreError as e:
        raise http_error(e)


@router.post("/payment/webhook", response_model=WebhookAckOut)
def payment_webhook(
    payload: PaymentWebhookIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    notifier=Depends(get_notifier),
    lock_service=Depends(get_lock_service),
):
    # no signature check, the payload is trusted as-is
    svc = PaymentService(db, settings, lock_service, notifier)
    try:
        return svc.handle_webhook(payload)
    except StoreError as e:
        raise http_error(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(order_id, user)
    except StoreError as e:
        raise http_error(e)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.cancel_order(order_id, user)
    except StoreError as e:
        raise http_error(e)
