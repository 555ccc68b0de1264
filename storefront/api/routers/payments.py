from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_settings, get_notifier, get_lock_service, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    UpiGenerateIn,
    UpiPaymentRequestOut,
    UpiVerifyIn,
    PaymentVerifyOut,
    UpiCollectIn,
    UpiCollectOut,
    UpiStatusIn,
    PaymentStatusOut,
)
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/upi-payments", tags=["payments"])


def get_service(
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    notifier=Depends(get_notifier),
    lock_service=Depends(get_lock_service),
) -> PaymentService:
    return PaymentService(db, settings, lock_service, notifier)


@router.post("/generate", response_model=UpiPaymentRequestOut)
def generate_payment(
    payload: UpiGenerateIn,
    user: UserModel = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.generate_payment_request(user, payload.order_id, payload.description)
    except StoreError as e:
        raise http_error(e)


@router.post("/verify", response_model=PaymentVerifyOut)
def verify_payment(
    payload: UpiVerifyIn,
    user: UserModel = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    """Idempotent: a completed payment is returned unchanged."""
    try:
        return svc.verify_upi(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.post("/collect-qr", response_model=UpiCollectOut)
def collect_qr(
    payload: UpiCollectIn,
    user: UserModel = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.collect_qr(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.post("/status", response_model=PaymentStatusOut)
def payment_status(
    payload: UpiStatusIn,
    user: UserModel = Depends(get_current_user),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.check_status(user, payload)
    except StoreError as e:
        raise http_error(e)
