# storefront/api/routers/quotations.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_notifier, http_error, require_admin
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    QuotationCreate,
    QuotationDetailOut,
    QuotationListOut,
    QuotationOut,
    QuotationRespondIn,
)
from storefront.services.quotation_service import QuotationService

router = APIRouter(prefix="/quotations", tags=["quotations"])


def get_service(db: Session = Depends(get_db), notifier=Depends(get_notifier)) -> QuotationService:
    return QuotationService(db, notifier)


# customer
@router.post("/request", response_model=QuotationOut, status_code=201)
def request_quote(
    payload: QuotationCreate,
    user: UserModel = Depends(get_current_user),
    svc: QuotationService = Depends(get_service),
):
    """B2B only; approved accounts."""
    try:
        return svc.request_quote(user, payload)
    except StoreError as e:
        raise http_error(e)


@router.get("/my-requests", response_model=List[QuotationOut])
def my_requests(user: UserModel = Depends(get_current_user), svc: QuotationService = Depends(get_service)):
    return svc.my_quotations(user)


# admin
@router.get("/admin/requests", response_model=QuotationListOut, dependencies=[Depends(require_admin)])
def list_requests(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: QuotationService = Depends(get_service),
):
    return svc.list_quotations(status, page, limit)


@router.get(
    "/admin/requests/{quotation_id}",
    response_model=QuotationDetailOut,
    dependencies=[Depends(require_admin)],
)
def get_request(quotation_id: int, svc: QuotationService = Depends(get_service)):
    try:
        return svc.get_quotation(quotation_id)
    except StoreError as e:
        raise http_error(e)


@router.post("/admin/respond/{quotation_id}", response_model=QuotationOut)
def respond(
    quotation_id: int,
    payload: QuotationRespondIn,
    admin: UserModel = Depends(require_admin),
    svc: QuotationService = Depends(get_service),
):
    try:
        return svc.respond(quotation_id, payload, admin)
    except StoreError as e:
        raise http_error(e)
