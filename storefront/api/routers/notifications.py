from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.deps import require_admin, http_error
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    NotificationOut,
    NotificationListOut,
    NotificationStatsOut,
    MarkAllReadOut,
)
from storefront.services.notification_service import NotificationAdminService

router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_admin)])


def get_service(db: Session = Depends(get_db)) -> NotificationAdminService:
    return NotificationAdminService(db)


@router.get("", response_model=NotificationListOut)
def list_notifications(
    type: Optional[str] = Query(None),
    is_read: Optional[bool] = Query(None),
    priority: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: NotificationAdminService = Depends(get_service),
):
    return svc.list_notifications(type, is_read, priority, page, limit)


@router.get("/stats", response_model=NotificationStatsOut)
def notification_stats(svc: NotificationAdminService = Depends(get_service)):
    return svc.stats()


@router.put("/read-all", response_model=MarkAllReadOut)
def mark_all_read(
    admin: UserModel = Depends(require_admin),
    svc: NotificationAdminService = Depends(get_service),
):
    return {"updated": svc.mark_all_read(admin.id)}


@router.put("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    admin: UserModel = Depends(require_admin),
    svc: NotificationAdminService = Depends(get_service),
):
    try:
        return svc.mark_read(notification_id, admin.id)
    except StoreError as e:
        raise http_error(e)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(notification_id: int, svc: NotificationAdminService = Depends(get_service)):
    try:
        svc.delete(notification_id)
    except StoreError as e:
        raise http_error(e)
    return Response(status_code=204)
