# storefront/api/deps.py
from fastapi import Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import StoreError, ForbiddenError
from storefront.services.lock_service import LockService
from storefront.services.notification_service import DatabaseEventSink, NotificationService
from storefront.services.user_service import UserService
from storefront.utils.settings import StoreSettings


def http_error(e: StoreError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def get_settings(request: Request) -> StoreSettings:
    return request.app.state.settings


def get_lock_service(request: Request) -> LockService:
    #one redis client per app, created lazily
    lock_service = getattr(request.app.state, "lock_service", None)
    if lock_service is None:
        lock_service = LockService(request.app.state.settings.redis_url)
        request.app.state.lock_service = lock_service
    return lock_service


def get_notifier(
    db: Session = Depends(get_db),
    settings: StoreSettings = Depends(get_settings),
) -> NotificationService:
    return NotificationService(DatabaseEventSink(db), settings)


def get_current_user(
    user_id: int = Query(..., description="Acting user id"),
    db: Session = Depends(get_db),
) -> UserModel:
    try:
        return UserService(db).authenticate(user_id)
    except StoreError as e:
        raise http_error(e)


def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if not user.is_admin:
        raise http_error(ForbiddenError("Admin access required"))
    return user
