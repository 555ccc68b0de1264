# storefront/tasks/notifications.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.notification_service import NotificationAdminService
from storefront.utils.logging import get_logger
from storefront.utils.settings import load_settings

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.notifications.purge_notifications_task")
def purge_notifications_task():
    logger.info("Notification cleanup started")

    settings = load_settings()
    db = SessionLocal()
    try:
        return NotificationAdminService(db).purge_read(settings.notification_retention_days)
    finally:
        db.close()
