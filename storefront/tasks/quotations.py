# storefront/tasks/quotations.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.quotation_service import QuotationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.quotations.expire_quotations_task")
def expire_quotations_task():
    logger.info("Quotation expiry started")

    db = SessionLocal()
    try:
        return QuotationService(db).expire_stale()
    finally:
        db.close()
