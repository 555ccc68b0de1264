# storefront/tasks/inventory.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import DatabaseEventSink, NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.settings import load_settings

logger = get_logger(__name__)


def run_low_stock_sweep(db, settings) -> int:
    notifier = NotificationService(DatabaseEventSink(db), settings)
    return InventoryService(db, settings, notifier).sweep_low_stock()


@celery_app.task(name="storefront.tasks.inventory.low_stock_sweep_task")
def low_stock_sweep_task():
    logger.info("Low stock sweep started")

    db = SessionLocal()
    try:
        return run_low_stock_sweep(db, load_settings())
    finally:
        db.close()
