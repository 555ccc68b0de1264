# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "storefront.tasks.inventory",
    "storefront.tasks.notifications",
    "storefront.tasks.quotations",
)

celery_app.conf.beat_schedule = {
    "low-stock-sweep-hourly": {
        "task": "storefront.tasks.inventory.low_stock_sweep_task",
        "schedule": 3600.0,
    },
    "purge-read-notifications-daily": {
        "task": "storefront.tasks.notifications.purge_notifications_task",
        "schedule": 86400.0,
    },
    "expire-quotations-hourly": {
        "task": "storefront.tasks.quotations.expire_quotations_task",
        "schedule": 3600.0,
    },
}

celery_app.conf.timezone = "UTC"
