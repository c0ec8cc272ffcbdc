# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks live outside this module, import them explicitly so the worker registers them
celery_app.conf.imports = (
    "storefront.services.notification_service",
    "storefront.services.receipt_service",
)

celery_app.conf.timezone = "UTC"
