# app/worker.py
from celery import Celery

from app.core.config import get_settings

settings = get_settings()

BROKER = settings.CELERY_BROKER_URL or settings.REDIS_URL
RESULT_BACKEND = settings.CELERY_RESULT_BACKEND or settings.REDIS_URL

celery_app = Celery(
    "storefront",
    broker=BROKER,
    backend=RESULT_BACKEND,
)

# Import task modules explicitly so the worker registers them
celery_app.conf.imports = ("app.services.notification_service",)

celery_app.conf.update(
    timezone="UTC",
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_ignore_result=True,
    # Enqueue must not hang a request when the broker is down
    broker_connection_timeout=2,
    broker_connection_retry_on_startup=True,
    task_publish_retry=False,
)
