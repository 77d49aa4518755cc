# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# import task modules explicitly so the worker registers them
celery_app.conf.imports = (
    "storefront.tasks.tryon_poll",
    "storefront.tasks.stale_tryons",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "fail-stale-tryons-every-minute": {
        "task": "storefront.tasks.stale_tryons.fail_stale_tryons_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"

# tests and local runs without a broker
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
celery_app.conf.task_eager_propagates = CELERY_TASK_ALWAYS_EAGER
