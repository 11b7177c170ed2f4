# poscart/celery_worker.py
from celery import Celery

from poscart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, CLEANUP_INTERVAL_SECONDS

celery_app = Celery(
    "poscart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski trzeba zaimportowac explicite, zeby Celery je zarejestrowal
celery_app.conf.imports = ("poscart.tasks.expire",)

celery_app.conf.beat_schedule = {
    "cleanup-expired-carts": {
        "task": "poscart.tasks.expire.cleanup_expired_carts_task",
        "schedule": CLEANUP_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
