# poscart/tasks/expire.py
from poscart.celery_worker import celery_app
from poscart.data.database import SessionLocal
from poscart.services.cart_store import CartStore
from poscart.utils.logging import get_logger
from poscart.utils.retry import db_retry
from poscart.utils.settings import CART_TTL_MINUTES

logger = get_logger(__name__)


@db_retry()
def _cleanup(ttl_minutes: int) -> int:
    # fresh session per attempt, a failed one has already been rolled back
    db = SessionLocal()
    try:
        return CartStore(db).cleanup_expired(ttl_minutes)
    finally:
        db.close()


@celery_app.task(name="poscart.tasks.expire.cleanup_expired_carts_task")
def cleanup_expired_carts_task(ttl_minutes: int = CART_TTL_MINUTES):
    logger.info(f"Cleanup of active carts older than {ttl_minutes} min started")
    removed = _cleanup(ttl_minutes)
    logger.info(f"Cleanup finished, {removed} cart(s) removed")
    return {"removed": removed}
