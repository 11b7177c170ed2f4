# poscart/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from poscart.domain.errors import PersistenceError


def db_retry():
    """Retry policy for callers that want to ride out a busy/locked database file."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(PersistenceError),
    )
