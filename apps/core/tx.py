import logging
import time
from functools import wraps

from django.db import OperationalError

logger = logging.getLogger(__name__)

# PostgreSQL serialization failure and deadlock
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
RETRYABLE_MESSAGES = ("deadlock detected", "could not serialize access", "database is locked")


def is_retryable(exc):
    # psycopg2 exposes pgcode, psycopg 3 sqlstate; Django wraps either as __cause__
    for err in (exc, exc.__cause__):
        if getattr(err, "pgcode", None) in RETRYABLE_SQLSTATES or getattr(err, "sqlstate", None) in RETRYABLE_SQLSTATES:
            return True
    return any(m in str(exc).lower() for m in RETRYABLE_MESSAGES)


def retry_on_tx_failure(max_attempts=3, backoff=0.05):
    """Re-run a transactional function on serialization/deadlock errors.

    Apply outside ``transaction.atomic`` and only to idempotent sections.
    """

    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            for attempt in range(1, max_attempts):
                try:
                    return fn(*args, **kwargs)
                except OperationalError as e:
                    if not is_retryable(e):
                        raise
                    logger.warning("retrying %s after %s (%d/%d)", fn.__name__, e, attempt, max_attempts)
                    time.sleep(backoff * attempt)
            return fn(*args, **kwargs)

        return wrapper

    return deco
