"""Bounded worker for best-effort side effects (email, gateway calls).

Tasks run after the request's transaction commits. A failing task is logged
and dropped; nothing here ever raises into the caller.
"""
import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from django.conf import settings
from django.db import close_old_connections, transaction

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_executor = None
_slots = None


def _get_executor():
    global _executor, _slots
    with _lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=settings.SHOP_BACKGROUND_WORKERS,
                thread_name_prefix="shop-bg",
            )
            _slots = threading.BoundedSemaphore(settings.SHOP_BACKGROUND_QUEUE_SIZE)
        return _executor, _slots


def _run(fn, args, kwargs):
    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception("background task %s failed", getattr(fn, "__name__", fn))


def _run_in_worker(fn, args, kwargs):
    try:
        _run(fn, args, kwargs)
    finally:
        close_old_connections()
        _slots.release()


def submit(fn, *args, **kwargs):
    """Run ``fn`` in the worker pool, or inline when async dispatch is off."""
    if not settings.SHOP_NOTIFY_ASYNC:
        _run(fn, args, kwargs)
        return
    executor, slots = _get_executor()
    if not slots.acquire(blocking=False):
        logger.warning("background queue full, dropping %s", getattr(fn, "__name__", fn))
        return
    executor.submit(_run_in_worker, fn, args, kwargs)


def on_commit(fn, *args, **kwargs):
    """Schedule ``submit(fn, ...)`` once the current transaction commits."""
    transaction.on_commit(partial(submit, fn, *args, **kwargs))


@atexit.register
def _shutdown():
    if _executor is not None:
        _executor.shutdown(wait=False)
