"""
Decorators feeding the metrics collector
"""

import time
import functools
import logging
from typing import Callable

from .metrics import get_metrics_collector

logger = logging.getLogger(__name__)


def track_mongodb_query(operation: str):
    """
    Track a collection method call. The collection name is read from the
    bound instance (``self.name``) so one decorator serves every collection.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            start_time = time.time()
            status = "success"

            try:
                return await func(self, *args, **kwargs)

            except Exception as e:
                status = "error"
                logger.debug(f"MongoDB query failed: {operation} on {self.name} - {e}")
                raise

            finally:
                duration = time.time() - start_time
                metrics = get_metrics_collector()
                metrics.record_mongodb_query(operation, self.name, status, duration)

        return wrapper

    return decorator


def track_error(service: str, error_type: str = "unknown"):
    """Count exceptions escaping the decorated coroutine"""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)

            except Exception as e:
                metrics = get_metrics_collector()
                metrics.record_error(service, error_type)
                logger.error(f"Error in {service} - {error_type} - {e}")
                raise

        return wrapper

    return decorator
