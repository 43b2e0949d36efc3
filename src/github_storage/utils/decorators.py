"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, Optional, TypeVar, cast

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

def async_log_execution_time(func: Optional[F] = None, *, logger_name: Optional[str] = None):
    """Decorator to log how long an async storage operation took.

    Usable bare (``@async_log_execution_time``) or with a logger name
    (``@async_log_execution_time(logger_name=__name__)``).

    Args:
        func: The async function to decorate
        logger_name: Optional logger name (defaults to module logger)

    Returns:
        Decorated async function that logs execution time
    """
    timing_logger = logging.getLogger(logger_name) if logger_name else logger

    def decorator(inner: F) -> F:
        @functools.wraps(inner)
        async def wrapper(*args, **kwargs):
            start_time = time.monotonic()
            try:
                result = await inner(*args, **kwargs)
            except Exception as e:
                duration = time.monotonic() - start_time
                timing_logger.debug(f"{inner.__name__} failed after {duration:.2f}s: {e}")
                raise
            duration = time.monotonic() - start_time
            timing_logger.debug(f"{inner.__name__} completed in {duration:.2f}s")
            return result
        return cast(F, wrapper)

    if func is not None:
        return decorator(func)
    return decorator
