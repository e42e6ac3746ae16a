"""
# Logging Utilities

Structured logging helpers shared by the application entry point and the service layer.

## Key Features

- **`log_application_lifecycle()`**: One-line records for startup/shutdown milestones.
- **`log_error_with_context()`**: Error records enriched with an operation context dict.
- **`log_performance()`**: Decorator timing sync or async callables.
- **`RequestLoggingMiddleware`**: Method, path, status and duration for every HTTP request.
"""

import functools
import inspect
import time
from typing import Any, Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from starter_pack_explorer.managers.logging_manager import get_logger

lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")
perf_logger = get_logger(prefix="[PERFORMANCE]")
request_logger = get_logger(prefix="[REQUEST]")


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event such as `startup_initiated` or `database_connected`."""
    lifecycle_logger.info("Lifecycle event '%s': %s", event, details or {})


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an exception together with the operation context it happened in.

    Args:
        error: The exception that was caught.
        context: Free-form context, typically including an `"operation"` key.
    """
    error_logger.error(
        "%s: %s | context=%s",
        type(error).__name__,
        error,
        context or {},
        exc_info=error,
    )


def log_performance(operation: str, slow_threshold: float = 1.0) -> Callable:
    """
    Decorator that logs how long the wrapped callable took.

    Works for both plain and `async` functions. Calls slower than `slow_threshold`
    seconds are logged at WARNING level.
    """

    def decorator(func: Callable) -> Callable:
        def _report(start: float, failed: bool) -> None:
            duration = time.time() - start
            if failed:
                perf_logger.warning("%s failed after %.3fs", operation, duration)
            elif duration > slow_threshold:
                perf_logger.warning("%s was slow: %.3fs", operation, duration)
            else:
                perf_logger.debug("%s completed in %.3fs", operation, duration)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    _report(start, failed=True)
                    raise
                _report(start, failed=False)
                return result

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _report(start, failed=True)
                raise
            _report(start, failed=False)
            return result

        return sync_wrapper

    return decorator


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every HTTP request with its status code and duration."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.time() - start
            request_logger.error(
                "%s %s raised after %.3fs", request.method, request.url.path, duration
            )
            raise

        duration = time.time() - start
        request_logger.info(
            "%s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, duration
        )
        return response
