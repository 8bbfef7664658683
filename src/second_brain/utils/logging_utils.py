"""
Logging helpers shared by the application bootstrap, routes and services.

*   `RequestLoggingMiddleware` logs one line per HTTP request with a request id.
*   `log_application_lifecycle` records startup/shutdown milestones.
*   `log_error_with_context` logs an exception together with operation details.
*   `log_performance` times a sync or async callable.
"""

import functools
import inspect
import time
import uuid
from typing import Any, Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from second_brain.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")
perf_logger = get_logger(prefix="[PERFORMANCE]")

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_OPERATION_THRESHOLD = 1.0  # seconds


def _format_details(details: Optional[Dict[str, Any]]) -> str:
    if not details:
        return ""
    return " " + " ".join(f"{key}={value}" for key, value in details.items())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request and tags the response with a request id."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start = time.time()
        client_host = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start
            request_logger.error(
                "%s %s failed after %.3fs [request_id=%s client=%s]: %s",
                request.method,
                request.url.path,
                duration,
                request_id,
                client_host,
                e,
            )
            raise

        duration = time.time() - start
        log = request_logger.warning if response.status_code >= 500 else request_logger.info
        log(
            "%s %s -> %d in %.3fs [request_id=%s client=%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            request_id,
            client_host,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None):
    lifecycle_logger.info("%s%s", event, _format_details(details))


def log_error_with_context(error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log an exception with its type, message, context and traceback."""
    error_logger.error(
        "%s: %s%s", error.__class__.__name__, error, _format_details(context), exc_info=error
    )


def log_performance(operation: str, threshold: float = SLOW_OPERATION_THRESHOLD) -> Callable:
    """
    Decorator timing the wrapped callable.

    Durations above `threshold` seconds are logged as warnings, the rest at debug level.
    Works for both coroutine functions and plain functions.
    """

    def _report(duration: float, failed: bool):
        if failed:
            perf_logger.warning("%s failed after %.3fs", operation, duration)
        elif duration > threshold:
            perf_logger.warning("%s slow: %.3fs", operation, duration)
        else:
            perf_logger.debug("%s took %.3fs", operation, duration)

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.time()
                failed = True
                try:
                    result = await func(*args, **kwargs)
                    failed = False
                    return result
                finally:
                    _report(time.time() - start, failed)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.time()
            failed = True
            try:
                result = func(*args, **kwargs)
                failed = False
                return result
            finally:
                _report(time.time() - start, failed)

        return sync_wrapper

    return decorator
