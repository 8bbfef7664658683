"""
# Second Brain API

FastAPI application bootstrap.

**Startup:** with the MongoDB backend the lifespan connects through `db_manager`
and creates the indexes before the first request is served. The in-memory backend
needs no startup work.

**Wiring:**
*   CORS and request logging middleware.
*   Auth, brain and item routers under `API_PREFIX` (default `/api/v1`), plus `/health`.
*   Prometheus metrics exposed at `/metrics`.
*   Exception handlers that render every failure as one JSON body:
    `{"message": ...}`, with an `errors` list for validation failures.
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from second_brain.config import settings
from second_brain.database import db_manager
from second_brain.exceptions import AuthenticationError, SecondBrainError, ValidationError
from second_brain.managers.logging_manager import get_logger
from second_brain.routes import auth_router, brains_router, health_router, items_router
from second_brain.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()

APP_TITLE = "Second Brain API"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect storage on startup and release it on shutdown.

    Raises:
        Exception: If the database cannot be reached or indexes cannot be created;
            the application refuses to start.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {"app_name": APP_TITLE, "version": APP_VERSION, "storage_backend": settings.STORAGE_BACKEND},
    )

    uses_mongodb = settings.STORAGE_BACKEND == "mongodb"
    if uses_mongodb:
        try:
            db_connect_start = time.time()
            await db_manager.connect()
            log_application_lifecycle(
                "database_connected",
                {
                    "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                    "database_name": settings.MONGODB_DATABASE,
                },
            )

            indexes_start = time.time()
            await db_manager.create_indexes()
            log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})
        except Exception as e:
            log_error_with_context(e, {"operation": "application_startup", "phase": "database_connection"})
            raise

    log_application_lifecycle("startup_completed", {"total_startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    yield

    log_application_lifecycle("shutdown_initiated")
    if uses_mongodb:
        try:
            await db_manager.disconnect()
            log_application_lifecycle("database_disconnected")
        except Exception as e:
            log_error_with_context(e, {"operation": "database_disconnection"})
    log_application_lifecycle("shutdown_completed")


app = FastAPI(
    title=APP_TITLE,
    description="Save links, articles, videos and notes into brains, search them, and share brains publicly.",
    version=APP_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login, Google sign-in"},
        {"name": "Brains", "description": "Brains, collaborators and public sharing"},
        {"name": "Items", "description": "Saved content: create, search, update, delete"},
        {"name": "System", "description": "Health and monitoring endpoints"},
    ],
)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "request"


@app.exception_handler(SecondBrainError)
async def second_brain_error_handler(request: Request, exc: SecondBrainError):
    content = {"message": exc.message}
    headers = None
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.__class__.__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"field": _field_name(error.get("loc", ())), "message": error.get("msg", "")} for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Validation failed", "errors": errors}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error_with_context(exc, {"operation": "request", "method": request.method, "path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"}
    )


cors_origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured", {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins}
)

app.include_router(health_router)
for router in (auth_router, brains_router, items_router):
    app.include_router(router, prefix=settings.API_PREFIX)
log_application_lifecycle("routers_configured", {"api_prefix": settings.API_PREFIX})

try:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics"],
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
    log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
except Exception as e:
    log_error_with_context(e, {"operation": "prometheus_setup"})


def run():
    uvicorn.run("second_brain.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")


if __name__ == "__main__":
    run()
