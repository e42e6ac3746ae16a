"""
# Starter Pack Explorer API

Application entry point: builds the **FastAPI** app, wires middleware, exception handlers,
routers and Prometheus metrics, and owns the MongoDB connection lifecycle.

## Startup / Shutdown

The `lifespan()` context manager:

1. Logs `startup_initiated` with version and environment.
2. Connects `db_manager` (retries with exponential backoff inside `connect()`).
3. Creates the search/join indexes when `CREATE_INDEXES_ON_STARTUP` is on.
4. Yields to serve requests, then disconnects on shutdown.

## Error Rendering

Every failure leaves the API as `{"error": str, "details": str | null}`:

| Source                        | Status | `details`                          |
|-------------------------------|--------|------------------------------------|
| `InvalidQueryError`           | 400    | always                             |
| `RequestValidationError`      | 400    | validation messages                |
| `NotFoundError`               | 404    | always                             |
| `StoreError` / timeouts       | 500    | only when `DEBUG` is on            |
| anything else                 | 500    | only when `DEBUG` is on            |

## Running

```bash
uvicorn starter_pack_explorer.main:app --host 0.0.0.0 --port 8000
```

## Module Attributes

Attributes:
    app (FastAPI): The configured application instance
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from starter_pack_explorer import __version__
from starter_pack_explorer.config import settings
from starter_pack_explorer.database import db_manager
from starter_pack_explorer.managers.logging_manager import get_logger
from starter_pack_explorer.models.pack_models import ErrorResponse
from starter_pack_explorer.routes import api_router, health_router
from starter_pack_explorer.services.exceptions import StarterPackExplorerError
from starter_pack_explorer.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB before serving and disconnect afterwards.

    Raises:
        Exception: The database could not be reached after all retries; startup aborts.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": "Starter Pack Explorer API",
            "version": __version__,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    try:
        db_connect_start = time.time()
        await db_manager.connect()
        log_application_lifecycle(
            "database_connected",
            {
                "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                "database_name": settings.MONGODB_DATABASE,
                "connection_url": (
                    settings.MONGODB_URL.split("@")[-1] if "@" in settings.MONGODB_URL else settings.MONGODB_URL
                ),
            },
        )

        if settings.CREATE_INDEXES_ON_STARTUP:
            indexes_start = time.time()
            await db_manager.create_indexes()
            log_application_lifecycle("database_indexes_ready", {"indexes_duration": f"{time.time() - indexes_start:.3f}s"})
    except Exception as e:
        log_error_with_context(e, {"operation": "application_startup"})
        raise

    log_application_lifecycle("startup_completed", {"startup_duration": f"{time.time() - startup_start_time:.3f}s"})

    yield

    log_application_lifecycle("shutdown_initiated", {})
    try:
        await db_manager.disconnect()
    except Exception as e:
        log_error_with_context(e, {"operation": "database_disconnect"})
    log_application_lifecycle("shutdown_completed", {})


def error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_explorer_error(request: Request, exc: StarterPackExplorerError) -> JSONResponse:
    if exc.status_code >= 500:
        log_error_with_context(exc, {"operation": "request", "path": request.url.path, "details": exc.details})
        details = exc.details if settings.DEBUG else None
    else:
        logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        details = exc.details
    return error_response(exc.status_code, exc.message, details)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}" for error in exc.errors()
    )
    logger.info("%s %s -> 400 invalid parameters: %s", request.method, request.url.path, messages)
    return error_response(400, "Invalid request parameters", messages or None)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log_error_with_context(exc, {"operation": "request", "path": request.url.path, "method": request.method})
    return error_response(500, "Internal server error", str(exc) if settings.DEBUG else None)


def create_app() -> FastAPI:
    """Build the application; tests call this to get an instance with fresh overrides."""
    application = FastAPI(
        title="Starter Pack Explorer API",
        description="Search and browse Bluesky starter packs and their members.",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Search", "description": "Paginated pack and user search"},
            {"name": "Packs", "description": "Pack detail and batch pack labels"},
            {"name": "Users", "description": "User detail with pack memberships"},
            {"name": "Stats", "description": "Corpus-wide counters"},
            {"name": "System", "description": "Health probes"},
        ],
    )

    cors_origins = settings.cors_origins_list
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )
    application.add_middleware(RequestLoggingMiddleware)
    log_application_lifecycle(
        "middleware_configured",
        {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins},
    )

    application.add_exception_handler(StarterPackExplorerError, handle_explorer_error)
    application.add_exception_handler(RequestValidationError, handle_validation_error)
    application.add_exception_handler(Exception, handle_unexpected_error)

    application.include_router(api_router, prefix=settings.API_PREFIX)
    application.include_router(health_router)
    log_application_lifecycle("routers_configured", {"api_prefix": settings.API_PREFIX})

    try:
        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            should_respect_env_var=False,
            should_instrument_requests_inprogress=True,
        )
        instrumentator.add().instrument(application).expose(application, include_in_schema=False, endpoint="/metrics")
        log_application_lifecycle("prometheus_configured", {"metrics_endpoint": "/metrics"})
    except Exception as e:
        log_error_with_context(e, {"operation": "prometheus_setup"})
        logger.error("Failed to configure Prometheus metrics: %s", e)

    return application


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "starter_pack_explorer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
