"""
FastAPI application entry point for the User Service.

This module provides the application factory with:
- User CRUD and search endpoints
- Health endpoint backed by a MongoDB ping
- Request id and static response headers
- Request/response logging with field masking
- Prometheus metrics
- MongoDB client lifecycle and index creation
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pymongo import AsyncMongoClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.src.config import Settings, get_settings
from api.src.handlers.user_handler import INTERNAL_SERVER_ERROR, UserHandler
from api.src.middleware import HeaderMiddleware, RequestLoggingMiddleware
from api.src.repositories.user_repo import UserRepository
from api.src.routers import health, users
from api.src.search.filter_model import build_user_filter_model
from api.src.services.user_service import UserService
from api.src.validation import UserValidator
from shared.logging import configure_logging, get_logger
from shared.metrics import get_metrics_handler, setup_metrics

logger = structlog.get_logger(__name__)


async def general_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Handle unexpected exceptions."""
    logger.error("unexpected_exception", path=request.url.path, error=str(exc), exc_info=True)
    return PlainTextResponse(INTERNAL_SERVER_ERROR, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def wire_components(app: FastAPI, repository: UserRepository, settings: Settings) -> None:
    """
    Build the service and handler on top of a repository and store them on app.state.

    Args:
        app: FastAPI application
        repository: User repository
        settings: Application settings
    """
    filter_model = build_user_filter_model(strict=settings.search_strict)
    service = UserService(
        repository,
        filter_model,
        default_limit=settings.pagination_default_limit,
        max_limit=settings.pagination_max_limit,
    )
    app.state.user_repository = repository
    app.state.user_handler = UserHandler(
        service,
        UserValidator(),
        get_logger("api.src.handlers.user_handler"),
    )


def create_app(settings: Optional[Settings] = None, repository: Optional[UserRepository] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use; the cached environment settings by default
        repository: Repository to use; when omitted a MongoDB client is opened
            on startup and closed on shutdown

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        service_name=settings.app_name,
        environment=settings.environment,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifespan manager for startup and shutdown events.

        Handles:
        - MongoDB client creation and index setup
        - Service and handler wiring
        - Closing the client on shutdown
        """
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        client = None
        try:
            if repository is None:
                logger.info(
                    "initializing_mongo_client",
                    database=settings.mongo_database,
                    collection=settings.mongo_collection
                )
                client = AsyncMongoClient(
                    settings.mongo_uri,
                    tz_aware=True,
                    timeoutMS=settings.mongo_timeout_ms,
                    serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
                )
                collection = client[settings.mongo_database][settings.mongo_collection]
                repo = UserRepository(collection)
                if settings.mongo_create_indexes:
                    await repo.ensure_indexes()
                wire_components(app, repo, settings)

            logger.info("application_started", app_name=settings.app_name)

            yield

        except Exception as e:
            logger.error("application_startup_failed", error=str(e), exc_info=True)
            raise

        finally:
            logger.info("application_shutting_down")
            if client is not None:
                await client.close()
                logger.info("mongo_client_closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CRUD and search API for users stored in MongoDB.",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    if repository is not None:
        wire_components(app, repository, settings)

    # Middleware added last runs first: headers wrap logging so the
    # request id is bound before anything is logged.
    metrics = setup_metrics() if settings.metrics_enabled else None
    app.add_middleware(
        RequestLoggingMiddleware,
        logger=get_logger("api.src.middleware.request_logging"),
        settings=settings,
        metrics=metrics,
    )
    app.add_middleware(
        HeaderMiddleware,
        header_name=settings.request_id_header,
        response_headers=settings.response_headers,
        on_error=general_exception_handler,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning("validation_error", path=request.url.path, errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content={"detail": exc.errors()}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router)
    app.include_router(users.router)

    if metrics is not None:
        metrics_handler = get_metrics_handler(metrics)

        @app.get(settings.metrics_endpoint, tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=metrics_handler(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
