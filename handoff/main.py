"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException

from handoff.api.router import api_router
from handoff.core.config import settings
from handoff.core.exceptions import AppError
from handoff.core.logging_config import (
    generate_request_id,
    request_id_var,
    setup_logging,
)
from handoff.integrations.roblox.client import RobloxClient
from handoff.integrations.shopify.client import build_shopify_client
from handoff.integrations.sinks import DatabaseRecorder, build_recorder
from handoff.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(debug=settings.debug, environment=settings.environment)
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Registration sink: %s", app.state.recorder.name)

    recorder = app.state.recorder
    if isinstance(recorder, DatabaseRecorder) and settings.database_create_tables:
        await recorder.create_tables()
    yield
    logger.info("Shutting down...")
    await recorder.aclose()


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose accepted preflights carry headers and no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def _error_response(
    status_code: int,
    body: ErrorResponse,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    content = body.to_wire(exclude_none=True)
    content.update(extra or {})
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Sentry/GlitchTip init (before middleware)
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    # Outbound collaborators, built once per process and injected via handoff.core.deps
    app.state.shopify_client = build_shopify_client()
    app.state.roblox_client = RobloxClient()
    app.state.recorder = build_recorder(settings)

    # The widget is embedded on storefront domains, so any origin may call in.
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.message)
        else:
            logger.info("%s: %s", exc.code, exc.message)
        return _error_response(
            exc.status_code,
            ErrorResponse(error=exc.message, detail=exc.detail, code=exc.code),
            exc.extra,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = _error_response(exc.status_code, ErrorResponse(error=str(exc.detail)))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    # Global exception handler so every failure still gets a JSON body
    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions with proper JSON response."""
        logger.exception("Unhandled exception: %s", exc)
        return _error_response(
            500, ErrorResponse(error="Internal server error", code="internal_error")
        )

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": settings.project_name,
            "version": settings.version,
            "verify": f"{settings.api_prefix}/verify",
            "health": f"{settings.api_prefix}/health",
        }

    return app


app = create_app()
