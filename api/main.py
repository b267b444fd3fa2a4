"""FastAPI application factory and main entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import API_VERSION, get_settings
from api.exceptions import LabReportError, MethodNotAllowedError
from api.logging import setup_logging

# Initialize logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting SparkLab Lab Report API",
        env=settings.env,
        debug=settings.debug,
        version=API_VERSION,
        page_size=settings.report_page_size,
    )

    yield

    logger.info("Shutting down SparkLab Lab Report API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SparkLab Lab Report API",
        description="Generate lab report PDFs from experiment data",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Middleware (order matters - first added = last executed)
    # CORS must be last (first to process)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    from api.middleware import BodySizeLimitMiddleware, LoggingMiddleware, RequestIDMiddleware

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_request_body_bytes)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    from api.routers import health, reports

    app.include_router(health.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(LabReportError)
    async def lab_report_error_handler(request: Request, exc: LabReportError) -> ORJSONResponse:
        """Handle application exceptions."""
        logger.warning(
            "Application error",
            error_code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Render routing errors (unknown path, wrong method) in the app's error shape."""
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            allowed = (exc.headers or {}).get("Allow", "POST")
            error = MethodNotAllowedError([method.strip() for method in allowed.split(",")])
            logger.warning("Method not allowed", method=request.method, path=request.url.path)
            return ORJSONResponse(
                status_code=error.status_code,
                content=error.to_content(),
                headers=error.headers,
            )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": str(exc.detail),
                "code": "not_found" if exc.status_code == 404 else "http_error",
            },
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle Pydantic validation errors."""
        # Inputs may be megabytes of base64 image data
        errors = [
            {key: value for key, value in error.items() if key != "input"}
            for error in jsonable_encoder(exc.errors())
        ]
        first_error = errors[0] if errors else {"msg": "Validation error"}

        # Drop the leading "body" segment from the location
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        logger.warning(
            "Validation error",
            path=request.url.path,
            errors=errors,
        )
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": first_error.get("msg", "Validation error"),
                "code": "validation_error",
                "field": field or None,
                "details": {"errors": errors},
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        """Handle unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "An unexpected error occurred",
                "code": "internal_error",
            },
        )


app = create_app()
