"""
Metric Tracking API
===================
FastAPI application exposing metric recording, listing and daily charts.

HOW TO RUN:
    metric-tracker serve --port 3000

    or directly:

    uvicorn metric_tracker.api.app:create_app --factory --port 3000

API DOCUMENTATION:
    - Swagger UI: http://localhost:3000/docs
    - OpenAPI JSON: http://localhost:3000/openapi.json
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core import MetricService
from ..data import MetricRepository
from ..errors import InfrastructureError, MetricValidationError
from ..models import ServiceConfig
from .routes import router as metrics_router

logger = structlog.get_logger()


def create_app(
    config: Optional[ServiceConfig] = None,
    repository: Optional[MetricRepository] = None
) -> FastAPI:
    """Create the API application.

    Args:
        config: Service configuration, read from the environment if omitted
        repository: Storage backend overriding the configured one
    """
    config = config or ServiceConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = MetricService(config, repository=repository)
        await service.start()
        app.state.metric_service = service
        logger.info("API started", host=config.api.host, port=config.api.port)

        yield

        await service.stop()
        app.state.metric_service = None
        logger.info("API stopped")

    app = FastAPI(
        title="Metric Tracking API",
        description="Record distance and temperature metrics and chart them per local day.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2)
        )
        return response

    _register_error_handlers(app)
    app.include_router(metrics_router)

    @app.get("/health")
    async def health():
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(MetricValidationError)
    async def handle_validation_error(request: Request, exc: MetricValidationError):
        logger.warning(
            "Rejected request",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=exc.message
        )
        return JSONResponse(status_code=400, content={"success": False, "message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "property": ".".join(str(part) for part in error.get("loc", ())[1:]),
                "message": error.get("msg"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation failed", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Endpoint not found", "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
        )

    @app.exception_handler(InfrastructureError)
    async def handle_infrastructure_error(request: Request, exc: InfrastructureError):
        logger.error("Storage failure", path=request.url.path, error=exc.message, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )
