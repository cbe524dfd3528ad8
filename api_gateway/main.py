"""
FastAPI application entry point.

Application setup with lifespan-managed services, middleware, error
handlers, static mounts and route registration.
"""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from api_gateway.dependencies import Services, build_services
from api_gateway.routes import assets, health, render, storyboard
from api_gateway.worker import prewarm_bundle, sweep_loop
from shared.config import Settings, settings as default_settings
from shared.errors import JobNotFoundError, PipelineError, ValidationError
from shared.logging import configure_logging, get_logger

logger = get_logger("api_gateway")


def _error_response(request: Request, status_code: int, error: str, code: str, **fields) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "retryable": False,
            "request_id": getattr(request.state, "request_id", None),
            **fields,
        }
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment otherwise)
        services: Prebuilt services (built from settings at startup otherwise)

    Returns:
        Configured application
    """
    if settings is None:
        settings = services.settings if services is not None else default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        Path(settings.assets_dir).mkdir(parents=True, exist_ok=True)
        Path(settings.output_dir).mkdir(parents=True, exist_ok=True)

        app_services = services or build_services(settings)
        app.state.services = app_services
        app.state.started_at = time.monotonic()

        background = [
            asyncio.create_task(prewarm_bundle(app_services.render), name="prewarm-bundle"),
            asyncio.create_task(
                sweep_loop(
                    app_services.registries,
                    timedelta(seconds=settings.job_max_age_seconds),
                    settings.job_sweep_interval_seconds,
                ),
                name="job-sweep",
            ),
        ]
        logger.info("Server started", extra={"environment": settings.environment})

        try:
            yield
        finally:
            for task in background:
                task.cancel()
            await asyncio.gather(*background, return_exceptions=True)
            await app_services.aclose()
            logger.info("Server stopped")

    app = FastAPI(
        title="Storyreel Render Server",
        description="Storyboard, asset generation and render job orchestration",
        version=health.VERSION,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add unique request ID to each request."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path
            }
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle malformed request bodies."""
        return _error_response(
            request, 400, "Invalid request", "VALIDATION_ERROR",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Handle validation errors."""
        return _error_response(request, 400, exc.message, exc.code or "VALIDATION_ERROR")

    @app.exception_handler(JobNotFoundError)
    async def job_not_found_handler(request: Request, exc: JobNotFoundError):
        """Handle unknown job ids."""
        return _error_response(
            request, 404, exc.message, exc.code or "JOB_NOT_FOUND", job_id=exc.job_id
        )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        """Handle pipeline errors."""
        logger.error("Pipeline error", exc_info=exc, extra={"job_id": exc.job_id})
        return _error_response(request, 500, exc.message, exc.code or "MODULE_FAILURE")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            extra={"request_id": getattr(request.state, "request_id", None)}
        )
        return _error_response(request, 500, "Internal server error", "INTERNAL_ERROR")

    # Register routes
    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(storyboard.router, prefix="/api/v1", tags=["storyboard"])
    app.include_router(assets.router, prefix="/api/v1", tags=["assets"])
    app.include_router(render.router, prefix="/api/v1", tags=["render"])

    # Persisted assets and rendered videos
    app.mount("/assets", StaticFiles(directory=settings.assets_dir, check_dir=False), name="assets")
    app.mount("/output", StaticFiles(directory=settings.output_dir, check_dir=False), name="output")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Storyreel Render Server", "version": health.VERSION}

    return app


app = create_app()


def serve() -> None:
    """Run the HTTP server."""
    uvicorn.run(app, host=default_settings.host, port=default_settings.port, log_config=None)


if __name__ == "__main__":
    serve()
