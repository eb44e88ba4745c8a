"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from .. import __version__
from ..core.config import Settings
from ..jobs.service import JobService
from ..storage.redis_client import create_redis_client, close_redis_client
from .routes import admin, jobs
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)


def create_app(job_service: Optional[JobService] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        job_service: Pre-built service (tests). When omitted, the lifespan
            opens a Redis client from environment settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting job fleet API...")
        client = None
        if job_service is not None:
            app.state.job_service = job_service
        else:
            settings = Settings.from_env()
            client = create_redis_client(settings)
            app.state.job_service = JobService(client, settings)
        try:
            yield
        finally:
            logger.info("Shutting down job fleet API...")
            await close_redis_client(client)

    app = FastAPI(
        title="hashfleet API",
        description="Self-scaling text hashing job fleet",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions."""
        if exc.status_code >= 500:
            logger.error(f"HTTP error {exc.status_code}: {exc.detail}")
        else:
            logger.warning(f"HTTP error {exc.status_code}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                path=str(request.url.path),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are client errors, reported as 400."""
        logger.warning(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Invalid request body",
                detail=[
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
                    for e in exc.errors()
                ],
                path=str(request.url.path),
            ).model_dump(mode="json"),
        )

    app.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
    app.include_router(admin.router, tags=["admin"])

    return app


app = create_app()
