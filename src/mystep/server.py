"""FastAPI application factory and server configuration."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from mystep.cache import close_redis
from mystep.config import get_settings
from mystep.db.base import close_db, init_db
from mystep.errors import (
    LearningPathError,
    learning_path_error_handler,
    request_validation_error_handler,
)
from mystep.log_config import configure_logging
from mystep.middleware import RateLimitMiddleware, RequestIDMiddleware
from mystep.routes import learning_path

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    await init_db()
    logger.info("startup_complete")

    yield

    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(LearningPathError, learning_path_error_handler)
    app.add_exception_handler(
        RequestValidationError, request_validation_error_handler
    )

    # Routes
    app.include_router(
        learning_path.router, prefix="/api/learning-path", tags=["learning-path"]
    )

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "OK",
            "service": settings.app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    return app


app = create_app()
