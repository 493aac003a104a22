"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.
It sets up all routes, middleware, and exception handlers.

Design Decisions:
- Use lifespan events for startup/shutdown
- Create database tables on startup
- Answer malformed request bodies with 400, like the explicit checks
- Expose health and readiness endpoints
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from code_reviewer import __version__
from code_reviewer.api import router as api_router
from code_reviewer.config import get_settings
from code_reviewer.logging_config import get_logger, setup_logging
from code_reviewer.storage.database import check_db, init_db

# Initialize logging first
setup_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Validates configuration and prepares the database before serving.
    """
    settings = get_settings()
    logger.info(
        "Starting AI Code Reviewer",
        host=settings.host,
        port=settings.port,
        model=settings.openai_model
    )

    try:
        init_db()
        logger.info("Database ready")
    except Exception as e:
        logger.error(
            "Startup failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise

    yield

    logger.info("Shutting down AI Code Reviewer")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="AI Code Reviewer",
        description="AI-assisted code review with optional review history",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Reject malformed bodies with 400."""
        logger.info(
            "Invalid request",
            path=request.url.path,
            num_errors=len(exc.errors())
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Invalid request",
                "errors": jsonable_encoder(exc.errors())
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": str(exc) or "Internal server error",
                "type": type(exc).__name__
            }
        )

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "AI Code Reviewer",
            "version": __version__,
            "status": "running",
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns basic health status for load balancers and monitors.
        """
        return {
            "status": "healthy",
            "service": "ai-code-reviewer",
            "version": __version__
        }

    @app.get("/ready")
    def readiness_check():
        """
        Readiness check endpoint.

        Verifies that the database is reachable.
        """
        try:
            check_db()
            return {
                "status": "ready",
                "service": "ai-code-reviewer"
            }
        except Exception as e:
            logger.error("Readiness check failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Not ready: {e}"
            )

    return app


# Create the application instance
app = create_app()
