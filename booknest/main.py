"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() function returns configured app
   - Easier to test (can create multiple instances)

2. Lifespan Events
   - Code before yield runs on startup, code after yield on shutdown

3. Middleware Stack
   - Rate limiting (slowapi)
   - CORS: Allow cross-origin requests from the web front end

4. Exception Handlers
   - Domain errors (booknest.exceptions) → their HTTP status
   - Unreachable database → 503, other database errors → 500
   - Everything else → 500, detail shown only in debug mode
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from booknest import __version__
from booknest.config import get_settings
from booknest.exceptions import BookNestError
from booknest.routers import (
    auth_router,
    books_router,
    comment_likes_router,
    comments_router,
    genres_router,
    reviews_router,
    users_router,
    votes_router,
)
from booknest.services.rate_limiter import limiter, rate_limit_exceeded_handler

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Nothing is warmed up or cached: every request reads the database
    directly, so startup only reports the configuration.
    """
    logger.info(f"Starting {settings.app_name} {__version__}...")
    logger.info(f"Environment: {settings.environment}, debug: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## BookNest

A community book-sharing API.

### Features
- **Books**: Share links to books, browse by genre, search, sort by votes
- **Votes**: Upvote or downvote a book; repeat a vote to take it back
- **Comments**: Threaded discussion with likes
- **Reviews**: 1-5 star reviews with rating summaries and helpful marks

### Authentication
Sign in with Google or GitHub to get a JWT. Voting, commenting, liking and
reviewing also work anonymously; anonymous actions are deduplicated per
network address and target.

### Rate Limiting
Reads and writes are rate limited per client address.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(BookNestError)
    async def booknest_exception_handler(
        request: Request,
        exc: BookNestError,
    ) -> JSONResponse:
        """
        Render a domain error with its status code.

        Retryable errors (409 conflict, 503 unavailable) carry Retry-After.
        """
        headers = None
        if exc.retryable:
            retry_after = "0" if exc.status_code == status.HTTP_409_CONFLICT else "5"
            headers = {"Retry-After": retry_after}

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "retryable": exc.retryable},
            headers=headers,
        )

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def store_unavailable_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """Database unreachable outside a write (e.g. while reading)."""
        logger.error(f"Database unavailable: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "detail": "The database is temporarily unavailable.",
                "retryable": True,
            },
            headers={"Retry-After": "5"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle other SQLAlchemy errors.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "A database error occurred. Please try again later."
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    # prefix="/api/v1" creates versioned URLs: /api/v1/books, /api/v1/comments
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(votes_router, prefix=api_prefix)
    app.include_router(comments_router, prefix=api_prefix)
    app.include_router(comment_likes_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(genres_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    async def health_check() -> dict:
        """
        Liveness probe for load balancers and orchestrators.

        Does not touch the database.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
                "write_limit": settings.rate_limit_write,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn booknest.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "booknest.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
