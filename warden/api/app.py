"""
Warden - FastAPI Application
============================

FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from warden.api.dependencies import get_engine, set_engine
from warden.api.errors import APIError, ErrorCode, code_for_domain_error, error_response
from warden.api.routers import health_router, reports_router, scores_router, spam_router
from warden.core.config import get_config
from warden.core.errors import ModerationError
from warden.core.logger import logger
from warden.engine import ModerationEngine


API_PREFIX = "/api/warden"


# =============================================================================
# OpenAPI Documentation
# =============================================================================

API_DESCRIPTION = """
## Warden Trust & Safety API

Abuse report ingestion, score inspection and spam screening.

### Authentication

When `WARDEN_API_TOKEN` is set, every endpoint except `/health` requires:
```
Authorization: Bearer <token>
```

### Error Responses

All errors follow a consistent format:
```json
{
    "success": false,
    "error_code": "MESSAGE_NOT_FOUND",
    "message": "Message not found",
    "details": null
}
```
"""

OPENAPI_TAGS = [
    {"name": "Health", "description": "Health check and status endpoints"},
    {"name": "Reports", "description": "Abuse report submission and listing"},
    {"name": "Scores", "description": "Current windowed report scores"},
    {"name": "Spam", "description": "Spam classification for new accounts"},
]


# =============================================================================
# Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds a default engine when create_app() was called without one
    and closes it again on shutdown.
    """
    owns_engine = False
    try:
        get_engine()
    except APIError:
        set_engine(ModerationEngine())
        owns_engine = True

    logger.tree("API Starting", [
        ("Prefix", API_PREFIX),
        ("Engine", "Built by app" if owns_engine else "Injected"),
    ], emoji="🚀")

    yield

    logger.tree("API Stopping", [], emoji="🛑")
    if owns_engine:
        await get_engine().close()
        set_engine(None)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(engine: Optional[ModerationEngine] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        engine: Optional engine instance for dependency injection.

    Returns:
        Configured FastAPI application.
    """
    config = get_config()

    app = FastAPI(
        title="Warden API",
        description=API_DESCRIPTION,
        version="1.0.0",
        docs_url=f"{API_PREFIX}/docs" if config.api_debug else None,
        redoc_url=f"{API_PREFIX}/redoc" if config.api_debug else None,
        openapi_url=f"{API_PREFIX}/openapi.json" if config.api_debug else None,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    if engine is not None:
        set_engine(engine)

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Return APIError bodies without FastAPI's detail wrapper."""
        return error_response(
            exc.error_code,
            status_code=exc.status_code,
            message=exc.error_message,
            details=exc.error_details,
            headers=exc.headers,
        )

    @app.exception_handler(ModerationError)
    async def moderation_error_handler(request: Request, exc: ModerationError):
        """Translate moderation core failures to 404/403/409/502."""
        code = code_for_domain_error(exc)
        logger.warning("Moderation Request Rejected", [
            ("Path", str(request.url.path)[:50]),
            ("Error Code", code.value),
            ("Error", exc.message[:100]),
        ])
        return error_response(code, message=exc.message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions with consistent error format."""
        logger.error("Unhandled API Error", [
            ("Path", str(request.url.path)[:50]),
            ("Method", request.method),
            ("Error Type", type(exc).__name__),
            ("Error", str(exc)[:100]),
        ])

        return error_response(
            ErrorCode.SERVER_ERROR,
            details={"path": str(request.url.path)} if config.api_debug else None,
        )

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(reports_router, prefix=API_PREFIX)
    app.include_router(scores_router, prefix=API_PREFIX)
    app.include_router(spam_router, prefix=API_PREFIX)

    # Root health check (for load balancers)
    @app.get("/health")
    async def root_health():
        return {"status": "healthy"}

    return app


__all__ = ["create_app", "API_PREFIX"]
