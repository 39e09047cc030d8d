"""
Warden - API Dependencies
=========================

FastAPI dependency injection utilities.
"""

import hmac
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from warden.api.errors import APIError, ErrorCode
from warden.core.config import get_config
from warden.engine import ModerationEngine


# =============================================================================
# Security
# =============================================================================

security = HTTPBearer(auto_error=False)


# =============================================================================
# Engine Reference
# =============================================================================

_engine_instance: Optional[ModerationEngine] = None


def set_engine(engine: Optional[ModerationEngine]) -> None:
    """Set the engine instance for dependency injection."""
    global _engine_instance
    _engine_instance = engine


def get_engine() -> ModerationEngine:
    """Get the engine instance."""
    if _engine_instance is None:
        raise APIError(ErrorCode.ENGINE_NOT_INITIALIZED)
    return _engine_instance


# =============================================================================
# Authentication Dependencies
# =============================================================================

async def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    Require the configured bearer token.

    The API is open when WARDEN_API_TOKEN is unset.
    """
    expected = get_config().api_token
    if not expected:
        return

    if credentials is None:
        raise APIError(ErrorCode.AUTH_MISSING_TOKEN, headers={"WWW-Authenticate": "Bearer"})

    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise APIError(ErrorCode.AUTH_INVALID_TOKEN, headers={"WWW-Authenticate": "Bearer"})


__all__ = [
    "security",
    "set_engine",
    "get_engine",
    "require_token",
]
