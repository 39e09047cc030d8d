"""
Warden - Domain Errors
======================

Typed failures raised by the moderation core.

DESIGN:
    Every failure the core raises on purpose is a ModerationError subclass
    with a stable code. The HTTP layer maps codes to status codes; other
    callers can catch the family or a single kind.
"""

from typing import Optional


class ModerationError(Exception):
    """Base class for moderation core failures."""

    code: str = "MODERATION_ERROR"

    def __init__(self, message: str, *, resource: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.resource = resource


class NotFoundError(ModerationError):
    """A message, room, account or bridge mapping does not exist."""

    code = "NOT_FOUND"


class ForbiddenError(ModerationError):
    """The caller may not perform this action (e.g. reporting their own message)."""

    code = "FORBIDDEN"


class ConflictError(ModerationError):
    """Insert-if-absent kept losing uniqueness races after every retry."""

    code = "CONFLICT"


class UpstreamError(ModerationError):
    """A collaborator (weight policy, bridge, storage) failed."""

    code = "UPSTREAM"


__all__ = [
    "ModerationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "UpstreamError",
]
