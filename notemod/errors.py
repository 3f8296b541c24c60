"""Error taxonomy shared by every notemod component.

Each class carries the HTTP status the web layer answers with, so transports
map errors in one place instead of per handler.
"""

from __future__ import annotations


class NotemodError(Exception):
    """Base class for all recoverable notemod errors."""

    status_code = 400
    code = "error"

    def __init__(self, message: str = "") -> None:
        self.message = message or (type(self).__doc__ or self.code).strip()
        super().__init__(self.message)


class Unauthenticated(NotemodError):
    """No valid session is attached to the request."""

    status_code = 401
    code = "unauthenticated"


class AuthError(NotemodError):
    """Invalid username or password."""

    status_code = 401
    code = "auth_failed"


class Forbidden(NotemodError):
    """The authenticated identity lacks the required role."""

    status_code = 403
    code = "forbidden"


class NotFound(NotemodError):
    """The requested submission does not exist."""

    status_code = 404
    code = "not_found"


class InvalidTransition(NotemodError):
    """The submission is no longer eligible for this action."""

    status_code = 409
    code = "invalid_transition"


class ValidationError(NotemodError):
    """Malformed input."""

    status_code = 422
    code = "validation_error"


class PersistenceError(NotemodError):
    """The storage backend failed; nothing was changed."""

    status_code = 503
    code = "persistence_error"
