"""
Error taxonomy for the resit portal.

Workflow code raises these; the FastAPI exception handler in main.py maps
them to HTTP responses of the form {"error": message}. Batch workflows
catch them per row and record the message instead.
"""


class PortalError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Malformed input: bad grade token, missing field, unreadable file."""

    status_code = 400


class RejectedError(PortalError):
    """A well-formed request refused by a business rule."""

    status_code = 400


class ConflictError(RejectedError):
    """The resource already exists (duplicate resit registration)."""


class NotFoundError(PortalError):
    status_code = 404


class ForbiddenError(PortalError):
    status_code = 403


class AuthenticationError(PortalError):
    status_code = 401
